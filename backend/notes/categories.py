"""Fixed note categories assigned by the classifier."""

CATEGORIES = [
    # Personal & Life
    "journal", "reflections", "goals", "ideas", "thoughts", "dreams", "personal-growth",
    # Health & Fitness
    "recipes", "workouts", "meal-planning", "health-tips", "medical", "nutrition",
    # Work & Productivity
    "meeting-notes", "tasks", "project-ideas", "research", "documentation", "work-thoughts",
    # Learning & Growth
    "book-notes", "article-notes", "podcast-transcripts", "courses", "tutorials", "learning",
    # Relationships & Social
    "relationship-thoughts", "family", "social-interactions", "networking", "communication",
    # Financial & Planning
    "budgeting", "investments", "financial-planning", "expenses", "money-thoughts",
    # Travel & Adventure
    "travel-plans", "places-to-visit", "travel-experiences", "adventure-ideas",
    # Creative & Hobbies
    "writing-ideas", "art-projects", "creative-inspiration", "hobbies", "entertainment",
    # Technical & Code
    "coding-notes", "technical-docs", "troubleshooting", "apis", "programming",
    # Other
    "other", "miscellaneous", "random-thoughts",
]

DEFAULT_CATEGORY = "other"

_CATEGORY_SET = frozenset(CATEGORIES)


def is_valid_category(category: str) -> bool:
    return category in _CATEGORY_SET


def normalize_category(category: str) -> str:
    """Lower-case and validate a model-produced category, falling back to 'other'"""
    category = (category or "").strip().lower()
    return category if is_valid_category(category) else DEFAULT_CATEGORY
