"""
Prompt templates for note analysis, summarization and question answering.

Templates use str.format(); literal braces are doubled.
"""

# =============================================================================
# Note Analysis (title + category + optional summary in one call)
# =============================================================================

NOTE_ANALYSIS_PROMPT = """Analyze this note and return a JSON object with the following fields:

1. "title": A concise, descriptive title (2-10 words, no quotes or special formatting)
2. "category": Exactly ONE category from this list: {categories}
3. Choose the MOST relevant category. If uncertain, use "other"
{summary_instruction}

IMPORTANT: Return ONLY valid JSON, no markdown formatting, no code blocks, just the raw JSON object.

Content to analyze:
{excerpt}

Return this exact JSON structure:
{{"title": "your title here", "category": "category-name", {summary_field}}}"""

SUMMARY_INSTRUCTION = (
    '4. "summary": A concise summary (2-4 sentences) capturing the key points and main takeaways'
)


# =============================================================================
# Classification and titles
# =============================================================================

CLASSIFY_NOTE_PROMPT = """Classify this note into exactly ONE of these categories: {categories}

Note Title: {title}
Note Content: {content}

Rules:
1. Return ONLY the category name, nothing else
2. Choose the MOST relevant category
3. If uncertain, use "other"
4. Be consistent with similar content

Category:"""

TITLE_PROMPT = """Generate a concise, descriptive title for this note content. The title should:

1. Be accurate and specific to the content
2. Be 2-10 words maximum
3. Capture the main topic/theme
4. Be clear and searchable
5. NOT include quotation marks or special formatting

Content:
{excerpt}

Title:"""


# =============================================================================
# Summaries
# =============================================================================

DEFAULT_SUMMARY_PROMPT = """Please provide a concise and well-formatted summary of the following content. The summary should:

1. Be concise and to-the-point - avoid unnecessary words
2. If the content includes lists or multiple points, clearly outline each point with bullet points or numbered lists
3. Use proper spacing with line breaks between different sections or topics
4. Structure the information logically with clear paragraphs
5. Capture the key takeaways and main ideas
6. If there are actionable items or recommendations, list them clearly
7. Maintain the essential context but eliminate redundancy

Content to summarize:
{content}

Summary:"""

CUSTOM_SUMMARY_PROMPT = """{custom_prompt}

Content to summarize:
{content}"""

STRUCTURED_SUMMARY_PROMPT = """{prompt_text}

You MUST respond with valid JSON matching this exact structure:
{prompt_schema}

IMPORTANT:
- Return ONLY valid JSON, no markdown formatting, no code blocks
- The "summary" field must always be included as a string
- Follow the schema structure exactly

Content to analyze:
{content}"""


# =============================================================================
# Question answering
# =============================================================================

ANSWER_PROMPT = """You are an AI assistant helping someone understand their personal notes. Based on the provided context from their notes, answer their question in a helpful and conversational way.

Context from their notes:
{context}

Question: {question}

Instructions:
1. Answer based ONLY on the information provided in the context
2. Be conversational and helpful
3. If the context doesn't contain enough information, say so politely
4. Reference specific notes when relevant (e.g., "According to your note about...")
5. Keep the answer concise but complete

Answer:"""

ASK_ABOUT_CONTENT_PROMPT = """{prompt}

Content to analyze:
{content}"""
