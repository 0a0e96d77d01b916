"""
Security helpers for the notes service.

- Sensitive-content gate: notes that look like they contain secrets are
  never embedded, so credentials cannot leak into the vector index.
- Response security headers middleware.
"""

import logging
import re
from typing import List, Optional, Tuple

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


# (name, compiled pattern). Names are logged instead of the matched text.
SENSITIVE_PATTERNS: List[Tuple[str, "re.Pattern[str]"]] = [
    # API keys
    ("api_key_assignment", re.compile(r"(?i)(api[_-]?key|apikey)\s*[:=]\s*[a-zA-Z0-9_-]{10,}")),
    ("openai_key", re.compile(r"sk-[a-zA-Z0-9]{32,}")),
    ("google_api_key", re.compile(r"AIza[a-zA-Z0-9_-]{35}")),
    ("google_oauth_token", re.compile(r"ya29\.[a-zA-Z0-9_-]+")),
    ("github_pat", re.compile(r"ghp_[a-zA-Z0-9]{36}")),
    ("github_oauth_token", re.compile(r"gho_[a-zA-Z0-9]{36}")),

    # Passwords
    ("password_assignment", re.compile(r"(?i)(password|passwd|pwd)\s*[:=]\s*\S{6,}")),
    ("quoted_password", re.compile(r"(?i)(pass|pw)\s*[:=]\s*['\"]\S{6,}['\"]")),

    # Secrets and tokens
    ("secret_assignment", re.compile(r"(?i)(secret|token|auth)\s*[:=]\s*[a-zA-Z0-9_-]{10,}")),
    ("bearer_token", re.compile(r"(?i)bearer\s+[a-zA-Z0-9_-]{10,}")),
    ("access_token", re.compile(r"(?i)access[_-]?token\s*[:=]\s*[a-zA-Z0-9_-]{10,}")),

    # Database connection strings
    ("database_url", re.compile(r"(?i)(mongodb|mysql|postgres|redis)://\S+")),
    ("connection_string", re.compile(r"(?i)connection[_-]?string\s*[:=]\s*[^\s;]+")),

    # Private keys
    ("pem_private_key", re.compile(r"-----BEGIN [A-Z\s]+ PRIVATE KEY-----")),
    ("private_key_assignment", re.compile(r"(?i)private[_-]?key\s*[:=]\s*[a-zA-Z0-9+/=]{20,}")),

    # Slack tokens
    ("slack_bot_token", re.compile(r"xoxb-[a-zA-Z0-9-]+")),
    ("slack_user_token", re.compile(r"xoxp-[a-zA-Z0-9-]+")),
]


def find_sensitive_pattern(text: str) -> Optional[str]:
    """Return the name of the first sensitive pattern found in text, or None"""
    for name, pattern in SENSITIVE_PATTERNS:
        if pattern.search(text):
            return name
    return None


def contains_sensitive_data(text: str) -> bool:
    """
    Check if text contains API keys, passwords, tokens or connection strings.

    Best-effort regex gate: false positives and negatives are accepted.
    """
    name = find_sensitive_pattern(text)
    if name:
        logger.info("Sensitive data pattern matched: %s", name)
        return True
    return False


class SecurityHeadersMiddleware(MiddlewareMixin):
    """Adds basic security headers and disables caching of API responses"""

    def process_response(self, request, response):
        response['X-Content-Type-Options'] = 'nosniff'
        response['X-Frame-Options'] = 'DENY'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        # Note content is private; never let intermediaries cache it
        if request.path.startswith('/api/'):
            response['Cache-Control'] = 'no-cache, no-store, must-revalidate'
            response['Pragma'] = 'no-cache'
            response['Expires'] = '0'

        return response
