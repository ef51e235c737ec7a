"""
Redaction of GitHub credentials in log and error text.

Tokens turn up where they should not: gh CLI stderr, exception messages
from requests, echoed Authorization headers. Anything logged or shown to
the user about a failed call passes through here first.
"""

import re

REDACTED = "***REDACTED***"

# (name, pattern, replacement); applied in order
SENSITIVE_PATTERNS = [
    # ghp_ classic, gho_ OAuth, ghu_ user-to-server, ghs_ server-to-server, ghr_ refresh
    ("github_token", re.compile(r'\b(gh[pousr]_)[A-Za-z0-9]{20,}\b'), r'\1' + REDACTED),
    ("fine_grained_pat", re.compile(r'\b(github_pat_)[A-Za-z0-9_]{20,}\b'), r'\1' + REDACTED),
    ("bearer", re.compile(r'(bearer\s+)[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE), r'\1' + REDACTED),
    ("authorization_header",
     re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)((?:bearer|token)\s+)?[^"\'\s]+', re.IGNORECASE),
     r'\1\2' + REDACTED),
    ("token_assignment", re.compile(r'(token["\']?\s*[:=]\s*["\']?)[^"\'\s]+', re.IGNORECASE), r'\1' + REDACTED),
]


def sanitize_log_message(message: str) -> str:
    """Return message with every recognised credential replaced by a marker"""
    if not message:
        return message

    for _name, pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def sanitize_error(error: Exception) -> str:
    return sanitize_log_message(str(error))


def safe_log_error(error: Exception, context: str = "") -> str:
    """
    Describe an exception for the log without leaking credentials.

    Args:
        error: The exception
        context: What was being attempted, e.g. "GraphQL request failed"

    Returns:
        "<context>: <ExceptionType>: <sanitized message>"
    """
    description = f"{type(error).__name__}: {sanitize_error(error)}"
    return f"{context}: {description}" if context else description
