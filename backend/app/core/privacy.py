"""De-identification helpers for research exports.

Provides:
- Pseudonymization of patient identifiers (32-bit FNV-1a)
- Redaction of free text before it reaches log output

NOTE: Pseudonyms are a de-identification aid that lets independent
exports using the same algorithm link records for one person. They are
not an access-control mechanism; collisions in the 32-bit space are
tolerated.
"""

import re

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
PSEUDONYM_PREFIX = "P"

# UUIDs are the platform's direct patient identifiers
UUID_PATTERN = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b"
)


def fnv1a_32(data: bytes) -> int:
    """Compute the 32-bit FNV-1a hash of ``data``."""
    h = FNV_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def pseudonymize(identifier: str) -> str:
    """Derive the stable research pseudonym for a patient identifier.

    Args:
        identifier: The real patient identifier

    Returns:
        ``"P"`` followed by 8 uppercase hex digits, e.g. ``"P1A2B3C4D"``
    """
    return f"{PSEUDONYM_PREFIX}{fnv1a_32(identifier.encode('utf-8')):08X}"


def sanitize_for_logging(text: str, max_length: int = 200) -> str:
    """Sanitize text for safe logging.

    Truncates and replaces embedded patient UUIDs with their pseudonyms so
    error messages from failed runs can be logged and persisted.

    Args:
        text: Text to sanitize
        max_length: Maximum length of returned text

    Returns:
        Sanitized text safe for logging
    """
    text = UUID_PATTERN.sub(lambda m: pseudonymize(m.group(0).lower()), text)
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text
