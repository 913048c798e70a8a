"""Human-readable, creation-time sortable identifiers.

Identifiers have the shape ``PREFIX-yyyyMMddHHmmss-SUFFIX``: an entity tag,
the UTC generation time at one-second resolution and a random suffix drawn
from ``A-Z0-9``. The suffix only disambiguates ids created within the same
second, so callers that need stronger collision resistance should raise
``suffix_length`` or check for existence before inserting.

All functions here are pure apart from reading the clock and the OS random
source, and are safe to call from any number of threads or tasks.
"""

import re
import secrets
import string
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

ALPHABET = string.ascii_uppercase + string.digits
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
TIMESTAMP_DIGITS = 14
DEFAULT_SUFFIX_LENGTH = 4

_TIMESTAMP_PART = re.compile(r"-(\d{14})-[A-Z0-9]+\Z", re.ASCII)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate(prefix: str, suffix_length: int = DEFAULT_SUFFIX_LENGTH) -> str:
    """
    Generate an identifier for the given entity prefix.

    Args:
        prefix: Short tag naming the entity kind (e.g. "USR", "STR")
        suffix_length: Number of random characters appended (default 4)

    Returns:
        Identifier such as ``USR-20251003143025-7QZ2``

    Raises:
        ValueError: If suffix_length is smaller than 1
    """
    if suffix_length < 1:
        raise ValueError("suffix_length must be at least 1")

    timestamp = _utcnow().strftime(TIMESTAMP_FORMAT)
    return f"{prefix}-{timestamp}-{_random_suffix(suffix_length)}"


@lru_cache(maxsize=64)
def _pattern_for(prefix: str) -> re.Pattern:
    return re.compile(
        rf"{re.escape(prefix)}-\d{{{TIMESTAMP_DIGITS}}}-[A-Z0-9]+", re.ASCII
    )


def is_valid(identifier: Any, expected_prefix: str) -> bool:
    """
    Check that ``identifier`` is a well-formed id for ``expected_prefix``.

    Never raises: ``None``, empty strings and non-string values are
    simply invalid.
    """
    if not identifier or not isinstance(identifier, str):
        return False
    if not isinstance(expected_prefix, str):
        return False
    return _pattern_for(expected_prefix).fullmatch(identifier) is not None


def parse_timestamp(identifier: Any) -> Optional[datetime]:
    """
    Extract the UTC creation time embedded in an identifier.

    Returns:
        Timezone-aware datetime, or None if the id has no parsable timestamp
    """
    if not identifier or not isinstance(identifier, str):
        return None

    match = _TIMESTAMP_PART.search(identifier)
    if match is None:
        return None

    try:
        parsed = datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)
