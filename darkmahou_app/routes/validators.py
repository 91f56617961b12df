"""Lightweight request validation helpers."""

from typing import Any, Dict, List, Tuple, Optional

from darkmahou_app.config import MAX_EPISODE_NUMBER
from darkmahou_app.torrents import RESOLUTIONS


Rule = Tuple[str, type, Optional[int]]

MAX_QUERY_LENGTH = 200
MAX_HTML_LENGTH = 5 * 1024 * 1024

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def validate_fields(payload: Dict[str, Any], rules: List[Rule]) -> Optional[str]:
    """
    Validate required fields with optional max length.

    Args:
        payload: Incoming JSON dict.
        rules: List of (field, type, max_length or None).

    Returns:
        None if valid, or error message string.
    """
    for field, expected_type, max_len in rules:
        if field not in payload:
            return f"Missing required field: {field}"
        value = payload.get(field)
        if not isinstance(value, expected_type):
            return f"Field '{field}' must be {expected_type.__name__}"
        if max_len is not None and len(str(value)) > max_len:
            return f"Field '{field}' exceeds max length {max_len}"
    return None


def validate_episode(value: Any) -> Tuple[int, Optional[str]]:
    """
    Parse an optional episode number query parameter.

    Returns:
        Tuple of (episode or 0, error_or_none)
    """
    if value in (None, ''):
        return 0, None
    try:
        episode = int(value)
    except (ValueError, TypeError):
        return 0, "Invalid episode number"
    if episode < 0 or episode > MAX_EPISODE_NUMBER:
        return 0, f"Episode number must be between 0 and {MAX_EPISODE_NUMBER}"
    return episode, None


def validate_resolution(value: Optional[str]) -> Tuple[str, Optional[str]]:
    """Accepts '', one of RESOLUTIONS, or a bare number like '1080'."""
    if not value:
        return "", None
    value = value.strip()
    if value.isdigit():
        value = f"{value}p"
    for resolution in RESOLUTIONS:
        if value.lower() == resolution.lower():
            return resolution, None
    return "", f"Unsupported resolution: {value}"


def parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in TRUE_VALUES


def sanitize_string(value: str, max_length: int = 500, allow_newlines: bool = False) -> str:
    """
    Sanitize a string by removing control characters and limiting length.

    Args:
        value: String to sanitize
        max_length: Maximum allowed length
        allow_newlines: Whether to allow newlines

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return ""

    if allow_newlines:
        result = ''.join(c for c in value if c >= ' ' or c in '\n\r\t')
    else:
        result = ''.join(c for c in value if c >= ' ')

    return result[:max_length]
