"""
utils/validators.py
Input validation for values arriving from the CLI or the HTTP query string
"""

from typing import Optional, Tuple

from utils.constants import PORT_MIN, PORT_MAX


def validate_port(port: int) -> Tuple[bool, str]:
    """
    Validate that port number is in valid range [1-65535].

    Args:
        port: Port number to validate

    Returns:
        (is_valid, error_message) tuple
    """
    if not isinstance(port, int) or isinstance(port, bool):
        return (False, "Port must be an integer")

    if port < PORT_MIN or port > PORT_MAX:
        return (False, f"Port {port} out of valid range [{PORT_MIN}-{PORT_MAX}]")

    return (True, "")


def parse_port(raw: Optional[str]) -> Tuple[Optional[int], str]:
    """
    Parse a port received as text (query string, CLI).

    Returns:
        (port, error_message) -- port is None when invalid
    """
    if raw is None or not str(raw).strip():
        return (None, "Port is required")
    text = str(raw).strip()
    if not (text.isascii() and text.isdecimal()):
        return (None, f"Invalid port {text!r}: expected an integer")
    port = int(text)
    ok, err = validate_port(port)
    if not ok:
        return (None, err)
    return (port, "")


def validate_range_text(spec: str, max_length: int = 1024) -> Tuple[bool, str]:
    """
    Cheap pre-check of a range expression before it reaches the parser.

    Rejects non-strings, empty input and oversized query values.
    """
    if not spec or not isinstance(spec, str):
        return (False, "IP range must be a non-empty string")
    if len(spec) > max_length:
        return (False, f"IP range expression longer than {max_length} characters")
    return (True, "")


__all__ = ["validate_port", "parse_port", "validate_range_text"]
