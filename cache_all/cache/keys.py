"""
cache-all — Key Sanitization

Maps arbitrary cache keys to tokens that are safe as a single filesystem
path segment. The same function runs on every read and write path, so a
logical key always resolves to the same file. Keys that sanitize to the
same token collide.
"""

import re

RECORD_SUFFIX = ".json"

# Longest file name most filesystems accept, in bytes
MAX_FILENAME_BYTES = 255

_ILLEGAL_RE = re.compile(r'[/?<>\\:*|"]')
_CONTROL_RE = re.compile(r"[\x00-\x1f\x80-\x9f]")
_WINDOWS_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING_RE = re.compile(r"[. ]+$")


def _truncate_utf8(value: str, max_bytes: int) -> str:
    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def sanitize_key(key: str) -> str:
    """
    Strip characters that are unsafe in a file name.

    Removes path separators and other reserved characters, control
    characters, dot-only names, Windows device names and trailing dots or
    spaces, then truncates so ``<token>.json`` fits in 255 bytes.

    Returns:
        Sanitized token (may be empty if nothing safe remains)
    """
    token = _ILLEGAL_RE.sub("", str(key))
    token = _CONTROL_RE.sub("", token)
    # Stripping trailing dots first also empties dot-only names like ".."
    token = _WINDOWS_TRAILING_RE.sub("", token)
    token = _WINDOWS_RESERVED_RE.sub("", token)
    token = _truncate_utf8(token, MAX_FILENAME_BYTES - len(RECORD_SUFFIX))
    # Truncation can expose a new trailing dot or space
    return _WINDOWS_TRAILING_RE.sub("", token)


def record_filename(token: str) -> str:
    return f"{token}{RECORD_SUFFIX}"


def key_from_filename(filename: str) -> str | None:
    """Recover the sanitized key from a record file name, or None for other files."""
    if not filename.endswith(RECORD_SUFFIX):
        return None
    token = filename[: -len(RECORD_SUFFIX)]
    return token or None
