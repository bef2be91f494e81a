"""
Unique storage names for uploaded files.

Every generated name embeds a millisecond timestamp and 8 random bytes,
so two uploads of the same original filename never share a key.
"""
import os
import re
import secrets
import time

MAX_NAME_LENGTH = 100

_UNSAFE_CHARS = re.compile(r"[^a-z0-9.-]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def sanitize_name(name: str) -> str:
    """
    Normalize a filename fragment for use in an object key

    Lowercases, replaces anything outside [a-z0-9.-] with '_', collapses
    runs of '_', trims '_' from both ends and truncates to 100 characters.
    Applying it twice gives the same result as applying it once.
    """
    sanitized = _UNSAFE_CHARS.sub("_", name.lower())
    sanitized = _REPEATED_UNDERSCORES.sub("_", sanitized).strip("_")
    # Truncation can expose a trailing '_'
    return sanitized[:MAX_NAME_LENGTH].rstrip("_")


def generate_unique_filename(original_filename: str, preserve_extension: bool = True) -> str:
    """
    Generate a collision-resistant filename

    Format: ``<epoch-millis>_<16 hex chars>_<sanitized base>[ext]``

    Args:
        original_filename: Filename as supplied by the uploader
        preserve_extension: Keep the original extension verbatim (case included)

    Returns:
        Unique filename segment
    """
    timestamp = int(time.time() * 1000)
    random_hash = secrets.token_hex(8)

    if preserve_extension:
        base, ext = os.path.splitext(os.path.basename(original_filename))
        # NOTE: ext keeps its case, so "photo.PNG" ends in ".PNG"
        return f"{timestamp}_{random_hash}_{sanitize_name(base)}{ext}"

    return f"{timestamp}_{random_hash}_{sanitize_name(original_filename)}"
