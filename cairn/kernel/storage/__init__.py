"""Content-addressed storage access."""

from cairn.kernel.storage.content_resolver import ContentResolver, normalize_address

__all__ = ["ContentResolver", "normalize_address"]
