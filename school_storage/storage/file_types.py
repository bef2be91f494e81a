"""
File type classification for uploads.
"""
import os
from dataclasses import dataclass
from typing import Dict, Any

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".csv": "text/csv",
    ".txt": "text/plain",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
}

CATEGORIES = {
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".gif": "image",
    ".webp": "image",
    ".svg": "image",
    ".pdf": "document",
    ".doc": "document",
    ".docx": "document",
    ".xls": "document",
    ".xlsx": "document",
    ".csv": "document",
    ".txt": "document",
    ".mp4": "video",
    ".mov": "video",
}


@dataclass(frozen=True)
class FileInfo:
    """
    Extension, MIME type and coarse category of a file
    """
    extension: str
    mime_type: str
    category: str  # image, document, video, other

    def to_dict(self) -> Dict[str, Any]:
        return {
            'extension': self.extension,
            'mime_type': self.mime_type,
            'category': self.category,
        }


def get_file_info(filename: str) -> FileInfo:
    """
    Classify a file by its extension

    Unknown extensions map to application/octet-stream and category 'other'.
    """
    ext = os.path.splitext(filename)[1].lower()

    return FileInfo(
        extension=ext,
        mime_type=MIME_TYPES.get(ext, DEFAULT_MIME_TYPE),
        category=CATEGORIES.get(ext, "other"),
    )


def validate_file_size(size: int, max_size_mb: float = 5) -> bool:
    """Check that size is at most max_size_mb megabytes (inclusive)"""
    return size <= max_size_mb * 1024 * 1024
