"""
Object Key Schemes

Builds organized object keys for each managed bucket:
- homepage-images:  {category}/{unique}
- gallery-images:   {YYYY}/{MM}/[{category}/]{unique}
- profile-images:   {user_id}/{unique}
- study-resources:  class-{class_id}/subject-{subject_id}/{category}/{unique}
- general-uploads:  {YYYY}/{MM}/{type}/{unique}

Category labels are checked against a closed allow-list; unknown labels
fall back to a default folder instead of rejecting the upload. Keys are
relative to the bucket, which the caller applies.
"""
import posixpath
import re
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union
from urllib.parse import urlparse

from school_storage.core.exceptions import ValidationError
from school_storage.storage.buckets import Bucket
from school_storage.storage.naming import generate_unique_filename, sanitize_name

HOMEPAGE_CATEGORIES = ("hero", "featured", "about", "slider")
STUDY_RESOURCE_CATEGORIES = ("past-papers", "notes", "assignments", "textbooks")
GENERAL_UPLOAD_TYPES = ("documents", "csv", "reports", "signatures")

DEFAULT_CATEGORY = "general"
DEFAULT_UPLOAD_TYPE = "misc"

_DATE_PREFIX = re.compile(r"^(\d{4})/(\d{2})/")


@dataclass
class PathContext:
    """
    Context used to place an upload inside its bucket
    """
    original_filename: str
    user_id: Optional[str] = None
    class_id: Optional[Union[int, str]] = None
    subject_id: Optional[Union[int, str]] = None
    category: Optional[str] = None


@dataclass
class ParsedPath:
    """
    A stored reference decomposed into bucket and key
    """
    path: str
    filename: str
    directory: str
    bucket: Optional[str] = None


def _year_month() -> tuple:
    now = datetime.now()
    return now.strftime("%Y"), now.strftime("%m")


def _allowed_or(value: Optional[str], allowed: tuple, fallback: str) -> str:
    return value if value in allowed else fallback


def generate_homepage_path(context: PathContext) -> str:
    """Homepage media: {category}/{unique}, category defaults to 'general'"""
    category = _allowed_or(context.category, HOMEPAGE_CATEGORIES, DEFAULT_CATEGORY)
    return f"{category}/{generate_unique_filename(context.original_filename)}"


def generate_gallery_path(context: PathContext) -> str:
    """
    Gallery images: {YYYY}/{MM}/[{category}/]{unique}

    Organized by year and month for easy archival. The optional category
    (events, sports, academics, ...) is sanitized, not allow-listed.
    """
    year, month = _year_month()
    filename = generate_unique_filename(context.original_filename)

    if context.category:
        return f"{year}/{month}/{sanitize_name(context.category)}/{filename}"

    return f"{year}/{month}/{filename}"


def generate_profile_path(context: PathContext) -> str:
    """
    Profile images: {user_id}/{unique}

    Raises:
        ValidationError: If no user_id is given
    """
    if not context.user_id:
        raise ValidationError("user_id is required for profile image paths")

    return f"{context.user_id}/{generate_unique_filename(context.original_filename)}"


def generate_study_resource_path(context: PathContext) -> str:
    """
    Study resources: class-{class_id}/subject-{subject_id}/{category}/{unique}

    Raises:
        ValidationError: If class_id or subject_id is missing
    """
    if not context.class_id or not context.subject_id:
        raise ValidationError("class_id and subject_id are required for study resource paths")

    category = _allowed_or(context.category, STUDY_RESOURCE_CATEGORIES, DEFAULT_CATEGORY)
    filename = generate_unique_filename(context.original_filename)
    return f"class-{context.class_id}/subject-{context.subject_id}/{category}/{filename}"


def generate_general_path(context: PathContext) -> str:
    """General uploads: {YYYY}/{MM}/{type}/{unique}, type defaults to 'misc'"""
    year, month = _year_month()
    upload_type = _allowed_or(context.category, GENERAL_UPLOAD_TYPES, DEFAULT_UPLOAD_TYPE)
    return f"{year}/{month}/{upload_type}/{generate_unique_filename(context.original_filename)}"


PATH_GENERATORS: Dict[str, Callable[[PathContext], str]] = {
    Bucket.HOMEPAGE.value: generate_homepage_path,
    Bucket.GALLERY.value: generate_gallery_path,
    Bucket.PROFILES.value: generate_profile_path,
    Bucket.STUDY_RESOURCES.value: generate_study_resource_path,
    Bucket.GENERAL.value: generate_general_path,
}


def generate_path(bucket: Union[Bucket, str], context: PathContext) -> str:
    """
    Generate a key using the scheme registered for a bucket

    Raises:
        ValueError: If the bucket is not managed by this layer
        ValidationError: If the scheme's required context is missing
    """
    bucket_name = bucket.value if isinstance(bucket, Bucket) else bucket
    try:
        generator = PATH_GENERATORS[bucket_name]
    except KeyError:
        raise ValueError(f"No path scheme for bucket '{bucket_name}'") from None
    return generator(context)


def parse_file_path(url_or_path: str) -> ParsedPath:
    """
    Decompose a stored URL or path into bucket and object key

    The first segment is taken as the bucket when more than one segment
    is present, so ``parse_file_path(bucket + "/" + key)`` gives back the
    same bucket and key.

    Example:
        parse_file_path("http://cdn:9000/gallery-images/2025/01/a.png")
        # ParsedPath(path='2025/01/a.png', filename='a.png',
        #            directory='2025/01', bucket='gallery-images')
    """
    file_path = url_or_path
    if "://" in url_or_path:
        file_path = urlparse(url_or_path).path[1:]

    parts = file_path.split("/")
    bucket = parts[0] if len(parts) > 1 else None
    path = "/".join(parts[1:]) if bucket else file_path

    # A folder reference names its last folder
    trimmed = path[:-1] if path.endswith("/") else path
    directory = posixpath.dirname(trimmed)
    return ParsedPath(
        bucket=bucket,
        path=path,
        filename=posixpath.basename(trimmed),
        directory="" if directory == "." else directory,
    )


def extract_filename_from_path(path: str) -> str:
    """Last segment of a key, or the key itself when it has none"""
    return path.split("/")[-1] or path


def get_date_prefix_from_path(path: str) -> Optional[str]:
    """
    Get the year/month folder of a date-organized key

    Returns:
        "YYYY/MM" or None if the key does not start with a date folder
    """
    match = _DATE_PREFIX.match(path)
    if not match or not 1 <= int(match.group(2)) <= 12:
        return None
    return f"{match.group(1)}/{match.group(2)}"


def group_paths_by_month(paths: List[str]) -> Dict[str, List[str]]:
    """
    Group date-organized keys by year/month for bulk archival

    Keys without a date folder are skipped.
    """
    grouped: Dict[str, List[str]] = OrderedDict()

    for path in paths:
        month = get_date_prefix_from_path(path)
        if month:
            grouped.setdefault(month, []).append(path)

    return grouped
