"""
Managed buckets and their access policy.

One bucket per content category. Buckets are created lazily and carry a
public-read policy once created; this layer never deletes them.
"""
import json
from enum import Enum
from typing import Dict, Any


class Bucket(str, Enum):
    """Buckets managed by the storage layer"""
    HOMEPAGE = "homepage-images"
    GALLERY = "gallery-images"
    PROFILES = "profile-images"
    STUDY_RESOURCES = "study-resources"
    GENERAL = "general-uploads"


MANAGED_BUCKETS = [bucket.value for bucket in Bucket]

# Buckets whose keys start with {YYYY}/{MM}/
DATE_ORGANIZED_BUCKETS = frozenset([Bucket.GALLERY.value, Bucket.GENERAL.value])


def public_read_policy(bucket_name: str) -> Dict[str, Any]:
    """
    Build an anonymous GetObject policy for every key in a bucket

    Args:
        bucket_name: Target bucket name

    Returns:
        Bucket policy document
    """
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket_name}/*"],
            }
        ],
    }


def public_read_policy_json(bucket_name: str) -> str:
    """Serialized form accepted by set_bucket_policy"""
    return json.dumps(public_read_policy(bucket_name))
