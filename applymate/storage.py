"""
Object storage - S3 wrapper for resumes and per-job uploads

Keys:
    resumes/{user_id}/{epoch_ms}-{filename}
    jobs/{user_id}/{job_id}/{resume|coverLetter}/{epoch_ms}-{filename}
"""

import logging
import re
import time
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.utils import secure_filename

from applymate.config import get_config

logger = logging.getLogger(__name__)

# Initialize client (lazy loaded)
_s3 = None

JOB_FILE_TYPES = ("resume", "coverLetter")

_LEGACY_KEY_PATTERN = re.compile(r"resumes/.+$")


def get_s3():
    global _s3
    if _s3 is None:
        _s3 = boto3.client('s3', region_name=get_config().aws_region)
    return _s3


def _bucket() -> str:
    bucket = get_config().s3_bucket
    if not bucket:
        raise RuntimeError("AWS_S3_BUCKET is not configured")
    return bucket


def _timestamped(filename: str) -> str:
    safe_name = secure_filename(filename) or "file.pdf"
    return f"{int(time.time() * 1000)}-{safe_name}"


def resume_key(user_id: str, filename: str) -> str:
    return f"resumes/{user_id}/{_timestamped(filename)}"


def job_file_key(user_id: str, job_id: str, file_type: str, filename: str) -> str:
    if file_type not in JOB_FILE_TYPES:
        raise ValueError(f"Unknown job file type: {file_type}")
    return f"jobs/{user_id}/{job_id}/{file_type}/{_timestamped(filename)}"


def resolve_key(stored: Optional[str]) -> Optional[str]:
    """
    Turn a stored file reference into an object key.

    Older rows hold the full object URL; the `resumes/...` suffix is the key.
    """
    if not stored:
        return None
    if stored.startswith("http://") or stored.startswith("https://"):
        match = _LEGACY_KEY_PATTERN.search(stored)
        return match.group(0) if match else None
    return stored


def upload_file(key: str, body: bytes, content_type: str = "application/pdf") -> str:
    """Store an object and return its key."""
    get_s3().put_object(Bucket=_bucket(), Key=key, Body=body, ContentType=content_type)
    logger.info(f"Uploaded {key} ({len(body)} bytes)")
    return key


def delete_file(key: Optional[str]) -> bool:
    """
    Delete an object.

    Returns:
        True if deleted, False if there was nothing to delete or S3 refused
    """
    key = resolve_key(key)
    if not key:
        return False
    try:
        get_s3().delete_object(Bucket=_bucket(), Key=key)
        logger.info(f"Deleted {key}")
        return True
    except (ClientError, BotoCoreError, RuntimeError) as e:
        logger.error(f"Failed to delete {key} from S3: {e}")
        return False


def get_presigned_url(key: str, expires_in: Optional[int] = None, inline: bool = False) -> str:
    """
    Generate a time-limited download URL.

    Args:
        key: Object key (legacy URLs are resolved first)
        expires_in: Lifetime in seconds (defaults to storage.presigned_url_ttl)
        inline: Ask the browser to display the file instead of downloading it
    """
    params = {"Bucket": _bucket(), "Key": resolve_key(key) or key}
    if inline:
        params["ResponseContentDisposition"] = "inline"
    return get_s3().generate_presigned_url(
        "get_object",
        Params=params,
        ExpiresIn=expires_in or get_config().presigned_url_ttl,
    )
