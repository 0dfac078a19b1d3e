"""Utility helper functions for the metadata service."""

import uuid
from datetime import datetime, timezone
from urllib.parse import quote


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """
    Get the current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def content_disposition(file_name: str) -> str:
    """
    Build a Content-Disposition header value for an attachment.

    Non-ASCII names are sent with the RFC 5987 filename* parameter.
    """
    ascii_name = file_name.encode("ascii", "replace").decode("ascii").replace('"', "'")
    if ascii_name == file_name:
        return f'attachment; filename="{file_name}"'
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(file_name)}"
