import json
import re
from typing import Any, Optional

from havenstay.client.config import client_settings

FALLBACK_IMAGE_URL = (
    "https://images.pexels.com/photos/1571460/pexels-photo-1571460.jpeg"
    "?auto=compress&cs=tinysrgb&w=600"
)


def file_base_url(api_base_url: Optional[str] = None) -> str:
    """Origin that serves uploads: the API base URL without its /api suffix."""
    base = api_base_url if api_base_url is not None else client_settings.API_URL
    return re.sub(r"/api/?$", "", base)


def resolve_image_url(path: Any, base_url: Optional[str] = None) -> str:
    """
    Turn a stored photo path into something a browser can load.

    Missing, blank or non-string values give the fallback image, absolute
    http(s) URLs pass through trimmed, anything else is treated as an
    upload path on the file server.
    """
    if not isinstance(path, str):
        return FALLBACK_IMAGE_URL
    trimmed = path.strip()
    if not trimmed:
        return FALLBACK_IMAGE_URL
    if trimmed.startswith(("http://", "https://")):
        return trimmed

    base = file_base_url() if base_url is None else base_url
    if trimmed.startswith("/"):
        return f"{base}{trimmed}"
    return f"{base}/{trimmed}"


def parse_photos(value: Any) -> list:
    """Photos arrive as a list or as JSON text; anything else is no photos."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return []
        return parsed if isinstance(parsed, list) else []
    return []
