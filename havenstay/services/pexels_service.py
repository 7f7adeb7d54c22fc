import logging
import random
from typing import Optional

import requests

from havenstay.config import settings

logger = logging.getLogger(__name__)

IMAGES_PER_PROPERTY = 4

DEFAULT_IMAGES = [
    "https://images.pexels.com/photos/1571460/pexels-photo-1571460.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=1",
    "https://images.pexels.com/photos/2635038/pexels-photo-2635038.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=1",
    "https://images.pexels.com/photos/1643383/pexels-photo-1643383.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=1",
    "https://images.pexels.com/photos/1457842/pexels-photo-1457842.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=1",
]

# (marker, themed queries); the first marker found in the type or title wins
THEMES = [
    ("apartment", ["modern apartment", "apartment interior"]),
    ("villa", ["luxury villa", "villa design"]),
    ("cabin", ["cozy cabin", "cabin woods"]),
    ("beach", ["beach house", "coastal home"]),
]
DEFAULT_THEME = ["modern house", "home interior"]
GENERAL_QUERIES = ["bedroom design", "modern living room"]


def get_search_keywords(title: str = "", property_type: str = "house") -> list[str]:
    title = (title or "").lower()
    property_type = (property_type or "house").lower()
    queries = DEFAULT_THEME
    for marker, themed in THEMES:
        if marker in property_type or marker in title:
            queries = themed
            break
    return list(dict.fromkeys(queries + GENERAL_QUERIES))


def get_default_images() -> list[str]:
    return list(DEFAULT_IMAGES)


class PexelsService:
    """Picks stock photos for a listing from the Pexels search API."""

    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None):
        self.api_key = settings.PEXELS_API_KEY if api_key is None else api_key
        self.api_url = api_url or settings.PEXELS_API_URL

    def search(self, query: str, page: int, per_page: int = 5) -> list[str]:
        response = requests.get(
            self.api_url,
            headers={"Authorization": self.api_key},
            params={"query": query, "per_page": per_page, "page": page},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        photos = payload.get("photos") if isinstance(payload, dict) else None

        urls = []
        for photo in photos if isinstance(photos, list) else []:
            src = photo.get("src") if isinstance(photo, dict) else None
            large = src.get("large") if isinstance(src, dict) else None
            if isinstance(large, str) and large:
                urls.append(large)
        return urls

    def get_fallback_image(self, property_type: str) -> str:
        try:
            urls = self.search(
                f"{property_type or 'modern home'} interior", page=random.randint(1, 10)
            )
            if urls:
                return random.choice(urls)
        except (requests.RequestException, ValueError, KeyError) as e:
            logger.warning("Pexels fallback image fetch failed: %s", e)
        return random.choice(DEFAULT_IMAGES)

    def get_property_images(
        self, property_type: str = "house", title: str = "", location: str = ""
    ) -> list[str]:
        """Return exactly four distinct image URLs for a listing."""
        if not self.api_key:
            return get_default_images()

        image_urls: list[str] = []

        def _add(url: str) -> None:
            if url not in image_urls:
                image_urls.append(url)

        for query in get_search_keywords(title, property_type):
            try:
                available = [
                    url
                    for url in self.search(query, page=random.randint(1, 5))
                    if url not in image_urls
                ]
                if available:
                    _add(random.choice(available))
                else:
                    _add(self.get_fallback_image(property_type))
            except (requests.RequestException, ValueError, KeyError) as e:
                logger.warning("Pexels search for %r failed: %s", query, e)
                _add(self.get_fallback_image(property_type))

            if len(image_urls) >= IMAGES_PER_PROPERTY:
                break

        # Pad from the defaults so the loop always terminates
        for url in DEFAULT_IMAGES:
            if len(image_urls) >= IMAGES_PER_PROPERTY:
                break
            _add(url)

        return image_urls[:IMAGES_PER_PROPERTY]
