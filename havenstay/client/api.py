import logging
from typing import Any, Mapping, Optional

import requests

from havenstay.client.config import client_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-2xx response from the HavenStay API."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        # Callers send the user back to the login page on this
        return self.status_code == 401


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    reason = getattr(response, "reason", None) or getattr(
        response, "reason_phrase", None
    )
    return reason or response.text or "Request failed"


def _clean(params: Optional[Mapping[str, Any]]) -> dict:
    return {k: v for k, v in (params or {}).items() if v is not None and v != ""}


class ApiClient:
    """
    Cookie-keeping client for the HavenStay REST API.

    ``session`` defaults to a ``requests.Session``; anything with the same
    ``request(method, url, ...)`` signature works, including Starlette's
    ``TestClient``. The session cookie set by login/signup is kept by the
    session and sent on every later call.
    """

    def __init__(self, api_base_url: Optional[str] = None, session=None):
        self.api_base_url = (api_base_url or client_settings.API_URL).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = client_settings.REQUEST_TIMEOUT

        self.auth = AuthApi(self)
        self.properties = PropertiesApi(self)
        self.traveler = TravelerApi(self)
        self.owner = OwnerApi(self)
        self.bookings = BookingsApi(self)
        self.upload = UploadApi(self)
        self.services = ServicesApi(self)

    def request(self, method: str, endpoint: str, **kwargs) -> Any:
        url = f"{self.api_base_url}{endpoint}"
        if isinstance(self.session, requests.Session):
            kwargs.setdefault("timeout", self.timeout)
        response = self.session.request(method, url, **kwargs)

        if response.status_code >= 400:
            message = _error_message(response)
            logger.debug("%s %s failed (%s): %s", method, endpoint, response.status_code, message)
            raise ApiError(message, response.status_code)
        if not response.content:
            return None
        return response.json()

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("GET", endpoint, params=_clean(params))

    def post(self, endpoint: str, json: Any = None, **kwargs) -> Any:
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(self, endpoint: str, json: Any = None) -> Any:
        return self.request("PUT", endpoint, json=json)

    def delete(self, endpoint: str) -> Any:
        return self.request("DELETE", endpoint)


class _Group:
    def __init__(self, api: ApiClient):
        self.api = api


class AuthApi(_Group):
    def signup(self, user_data: dict):
        return self.api.post("/auth/signup", user_data)

    def login(self, credentials: dict):
        return self.api.post("/auth/login", credentials)

    def logout(self):
        return self.api.post("/auth/logout")

    def get_current_user(self):
        return self.api.get("/auth/me")


class PropertiesApi(_Group):
    def get_all(self, filters: Optional[dict] = None):
        return self.api.get("/properties", params=filters)

    def search(self, filters: Optional[dict] = None):
        return self.api.get("/properties/search", params=filters)

    def get_by_id(self, property_id: int):
        return self.api.get(f"/properties/{property_id}")


class TravelerApi(_Group):
    def get_profile(self):
        return self.api.get("/traveler/profile")

    def update_profile(self, profile_data: dict):
        return self.api.put("/traveler/profile", profile_data)

    def get_favorites(self):
        return self.api.get("/traveler/favorites")

    def add_favorite(self, property_id: int):
        return self.api.post(f"/traveler/favorites/{property_id}")

    def remove_favorite(self, property_id: int):
        return self.api.delete(f"/traveler/favorites/{property_id}")

    def get_history(self):
        return self.api.get("/traveler/history")


class OwnerApi(_Group):
    def get_profile(self):
        return self.api.get("/owner/profile")

    def update_profile(self, profile_data: dict):
        return self.api.put("/owner/profile", profile_data)

    def get_properties(self):
        return self.api.get("/owner/properties")

    def create_property(self, property_data: dict):
        return self.api.post("/owner/properties", property_data)

    def update_property(self, property_id: int, property_data: dict):
        return self.api.put(f"/owner/properties/{property_id}", property_data)

    def delete_property(self, property_id: int):
        return self.api.delete(f"/owner/properties/{property_id}")

    def get_dashboard(self):
        return self.api.get("/owner/dashboard")


class BookingsApi(_Group):
    def create(self, booking_data: dict):
        return self.api.post("/bookings", booking_data)

    def get_all(self):
        return self.api.get("/bookings")

    def get_by_id(self, booking_id: int):
        return self.api.get(f"/bookings/{booking_id}")

    def accept(self, booking_id: int):
        return self.api.put(f"/bookings/{booking_id}/accept")

    def cancel(self, booking_id: int):
        return self.api.put(f"/bookings/{booking_id}/cancel")


class UploadApi(_Group):
    def property_photo(
        self, property_id: int, filename: str, content: bytes, content_type: str
    ):
        return self.api.request(
            "POST",
            f"/upload/property/{property_id}",
            files={"photo": (filename, content, content_type)},
        )

    def profile_picture(self, filename: str, content: bytes, content_type: str):
        return self.api.request(
            "POST",
            "/upload/profile",
            files={"photo": (filename, content, content_type)},
        )


class ServicesApi(_Group):
    def property_images(self, property_type: str = "house", title: str = "", location: str = ""):
        return self.api.get(
            "/services/property-images",
            params={"property_type": property_type, "title": title, "location": location},
        )
