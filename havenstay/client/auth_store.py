import logging
from typing import Callable, Optional

from havenstay.client.api import ApiClient, ApiError

logger = logging.getLogger(__name__)

Listener = Callable[["AuthStore"], None]


class AuthStore:
    """
    Holds who is signed in for one client.

    Create it with an ``ApiClient``, call ``init()`` once to load the
    current session and ``teardown()`` when done. State is read through
    the properties and changed only through the actions; subscribers are
    called after every change.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self._user: Optional[dict] = None
        self._is_loading = True
        self._listeners: list[Listener] = []

    # Lifecycle

    def init(self) -> None:
        try:
            resp = self.api.auth.get_current_user()
        except ApiError as e:
            if not e.is_unauthorized:
                logger.warning("Could not load the current session: %s", e.message)
            self._set(None, loading=False)
            return
        user = resp.get("user") if isinstance(resp, dict) and "user" in resp else resp
        self._set(user or None, loading=False)

    def teardown(self) -> None:
        self._listeners.clear()
        self._user = None
        self._is_loading = True

    # Accessors

    @property
    def user(self) -> Optional[dict]:
        return dict(self._user) if self._user is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_owner(self) -> bool:
        return bool(self._user) and self._user.get("user_type") == "owner"

    @property
    def is_traveler(self) -> bool:
        return bool(self._user) and self._user.get("user_type") == "traveler"

    # Actions

    def login(self, email: str, password: str) -> dict:
        data = self.api.auth.login({"email": email, "password": password})
        self._set(data["user"])
        return data

    def signup(self, user_data: dict) -> dict:
        data = self.api.auth.signup(user_data)
        self._set(data["user"])
        return data

    def logout(self) -> None:
        self.api.auth.logout()
        self._set(None)

    def update_user(self, user_data: dict) -> None:
        self._set({**(self._user or {}), **user_data})

    # Subscribers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, user: Optional[dict], loading: Optional[bool] = None) -> None:
        self._user = user
        if loading is not None:
            self._is_loading = loading
        for listener in list(self._listeners):
            listener(self)
