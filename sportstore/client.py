# sportstore/client.py
"""Small HTTP client for the storefront API, with the login session kept on disk.

``AuthSession.check_auth_status`` is what screens call before showing
account pages. It is cheap to call often: concurrent callers share one
request, and a successful answer is reused for ``check_interval`` seconds.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path

import requests

log = logging.getLogger(__name__)


class SessionExpired(Exception):
    """The server answered 401; the stored session has been cleared."""


class TokenStore:
    """JSON file holding ``accessToken``, ``refreshToken`` and ``user``."""

    KEYS = ("accessToken", "refreshToken", "user")

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> dict:
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            log.warning("unreadable token store at %s, ignoring it", self.path)
            return {}
        return {k: data.get(k) for k in self.KEYS if data.get(k) is not None}

    def save(self, **values):
        data = self.load()
        data.update({k: v for k, v in values.items() if k in self.KEYS})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False)

    def clear(self):
        self.path.unlink(missing_ok=True)

    @property
    def access_token(self):
        return self.load().get("accessToken")

    @property
    def refresh_token(self):
        return self.load().get("refreshToken")


class ApiClient:
    def __init__(self, base_url, store: TokenStore, session: requests.Session | None = None, timeout=10):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.session = session or requests.Session()
        self.timeout = timeout
        # called after a 401 has cleared the store
        self.on_unauthorized = []

    def request(self, method, path, json=None, params=None, auth=True) -> dict:
        """Returns the ``{success, message, data}`` envelope.

        With ``auth`` the bearer token is attached and a 401 clears the
        store and raises :class:`SessionExpired`.
        """
        headers = {"Accept": "application/json"}
        token = self.store.access_token if auth else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = self.session.request(
            method, f"{self.base_url}{path}", json=json, params=params, headers=headers, timeout=self.timeout,
        )
        try:
            envelope = response.json()
        except ValueError:
            envelope = {"success": False, "message": response.reason or "Invalid response", "data": None}

        if auth and response.status_code == 401:
            self.store.clear()
            for callback in self.on_unauthorized:
                callback()
            raise SessionExpired(envelope.get("message") or "Unauthorized")
        return envelope

    def get(self, path, **kw):
        return self.request("GET", path, **kw)

    def post(self, path, **kw):
        return self.request("POST", path, **kw)

    def put(self, path, **kw):
        return self.request("PUT", path, **kw)

    def delete(self, path, **kw):
        return self.request("DELETE", path, **kw)


def _valid_user(user) -> bool:
    return isinstance(user, dict) and bool(user.get("role")) and bool(user.get("email"))


class AuthSession:
    def __init__(self, client: ApiClient, check_interval: float = 60, clock=time.monotonic):
        self.client = client
        self.check_interval = check_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._inflight: threading.Event | None = None
        self._last_check = None
        self._last_result = False
        stored = client.store.load().get("user")
        self._user = stored if _valid_user(stored) else None
        client.on_unauthorized.append(self._expired)

    @property
    def user(self):
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def _forget(self):
        self.client.store.clear()
        self._user = None

    def _expired(self):
        with self._lock:
            self._user = None
            self._last_result = False
            self._last_check = None

    def check_auth_status(self, force: bool = False) -> bool:
        with self._lock:
            event = self._inflight
            leader = event is None
            if leader:
                if not self.client.store.access_token:
                    self._user = None
                    self._last_result = False
                    self._last_check = None
                    return False
                recent = self._last_check is not None and self._clock() - self._last_check < self.check_interval
                if recent and not force:
                    return self._last_result
                event = self._inflight = threading.Event()

        if not leader:
            event.wait()
            return self._last_result

        result = False
        try:
            result = self._check()
        finally:
            with self._lock:
                self._last_result = result
                self._last_check = self._clock()
                self._inflight = None
            event.set()
        return result

    def _check(self) -> bool:
        try:
            envelope = self.client.get("/api/auth/check")
        except SessionExpired:
            self._user = None
            return False
        except requests.RequestException as e:
            log.warning("auth check failed: %s", e)
            self._forget()
            return False

        user = (envelope.get("data") or {}).get("user") if envelope.get("success") else None
        if not _valid_user(user):
            log.info("auth check returned no usable user, clearing session")
            self._forget()
            return False
        self.client.store.save(user=user)
        self._user = user
        return True

    def login(self, email, password) -> dict:
        envelope = self.client.post("/api/auth/login", json={"email": email, "password": password}, auth=False)
        data = envelope.get("data") or {}
        if envelope.get("success") and _valid_user(data.get("user")):
            self.client.store.save(
                accessToken=data.get("accessToken"),
                refreshToken=data.get("refreshToken"),
                user=data["user"],
            )
            with self._lock:
                self._user = data["user"]
                self._last_result = True
                self._last_check = self._clock()
        return envelope

    def refresh(self) -> bool:
        token = self.client.store.refresh_token
        if not token:
            return False
        envelope = self.client.post("/api/auth/refresh", json={"refreshToken": token}, auth=False)
        data = envelope.get("data") or {}
        if not envelope.get("success"):
            self._forget()
            return False
        self.client.store.save(accessToken=data.get("accessToken"), refreshToken=data.get("refreshToken"))
        return True

    def logout(self):
        refresh_token = self.client.store.refresh_token
        try:
            if self.client.store.access_token:
                self.client.post("/api/auth/logout", json={"refreshToken": refresh_token})
        except (SessionExpired, requests.RequestException) as e:
            log.info("logout request failed: %s", e)
        finally:
            self._forget()
            with self._lock:
                self._last_check = None
                self._last_result = False
