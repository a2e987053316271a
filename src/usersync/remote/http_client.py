"""
HTTP remote store over a JSON collection resource.

    GET    {base_url}users          -> list
    POST   {base_url}users          -> created record (server id)
    PUT    {base_url}users/{id}     -> updated record
    DELETE {base_url}users/{id}     -> deleted record (ignored)

Payloads are camelCase JSON, validated through RemoteUser.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from ..errors import RemoteFailure
from ..models import RemoteUser, User
from .base import RemoteUserStore

logger = logging.getLogger("usersync.remote.http")

USERS_RESOURCE = "users"


class HttpRemoteStore(RemoteUserStore):
    """Remote user collection reached through a REST API.

    Args:
        base_url: API root, e.g. https://host/api/v1/.
        timeout: Per-request timeout in seconds.
        session: Optional requests.Session (shared or mocked).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    @property
    def name(self) -> str:
        return self.base_url

    def _url(self, user_id: Optional[str] = None) -> str:
        if user_id is None:
            return f"{self.base_url}{USERS_RESOURCE}"
        return f"{self.base_url}{USERS_RESOURCE}/{quote(user_id, safe='')}"

    def _request(
        self,
        method: str,
        user_id: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an API call and return the decoded JSON body.

        Raises:
            RemoteFailure: On connection errors, non-2xx status, or non-JSON body.
        """
        url = self._url(user_id)
        try:
            resp = self._session.request(method, url, json=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RemoteFailure(f"{method} {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise RemoteFailure(
                f"{method} {url}: {resp.status_code} {resp.text[:200]}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteFailure(f"{method} {url}: response is not JSON") from exc

    @staticmethod
    def _parse(payload: Any) -> User:
        if not isinstance(payload, dict):
            raise RemoteFailure(f"Expected a user object, got {type(payload).__name__}")
        try:
            return RemoteUser.model_validate(payload).to_local()
        except (ValidationError, ValueError) as exc:
            raise RemoteFailure(f"Malformed user payload: {exc}") from exc

    def list_all(self) -> list[User]:
        payload = self._request("GET")
        if not isinstance(payload, list):
            raise RemoteFailure("Expected a JSON list of users")
        users = [self._parse(item) for item in payload]
        logger.debug("Fetched %d user(s) from %s", len(users), self.base_url)
        return users

    def create(self, user: User) -> User:
        body = user.to_remote().to_wire(include_id=False)
        created = self._parse(self._request("POST", data=body))
        logger.info("Created remote user %s (was %s)", created.id, user.id)
        return created

    def update(self, user_id: str, user: User) -> User:
        body = user.to_remote().to_wire()
        body["id"] = user_id
        return self._parse(self._request("PUT", user_id=user_id, data=body))

    def delete(self, user_id: str) -> None:
        self._request("DELETE", user_id=user_id)
        logger.info("Deleted remote user %s", user_id)
