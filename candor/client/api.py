from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from candor.core.config import get_settings


class ClientError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransportError(ClientError):
    """The request never produced an HTTP response."""


class ApiError(ClientError):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        detail = body.get("message") or body.get("detail")
        if isinstance(detail, list):
            return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
        if detail:
            return str(detail)
    return response.reason_phrase


class CandorAPI:
    """Thin JSON client for the Candor service."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.public_api_key
        self.http = http or httpx.Client(base_url=base_url or settings.public_url, timeout=timeout)
        self.access_token: str | None = None

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["apikey"] = self.api_key
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self.http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as exc:
            logger.error("{method} {path} failed: {error}", method=method, path=path, error=exc)
            raise TransportError(f"Could not reach Candor: {exc}") from exc

        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))
        if not response.content:
            return None
        return response.json()

    # issues

    def list_issues(self, **filters: Any) -> list[dict[str, Any]]:
        params = {key: value for key, value in filters.items() if value is not None}
        return self.request("GET", "/issues", params=params)

    def my_issues(self) -> list[dict[str, Any]]:
        return self.request("GET", "/issues/mine")

    def create_issue(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", "/issues", json=payload)

    def update_issue(self, issue_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        return self.request("PATCH", f"/issues/{issue_id}", json=patch)

    def issue_updates(self, issue_id: str) -> list[dict[str, Any]]:
        return self.request("GET", f"/issues/{issue_id}/updates")

    def add_issue_update(self, issue_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", f"/issues/{issue_id}/updates", json=payload)

    def track(self, token: str) -> dict[str, Any]:
        return self.request("GET", f"/track/{token}")

    # reference data

    def categories(self) -> list[dict[str, Any]]:
        return self.request("GET", "/categories")

    def departments(self) -> list[dict[str, Any]]:
        return self.request("GET", "/departments")

    # accounts

    def sign_up(self, payload: dict[str, Any]) -> dict[str, Any]:
        session = self.request("POST", "/auth/signup", json=payload)
        self.access_token = session["access_token"]
        return session

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        session = self.request("POST", "/auth/signin", json={"email": email, "password": password})
        self.access_token = session["access_token"]
        return session

    def sign_out(self) -> None:
        self.access_token = None

    def profile(self) -> dict[str, Any]:
        return self.request("GET", "/profiles/me")

    def update_profile(self, changes: dict[str, Any]) -> dict[str, Any]:
        return self.request("PATCH", "/profiles/me", json=changes)

    def capabilities(self) -> dict[str, Any]:
        return self.request("GET", "/profiles/me/capabilities")
