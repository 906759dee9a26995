from __future__ import annotations

from typing import Any, Dict, Optional

import requests


def _debug(msg: str) -> None:
    print(f"[web.api] {msg}")


class ApiClientError(RuntimeError):
    """Non-2xx response from the ITKit API (message taken from the envelope)."""

    def __init__(self, status_code: int, error: str):
        super().__init__(f"{status_code}: {error}")
        self.status_code = int(status_code)
        self.error = error


class ApiClient:
    """Thin HTTP client for the ITKit REST API.

    Attaches `Authorization: Bearer <token>` when a token is set and unwraps the
    `{success, data, error, message}` envelope. `session` only needs a
    requests-style `.request(method, url, ...)`, so tests can pass an
    in-process test client instead of a real `requests.Session`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 15.0,
        session: Any = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def with_token(self, token: Optional[str]) -> "ApiClient":
        return ApiClient(self.base_url, token=token, timeout=self.timeout, session=self._session)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        url = f"{self.base_url}{path}"
        r = self._session.request(
            method,
            url,
            params=clean_params or None,
            json=json,
            headers=headers,
            timeout=self.timeout,
        )

        try:
            body = r.json() if r.text else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if r.status_code >= 400 or body.get("success") is False:
            error = str(body.get("error") or body.get("detail") or r.text or "request_failed")
            _debug(f"{method} {path} -> {r.status_code}: {error}")
            raise ApiClientError(r.status_code, error)
        return body

    def get(self, path: str, **params: Any) -> Dict[str, Any]:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Any = None) -> Dict[str, Any]:
        return self.request("POST", path, json=payload if payload is not None else {})

    def put(self, path: str, payload: Any = None) -> Dict[str, Any]:
        return self.request("PUT", path, json=payload if payload is not None else {})

    def delete(self, path: str) -> Dict[str, Any]:
        return self.request("DELETE", path)
