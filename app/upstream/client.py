"""
HTTP client for the upstream (Franz) recipe directory and account API.

Every call is attempted once with a bounded timeout. Transport failures, non-2xx
responses and bodies of the wrong shape raise UpstreamUnavailable; callers decide
whether that is fatal.
"""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.config import Settings
from app.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

USER_AGENT = "FerdiServer/0.1 (+account-import)"


class UpstreamClient:
    """Synchronous client for the upstream API (one ``httpx.Client`` per call)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> UpstreamClient:
        return cls(settings.upstream_api_url, timeout=settings.upstream_timeout)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        check_status: bool = True,
        **kwargs: Any,
    ) -> Any:
        headers = dict(kwargs.pop("headers", {}) or {})
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        try:
            with self._client() as client:
                response = client.request(method, path, headers=headers, **kwargs)
                if check_status:
                    response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Upstream %s %s returned HTTP %s", method, path, exc.response.status_code)
            raise UpstreamUnavailable(
                f"Upstream returned HTTP {exc.response.status_code} for {path}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Upstream %s %s failed: %s", method, path, exc)
            raise UpstreamUnavailable(f"Upstream request to {path} failed: {exc}") from exc
        except ValueError as exc:
            logger.warning("Upstream %s %s returned invalid JSON", method, path)
            raise UpstreamUnavailable(f"Upstream returned invalid JSON for {path}") from exc

    def _get_list(self, path: str, **kwargs: Any) -> list[dict[str, Any]]:
        data = self._request("GET", path, **kwargs)
        if not isinstance(data, list):
            raise UpstreamUnavailable(f"Upstream returned an unexpected shape for {path}")
        return data

    # ------------------------------------------------------------------
    # Recipe directory
    # ------------------------------------------------------------------

    def list_recipes(self) -> list[dict[str, Any]]:
        """GET /recipes: the full official catalog."""
        return self._get_list("/recipes")

    def search_recipes(self, needle: str) -> list[dict[str, Any]]:
        """GET /recipes/search?needle=..."""
        return self._get_list("/recipes/search", params={"needle": needle})

    def recipe_download_url(self, recipe_id: str) -> str:
        """Absolute URL of an official recipe bundle."""
        return f"{self.base_url}/recipes/download/{quote(recipe_id, safe='')}"

    # ------------------------------------------------------------------
    # Account API (import only)
    # ------------------------------------------------------------------

    def login(self, email: str, password_digest: str) -> dict[str, Any]:
        """POST /auth/login with Basic credentials. Returns the raw body.

        The upstream answers failed logins with a JSON error body, so the status
        code is not checked here; the caller inspects ``message``.
        """
        basic = base64.b64encode(f"{email}:{password_digest}".encode()).decode("ascii")
        data = self._request(
            "POST",
            "/auth/login",
            check_status=False,
            json={"isZendeskLogin": False},
            headers={
                "Authorization": f"Basic {basic}",
                "accept": "*/*",
                "x-franz-source": "Web",
            },
        )
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Upstream returned an unexpected shape for /auth/login")
        return data

    def get_profile(self, token: str) -> dict[str, Any] | None:
        """GET /me."""
        data = self._request("GET", "/me", token=token)
        return data if isinstance(data, dict) and data else None

    def get_services(self, token: str) -> list[dict[str, Any]]:
        """GET /me/services."""
        return self._get_list("/me/services", token=token)

    def get_workspaces(self, token: str) -> list[dict[str, Any]]:
        """GET /workspace."""
        return self._get_list("/workspace", token=token)
