"""HTTP client for the FabMo engine used by the control server."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..config import HostSettings
from ..errors import HostError

logger = logging.getLogger(__name__)


class FabMoClient:
    """Thin wrapper around the two engine endpoints the probing jobs need."""

    def __init__(self, settings: Optional[HostSettings] = None, *, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or HostSettings()
        self._session = session or requests.Session()

    # ------------------------------------------------------------------
    # Low level helpers
    # ------------------------------------------------------------------
    def _url(self, path: str) -> str:
        return self.settings.base_url.rstrip("/") + path

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            res = self._session.request(method, self._url(path), timeout=self.settings.timeout_s, **kwargs)
            res.raise_for_status()
            body = res.json()
        except requests.RequestException as exc:
            raise HostError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise HostError(f"{method} {path} returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise HostError(f"{method} {path} returned an unexpected payload")
        if body.get("status", "success") != "success":
            message = body.get("message") or body.get("data") or body.get("status")
            raise HostError(f"{method} {path} rejected: {message}")
        return body

    # ------------------------------------------------------------------
    # High-level API
    # ------------------------------------------------------------------
    def submit_program(self, text: str) -> None:
        """Queue OpenSBP text for execution. Returns once the engine accepts it."""

        logger.info("Submitting program (%d lines) to %s", text.count("\n") + 1, self.settings.base_url)
        self._request("POST", "/code", json={"cmd": text, "runtime": "sbp"})

    def get_config(self) -> Dict[str, Any]:
        """Current engine configuration snapshot."""

        body = self._request("GET", "/config")
        data = body.get("data", body)
        if isinstance(data, dict) and isinstance(data.get("config"), dict):
            return data["config"]
        if not isinstance(data, dict):
            raise HostError("GET /config returned an unexpected payload")
        return data

    def close(self) -> None:
        self._session.close()


__all__ = ["FabMoClient"]
