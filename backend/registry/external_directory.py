"""Read-only client for the partner directory (panchayaths, wards, agents).

The directory sits behind a server-side function that takes a JSON body
``{"action": ..., **params}`` and answers ``{"<collection>": [...]}``.
Results are passed through as opaque lookup lists.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from .exceptions import ExternalDirectoryError, ValidationError

logger = logging.getLogger(__name__)


class ExternalDirectoryClient:
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url if url is not None else settings.EXTERNAL_DIRECTORY_URL
        self.api_key = api_key if api_key is not None else settings.EXTERNAL_DIRECTORY_KEY
        self.timeout = timeout if timeout is not None else settings.EXTERNAL_DIRECTORY_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    def _call(self, action: str, collection: str, **params: Any) -> List[Dict[str, Any]]:
        if not self.url:
            raise ExternalDirectoryError("External directory is not configured.")
        body = {"action": action, **params}
        try:
            resp = self.session.post(self.url, json=body, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as exc:
            logger.warning("External directory %s failed: %s", action, exc)
            raise ExternalDirectoryError(f"External directory request failed: {exc}") from exc
        except ValueError as exc:
            logger.warning("External directory %s returned invalid JSON", action)
            raise ExternalDirectoryError("External directory returned an invalid response.") from exc
        if not isinstance(payload, dict):
            raise ExternalDirectoryError("External directory returned an invalid response.")
        if payload.get("error"):
            raise ExternalDirectoryError(str(payload["error"]))
        items = payload.get(collection) or []
        if not isinstance(items, list):
            raise ExternalDirectoryError(f"External directory returned no '{collection}' list.")
        return items

    def fetch_panchayaths(self) -> List[Dict[str, Any]]:
        return self._call("fetch_panchayaths", "panchayaths")

    def fetch_wards(self, panchayath_id) -> List[Dict[str, Any]]:
        if panchayath_id in (None, ""):
            raise ValidationError("panchayath_id is required to fetch wards.")
        return self._call("fetch_wards", "wards", panchayath_id=panchayath_id)

    def fetch_agents(self) -> List[Dict[str, Any]]:
        return self._call("fetch_agents", "agents")
