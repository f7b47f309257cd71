# sources/http.py
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urljoin

import requests
from dynaconf import Dynaconf

from errors import TransportError
from .base import BaseSource, FetchResult

logger = logging.getLogger(__name__)


class HttpSource(BaseSource):
    """Implementation of BaseSource for an HTTP origin serving snapshot files."""

    def __init__(self, config: Dynaconf, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.get("base_url", "http://localhost:8080/")
        self.timeout = config.get("timeout", 10)
        self.data_path = config.get("data_path", "/data/")
        self.config_path = config.get("config_path", "/config.json")
        self.whoami_path = config.get("whoami_path", "/api/whoami")
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path)

    def _get(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        try:
            return self.session.get(url, headers=headers or {}, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(url, reason=str(e)) from e

    def list_files(self) -> List[Dict[str, Any]]:
        url = self._url(self.data_path)
        response = self._get(url)
        if not response.ok:
            raise TransportError(url, status=response.status_code)
        try:
            listing = response.json()
        except ValueError as e:
            raise TransportError(url, reason=f"listing is not JSON: {e}") from e
        if not isinstance(listing, list):
            raise TransportError(url, reason="listing is not a JSON array")
        return [entry for entry in listing if isinstance(entry, dict) and entry.get("name")]

    def fetch(self, name: str, if_modified_since: Optional[str] = None) -> FetchResult:
        url = self._url(self.data_path.rstrip("/") + "/" + quote(name))
        headers = {"If-Modified-Since": if_modified_since} if if_modified_since else {}
        response = self._get(url, headers)
        logger.debug(f"GET {url} -> {response.status_code}")
        return FetchResult(
            name=name,
            status=response.status_code,
            last_modified=response.headers.get("Last-Modified"),
            body=response.content if response.ok else b"",
        )

    def fetch_config(self) -> Dict[str, Any]:
        url = self._url(self.config_path)
        try:
            response = self._get(url)
            if not response.ok:
                logger.debug(f"No UI config at {url}: HTTP {response.status_code}")
                return {}
            data = response.json()
        except (TransportError, ValueError) as e:
            logger.debug(f"Could not load UI config from {url}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def whoami(self) -> str:
        url = self._url(self.whoami_path)
        try:
            response = self._get(url)
            if not response.ok:
                return ""
            data = response.json()
        except (TransportError, ValueError) as e:
            logger.debug(f"Could not resolve user from {url}: {e}")
            return ""
        if isinstance(data, dict) and isinstance(data.get("username"), str):
            return data["username"]
        return ""
