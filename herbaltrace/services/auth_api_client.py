# herbaltrace/services/auth_api_client.py
"""
Client for the remote auth API used when USE_REMOTE_AUTH_API=1.

The service may sit behind a gateway that answers 502/503/504 or HTML while
it wakes up, so requests are retried with exponential backoff and responses
are parsed defensively.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

import requests

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = int(os.getenv("AUTH_API_TIMEOUT", "20"))
MAX_RETRIES = int(os.getenv("AUTH_API_MAX_RETRIES", "3"))
BACKOFF_BASE = 0.6

# Retry these (typical transient / cold start / gateway)
RETRY_STATUS = {502, 503, 504}


class AuthApiError(Exception):
    pass


class AuthApiClient:
    def __init__(self, base_url: str, timeout: int = DEFAULT_TIMEOUT, max_retries: int = MAX_RETRIES,
                 session: Optional[requests.Session] = None, sleep=time.sleep):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.http = session or requests.Session()
        self._sleep = sleep

    # -------------------------
    # Public API
    # -------------------------
    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        return self._post("/auth/login", {"email": email, "password": password})

    def sign_up(self, email: str, password: str, profile_fields: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**profile_fields, "email": email, "password": password}
        return self._post("/auth/register", payload)

    # -------------------------
    # Internals
    # -------------------------
    def _candidate_bases(self) -> List[str]:
        """
        Support both mount styles:
          - https://auth.example.com
          - https://auth.example.com/api
        """
        if self.base_url.endswith("/api"):
            return [self.base_url]
        return [self.base_url, self.base_url + "/api"]

    @staticmethod
    def _safe_json(resp: requests.Response) -> Optional[Dict[str, Any]]:
        # Some services return JSON without correct content-type, others HTML error pages
        try:
            data = resp.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else {"data": data}

    def _backoff(self, attempt: int) -> None:
        self._sleep(BACKOFF_BASE * (2 ** (attempt - 1)))

    def _post(self, path: str, payload: dict) -> Dict[str, Any]:
        if not self.base_url:
            raise AuthApiError("AUTH_API_BASE_URL is not set")

        urls = [f"{b}{path}" for b in self._candidate_bases()]
        last_err: Optional[str] = None

        for url in urls:
            for attempt in range(1, self.max_retries + 1):
                try:
                    resp = self.http.post(url, json=payload, timeout=self.timeout, allow_redirects=True)
                except (requests.Timeout, requests.ConnectionError) as e:
                    last_err = f"Network error on {url}: {e}"
                    log.warning(last_err)
                    if attempt < self.max_retries:
                        self._backoff(attempt)
                        continue
                    break

                if resp.status_code in RETRY_STATUS:
                    last_err = f"Upstream error {resp.status_code} on {url}"
                    log.warning(last_err)
                    if attempt < self.max_retries:
                        self._backoff(attempt)
                    continue

                data = self._safe_json(resp)

                if data is None:
                    snippet = (resp.text or "").strip().replace("\n", " ")[:240]
                    # 404 HTML usually means wrong mount; try next candidate URL
                    if resp.status_code == 404:
                        last_err = f"404 Not Found on {url}: {snippet}"
                        break
                    raise AuthApiError(f"Auth API returned non-JSON response ({resp.status_code}) on {url}: {snippet}")

                if resp.status_code >= 400:
                    msg = data.get("message") or data.get("detail") or data.get("error") or "Request failed"
                    raise AuthApiError(msg)

                return data

        tried = ", ".join(urls)
        raise AuthApiError(f"Auth API endpoint not found / not responding. Tried: {tried}. Last: {last_err}")
