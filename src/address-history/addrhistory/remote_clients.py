"""
Clients for the remote lookup services used as stop-gaps for missing local data.

- Event signatures are pulled from https://www.4byte.directory
- Contract metadata (and therefore ABIs) are pulled from https://sourcify.dev
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .parsing import as_checksummed

logger = logging.getLogger(__name__)

FULL_MATCH = "full_match"
PARTIAL_MATCH = "partial_match"


class LookupClient:
    """Thin GET wrapper with basic retry on throttling and server errors."""

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = backoff_seconds
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                if (response.status_code == 429 or response.status_code >= 500) and attempt < self.max_retries:
                    logger.debug("GET %s returned HTTP %s, retrying", url, response.status_code)
                    time.sleep(self.backoff_seconds * attempt)
                    continue
                return response
            except requests.RequestException as exc:
                last_error = exc
                if attempt < self.max_retries:
                    time.sleep(self.backoff_seconds * attempt)
                else:
                    raise

        if last_error:
            raise last_error

        raise RuntimeError("Request failed without raising an exception.")


class SignatureDirectoryClient(LookupClient):
    """Event signature directory keyed by (short) hex digest."""

    def __init__(self, base_url: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url

    def event_signatures(self, digest: str) -> List[Dict[str, Any]]:
        """Candidate matches for a digest, e.g. ``"ddf252ad"``.

        Example endpoint:
        https://www.4byte.directory/api/v1/event-signatures/?hex_signature=0xddf252ad
        """
        hex_signature = digest if digest.startswith("0x") else f"0x{digest}"
        response = self._get(self.base_url, params={"hex_signature": hex_signature})
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise ValueError("Failed to parse response from signature directory.") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
            raise ValueError("Unexpected response from signature directory.")
        return [entry for entry in payload["results"] if isinstance(entry, dict)]


class AbiRegistryClient(LookupClient):
    """Verified contract repository serving compiler metadata documents."""

    def __init__(self, repo_url: str, chain_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.repo_url = repo_url.rstrip("/")
        self.chain_id = chain_id

    def metadata_url(self, address: str, match: str = FULL_MATCH) -> str:
        return f"{self.repo_url}/{match}/{self.chain_id}/{as_checksummed(address)}/metadata.json"

    def get_metadata(self, address: str, match: str = FULL_MATCH) -> Optional[Dict[str, Any]]:
        """Compiler metadata for ``address``; ``None`` on any non-200 answer."""
        url = self.metadata_url(address, match)
        response = self._get(url)
        if response.status_code != 200:
            logger.debug("Status code %s for %s request: %s", response.status_code, match, url)
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise ValueError(f"Failed to parse {match} metadata for {address}.") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected {match} metadata for {address}.")
        return payload
