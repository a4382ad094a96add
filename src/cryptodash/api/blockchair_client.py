"""Blockchair REST client for network statistics and address dashboards."""
from __future__ import annotations

import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from cryptodash.config import get_blockchair_config
from cryptodash.errors import UpstreamError
from cryptodash.schemas import BlockchainStats

logger = logging.getLogger(__name__)

# Chains seeded into the catalog. Blockchair serves more; the client does not restrict.
SUPPORTED_BLOCKCHAINS = ("bitcoin", "ethereum", "bitcoin-cash", "litecoin")


class BlockchairApiError(UpstreamError):
    """Raised when the Blockchair API responds with an error or the request fails."""


class BlockchairClient:
    """Thin helper around the Blockchair public API.

    Reads the optional API key, base URL and timeout from the central
    config module (see ``cryptodash/config.py``). Without a key the public,
    rate-limited tier is used. Every call is a single attempt; retries are
    the caller's decision.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        urlopen: Optional[Callable[..., Any]] = None,
    ) -> None:
        """
        Create a new Blockchair client.

        Parameters:
            api_key: Optional API key. Defaults to the BLOCKCHAIR_API_KEY env var.
            base_url: API root. Defaults to BLOCKCHAIR_BASE_URL or the public endpoint.
            timeout: Socket timeout in seconds. Defaults to BLOCKCHAIR_TIMEOUT.
            urlopen: Callable compatible with ``urllib.request.urlopen`` (tests inject a fake).
        """
        cfg = get_blockchair_config()
        self.api_key = api_key if api_key is not None else cfg.get("BLOCKCHAIR_API_KEY")
        self.base_url = (base_url or cfg["BLOCKCHAIR_BASE_URL"]).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg["BLOCKCHAIR_TIMEOUT"]
        self._urlopen = urlopen or urllib.request.urlopen

    def fetch_stats_payload(self, blockchain: str) -> Dict[str, Any]:
        """Return the raw ``/{blockchain}/stats`` response."""
        return self._get_json(f"/{urllib.parse.quote(blockchain)}/stats")

    def get_stats(self, blockchain: str) -> BlockchainStats:
        """
        Retrieve and validate general statistics for ``blockchain``.

        Raises:
            BlockchairApiError: When the request fails or the payload is malformed.
        """
        payload = self.fetch_stats_payload(blockchain)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise BlockchairApiError(f"Malformed stats payload for {blockchain}: missing 'data' object")
        try:
            return BlockchainStats.model_validate(data)
        except PydanticValidationError as exc:
            raise BlockchairApiError(f"Malformed stats payload for {blockchain}: {exc}") from exc

    def get_address(self, blockchain: str, address: str) -> Dict[str, Any]:
        """Return the raw address dashboard (balance, counters, recent transactions)."""
        path = f"/{urllib.parse.quote(blockchain)}/dashboards/address/{urllib.parse.quote(address)}"
        payload = self._get_json(path)
        if not isinstance(payload.get("data"), dict):
            raise BlockchairApiError(f"Malformed address payload for {address}: missing 'data' object")
        return payload

    def build_url(self, path: str) -> str:
        url = f"{self.base_url}{path}"
        if self.api_key:
            url = f"{url}?{urllib.parse.urlencode({'key': self.api_key})}"
        return url

    def _get_json(self, path: str) -> Dict[str, Any]:
        url = self.build_url(path)
        logger.debug("GET %s%s", self.base_url, path)
        req = urllib.request.Request(url, headers={"Accept": "application/json"})
        try:
            with self._urlopen(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", 200)
                body = resp.read()
        except urllib.error.HTTPError as exc:
            raise BlockchairApiError(f"Blockchair HTTP {exc.code} for {path}") from exc
        except (urllib.error.URLError, socket.timeout, OSError) as exc:
            raise BlockchairApiError(f"Failed to reach Blockchair for {path}: {exc}") from exc

        if not 200 <= int(status) < 300:
            raise BlockchairApiError(f"Blockchair HTTP {status} for {path}")

        try:
            # Decimals keep prices and hash rates exact.
            payload = json.loads(body.decode("utf-8"), parse_float=Decimal)
        except (UnicodeDecodeError, ValueError) as exc:
            raise BlockchairApiError(f"Invalid JSON from Blockchair for {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise BlockchairApiError(f"Unexpected Blockchair payload type for {path}: {type(payload).__name__}")

        context = payload.get("context") or {}
        code = context.get("code")
        if context.get("error") or code not in (None, 200):
            message = context.get("error") or "unknown error"
            raise BlockchairApiError(f"Blockchair API error {code}: {message}")
        return payload
