import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .models import TxLocation
from .parsing import hex_to_bytes, normalize_address

logger = logging.getLogger(__name__)


class RpcError(ValueError):
    """The node answered with a JSON-RPC error object or a malformed payload."""


class RpcClient:
    """JSON-RPC 2.0 client for the node that serves transaction bodies, receipts and code."""

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 10,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        url = (rpc_url or "").strip()
        if not url:
            raise ValueError("rpc_url must be a non-empty string.")

        self.rpc_url = url
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = float(backoff_seconds)
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if headers:
            self.session.headers.update(dict(headers))
        self._next_id = 1

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        if not isinstance(method, str) or not method.strip():
            raise ValueError("method must be a non-empty string.")
        if params is None:
            params = []

        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        self._next_id += 1

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
                if response.status_code == 429 or response.status_code >= 500:
                    if attempt < self.max_retries:
                        logger.debug("%s returned HTTP %s, retrying", method, response.status_code)
                        time.sleep(self.backoff_seconds * attempt)
                        continue

                response.raise_for_status()
                return self._extract_result(response.json())
            except requests.RequestException as exc:
                last_error = exc
                if attempt < self.max_retries:
                    logger.debug("%s failed (%s), retrying", method, exc)
                    time.sleep(self.backoff_seconds * attempt)
                    continue
                raise

        if last_error:
            raise last_error
        raise RuntimeError("RPC request failed without raising an exception.")

    def _extract_result(self, data: Any) -> Any:
        if not isinstance(data, dict):
            raise RpcError("Unexpected JSON-RPC response (non-object).")

        error_obj = data.get("error")
        if isinstance(error_obj, dict):
            parts: List[str] = []
            if error_obj.get("code") is not None:
                parts.append(f"code {error_obj.get('code')}")
            if error_obj.get("message"):
                parts.append(str(error_obj.get("message")))
            if error_obj.get("data"):
                parts.append(str(error_obj.get("data")))
            detail = ": ".join(parts) if parts else "unknown error"
            raise RpcError(f"RPC error: {detail}.")

        if "result" not in data:
            raise RpcError("Unexpected JSON-RPC response (missing result).")
        return data.get("result")

    def get_transaction(self, location: TxLocation) -> Optional[Dict[str, Any]]:
        """eth_getTransactionByBlockNumberAndIndex. ``None`` when the node has no such transaction."""
        result = self.call("eth_getTransactionByBlockNumberAndIndex", location.as_rpc_params())
        if result is not None and not isinstance(result, dict):
            raise RpcError("eth_getTransactionByBlockNumberAndIndex returned unexpected result.")
        return result

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        result = self.call("eth_getTransactionReceipt", [tx_hash])
        if result is not None and not isinstance(result, dict):
            raise RpcError("eth_getTransactionReceipt returned unexpected result.")
        return result

    def get_code(self, address: str, block_tag: str = "latest") -> bytes:
        result = self.call("eth_getCode", [normalize_address(address), block_tag])
        if not isinstance(result, str):
            raise RpcError("eth_getCode returned unexpected result.")
        return hex_to_bytes(result)
