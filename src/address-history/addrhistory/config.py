import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_INDEX_DIR = "index"
DEFAULT_SIGNATURE_DIRECTORY_URL = "https://www.4byte.directory/api/v1/event-signatures/"
DEFAULT_SOURCIFY_REPO_URL = "https://repo.sourcify.dev/contracts"
DEFAULT_DECOMPILER_BIN = "heimdall"
DEFAULT_DECOMPILE_DIR = "decompiled"

NETWORK_CHAIN_ID_MAP = {
    "mainnet": "1",
    "ethereum": "1",
    "eth": "1",
    "sepolia": "11155111",
    "holesky": "17000",
}


class Mode(str, Enum):
    """Selected mode of operation. Remote APIs are stop-gaps for missing local data."""

    AVOID_APIS = "avoid-apis"
    USE_APIS = "use-apis"

    @classmethod
    def parse(cls, value: Optional[Union[str, "Mode"]]) -> "Mode":
        if isinstance(value, Mode):
            return value
        normalized = (value or "").strip().lower().replace("_", "-")
        for mode in cls:
            if mode.value == normalized:
                return mode
        allowed = ", ".join(mode.value for mode in cls)
        raise ValueError(f"Unknown mode '{value}'. Supported: {allowed}.")


@dataclass
class Config:
    rpc_url: str = DEFAULT_RPC_URL
    index_dir: str = DEFAULT_INDEX_DIR
    mode: Mode = Mode.AVOID_APIS
    network: str = "mainnet"
    chain_id: str = "1"
    signature_directory_url: str = DEFAULT_SIGNATURE_DIRECTORY_URL
    sourcify_repo_url: str = DEFAULT_SOURCIFY_REPO_URL
    decompiler_bin: str = DEFAULT_DECOMPILER_BIN
    decompile_dir: str = DEFAULT_DECOMPILE_DIR
    request_timeout: int = 10
    max_retries: int = 3
    backoff_seconds: float = 0.5

    @property
    def full_match_url(self) -> str:
        return f"{self.sourcify_repo_url}/full_match/{self.chain_id}"

    @property
    def partial_match_url(self) -> str:
        return f"{self.sourcify_repo_url}/partial_match/{self.chain_id}"


def resolve_chain_id(network: str, override_chain_id: Optional[str] = None) -> str:
    """Resolve chain ID from override or static network mapping."""
    if override_chain_id:
        return override_chain_id

    normalized = (network or "").strip().lower()
    if normalized.isdigit():
        return normalized

    if normalized in NETWORK_CHAIN_ID_MAP:
        return NETWORK_CHAIN_ID_MAP[normalized]

    allowed = ", ".join(sorted(NETWORK_CHAIN_ID_MAP.keys()) + ["<chain_id>"])
    raise ValueError(
        f"Unknown network '{network}'. Supported: {allowed}. "
        "Provide a numeric chain id or set CHAIN_ID explicitly."
    )


def load_config() -> Config:
    """Load configuration from environment variables."""
    rpc_url = os.getenv("RPC_URL", DEFAULT_RPC_URL).strip()
    if not rpc_url:
        raise ValueError("RPC_URL must not be empty.")

    index_dir = os.getenv("INDEX_DIR", DEFAULT_INDEX_DIR)
    mode = Mode.parse(os.getenv("MODE", Mode.AVOID_APIS.value))
    network = os.getenv("NETWORK", "mainnet").strip().lower()
    chain_id_env = os.getenv("CHAIN_ID")
    chain_id = resolve_chain_id(network, chain_id_env.strip() if chain_id_env else None)

    signature_url = os.getenv("SIGNATURE_DIRECTORY_URL", DEFAULT_SIGNATURE_DIRECTORY_URL)
    sourcify_url = os.getenv("SOURCIFY_REPO_URL", DEFAULT_SOURCIFY_REPO_URL).rstrip("/")
    decompiler_bin = os.getenv("DECOMPILER_BIN", DEFAULT_DECOMPILER_BIN)
    decompile_dir = os.getenv("DECOMPILE_DIR", DEFAULT_DECOMPILE_DIR)
    timeout = int(os.getenv("REQUEST_TIMEOUT", "10"))
    max_retries = int(os.getenv("REQUEST_RETRIES", "3"))
    backoff = float(os.getenv("REQUEST_BACKOFF_SECONDS", "0.5"))

    return Config(
        rpc_url=rpc_url,
        index_dir=index_dir,
        mode=mode,
        network=network,
        chain_id=chain_id,
        signature_directory_url=signature_url,
        sourcify_repo_url=sourcify_url,
        decompiler_bin=decompiler_bin,
        decompile_dir=decompile_dir,
        request_timeout=timeout,
        max_retries=max_retries,
        backoff_seconds=backoff,
    )
