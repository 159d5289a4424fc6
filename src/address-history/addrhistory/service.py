from typing import Any, Dict, Optional, Union

from .cache import ResolutionCache
from .config import Config, Mode
from .decompiler import Decompiler
from .enricher import LogEnricher
from .history import AddressHistory
from .index import LocalIndex
from .parsing import address_key, normalize_address, normalize_topic, signature_key
from .remote_clients import AbiRegistryClient, SignatureDirectoryClient
from .resolvers import AbiResolver, NametagResolver, SignatureResolver
from .rpc_client import RpcClient


class HistoryService:
    """Combine configuration, index, clients and cache to serve enriched address histories."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.index = LocalIndex(config.index_dir)
        self.rpc = RpcClient(
            config.rpc_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_seconds=config.backoff_seconds,
        )
        client_options = {
            "timeout": config.request_timeout,
            "max_retries": config.max_retries,
            "backoff_seconds": config.backoff_seconds,
        }
        self.signature_resolver = SignatureResolver(
            self.index.signatures,
            SignatureDirectoryClient(config.signature_directory_url, **client_options),
        )
        self.nametag_resolver = NametagResolver(self.index.nametags)
        self.abi_resolver = AbiResolver(
            Decompiler(config.decompiler_bin, config.decompile_dir),
            AbiRegistryClient(config.sourcify_repo_url, config.chain_id, **client_options),
        )
        # Serves the single lookups below, one per mode; every history run gets its own.
        self.caches: Dict[Mode, ResolutionCache] = {mode: ResolutionCache() for mode in Mode}

    def _mode(self, mode: Optional[Union[str, Mode]]) -> Mode:
        return Mode.parse(mode) if mode else self.config.mode

    def _enricher(self, cache: ResolutionCache) -> LogEnricher:
        return LogEnricher(
            self.rpc,
            cache,
            self.signature_resolver,
            self.nametag_resolver,
            self.abi_resolver,
        )

    def new_history(self, address: str) -> AddressHistory:
        return AddressHistory(address, self.index.appearances, self.rpc, self._enricher(ResolutionCache()))

    def address_history(
        self,
        address: str,
        cap_num: Optional[int] = None,
        mode: Optional[Union[str, Mode]] = None,
    ) -> Dict[str, Any]:
        if cap_num is not None and cap_num < 0:
            raise ValueError("cap_num must be non-negative.")
        history = self.new_history(address)
        history.run(cap_num, self._mode(mode))
        result = history.to_dict()
        result["cache"] = history.cache.stats()
        return result

    def lookup_signature(self, topic: str, mode: Optional[Union[str, Mode]] = None) -> Dict[str, Any]:
        full_topic = normalize_topic(topic)
        resolved_mode = self._mode(mode)
        text = self._enricher(self.caches[resolved_mode]).try_sig(full_topic, resolved_mode)
        return {
            "topic": f"0x{full_topic}",
            "key": signature_key(full_topic),
            "mode": resolved_mode.value,
            "text_signature": text,
        }

    def lookup_nametags(self, address: str) -> Dict[str, Any]:
        normalized = normalize_address(address)
        return {
            "address": normalized,
            "nametags": self._enricher(self.caches[self.config.mode]).try_nametags(normalized),
        }

    def lookup_abi(self, address: str, mode: Optional[Union[str, Mode]] = None) -> Dict[str, Any]:
        normalized = normalize_address(address)
        resolved_mode = self._mode(mode)
        cache = self.caches[resolved_mode]
        enricher = self._enricher(cache)
        bytecode = b""
        if address_key(normalized) not in cache.abis:
            bytecode = enricher.fetch_bytecode(normalized)
        record = enricher.try_abi(normalized, bytecode, resolved_mode)
        return {
            "address": normalized,
            "mode": resolved_mode.value,
            "abi": record.summary if record else None,
            "decompiled": record.decompiled if record else False,
            "source_path": record.source_path if record else None,
        }
