import logging
from typing import Any, Dict, List, Optional

import requests

from .bytecode import metadata_link_from_bytecode
from .cache import ResolutionCache
from .config import Mode
from .models import AbiRecord, Contract, LoggedEvent, MetadataSource
from .parsing import address_key, normalize_topic, signature_key
from .resolvers import AbiResolver, NametagResolver, SignatureResolver
from .rpc_client import RpcClient

logger = logging.getLogger(__name__)


class LogEnricher:
    """Turns a raw log into a ``LoggedEvent``, consulting the cache before any source."""

    def __init__(
        self,
        rpc: RpcClient,
        cache: ResolutionCache,
        signatures: SignatureResolver,
        nametags: NametagResolver,
        abis: AbiResolver,
    ) -> None:
        self.rpc = rpc
        self.cache = cache
        self.signatures = signatures
        self.nametags = nametags
        self.abis = abis

    def try_sig(self, topic: str, mode: Mode) -> Optional[str]:
        return self.cache.signatures.resolve(
            signature_key(topic),
            lambda: self.signatures.resolve(topic, mode),
        )

    def try_nametags(self, address: str) -> Optional[List[str]]:
        key = address_key(address)
        return self.cache.nametags.resolve(key, lambda: self.nametags.resolve(key))

    def try_abi(self, address: str, bytecode: bytes, mode: Mode) -> Optional[AbiRecord]:
        key = address_key(address)
        return self.cache.abis.resolve(key, lambda: self.abis.resolve(key, bytecode, mode))

    def fetch_bytecode(self, address: str) -> bytes:
        # eth_getCode, always live.
        try:
            return self.rpc.get_code(address, "latest")
        except (requests.RequestException, ValueError) as exc:
            logger.error("Couldn't get bytecode for contract %s (%s)", address, exc)
            return b""

    def metadata_link(self, address: str, bytecode: bytes) -> Optional[MetadataSource]:
        try:
            return metadata_link_from_bytecode(bytecode)
        except ValueError as exc:
            logger.error(
                "The metadata CID was not able to be extracted from bytecode for contract %s. (%s)",
                address,
                exc,
            )
            return None

    def examine_log(self, log: Dict[str, Any], mode: Mode) -> Optional[LoggedEvent]:
        """Enrich one log; ``None`` for anonymous logs and logs with a malformed address or topic."""
        topics = log.get("topics") or []
        if not topics:
            return None
        address = log.get("address") or ""
        try:
            topic = normalize_topic(topics[0])
            key = address_key(address)
        except ValueError as exc:
            logger.warning("Skipping malformed log from %r (%s)", address, exc)
            return None

        bytecode = self.fetch_bytecode(address)
        link = self.metadata_link(address, bytecode)

        abi = self.try_abi(address, bytecode, mode)
        name = self.try_sig(topic, mode)
        nametags = self.try_nametags(address)

        contract = Contract(
            address=key,
            bytecode=bytecode,
            metadata_link=link,
            abi=abi.summary if abi else None,
            decompiled=abi.decompiled if abi else False,
            source_path=abi.source_path if abi else None,
        )
        return LoggedEvent(
            raw=log,
            topic_zero=signature_key(topic),
            contract=contract,
            name=name,
            nametags=nametags,
        )
