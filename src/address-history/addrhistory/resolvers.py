import logging
from typing import List, Optional

import requests

from .config import Mode
from .decompiler import Decompiler
from .index import NametagTable, SignatureTable
from .models import AbiRecord
from .parsing import normalize_topic, signature_hash, signature_key, summarize_metadata
from .remote_clients import FULL_MATCH, PARTIAL_MATCH, AbiRegistryClient, SignatureDirectoryClient

logger = logging.getLogger(__name__)

DECOMPILED_PLACEHOLDER = "Decompiled ABI pending, output at {path}"


class SignatureResolver:
    """Topic -> event text signature, from the local index or the remote directory."""

    def __init__(self, table: SignatureTable, directory: Optional[SignatureDirectoryClient] = None) -> None:
        self.table = table
        self.directory = directory

    def resolve(self, topic: str, mode: Mode) -> Optional[str]:
        if mode is Mode.USE_APIS:
            return self.from_directory(topic)
        return self.from_index(topic)

    def from_index(self, topic: str) -> Optional[str]:
        texts = self.table.find_texts(signature_key(topic))
        if not texts:
            return None
        return ", ".join(texts)

    def from_directory(self, topic: str) -> Optional[str]:
        """First candidate whose keccak hash equals the full topic.

        The directory is keyed by a 4 byte digest, so candidates for other
        events sharing those bytes are rejected here.
        """
        if self.directory is None:
            raise RuntimeError("No signature directory configured for remote lookups.")
        full_topic = normalize_topic(topic)
        for candidate in self.directory.event_signatures(full_topic[:8]):
            text = candidate.get("text_signature")
            if not isinstance(text, str) or not text:
                continue
            if signature_hash(text) == full_topic:
                return text
            logger.debug("Rejected colliding signature %s for topic %s", text, full_topic)
        return None


class NametagResolver:
    def __init__(self, table: NametagTable) -> None:
        self.table = table

    def resolve(self, address: str) -> Optional[List[str]]:
        tags = self.table.find_nametags(address)
        return tags or None


class AbiResolver:
    """Verified full match, then partial match, then decompilation of the runtime bytecode."""

    def __init__(self, decompiler: Decompiler, registry: Optional[AbiRegistryClient] = None) -> None:
        self.decompiler = decompiler
        self.registry = registry

    def resolve(self, address: str, bytecode: bytes, mode: Mode) -> Optional[AbiRecord]:
        if mode is Mode.USE_APIS and self.registry is not None:
            for match in (FULL_MATCH, PARTIAL_MATCH):
                record = self.from_registry(address, match)
                if record is not None:
                    return record
        return self.from_decompiler(address, bytecode)

    def from_registry(self, address: str, match: str) -> Optional[AbiRecord]:
        try:
            metadata = self.registry.get_metadata(address, match)
            if metadata is None:
                return None
            return AbiRecord(summary=summarize_metadata(metadata))
        except (requests.RequestException, ValueError) as exc:
            logger.warning("The %s request failed for %s (%s)", match, address, exc)
            return None

    def from_decompiler(self, address: str, bytecode: bytes) -> Optional[AbiRecord]:
        if not bytecode:
            logger.info("No bytecode at %s, nothing to decompile", address)
            return None
        path = self.decompiler.decompile(address, bytecode)
        logger.warning("ABI for %s is provisional until decompiler output at %s is read", address, path)
        return AbiRecord(
            summary=DECOMPILED_PLACEHOLDER.format(path=path),
            decompiled=True,
            source_path=path,
        )
