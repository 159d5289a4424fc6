import json
import logging
import os
from typing import Any, Dict, List, Optional

from .models import TxLocation

logger = logging.getLogger(__name__)

APPEARANCES_FILE = "appearances.json"
SIGNATURES_FILE = "signatures.json"
NAMETAGS_FILE = "nametags.json"


class IndexLookupError(LookupError):
    """The local index could not be read."""


def _strip_hex_prefix(key: str) -> str:
    candidate = (key or "").strip().lower()
    return candidate[2:] if candidate.startswith("0x") else candidate


class IndexTable:
    """One JSON table of the local index: ``{key: [record, ...]}``, loaded on first use."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._records: Optional[Dict[str, List[Any]]] = None

    def _load(self) -> Dict[str, List[Any]]:
        if self._records is not None:
            return self._records
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise IndexLookupError(f"Could not read index table {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise IndexLookupError(f"Index table {self.path} must be a JSON object.")

        records: Dict[str, List[Any]] = {}
        for key, value in data.items():
            if not isinstance(value, list):
                raise IndexLookupError(f"Index table {self.path} has a non-list entry for {key}.")
            records[_strip_hex_prefix(key)] = value
        logger.debug("Loaded %s keys from %s", len(records), self.path)
        self._records = records
        return records

    def find(self, key: str) -> List[Any]:
        """All records stored under ``key``; empty when the key is unknown."""
        return list(self._load().get(_strip_hex_prefix(key), []))


class AppearanceTable(IndexTable):
    def find_locations(self, address: str) -> List[TxLocation]:
        locations: List[TxLocation] = []
        for record in self.find(address):
            # A record is either one appearance or a batch of them.
            batch = record.get("appearances", [record]) if isinstance(record, dict) else record
            for item in batch:
                try:
                    locations.append(TxLocation(block=int(item["block"]), index=int(item["index"])))
                except (KeyError, TypeError, ValueError) as exc:
                    raise IndexLookupError(f"Malformed appearance for {address}: {item!r}") from exc
        return locations


class SignatureTable(IndexTable):
    def find_texts(self, key: str) -> List[str]:
        texts: List[str] = []
        for record in self.find(key):
            if not isinstance(record, dict):
                raise IndexLookupError(f"Malformed signature record for {key}: {record!r}")
            texts.extend(str(text) for text in (record.get("texts") or []))
        return texts


class NametagTable(IndexTable):
    def find_nametags(self, address: str) -> List[str]:
        """Names then tags of every record, in order."""
        tags: List[str] = []
        for record in self.find(address):
            if not isinstance(record, dict):
                raise IndexLookupError(f"Malformed nametag record for {address}: {record!r}")
            tags.extend(str(name) for name in (record.get("names") or []))
            tags.extend(str(tag) for tag in (record.get("tags") or []))
        return tags


class LocalIndex:
    """Indexed address appearances, event signatures and name-tags under one directory."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        self.appearances = AppearanceTable(os.path.join(directory, APPEARANCES_FILE))
        self.signatures = SignatureTable(os.path.join(directory, SIGNATURES_FILE))
        self.nametags = NametagTable(os.path.join(directory, NAMETAGS_FILE))
