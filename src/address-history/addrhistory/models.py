from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TxLocation:
    """A block number and transaction index at which an address appears."""

    block: int
    index: int

    def as_rpc_params(self) -> List[str]:
        return [hex(self.block), hex(self.index)]


@dataclass(frozen=True)
class MetadataSource:
    """Link extracted from the CBOR metadata appended to deployed bytecode."""

    kind: str
    link: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "link": self.link}


@dataclass(frozen=True)
class AbiRecord:
    summary: str
    decompiled: bool = False
    source_path: Optional[str] = None


@dataclass(frozen=True)
class Contract:
    address: str
    bytecode: bytes = b""
    metadata_link: Optional[MetadataSource] = None
    abi: Optional[str] = None
    decompiled: bool = False
    source_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": f"0x{self.address}",
            "bytecode": f"0x{self.bytecode.hex()}",
            "metadata_link": self.metadata_link.to_dict() if self.metadata_link else None,
            "abi": self.abi,
            "decompiled": self.decompiled,
            "source_path": self.source_path,
        }


@dataclass(frozen=True)
class LoggedEvent:
    """A log together with whatever metadata could be resolved for it."""

    raw: Dict[str, Any]
    topic_zero: str
    contract: Contract
    name: Optional[str] = None
    nametags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw": self.raw,
            "topic_zero": self.topic_zero,
            "contract": self.contract.to_dict(),
            "name": self.name,
            "nametags": list(self.nametags) if self.nametags is not None else None,
        }


@dataclass
class TxInfo:
    location: TxLocation
    description: Optional[Dict[str, Any]] = None
    receipt: Optional[Dict[str, Any]] = None
    events: Optional[List[LoggedEvent]] = None

    def with_description(self, description: Dict[str, Any]) -> "TxInfo":
        return TxInfo(location=self.location, description=description)

    def with_receipt(self, receipt: Dict[str, Any]) -> "TxInfo":
        return replace(self, receipt=receipt)

    def with_events(self, events: List[LoggedEvent]) -> "TxInfo":
        return replace(self, events=events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": {"block": self.location.block, "index": self.location.index},
            "transaction": self.description,
            "receipt": self.receipt,
            "events": [event.to_dict() for event in self.events] if self.events is not None else None,
        }
