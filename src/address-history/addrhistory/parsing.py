import json
import re
from typing import Any, Dict, List

from eth_utils import keccak, to_checksum_address

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
TOPIC_PATTERN = re.compile(r"^[0-9a-f]{64}$")
SIGNATURE_KEY_LENGTH = 8


def normalize_address(address: str) -> str:
    """Return the 0x-prefixed lowercase form of ``address``."""
    if not isinstance(address, str):
        raise ValueError("Address must be a string.")

    candidate = address.strip()
    if not candidate.startswith("0x"):
        candidate = f"0x{candidate}"

    if not ADDRESS_PATTERN.match(candidate):
        raise ValueError("Invalid address format. Expected 0x-prefixed 40 hex characters.")

    return candidate.lower()


def address_key(address: str) -> str:
    """Cache and index key for an address: 40 lowercase hex chars, no 0x."""
    return normalize_address(address)[2:]


def as_checksummed(address: str) -> str:
    """E.g. ``"0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"``."""
    return to_checksum_address(normalize_address(address))


def normalize_topic(topic: str) -> str:
    """Full 32 byte topic as 64 lowercase hex chars, no 0x."""
    if not isinstance(topic, str):
        raise ValueError("Topic must be a hex string.")
    candidate = topic.strip().lower()
    if candidate.startswith("0x"):
        candidate = candidate[2:]
    if not TOPIC_PATTERN.match(candidate):
        raise ValueError("Invalid topic format. Expected 32 bytes of hex.")
    return candidate


def signature_key(topic: str) -> str:
    """The 4 byte digest of a topic used as lookup key, e.g. ``"ddf252ad"``."""
    return normalize_topic(topic)[:SIGNATURE_KEY_LENGTH]


def signature_hash(text_signature: str) -> str:
    """keccak-256 of a canonical text signature as 64 hex chars."""
    return keccak(text=text_signature).hex()


def hex_to_bytes(value: str) -> bytes:
    if not isinstance(value, str):
        raise ValueError("Expected a hex string.")
    body = value.strip()
    if body.startswith(("0x", "0X")):
        body = body[2:]
    try:
        return bytes.fromhex(body)
    except ValueError as exc:
        raise ValueError("Invalid hex string.") from exc


def _format_params(params: Any) -> str:
    if not isinstance(params, list):
        return "[]"
    parts: List[str] = []
    for param in params:
        if not isinstance(param, dict):
            continue
        typ = param.get("type") or "?"
        name = param.get("name")
        parts.append(f"{typ} {name}" if name else typ)
    return f"[{', '.join(parts)}]"


def _section(metadata: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = metadata.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"Compiler metadata \"{name}\" must be a JSON object.")
    return section


def _contract_name(metadata: Dict[str, Any]) -> str:
    target = _section(metadata, "settings").get("compilationTarget")
    if isinstance(target, dict) and target:
        return ", ".join(f"{name} ({path})" for path, name in target.items())
    return json.dumps(target)


def summarize_metadata(metadata: Dict[str, Any]) -> str:
    """Human readable summary of a compiler metadata document.

    Lists the compilation target followed by every ABI entry with its kind,
    state mutability, name, inputs and outputs.
    """
    if not isinstance(metadata, dict):
        raise ValueError("Compiler metadata must be a JSON object.")

    abi = _section(metadata, "output").get("abi")
    if abi is None:
        abi = []
    if not isinstance(abi, list):
        raise ValueError("Could not read abi from compiler metadata.")

    lines = [f"Contract: {_contract_name(metadata)}"]
    for entry in abi:
        if not isinstance(entry, dict):
            raise ValueError("Could not read abi entry from compiler metadata.")
        kind = entry.get("type", "function")
        mutability = entry.get("stateMutability") or ("anonymous" if entry.get("anonymous") else "-")
        name = entry.get("name") or ""
        lines.append(f"\t{kind} {mutability} {name}.".rstrip())
        lines.append(f"\t\tInputs: {_format_params(entry.get('inputs'))}")
        lines.append(f"\t\tOutputs: {_format_params(entry.get('outputs'))}")
    return "\n".join(lines)
