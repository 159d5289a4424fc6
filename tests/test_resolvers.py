import pytest
import requests

from addrhistory.config import Mode
from addrhistory.resolvers import AbiResolver, NametagResolver, SignatureResolver

TRANSFER_TOPIC = "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
ADDRESS = "ab" * 20
BYTECODE = bytes.fromhex("6080604052")

METADATA = {
    "settings": {"compilationTarget": {"Token.sol": "Token"}},
    "output": {"abi": [{"type": "function", "name": "totalSupply", "stateMutability": "view", "inputs": [], "outputs": [{"type": "uint256"}]}]},
}


class FakeSignatureTable:
    def __init__(self, texts):
        self.texts = texts
        self.keys = []

    def find_texts(self, key):
        self.keys.append(key)
        return self.texts.get(key, [])


class FakeNametagTable:
    def __init__(self, tags):
        self.tags = tags

    def find_nametags(self, address):
        return self.tags.get(address, [])


class FakeDirectory:
    def __init__(self, results):
        self.results = results
        self.digests = []

    def event_signatures(self, digest):
        self.digests.append(digest)
        return self.results


class FakeRegistry:
    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls = []

    def get_metadata(self, address, match="full_match"):
        self.calls.append(match)
        outcome = self.outcomes.get(match)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeDecompiler:
    def __init__(self):
        self.calls = []

    def decompile(self, address, bytecode):
        self.calls.append((address, bytecode))
        return f"decompiled/{address}"


def test_signature_from_index_concatenates_texts():
    table = FakeSignatureTable({"ddf252ad": ["Transfer(address,address,uint256)", "Other(bytes32)"]})
    resolver = SignatureResolver(table, FakeDirectory([]))

    assert resolver.resolve(TRANSFER_TOPIC, Mode.AVOID_APIS) == "Transfer(address,address,uint256), Other(bytes32)"
    assert table.keys == ["ddf252ad"]


def test_signature_from_index_not_found():
    resolver = SignatureResolver(FakeSignatureTable({}), FakeDirectory([]))

    assert resolver.resolve(TRANSFER_TOPIC, Mode.AVOID_APIS) is None


def test_signature_from_directory_rejects_collisions():
    # Both candidates claim the digest; only one hashes to the full topic.
    directory = FakeDirectory(
        [
            {"hex_signature": "0xddf252ad", "text_signature": "Approval(address,address,uint256)"},
            {"hex_signature": "0xddf252ad", "text_signature": "Transfer(address,address,uint256)"},
        ]
    )
    resolver = SignatureResolver(FakeSignatureTable({}), directory)

    assert resolver.resolve("0x" + TRANSFER_TOPIC, Mode.USE_APIS) == "Transfer(address,address,uint256)"
    assert directory.digests == ["ddf252ad"]


def test_signature_from_directory_without_exact_match():
    directory = FakeDirectory([{"hex_signature": "0xddf252ad", "text_signature": "Approval(address,address,uint256)"}])
    resolver = SignatureResolver(FakeSignatureTable({}), directory)

    assert resolver.resolve(TRANSFER_TOPIC, Mode.USE_APIS) is None


def test_nametags_empty_is_none():
    resolver = NametagResolver(FakeNametagTable({ADDRESS: ["WETH", "token"]}))

    assert resolver.resolve(ADDRESS) == ["WETH", "token"]
    assert resolver.resolve("cd" * 20) is None


def test_abi_full_match_returns_immediately():
    registry = FakeRegistry({"full_match": METADATA})
    decompiler = FakeDecompiler()
    record = AbiResolver(decompiler, registry).resolve(ADDRESS, BYTECODE, Mode.USE_APIS)

    assert record.summary.startswith("Contract: Token (Token.sol)")
    assert record.decompiled is False
    assert registry.calls == ["full_match"]
    assert decompiler.calls == []


def test_abi_partial_match_after_transport_error():
    registry = FakeRegistry({"full_match": requests.ConnectionError("reset"), "partial_match": METADATA})
    decompiler = FakeDecompiler()
    record = AbiResolver(decompiler, registry).resolve(ADDRESS, BYTECODE, Mode.USE_APIS)

    assert "totalSupply" in record.summary
    assert registry.calls == ["full_match", "partial_match"]
    assert decompiler.calls == []


def test_abi_falls_through_to_decompiler_once():
    registry = FakeRegistry({"full_match": None, "partial_match": None})
    decompiler = FakeDecompiler()
    record = AbiResolver(decompiler, registry).resolve(ADDRESS, BYTECODE, Mode.USE_APIS)

    assert registry.calls == ["full_match", "partial_match"]
    assert decompiler.calls == [(ADDRESS, BYTECODE)]
    assert record.decompiled is True
    assert record.source_path == f"decompiled/{ADDRESS}"
    assert f"decompiled/{ADDRESS}" in record.summary


def test_abi_without_apis_goes_straight_to_decompiler():
    registry = FakeRegistry({"full_match": METADATA})
    decompiler = FakeDecompiler()
    record = AbiResolver(decompiler, registry).resolve(ADDRESS, BYTECODE, Mode.AVOID_APIS)

    assert registry.calls == []
    assert len(decompiler.calls) == 1
    assert record.decompiled is True


def test_abi_without_bytecode_is_not_found():
    decompiler = FakeDecompiler()
    record = AbiResolver(decompiler, FakeRegistry({})).resolve(ADDRESS, b"", Mode.USE_APIS)

    assert record is None
    assert decompiler.calls == []


def test_abi_decompiler_launch_failure_propagates():
    class BrokenDecompiler(FakeDecompiler):
        def decompile(self, address, bytecode):
            raise FileNotFoundError("heimdall")

    with pytest.raises(FileNotFoundError):
        AbiResolver(BrokenDecompiler(), FakeRegistry({})).resolve(ADDRESS, BYTECODE, Mode.AVOID_APIS)


def test_abi_partial_match_after_malformed_full_match():
    registry = FakeRegistry({"full_match": {"output": ["not", "a", "dict"]}, "partial_match": METADATA})
    decompiler = FakeDecompiler()
    record = AbiResolver(decompiler, registry).resolve(ADDRESS, BYTECODE, Mode.USE_APIS)

    assert registry.calls == ["full_match", "partial_match"]
    assert record.summary.startswith("Contract: Token (Token.sol)")
    assert record.decompiled is False
    assert decompiler.calls == []
