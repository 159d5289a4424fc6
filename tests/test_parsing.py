import pytest

from addrhistory import parsing

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

WETH_METADATA = {
    "compiler": {"version": "0.4.19+commit.c4cbbb05"},
    "language": "Solidity",
    "output": {
        "abi": [
            {
                "constant": True,
                "inputs": [],
                "name": "name",
                "outputs": [{"name": "", "type": "string"}],
                "payable": False,
                "stateMutability": "view",
                "type": "function",
            },
            {
                "constant": False,
                "inputs": [{"name": "guy", "type": "address"}, {"name": "wad", "type": "uint256"}],
                "name": "approve",
                "outputs": [{"name": "", "type": "bool"}],
                "payable": False,
                "stateMutability": "nonpayable",
                "type": "function",
            },
            {
                "anonymous": False,
                "inputs": [
                    {"indexed": True, "name": "src", "type": "address"},
                    {"indexed": True, "name": "dst", "type": "address"},
                    {"indexed": False, "name": "wad", "type": "uint256"},
                ],
                "name": "Transfer",
                "type": "event",
            },
        ],
    },
    "settings": {"compilationTarget": {"WETH9.sol": "WETH9"}},
    "version": 1,
}


def test_signature_key_and_hash():
    assert parsing.signature_key(TRANSFER_TOPIC) == "ddf252ad"
    assert parsing.signature_key(TRANSFER_TOPIC.upper().replace("0X", "0x")) == "ddf252ad"
    assert parsing.signature_hash("Transfer(address,address,uint256)") == TRANSFER_TOPIC[2:]


def test_normalize_topic_rejects_short_values():
    with pytest.raises(ValueError):
        parsing.normalize_topic("0xddf252ad")


def test_address_helpers():
    weth = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    assert parsing.normalize_address(weth) == weth.lower()
    assert parsing.address_key(weth) == weth.lower()[2:]
    assert parsing.as_checksummed(weth.lower()) == weth
    with pytest.raises(ValueError):
        parsing.normalize_address("0x1234")


def test_hex_to_bytes():
    assert parsing.hex_to_bytes("0x6001") == b"\x60\x01"
    assert parsing.hex_to_bytes("0x") == b""
    with pytest.raises(ValueError):
        parsing.hex_to_bytes("0xzz")


def test_summarize_metadata():
    summary = parsing.summarize_metadata(WETH_METADATA)
    lines = summary.splitlines()

    assert lines[0] == "Contract: WETH9 (WETH9.sol)"
    assert "\tfunction view name." in lines
    assert "\t\tOutputs: [string]" in lines
    assert "\tfunction nonpayable approve." in lines
    assert "\t\tInputs: [address guy, uint256 wad]" in lines
    assert "\tevent - Transfer." in lines


def test_summarize_metadata_rejects_non_object():
    with pytest.raises(ValueError):
        parsing.summarize_metadata(["not", "metadata"])


@pytest.mark.parametrize("metadata", [{"output": ["not", "an", "object"]}, {"settings": "Token.sol"}])
def test_summarize_metadata_rejects_malformed_sections(metadata):
    with pytest.raises(ValueError):
        parsing.summarize_metadata(metadata)
