import logging
from typing import Optional

import base58
import cbor2

from .models import MetadataSource

logger = logging.getLogger(__name__)

# Keys the Solidity compiler writes into the CBOR metadata trailer.
SWARM_KEYS = ("bzzr1", "bzzr0")
IPFS_KEY = "ipfs"


def metadata_trailer(bytecode: bytes) -> bytes:
    """The CBOR encoded section at the end of runtime bytecode.

    Its length is stored big-endian in the final two bytes.
    """
    if len(bytecode) < 2:
        raise ValueError("Bytecode too short to contain a metadata section.")
    length = int.from_bytes(bytecode[-2:], "big")
    if length == 0 or length + 2 > len(bytecode):
        raise ValueError(f"Invalid metadata section length {length} for {len(bytecode)} byte bytecode.")
    return bytecode[-2 - length:-2]


def metadata_link_from_bytecode(bytecode: bytes) -> Optional[MetadataSource]:
    """Content addressed pointer to the compiler metadata, if the bytecode embeds one."""
    trailer = metadata_trailer(bytecode)
    try:
        decoded = cbor2.loads(trailer)
    except (cbor2.CBORDecodeError, ValueError) as exc:
        raise ValueError(f"Metadata section is not valid CBOR: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ValueError("Metadata section is not a CBOR map.")

    ipfs = decoded.get(IPFS_KEY)
    if isinstance(ipfs, bytes):
        return MetadataSource(kind=IPFS_KEY, link=base58.b58encode(ipfs).decode("ascii"))

    for key in SWARM_KEYS:
        swarm = decoded.get(key)
        if isinstance(swarm, bytes):
            return MetadataSource(kind=key, link=swarm.hex())

    logger.debug("No metadata link among CBOR keys: %s", sorted(str(k) for k in decoded))
    return None
