"""
MCP server exposing enriched address histories and the underlying metadata lookups.
"""

import argparse
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_config
from .service import HistoryService

server = FastMCP(
    name="address-history",
    instructions="Decode an address's transactions and logs with event names, contract ABIs and name-tags.",
)

_service: Optional[HistoryService] = None


def _get_service() -> HistoryService:
    global _service
    if _service is None:
        cfg = load_config()
        _service = HistoryService(cfg)
    return _service


@server.tool(
    name="address_history",
    title="Address History",
    description="Enrich the transactions of an address. cap_num limits each stage to indices 0..cap_num (inclusive). mode: avoid-apis|use-apis.",
)
def address_history(address: str, cap_num: Optional[int] = None, mode: Optional[str] = None) -> dict:
    svc = _get_service()
    return svc.address_history(address, cap_num, mode)


@server.tool(
    name="lookup_event_signature",
    title="Lookup Event Signature",
    description="Resolve a 32 byte event topic to its text signature. Remote candidates are verified against the full topic hash.",
)
def lookup_event_signature(topic: str, mode: Optional[str] = None) -> dict:
    svc = _get_service()
    return svc.lookup_signature(topic, mode)


@server.tool(
    name="lookup_nametags",
    title="Lookup Name-Tags",
    description="Names and tags recorded for an address in the local index.",
)
def lookup_nametags(address: str) -> dict:
    svc = _get_service()
    return svc.lookup_nametags(address)


@server.tool(
    name="lookup_abi",
    title="Lookup Contract ABI",
    description="ABI summary from verified metadata (full then partial match), falling back to decompilation.",
)
def lookup_abi(address: str, mode: Optional[str] = None) -> dict:
    svc = _get_service()
    return svc.lookup_abi(address, mode)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the address history MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level. stdio transport keeps logs on stderr.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=str(args.log_level).upper())

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
