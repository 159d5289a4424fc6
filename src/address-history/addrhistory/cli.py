import argparse
import json
import logging
import os
import sys
from typing import Optional

from .config import Mode, load_config
from .service import HistoryService

MODE_CHOICES = [mode.value for mode in Mode]


def _add_mode(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        required=False,
        choices=MODE_CHOICES,
        help="Lookup mode. Defaults to MODE env or avoid-apis.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Decode the on-chain history of an address with event names, ABIs and name-tags.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env or INFO.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    history_parser = subparsers.add_parser("history", help="Enrich every transaction of an address")
    history_parser.add_argument(
        "--address",
        required=True,
        help="Address to explore (0x-prefixed).",
    )
    history_parser.add_argument(
        "--cap",
        required=False,
        type=int,
        help="Only process transactions up to this index (inclusive) at each stage.",
    )
    _add_mode(history_parser)

    sig_parser = subparsers.add_parser("signature", help="Resolve an event topic to its text signature")
    sig_parser.add_argument(
        "--topic",
        required=True,
        help="32 byte event topic (0x-prefixed hex).",
    )
    _add_mode(sig_parser)

    nametags_parser = subparsers.add_parser("nametags", help="Look up names and tags for an address")
    nametags_parser.add_argument(
        "--address",
        required=True,
        help="Address (0x-prefixed).",
    )

    abi_parser = subparsers.add_parser("abi", help="Resolve a contract ABI summary")
    abi_parser.add_argument(
        "--address",
        required=True,
        help="Contract address (0x-prefixed).",
    )
    _add_mode(abi_parser)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=str(args.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config()
        service = HistoryService(config)

        if args.command == "history":
            result = service.address_history(args.address, cap_num=args.cap, mode=args.mode)
        elif args.command == "signature":
            result = service.lookup_signature(args.topic, mode=args.mode)
        elif args.command == "nametags":
            result = service.lookup_nametags(args.address)
        else:
            result = service.lookup_abi(args.address, mode=args.mode)
        print(json.dumps(result, indent=2))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
