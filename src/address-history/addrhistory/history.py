import logging
from typing import Any, Dict, List, Optional

from .cache import ResolutionCache
from .config import Mode
from .enricher import LogEnricher
from .index import AppearanceTable
from .models import LoggedEvent, TxInfo
from .parsing import normalize_address
from .rpc_client import RpcClient

logger = logging.getLogger(__name__)


class MissingDataError(ValueError):
    """The node has no data for an item that is known to exist."""


def _past_cap(i: int, cap_num: Optional[int]) -> bool:
    # The cap is inclusive: cap_num=1 lets items 0 and 1 through.
    return cap_num is not None and i > cap_num


class AddressHistory:
    """Historical activity for a single address, filled in one stage at a time.

    Each stage returns ``self`` so a run reads as a chain::

        history.get_transaction_ids().get_transaction_data(1).get_receipts(1).decode_logs(1, mode)
    """

    def __init__(
        self,
        address: str,
        appearances: AppearanceTable,
        rpc: RpcClient,
        enricher: LogEnricher,
    ) -> None:
        self.address = normalize_address(address)
        self.appearances = appearances
        self.rpc = rpc
        self.enricher = enricher
        self.transactions: List[TxInfo] = []

    @property
    def cache(self) -> ResolutionCache:
        return self.enricher.cache

    def get_transaction_ids(self) -> "AddressHistory":
        """Find the appearances of this address in the local index."""
        locations = self.appearances.find_locations(self.address)
        self.transactions.extend(TxInfo(location=location) for location in locations)
        logger.info("Found %s transactions for %s", len(locations), self.address)
        return self

    def get_transaction_data(self, cap_num: Optional[int] = None) -> "AddressHistory":
        """Fetch transaction bodies with eth_getTransactionByBlockNumberAndIndex."""
        txs_with_data: List[TxInfo] = []
        for i, tx in enumerate(self.transactions):
            if _past_cap(i, cap_num):
                break
            tx_data = self.rpc.get_transaction(tx.location)
            if tx_data is None:
                raise MissingDataError(
                    f"No data for transaction at block {tx.location.block} index {tx.location.index}."
                )
            txs_with_data.append(tx.with_description(tx_data))
        self.transactions = txs_with_data
        logger.debug("Fetched %s transaction bodies", len(txs_with_data))
        return self

    def get_receipts(self, cap_num: Optional[int] = None) -> "AddressHistory":
        """Fetch receipts with eth_getTransactionReceipt."""
        txs_with_data: List[TxInfo] = []
        for i, tx in enumerate(self.transactions):
            if _past_cap(i, cap_num):
                break
            if tx.description is None:
                continue
            tx_hash = tx.description.get("hash")
            receipt = self.rpc.get_transaction_receipt(tx_hash) if tx_hash else None
            if receipt is None:
                raise MissingDataError(f"No receipt for transaction hash {tx_hash}.")
            txs_with_data.append(tx.with_receipt(receipt))
        self.transactions = txs_with_data
        logger.debug("Fetched %s receipts", len(txs_with_data))
        return self

    def decode_logs(self, cap_num: Optional[int] = None, mode: Mode = Mode.AVOID_APIS) -> "AddressHistory":
        """Enrich the logs of each receipt.

        Every logged event originates from a contract. That contract is
        obtained with eth_getCode and useful information is stored alongside
        the event.
        """
        txs_with_data: List[TxInfo] = []
        for i, tx in enumerate(self.transactions):
            if _past_cap(i, cap_num):
                break
            if tx.receipt is None:
                continue
            events: List[LoggedEvent] = []
            for log in tx.receipt.get("logs") or []:
                event = self.enricher.examine_log(log, mode)
                if event is None:
                    continue
                events.append(event)
            txs_with_data.append(tx.with_events(events))
        self.transactions = txs_with_data
        logger.info("Decoded logs for %s transactions (cache: %s)", len(txs_with_data), self.cache.stats())
        return self

    def run(self, cap_num: Optional[int] = None, mode: Mode = Mode.AVOID_APIS) -> "AddressHistory":
        return (
            self.get_transaction_ids()
            .get_transaction_data(cap_num)
            .get_receipts(cap_num)
            .decode_logs(cap_num, mode)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "transaction_count": len(self.transactions),
            "transactions": [tx.to_dict() for tx in self.transactions],
        }
