import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class VisitNote(Enum):
    """Outcome of a prior lookup. A key absent from a table has not been visited."""

    NOT_VISITED = "not_visited"
    PRIOR_SUCCESS = "prior_success"
    PRIOR_FAILURE = "prior_failure"


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    note: VisitNote
    value: Optional[V] = None

    @classmethod
    def success(cls, value: V) -> "CacheEntry[V]":
        return cls(VisitNote.PRIOR_SUCCESS, value)

    @classmethod
    def failure(cls) -> "CacheEntry[V]":
        return cls(VisitNote.PRIOR_FAILURE, None)

    @property
    def succeeded(self) -> bool:
        return self.note is VisitNote.PRIOR_SUCCESS


class LookupTable(Generic[V]):
    """Memoized key -> outcome map. Every key is fetched at most once."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: Dict[str, CacheEntry[V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, key: str) -> Optional[CacheEntry[V]]:
        return self._entries.get(key)

    def note(self, key: str) -> VisitNote:
        entry = self._entries.get(key)
        return entry.note if entry else VisitNote.NOT_VISITED

    def resolve(self, key: str, fetch: Callable[[], Optional[V]]) -> Optional[V]:
        """Return the value for ``key``, calling ``fetch`` only on the first visit.

        ``fetch`` returns ``None`` when the source has no data for the key and
        raises on operational faults. Both outcomes are stored as a terminal
        failure and reported as ``None``.
        """
        if not key:
            raise ValueError(f"{self.name} lookup key must be a non-empty string.")

        entry = self._entries.get(key)
        if entry is not None:
            if entry.succeeded:
                logger.debug("Using cached %s: %s %s", self.name, key, entry.value)
                return entry.value
            logger.debug("(skipping) Prior %s fetch failure for key: %s", self.name, key)
            return None

        try:
            value = fetch()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Couldn't get %s for key: %s (%s)", self.name, key, exc)
            self._entries[key] = CacheEntry.failure()
            return None

        if value is None:
            logger.error("No %s found for key: %s", self.name, key)
            self._entries[key] = CacheEntry.failure()
            return None

        self._entries[key] = CacheEntry.success(value)
        return value


class ResolutionCache:
    """A store of things obtained externally that may be asked for more than once.

    - ``signatures``: 4 byte topic keys ``"ddf252ad"`` -> ``"Transfer(address,address,uint256)"``
    - ``nametags``: 20 byte address keys -> ``["SomeContractName", "Special tag"]``
    - ``abis``: 20 byte address keys -> ``AbiRecord``
    """

    def __init__(self) -> None:
        self.signatures: LookupTable[str] = LookupTable("signature")
        self.nametags: LookupTable[list] = LookupTable("nametags")
        self.abis: LookupTable[Any] = LookupTable("abi")

    def stats(self) -> Dict[str, Dict[str, int]]:
        summary: Dict[str, Dict[str, int]] = {}
        for table in (self.signatures, self.nametags, self.abis):
            hits = sum(1 for key in table if table.note(key) is VisitNote.PRIOR_SUCCESS)
            summary[table.name] = {"success": hits, "failure": len(table) - hits}
        return summary
