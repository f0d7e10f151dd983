"""Per-position base counts from pileups, counting overlapping read pairs once."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

BASES = "ACGT"
DEFAULT_MIN_BASE_QUAL = 10
UNSTRANDED_SIZE = 4
STRANDED_SIZE = 8


class PileupError(Exception):
    """Raised when a pileup cannot be counted."""


@dataclass(frozen=True)
class PileupEntry:
    """One read's contribution to the pileup at a single reference position."""

    name: str
    base: str
    qual: int
    is_reverse: bool = False
    is_del: bool = False

    @property
    def base_index(self) -> Optional[int]:
        """Index of the base in ACGT, or None for any other base."""
        index = BASES.find(self.base.upper()) if len(self.base) == 1 else -1
        return index if index >= 0 else None


def _collect_by_read(
    entries: Iterable[PileupEntry], min_base_qual: int, stranded: bool
) -> dict[str, dict[bool, int]]:
    """Group usable bases by read name and strand, as count indices."""
    by_read: dict[str, dict[bool, int]] = {}
    for entry in entries:
        base_index = entry.base_index
        if entry.is_del or entry.qual < min_base_qual or base_index is None:
            continue
        strands = by_read.setdefault(entry.name, {})
        is_rev = bool(entry.is_reverse)
        if is_rev in strands:
            raise PileupError(f"Repeated strand found for this read {entry.name}.")
        if stranded and is_rev:
            base_index += UNSTRANDED_SIZE
        strands[is_rev] = base_index
    return by_read


def _accumulate(
    counts: list[int], entries: Iterable[PileupEntry], min_base_qual: int, stranded: bool
) -> None:
    """Add the bases of one position's pileup into ``counts`` in place."""
    by_read = _collect_by_read(entries, min_base_qual, stranded)
    same_base = [0] * UNSTRANDED_SIZE

    for strands in by_read.values():
        fwd = strands.get(False)
        rev = strands.get(True)
        if fwd is None:
            counts[rev] += 1
        elif rev is None:
            counts[fwd] += 1
        elif rev % UNSTRANDED_SIZE != fwd:
            counts[rev] += 1
            counts[fwd] += 1
        else:
            same_base[fwd] += 1

    # A pair showing the same base on both strands counts once, on whichever
    # strand is currently less represented for that base.
    for base, pending in enumerate(same_base):
        for _ in range(pending):
            if stranded and counts[base] > counts[base + UNSTRANDED_SIZE]:
                counts[base + UNSTRANDED_SIZE] += 1
            else:
                counts[base] += 1


def position_counts(
    entries: Iterable[PileupEntry],
    min_base_qual: int = DEFAULT_MIN_BASE_QUAL,
    stranded: bool = False,
) -> list[int]:
    """Base counts for one position.

    The result holds A, C, G, T counts; when ``stranded`` it holds forward
    counts followed by reverse counts.
    """
    counts = [0] * (STRANDED_SIZE if stranded else UNSTRANDED_SIZE)
    _accumulate(counts, entries, min_base_qual, stranded)
    return counts


class PositionCounts:
    """Base counts for every position of a 1-based inclusive region."""

    def __init__(self, start: int, end: int, stranded: bool = False) -> None:
        if end < start:
            raise PileupError(f"Region end {end} lies before its start {start}.")
        self.start = start
        self.end = end
        self.stranded = stranded
        self._counts: list[Optional[list[int]]] = [None] * (end - start + 1)

    @property
    def width(self) -> int:
        return STRANDED_SIZE if self.stranded else UNSTRANDED_SIZE

    def _slot(self, pos: int) -> int:
        if not self.start <= pos <= self.end:
            raise PileupError(f"Position {pos} lies outside {self.start}-{self.end}.")
        return pos - self.start

    def add_position(
        self,
        pos: int,
        entries: Iterable[PileupEntry],
        min_base_qual: int = DEFAULT_MIN_BASE_QUAL,
    ) -> bool:
        """Add the pileup at 1-based ``pos``; positions outside the region are skipped.

        Returns True when the position was counted.
        """
        if not self.start <= pos <= self.end:
            return False
        slot = pos - self.start
        counts = self._counts[slot]
        if counts is None:
            counts = [0] * self.width
            self._counts[slot] = counts
        _accumulate(counts, entries, min_base_qual, self.stranded)
        return True

    def counts_at(self, pos: int) -> Optional[list[int]]:
        """Counts at 1-based ``pos``, or None if no pileup covered it."""
        counts = self._counts[self._slot(pos)]
        return None if counts is None else list(counts)

    def __iter__(self) -> Iterator[tuple[int, list[int]]]:
        """Covered positions and their counts, in position order."""
        for offset, counts in enumerate(self._counts):
            if counts is not None:
                yield self.start + offset, list(counts)