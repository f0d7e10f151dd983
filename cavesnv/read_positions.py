"""Usable read positions at a reference position, counting overlapping read pairs once."""

from __future__ import annotations

import heapq
from bisect import insort_right
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

BASES = "ACGT"
DEFAULT_MIN_BASE_QUAL = 10
_REV_OFFSET = len(BASES)


class ReadPositionError(Exception):
    """Raised when the reads at a position cannot be turned into read positions."""


@dataclass(frozen=True)
class PileupRead:
    """One aligned read as seen in the pileup at a single reference position."""

    name: str
    base: str
    qual: int
    qpos: int
    read_length: int
    map_qual: int
    read_group: str
    is_reverse: bool = False
    is_read1: bool = False
    is_read2: bool = False
    is_del: bool = False

    @property
    def base_index(self) -> Optional[int]:
        """Index of the base in ACGT, or None for any other base."""
        index = BASES.find(self.base.upper()) if len(self.base) == 1 else -1
        return index if index >= 0 else None


@dataclass(frozen=True)
class ReadPos:
    """The covariates of one read's base at one reference position."""

    ref_pos: int
    rd_len: int
    normal: bool
    read_order: int
    strand: int
    called_base: str
    rd_pos: int
    base_qual: int
    map_qual: int
    lane_i: int

    @property
    def base_index(self) -> int:
        """Index of the called base in ACGT."""
        return BASES.index(self.called_base)


def _ref_pos(read: ReadPos) -> int:
    return read.ref_pos


def insert_sorted(reads: list[ReadPos], read: ReadPos) -> None:
    """Insert ``read`` into ``reads``, kept ordered by reference position.

    A read goes after existing reads of the same position, except that when it
    sorts no later than the first read (and before the last) it goes in front.
    """
    if not reads or reads[-1].ref_pos <= read.ref_pos:
        reads.append(read)
    elif reads[0].ref_pos >= read.ref_pos:
        reads.insert(0, read)
    else:
        insort_right(reads, read, key=_ref_pos)


def merge_sorted(first: Iterable[ReadPos], second: Iterable[ReadPos]) -> list[ReadPos]:
    """Merge two position-sorted sequences; on ties reads of ``first`` come first."""
    return list(heapq.merge(first, second, key=_ref_pos))


def _make_read_pos(
    entry: PileupRead, base: str, ref_pos: int, lanes: Sequence[str], is_normal: bool
) -> ReadPos:
    rd_len = entry.read_length
    rd_pos = entry.qpos + 1
    strand = 1 if entry.is_reverse else 0
    if entry.is_reverse:
        rd_pos = rd_len - rd_pos + 1
    read_order = 1 if (not entry.is_read1 and entry.is_read2) else 0
    lane = f"{entry.read_group}_{int(bool(is_normal))}"
    try:
        lane_i = list(lanes).index(lane)
    except ValueError:
        raise ReadPositionError(f"Error calculating lane index {lane}.") from None
    return ReadPos(
        ref_pos=ref_pos,
        rd_len=rd_len,
        normal=bool(is_normal),
        read_order=read_order,
        strand=strand,
        called_base=base,
        rd_pos=rd_pos,
        base_qual=entry.qual,
        map_qual=entry.map_qual,
        lane_i=lane_i,
    )


def reads_at_position(
    entries: Iterable[PileupRead],
    ref_pos: int,
    lanes: Sequence[str],
    is_normal: bool,
    min_base_qual: int = DEFAULT_MIN_BASE_QUAL,
    keep_sorted: bool = True,
) -> list[ReadPos]:
    """Read positions at 1-based ``ref_pos`` from the reads piled up there.

    Bases that are deletions, below ``min_base_qual`` or not ACGT are skipped.
    A read pair covering the position on both strands contributes both bases
    when they differ, and a single base otherwise, placed on whichever strand
    is currently less represented for that base.
    """
    by_name: dict[str, dict[int, ReadPos]] = {}
    for entry in entries:
        index = entry.base_index
        if entry.is_del or entry.qual < min_base_qual or index is None:
            continue
        read_pos = _make_read_pos(entry, BASES[index], ref_pos, lanes, is_normal)
        strands = by_name.setdefault(entry.name, {})
        if read_pos.strand in strands:
            raise ReadPositionError(
                f"Error, strand was already found for this readname {entry.name}."
            )
        strands[read_pos.strand] = read_pos

    result: list[ReadPos] = []
    counts = [0] * (2 * _REV_OFFSET)

    def add(read: ReadPos) -> None:
        if keep_sorted:
            insert_sorted(result, read)
        else:
            result.append(read)

    same_base_pairs: list[tuple[ReadPos, ReadPos]] = []
    for strands in by_name.values():
        fwd = strands.get(0)
        rev = strands.get(1)
        if fwd is None:
            counts[rev.base_index + _REV_OFFSET] += 1
            add(rev)
        elif rev is None:
            counts[fwd.base_index] += 1
            add(fwd)
        elif fwd.called_base != rev.called_base:
            add(fwd)
            add(rev)
            counts[fwd.base_index] += 1
            counts[rev.base_index + _REV_OFFSET] += 1
        else:
            same_base_pairs.append((fwd, rev))

    for fwd, rev in same_base_pairs:
        fwd_idx = fwd.base_index
        rev_idx = fwd_idx + _REV_OFFSET
        if counts[rev_idx] < counts[fwd_idx]:
            add(rev)
            counts[rev_idx] += 1
        else:
            add(fwd)
            counts[fwd_idx] += 1

    return result