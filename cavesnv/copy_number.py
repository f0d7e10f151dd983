"""Copy number lookups from tab separated copy number or BED files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_MAX_CN = 10
DEFAULT_MEAN_CN = 2


class CopyNumberError(Exception):
    """Raised when a copy number file cannot be read or parsed."""


@dataclass(frozen=True)
class CopyNumberRegion:
    """A region of a chromosome with a copy number (1-based, inclusive)."""

    chrom: str
    beg: int
    end: int
    value: int

    def contains(self, chrom: str, pos: int) -> bool:
        return self.chrom == chrom and self.beg <= pos <= self.end


def check_overlap(reg_start: int, reg_stop: int, start: int, stop: int) -> bool:
    """Return True when the region [reg_start, reg_stop] overlaps [start, stop]."""
    return (
        (reg_start >= start and reg_stop <= stop)
        or (reg_start <= start <= reg_stop)
        or (reg_start <= stop <= reg_stop)
        or (start <= reg_start <= stop)
        or (start <= reg_stop <= stop)
    )


def _is_bed(file_loc: str) -> bool:
    dot = file_loc.rfind(".")
    return dot > 0 and file_loc[dot + 1:] == "bed"


def _parse_line(line: str, file_loc: str, is_bed: bool, max_cn: int) -> CopyNumberRegion:
    fields = line.split()
    try:
        chrom = fields[0]
        beg, end, value = (int(field) for field in fields[1:4])
    except (IndexError, ValueError):
        raise CopyNumberError(
            f"Unusable line {line!r} parsed from copy number file {file_loc!r}."
        ) from None
    if len(fields) < 4:
        raise CopyNumberError(
            f"Unusable line {line!r} parsed from copy number file {file_loc!r}."
        )
    if is_bed:
        beg += 1
    return CopyNumberRegion(chrom, beg, end, min(value, max_cn))


def read_copy_number_file(file_loc: PathLike, max_cn: int = DEFAULT_MAX_CN) -> list[CopyNumberRegion]:
    """Read all regions of a copy number file, capping values at max_cn.

    Files ending in ``.bed`` have 0-based starts, which are converted to 1-based.
    """
    name = os.fspath(file_loc)
    is_bed = _is_bed(name)
    try:
        with open(name, encoding="utf-8") as handle:
            return [_parse_line(line, name, is_bed, max_cn) for line in handle]
    except OSError as exc:
        raise CopyNumberError(
            f"Error trying to open copy number file for reading {name}."
        ) from exc


class CopyNumberStore:
    """Holds the copy number regions of the normal and the tumour sample."""

    def __init__(self, max_cn: int = DEFAULT_MAX_CN) -> None:
        self.max_cn = max_cn
        self._regions: dict[bool, list[CopyNumberRegion]] = {}

    def populate(self, file_loc: PathLike, is_normal: bool) -> None:
        """Load regions for one sample, unless that sample is already loaded."""
        key = bool(is_normal)
        if key in self._regions:
            return
        self._regions[key] = read_copy_number_file(file_loc, self.max_cn)

    def regions(self, is_normal: bool) -> list[CopyNumberRegion]:
        """The loaded regions of one sample (empty if none are loaded)."""
        return list(self._regions.get(bool(is_normal), []))

    def copy_number_for_location(
        self, file_loc: PathLike | None, chrom: str, pos: int, is_normal: bool
    ) -> int:
        """Copy number at a position; 0 when no file is given or nothing covers it."""
        if file_loc is None or file_loc == "":
            return 0
        self.populate(file_loc, is_normal)
        return next(
            (region.value for region in self._regions[bool(is_normal)] if region.contains(chrom, pos)),
            0,
        )

    def mean_cn_for_range(
        self, file_loc: PathLike | None, chrom: str, start: int, stop: int, is_normal: bool
    ) -> int:
        """Integer mean copy number of regions overlapping a range; 2 by default."""
        if file_loc is not None:
            self.populate(file_loc, is_normal)
        values = [
            region.value
            for region in self._regions.get(bool(is_normal), [])
            if region.chrom == chrom and check_overlap(region.beg, region.end, start, stop)
        ]
        total = sum(values)
        if values and total > 0:
            return int(total / len(values))
        return DEFAULT_MEAN_CN

    def clear(self) -> None:
        """Forget the regions of both samples."""
        self._regions.clear()


__all__ = [
    "CopyNumberError",
    "CopyNumberRegion",
    "CopyNumberStore",
    "check_overlap",
    "read_copy_number_file",
    "Path",
]