"""Reading alignment file headers: contigs, sample names, platforms and lanes."""

from __future__ import annotations

import gzip
import os
import struct
import zlib
from dataclasses import dataclass, field
from typing import BinaryIO, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

_BAM_MAGIC = b"BAM\x01"
_GZIP_MAGIC = b"\x1f\x8b"
_CRAM_MAGIC = b"CRAM"


class BamHeaderError(Exception):
    """Raised when a header cannot be read or lacks required information."""


@dataclass
class RefSeq:
    """A reference sequence described by an @SQ header line."""

    name: Optional[str] = None
    length: int = 0
    assembly: Optional[str] = None
    species: Optional[str] = None


@dataclass
class BamHeader:
    """The header text of an alignment file and its reference sequence table."""

    text: str
    references: list[tuple[str, int]] = field(default_factory=list)

    @property
    def n_targets(self) -> int:
        return len(self.references)

    def lines(self) -> list[str]:
        """Non-empty header lines."""
        return _header_lines(self.text)


def _header_lines(text: str) -> list[str]:
    return [line.rstrip("\r") for line in text.split("\n") if line.rstrip("\r")]


def _tokens(line: str) -> list[str]:
    return [token for token in line.split("\t") if token]


def _first_word(text: str) -> Optional[str]:
    words = text.split()
    return words[0] if words else None


def _read_exact(handle: BinaryIO, size: int, path: str) -> bytes:
    data = handle.read(size)
    if len(data) != size:
        raise BamHeaderError(f"Truncated header in alignment file {path}.")
    return data


def _read_int32(handle: BinaryIO, path: str) -> int:
    (value,) = struct.unpack("<i", _read_exact(handle, 4, path))
    return value


def _read_bam(path: str) -> BamHeader:
    with gzip.open(path, "rb") as handle:
        if _read_exact(handle, 4, path) != _BAM_MAGIC:
            raise BamHeaderError(f"File {path} is not a BAM file.")
        l_text = _read_int32(handle, path)
        if l_text < 0:
            raise BamHeaderError(f"Invalid header length in {path}.")
        text = _read_exact(handle, l_text, path).rstrip(b"\x00").decode("utf-8", "replace")
        n_ref = _read_int32(handle, path)
        if n_ref < 0:
            raise BamHeaderError(f"Invalid reference count in {path}.")
        references = []
        for _ in range(n_ref):
            l_name = _read_int32(handle, path)
            if l_name < 0:
                raise BamHeaderError(f"Invalid reference name length in {path}.")
            name = _read_exact(handle, l_name, path).rstrip(b"\x00").decode("utf-8", "replace")
            references.append((name, _read_int32(handle, path)))
    return BamHeader(text, references)


def _read_sam(path: str) -> BamHeader:
    header_lines = []
    with open(path, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            if not line.startswith("@"):
                break
            header_lines.append(line.rstrip("\r\n"))
    references = []
    for line in header_lines:
        if line.startswith("@SQ"):
            ref = parse_sq_line(line)
            if ref.name is not None:
                references.append((ref.name, ref.length))
    text = "".join(f"{line}\n" for line in header_lines)
    return BamHeader(text, references)


def read_bam_header(path: PathLike) -> BamHeader:
    """Read the header of a BAM or SAM file."""
    name = os.fspath(path)
    try:
        with open(name, "rb") as handle:
            magic = handle.read(4)
        if magic.startswith(_GZIP_MAGIC):
            return _read_bam(name)
        if magic == _CRAM_MAGIC:
            raise BamHeaderError(f"CRAM headers are not supported: {name}.")
        return _read_sam(name)
    except (OSError, EOFError, zlib.error) as exc:
        raise BamHeaderError(f"Failed to open alignment file to read header: {name}.") from exc


def parse_sq_line(line: str) -> RefSeq:
    """Parse the SN, SP, AS and LN fields of an @SQ line."""
    ref = RefSeq()
    for tag in _tokens(line):
        value = tag[3:].split("\n", 1)[0]
        if tag.startswith("SN:") and value:
            ref.name = value
        elif tag.startswith("SP:") and value:
            ref.species = value
        elif tag.startswith("AS:") and value:
            ref.assembly = value
        elif tag.startswith("LN:"):
            digits = _first_word(value)
            try:
                ref.length = int(digits) if digits is not None else ref.length
            except ValueError:
                pass
    return ref


def contigs_from_header(
    header: BamHeader, assembly: Optional[str] = None, species: Optional[str] = None
) -> list[RefSeq]:
    """Reference sequences of a header, in header order.

    When both ``assembly`` and ``species`` are given they replace whatever the
    @SQ lines say.
    """
    contigs = []
    for line in header.lines():
        if not line.startswith("@SQ"):
            continue
        ref = parse_sq_line(line)
        if assembly is not None and species is not None:
            ref.assembly = assembly
            ref.species = species
        if ref.name is None:
            raise BamHeaderError(f"Sequence name not found/set in SQ line {line}")
        if ref.assembly is None:
            raise BamHeaderError(f"Sequence assembly not found/set in SQ line {line}")
        if ref.species is None:
            raise BamHeaderError(f"Sequence species not found/set in SQ line {line}")
        if ref.length <= 0:
            raise BamHeaderError(f"Sequence length not found/set in SQ line {line}")
        contigs.append(ref)
    if len(contigs) != header.n_targets:
        raise BamHeaderError("Wrong number of ref sequences in list.")
    return contigs


def _after_colon(token: str) -> Optional[str]:
    _, sep, rest = token.partition(":")
    if not sep:
        return None
    return _first_word(rest)


def sample_name_platform_from_header(text: str, platform: str = ".") -> tuple[str, str]:
    """Sample name and platform from the first @RG line.

    The platform is only taken from the header when ``platform`` is ".".
    """
    sample: Optional[str] = None
    for line in _header_lines(text):
        if not line.startswith("@RG"):
            continue
        for token in _tokens(line):
            if platform == "." and token.startswith("PL:"):
                value = _after_colon(token)
                if value is None:
                    raise BamHeaderError("Error fetching platform")
                platform = value
            elif token.startswith("SM:"):
                value = _after_colon(token)
                if value is None:
                    raise BamHeaderError("Error fetching sample")
                sample = value
        break
    if sample is None:
        raise BamHeaderError("Sample name was not found in RG line for VCF output.")
    return sample, platform


def lane_list_from_header(text: str, is_normal: Union[str, int, bool]) -> list[str]:
    """Distinct read group lanes, each as ``<ID>_<is_normal>``, in header order."""
    suffix = is_normal if isinstance(is_normal, str) else str(int(is_normal))
    lanes: list[str] = []
    found = False
    for line in _header_lines(text):
        if not line.startswith("@RG"):
            continue
        for token in _tokens(line):
            if not token.startswith("ID:"):
                continue
            read_group = _first_word(token[3:])
            if read_group is None:
                continue
            found = True
            lane = f"{read_group}_{suffix}"
            if lane not in lanes:
                lanes.append(lane)
    if not found:
        raise BamHeaderError("No RG lines with IDs found in header.")
    return lanes