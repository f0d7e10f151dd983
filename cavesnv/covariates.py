"""Eight-dimensional covariate count arrays and the log-probabilities derived from them.

Dimensions, in order: read order, strand, lane, read position, mapping quality,
base quality, reference base, called base.
"""

from __future__ import annotations

import gzip
import os
import zlib
from typing import Sequence, Union

import numpy as np

PathLike = Union[str, "os.PathLike[str]"]

N_DIMS = 8
COUNT_DTYPE = np.dtype(np.uint64)
PROB_DTYPE = np.dtype(np.longdouble)
PROB_TOLERANCE = 0.00001
_ZERO_LIMIT = 4


class CovariateError(Exception):
    """Raised when a covariate or probability array cannot be built, read or written."""


def _check_dims(dims: Sequence[int]) -> tuple[int, ...]:
    shape = tuple(int(d) for d in dims)
    if len(shape) != N_DIMS:
        raise CovariateError(f"Expected {N_DIMS} dimensions, got {len(shape)}.")
    if any(d < 0 for d in shape):
        raise CovariateError(f"Dimensions must not be negative: {shape}.")
    return shape


def _check_array(arr: np.ndarray) -> np.ndarray:
    arr = np.asarray(arr)
    _check_dims(arr.shape)
    return arr


def generate_cov_array(dims: Sequence[int]) -> np.ndarray:
    """A zero-filled count array of the given eight dimensions."""
    return np.zeros(_check_dims(dims), dtype=COUNT_DTYPE)


def generate_prob_array(dims: Sequence[int]) -> np.ndarray:
    """A zero-filled probability array of the given eight dimensions."""
    return np.zeros(_check_dims(dims), dtype=PROB_DTYPE)


def write_covs(file_loc: PathLike, arr: np.ndarray) -> None:
    """Write a count array to a gzip file as native unsigned 64-bit integers."""
    arr = _check_array(arr)
    data = np.ascontiguousarray(arr, dtype=COUNT_DTYPE).tobytes()
    try:
        with gzip.open(file_loc, "wb", compresslevel=1) as handle:
            handle.write(data)
    except OSError as exc:
        raise CovariateError(
            f"Error writing cov array to file '{os.fspath(file_loc)}'."
        ) from exc


def _read_exact(data: bytes, shape: tuple[int, ...], dtype: np.dtype, file_loc: PathLike) -> np.ndarray:
    needed = int(np.prod(shape, dtype=np.int64)) * dtype.itemsize
    if len(data) < needed:
        raise CovariateError(
            f"Error reading array from file '{os.fspath(file_loc)}': "
            f"expected {needed} bytes, found {len(data)}."
        )
    return np.frombuffer(data[:needed], dtype=dtype).reshape(shape).copy()


def read_covs(file_loc: PathLike, dims: Sequence[int]) -> np.ndarray:
    """Read a count array of the given dimensions from a gzip file."""
    shape = _check_dims(dims)
    needed = int(np.prod(shape, dtype=np.int64)) * COUNT_DTYPE.itemsize
    try:
        with gzip.open(file_loc, "rb") as handle:
            data = handle.read(needed)
    except (OSError, EOFError, zlib.error) as exc:
        raise CovariateError(
            f"Error opening file to read cov array: {os.fspath(file_loc)}."
        ) from exc
    return _read_exact(data, shape, COUNT_DTYPE, file_loc)


def compare_cov_arrays(first: np.ndarray, second: np.ndarray) -> bool:
    """True when two count arrays have the same shape and identical values."""
    first = np.asarray(first)
    second = np.asarray(second)
    return first.shape == second.shape and bool(np.array_equal(first, second))


def compare_prob_arrays(first: np.ndarray, second: np.ndarray) -> bool:
    """True when two probability arrays match within a small tolerance."""
    first = np.asarray(first, dtype=PROB_DTYPE)
    second = np.asarray(second, dtype=PROB_DTYPE)
    if first.shape != second.shape:
        return False
    return bool(np.all(np.abs(first - second) <= PROB_TOLERANCE))


def merge_count_arrays(target: np.ndarray, other: np.ndarray) -> np.ndarray:
    """Add the counts of ``other`` into ``target`` in place and return ``target``."""
    target = _check_array(target)
    other = _check_array(other)
    if target.shape != other.shape:
        raise CovariateError(
            f"Cannot merge arrays of shapes {target.shape} and {other.shape}."
        )
    target += other.astype(target.dtype, copy=False)
    return target


def _log_proportions(row: np.ndarray, index: tuple[int, ...], kind: str) -> np.ndarray:
    total = PROB_DTYPE.type(row.sum())
    with np.errstate(divide="ignore", invalid="ignore"):
        result = np.log(row.astype(PROB_DTYPE) / total)
    if np.isnan(result).any():
        raise CovariateError(
            f"NaN encountered in {kind} count location {list(index)}."
        )
    return result


def generate_probability_array(counts: np.ndarray) -> np.ndarray:
    """Turn a count array into log-probabilities of each called base.

    Zero counts are raised to one. Where a row has at least four zeros, each
    called base gets a pseudo count summed over read order, read position and
    base quality. ``counts`` is updated in place with these adjustments.
    """
    counts = _check_array(counts)
    probs = np.zeros(counts.shape, dtype=PROB_DTYPE)
    for index in np.ndindex(*counts.shape[:-1]):
        i, j, k, m, n, p, r = index
        row = counts[index]
        zeros = row == 0
        zero_count = int(zeros.sum())
        row[zeros] = 1
        if zero_count < _ZERO_LIMIT:
            probs[index] = _log_proportions(row, index, "non zero")
            continue
        for s in range(counts.shape[-1]):
            pooled = counts[:, j, k, :, n, :, r, s]
            pooled[pooled == 0] = 1
            counts[i, j, k, m, n, p, r, s] = pooled.sum()
        probs[index] = _log_proportions(counts[index], index, "zero")
    return probs


def write_probs(file_loc: PathLike, arr: np.ndarray) -> None:
    """Write a probability array as native long doubles."""
    arr = _check_array(arr)
    data = np.ascontiguousarray(arr, dtype=PROB_DTYPE).tobytes()
    try:
        with open(file_loc, "wb") as handle:
            handle.write(data)
            handle.flush()
    except OSError as exc:
        raise CovariateError(
            f"Error writing to probs file '{os.fspath(file_loc)}'."
        ) from exc


def read_probs(file_loc: PathLike, dims: Sequence[int]) -> np.ndarray:
    """Read a probability array of the given dimensions."""
    shape = _check_dims(dims)
    needed = int(np.prod(shape, dtype=np.int64)) * PROB_DTYPE.itemsize
    try:
        with open(file_loc, "rb") as handle:
            data = handle.read(needed)
    except OSError as exc:
        raise CovariateError(
            f"Error opening file to read prob array: {os.fspath(file_loc)}."
        ) from exc
    return _read_exact(data, shape, PROB_DTYPE, file_loc)


def _index_text(index: tuple[int, ...]) -> str:
    return ",".join(str(i) for i in index)


def format_cov_array(arr: np.ndarray) -> str:
    """Text listing of every count, one ``indices - value`` line each."""
    arr = _check_array(arr)
    lines = [f"{_index_text(idx)} - {int(arr[idx])}\n" for idx in np.ndindex(*arr.shape)]
    return "".join(lines) + "\n"


def format_prob_array(arr: np.ndarray) -> str:
    """Text listing of every probability, one ``indices,value`` line each."""
    arr = _check_array(arr)
    lines = [f"{_index_text(idx)},{float(arr[idx]):10.5e}\n" for idx in np.ndindex(*arr.shape)]
    return "".join(lines) + "\n"


def format_cov_and_prob_array(counts: np.ndarray, probs: np.ndarray) -> str:
    """Text listing of counts and probabilities side by side."""
    counts = _check_array(counts)
    probs = _check_array(probs)
    if counts.shape != probs.shape:
        raise CovariateError(
            f"Count and probability arrays differ in shape: {counts.shape} and {probs.shape}."
        )
    lines = [
        f"{_index_text(idx)}\t{int(counts[idx])}\t{float(probs[idx]):10.5e}\n"
        for idx in np.ndindex(*counts.shape)
    ]
    return "".join(lines) + "\n"