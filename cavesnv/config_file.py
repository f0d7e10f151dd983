"""Reading and writing the key=value run configuration file."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable, Optional, TextIO

CWD_KEY = "CWD"
MUT_BAM_KEY = "MUT_BAM"
NORM_BAM_KEY = "NORM_BAM"
REF_IDX_KEY = "REF_IDX"
IGNORE_KEY = "IGNORE"
ALG_FILE_KEY = "ALG_FILE"
RESULT_DIR_KEY = "RESULT_DIR"
SPLIT_FILE_KEY = "SPLIT_FILE"
SW_KEY = "SW"
SE_KEY = "SE"
DUP_KEY = "DUP"
VERSION_KEY = "VER"
NORM_CN_KEY = "NORMCN"
TUM_CN_KEY = "TUMCN"

_STRING_FIELDS = {
    MUT_BAM_KEY: "tum_bam",
    NORM_BAM_KEY: "norm_bam",
    REF_IDX_KEY: "ref_idx",
    IGNORE_KEY: "ignore_regions_file",
    ALG_FILE_KEY: "alg_bean_loc",
    RESULT_DIR_KEY: "results",
    SPLIT_FILE_KEY: "list_loc",
    VERSION_KEY: "version",
    NORM_CN_KEY: "norm_cn",
    TUM_CN_KEY: "tum_cn",
}

_FLAG_FIELDS = {
    SW_KEY: "include_sw",
    SE_KEY: "include_se",
    DUP_KEY: "include_dups",
}

_REQUIRED = ("tum_bam", "norm_bam", "ref_idx", "ignore_regions_file", "alg_bean_loc", "results", "list_loc")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class ConfigError(Exception):
    """Raised when a configuration file is invalid or cannot be written."""


@dataclass
class CavemanConfig:
    """Settings shared between the stages of a run."""

    tum_bam: Optional[str] = None
    norm_bam: Optional[str] = None
    ref_idx: Optional[str] = None
    ignore_regions_file: Optional[str] = None
    alg_bean_loc: Optional[str] = None
    results: Optional[str] = None
    list_loc: Optional[str] = None
    include_sw: bool = False
    include_se: bool = False
    include_dups: bool = False
    version: Optional[str] = None
    norm_cn: Optional[str] = None
    tum_cn: Optional[str] = None


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _split_line(line: str) -> tuple[str, str]:
    key, sep, rest = line.partition("=")
    tokens = rest.split()
    if not key or not sep or not tokens:
        raise ConfigError(f"Couldn't resolve key - value pair from text {line!r} in config file.")
    return key, tokens[0]


def read_config(stream: Iterable[str], cwd: Optional[str] = None) -> CavemanConfig:
    """Parse a configuration from lines of text.

    A CWD entry must match ``cwd`` (the current directory when not given).
    """
    config = CavemanConfig()
    for line in stream:
        key, value = _split_line(line)
        if key == CWD_KEY:
            current = os.getcwd() if cwd is None else cwd
            if current != value:
                raise ConfigError(
                    f"Your current working directory '{current}' is not the same as the "
                    f"directory you setup in: '{value}'. Please change to that directory and try again."
                )
        elif key in _STRING_FIELDS:
            setattr(config, _STRING_FIELDS[key], value)
        elif key in _FLAG_FIELDS:
            setattr(config, _FLAG_FIELDS[key], _atoi(value) != 0)
        else:
            raise ConfigError(f"Unrecognised key in config file '{key}'.")
    return config


def write_config(stream: TextIO, config: CavemanConfig, version: str) -> None:
    """Write a configuration, creating its results directory if needed."""
    missing = [name for name in _REQUIRED if getattr(config, name) is None]
    if missing:
        raise ConfigError(f"Missing required configuration values: {', '.join(missing)}.")

    try:
        os.mkdir(config.results, 0o700)
    except OSError:
        pass
    else:
        print(f"Created results directory '{config.results}'.")

    entries = [
        (MUT_BAM_KEY, config.tum_bam),
        (NORM_BAM_KEY, config.norm_bam),
        (REF_IDX_KEY, config.ref_idx),
        (IGNORE_KEY, config.ignore_regions_file),
        (ALG_FILE_KEY, config.alg_bean_loc),
        (RESULT_DIR_KEY, config.results),
        (SPLIT_FILE_KEY, config.list_loc),
        (SW_KEY, int(config.include_sw)),
        (SE_KEY, int(config.include_se)),
        (DUP_KEY, int(config.include_dups)),
    ]
    if config.norm_cn is not None:
        entries.append((NORM_CN_KEY, config.norm_cn))
    if config.tum_cn is not None:
        entries.append((TUM_CN_KEY, config.tum_cn))
    entries.append((VERSION_KEY, version))

    try:
        stream.writelines(f"{key}={value}\n" for key, value in entries)
    except OSError as exc:
        raise ConfigError("Error writing config file.") from exc


def resolve_real_path(path: "str | os.PathLike[str]") -> str:
    """Return the canonical absolute path of an existing file or directory."""
    try:
        return os.path.realpath(path, strict=True)
    except OSError as exc:
        raise ConfigError(f"Checking real path was assigned for {os.fspath(path)}.") from exc