import io

import pytest

from cavesnv.config_file import (
    CavemanConfig,
    ConfigError,
    read_config,
    resolve_real_path,
    write_config,
)


def _config(tmp_path, **extra):
    return CavemanConfig(
        tum_bam="tum.bam",
        norm_bam="norm.bam",
        ref_idx="genome.fa.fai",
        ignore_regions_file="ignore.tsv",
        alg_bean_loc="alg_bean",
        results=str(tmp_path / "results"),
        list_loc="splitList",
        **extra,
    )


def test_write_then_read_round_trip(tmp_path):
    config = _config(tmp_path, include_sw=True, include_dups=True, norm_cn="n.cn", tum_cn="t.cn")
    buffer = io.StringIO()
    write_config(buffer, config, "1.15.5")
    buffer.seek(0)
    back = read_config(buffer)
    config.version = "1.15.5"
    assert back == config


def test_write_order_and_format(tmp_path):
    buffer = io.StringIO()
    write_config(buffer, _config(tmp_path), "1.15.5")
    lines = buffer.getvalue().splitlines()
    assert lines[0] == "MUT_BAM=tum.bam"
    assert lines[7:] == ["SW=0", "SE=0", "DUP=0", "VER=1.15.5"]


def test_optional_cn_lines_omitted(tmp_path):
    buffer = io.StringIO()
    write_config(buffer, _config(tmp_path), "1.15.5")
    text = buffer.getvalue()
    assert "NORMCN=" not in text and "TUMCN=" not in text


def test_write_creates_results_directory(tmp_path):
    config = _config(tmp_path)
    write_config(io.StringIO(), config, "1.15.5")
    assert (tmp_path / "results").is_dir()


def test_write_missing_value_raises(tmp_path):
    config = _config(tmp_path)
    config.ref_idx = None
    with pytest.raises(ConfigError):
        write_config(io.StringIO(), config, "1.15.5")


@pytest.mark.parametrize("value, expected", [("1", True), ("0", False), ("abc", False), ("7x", True)])
def test_flag_values(value, expected):
    config = read_config([f"SE={value}\n"])
    assert config.include_se is expected


def test_unknown_key_raises():
    with pytest.raises(ConfigError):
        read_config(["BOGUS=1\n"])


def test_line_without_value_raises():
    with pytest.raises(ConfigError):
        read_config(["MUT_BAM=\n"])


def test_line_without_equals_raises():
    with pytest.raises(ConfigError):
        read_config(["MUT_BAM\n"])


def test_cwd_must_match(tmp_path):
    config = read_config([f"CWD={tmp_path}\n", "MUT_BAM=x.bam\n"], cwd=str(tmp_path))
    assert config.tum_bam == "x.bam"
    with pytest.raises(ConfigError):
        read_config([f"CWD={tmp_path}\n"], cwd=str(tmp_path / "other"))


def test_value_takes_first_token():
    config = read_config(["NORM_BAM=a.bam trailing\n"])
    assert config.norm_bam == "a.bam"


def test_resolve_real_path(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    assert resolve_real_path(target) == str(target.resolve())


def test_resolve_real_path_missing(tmp_path):
    with pytest.raises(ConfigError):
        resolve_real_path(tmp_path / "absent")