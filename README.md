# cavesnv

Building blocks for somatic single-nucleotide variant calling from paired
normal and tumour sequencing data.

## Installation

```
pip install cavesnv
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install "cavesnv[test]"
pytest
```

## Modules

### `cavesnv.copy_number`

Loads copy-number segment files and answers lookups against them. Each line
holds a chromosome, a start, an end and a copy number, separated by
whitespace. When the file name ends in `.bed`, start coordinates are taken as
0-based and converted to 1-based. Copy numbers above the store's maximum
(10 by default) are capped at that maximum.

```python
from cavesnv.copy_number import CopyNumberStore

store = CopyNumberStore(max_cn=10)
cn = store.copy_number_for_location("tumour.cn", "10", 17335160, is_normal=False)
mean = store.mean_cn_for_range("tumour.cn", "1", 114629220, 152555165, is_normal=False)
store.clear()
```

- `CopyNumberStore` keeps one set of regions for the normal and one for the
  tumour sample; a sample's file is loaded once, on first use, until
  `clear()` is called. `regions(is_normal)` returns the loaded regions.
- `copy_number_for_location` returns 0 when no file is given or no region
  covers the position.
- `mean_cn_for_range` returns the integer mean over overlapping regions, or 2
  when none overlap (or their total is 0).
- `read_copy_number_file` reads a file into `CopyNumberRegion` records, and
  `check_overlap` tests two inclusive ranges for overlap.

A file that cannot be opened or a line that cannot be parsed raises
`CopyNumberError`.

### `cavesnv.config_file`

Reads and writes the `KEY=value` run configuration held in a
`CavemanConfig`: tumour and normal BAM files (`MUT_BAM`, `NORM_BAM`), the
reference index (`REF_IDX`), the ignore file (`IGNORE`), the algorithm file
(`ALG_FILE`), the results directory (`RESULT_DIR`), the split file
(`SPLIT_FILE`), the `SW`, `SE` and `DUP` switches, the optional copy-number
files (`NORMCN`, `TUMCN`) and the version (`VER`).

- `read_config(stream, cwd=None)` parses lines of text. A `CWD` entry must
  match `cwd` (the current directory when not given).
- `write_config(stream, config, version)` writes the settings, creating the
  results directory first if it does not exist.
- `resolve_real_path(path)` returns the canonical path of an existing file.

An unknown key, a line that is not a key and value, a mismatched working
directory or a missing required setting raises `ConfigError`.

### `cavesnv.covariates`

Handles the eight-dimensional covariate count arrays (numpy `uint64`) and the
log-probability arrays (numpy `longdouble`) built from them. The dimensions
are read order, strand, lane, read position, mapping quality, base quality,
reference base and called base.

- `generate_cov_array(dims)` and `generate_prob_array(dims)` create zeroed arrays.
- `write_covs` and `read_covs` store count arrays gzip-compressed.
- `write_probs` and `read_probs` store probability arrays as raw native binary.
- `generate_probability_array(counts)` turns counts into log probabilities of
  each called base; zero counts become 1, and rows with four or more zeros get
  pseudo counts pooled over read order, read position and base quality. The
  count array is adjusted in place.
- `merge_count_arrays(target, other)` adds one count array into another.
- `compare_cov_arrays` tests exact equality; `compare_prob_arrays` allows a
  tolerance of 0.00001.
- `format_cov_array`, `format_prob_array` and `format_cov_and_prob_array`
  return text dumps.

Errors raise `CovariateError`.

### `cavesnv.bam_header`

Reads and parses alignment file headers:

- `read_bam_header(path)` reads the header of a BAM or SAM file into a
  `BamHeader` (CRAM is not supported).
- `parse_sq_line` reads the `SN`, `SP`, `AS` and `LN` fields of one `@SQ` line
  into a `RefSeq`.
- `contigs_from_header(header, assembly=None, species=None)` collects the
  reference contigs, checking each is complete and that their number matches
  the header's reference table.
- `sample_name_platform_from_header(text, platform=".")` returns the sample
  name and platform from the first `@RG` line.
- `lane_list_from_header(text, is_normal)` lists the distinct read-group IDs,
  each as `<ID>_<is_normal>`.

Problems raise `BamHeaderError`.

### `cavesnv.position_counts`

Per-position A/C/G/T counts from `PileupEntry` records, optionally split by
strand. Deletions, bases below the minimum quality (10 by default) and
non-ACGT bases are skipped. The two mates of a read pair overlapping a
position are counted once when they show the same base and twice when they
differ. Use `position_counts` for one position or `PositionCounts` for a
region. A read seen twice on the same strand raises `PileupError`.

### `cavesnv.read_positions`

Per-read covariate records (`ReadPos`) built from `PileupRead` records by
`reads_at_position`, with the same handling of overlapping mates. Each read's
lane is looked up in a lane list such as the one from
`lane_list_from_header`. `insert_sorted` and `merge_sorted` keep records
ordered by reference position. Errors raise `ReadPositionError`.

## What this package does not do

- It has no command-line tool; everything is used as a library.
- It does not read alignment records from BAM or CRAM files and does not
  filter reads by their flags. Pileup functions work on `PileupEntry` and
  `PileupRead` records that the caller builds.
- It does not call variants or write VCF output.