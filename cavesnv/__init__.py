"""Copy-number, run configuration, covariate array, alignment header and pileup utilities for somatic SNV calling."""

__version__ = "1.15.5"