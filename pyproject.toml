[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cavesnv"
version = "1.15.5"
description = "Building blocks for somatic SNV calling: copy-number lookup, run configuration, covariate arrays, alignment headers and pileup counting."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["genomics", "bioinformatics", "snv", "variant-calling", "bam", "copy-number", "pileup"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cavesnv"]

[tool.pytest.ini_options]
addopts = "-ra"
