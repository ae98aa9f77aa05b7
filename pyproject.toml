[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "epang"
version = "0.1.0"
description = "Evolutionary placement data structures: placements, samples, alignments, filtering, scheduling and jplace output"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "phylogenetics",
    "evolutionary placement",
    "jplace",
    "fasta",
    "alignment",
    "bioinformatics",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["epang"]

[tool.pytest.ini_options]
addopts = "-ra"
