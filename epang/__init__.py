"""Evolutionary placement data structures, filtering, alignment reading, scheduling and jplace output."""

__version__ = "0.1.0"
__all__ = [
    "jplace",
    "msa_info",
    "pipeline",
    "placement",
    "schedule",
    "sequence",
    "set_manipulators",
]