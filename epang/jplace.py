"""Serialisation of placement samples to the jplace format."""

from __future__ import annotations

import os
from typing import IO, Iterable, Optional, Protocol, Tuple, Union

from epang.placement import AnyPlacement, PQuery, Placement, Sample

NEWL = "\n"

JPLACE_VERSION = 3
JPLACE_FIELDS = (
    "edge_num",
    "likelihood",
    "like_weight_ratio",
    "distal_length",
    "pendant_length",
)


class EdgeMapper(Protocol):
    """Translates edge numbers of the unrooted tree into those of the rooted input tree.

    A mapper that is falsy is treated as absent.
    """

    def __bool__(self) -> bool: ...

    def in_rtree(self, branch_id: int, distal_length: float) -> Tuple[int, float]: ...


def _fmt(value: float, precision: Optional[int]) -> str:
    if precision is None:
        return f"{value:g}"
    return f"{value:.{precision}f}"


def placement_to_jplace(
    placement: AnyPlacement,
    mapper: Optional[EdgeMapper] = None,
    precision: Optional[int] = None,
) -> str:
    """Render one placement as a jplace field array.

    With ``precision`` None numbers use general notation; otherwise fixed
    notation with that many decimals.
    """
    if not isinstance(placement, Placement):
        placement = placement.to_placement()
    branch_id = placement.branch_id
    distal_length = placement.distal_length
    if mapper:
        branch_id, distal_length = mapper.in_rtree(branch_id, distal_length)

    fields = ", ".join(
        _fmt(v, precision)
        for v in (placement.likelihood, placement.lwr, distal_length, placement.pendant_length)
    )
    return f"[{branch_id}, {fields}]"


def pquery_to_jplace(
    pquery: PQuery,
    mapper: Optional[EdgeMapper] = None,
    precision: Optional[int] = None,
) -> str:
    """Render one query's placements and name as a jplace object."""
    parts = ['    {"p": [', NEWL]
    count = len(pquery)
    for i, placement in enumerate(pquery, start=1):
        parts.append("      ")
        parts.append(placement_to_jplace(placement, mapper, precision))
        if i < count:
            parts.append(",")
        parts.append(NEWL)
    parts.append("      ],")
    parts.append(NEWL)
    parts.append('    "n": [')
    parts.append(f'"{pquery.header}"')
    parts.append("]")
    parts.append(NEWL)
    parts.append("    }")
    return "".join(parts)


def init_jplace(numbered_newick: str) -> str:
    """Return the opening of a jplace document holding the reference tree."""
    return (
        "{" + NEWL
        + f'  "tree": "{numbered_newick}",' + NEWL
        + '  "placements": ' + NEWL
        + "  [" + NEWL
    )


def finalize_jplace(invocation: str) -> str:
    """Return the closing of a jplace document: metadata, version and field names."""
    if not invocation:
        raise ValueError("invocation must not be empty")
    fields = ", ".join(f'"{name}"' for name in JPLACE_FIELDS)
    return (
        "  ]," + NEWL
        + f'  "metadata": {{"invocation": "{invocation}"}},' + NEWL
        + f'  "version": {JPLACE_VERSION},' + NEWL
        + f'  "fields": [{fields}]' + NEWL
        + "}" + NEWL
    )


def sample_to_jplace(
    sample: Sample,
    mapper: Optional[EdgeMapper] = None,
    precision: Optional[int] = None,
) -> str:
    """Render every query of ``sample`` as comma separated jplace objects."""
    parts = []
    count = len(sample)
    for i, pquery in enumerate(sample, start=1):
        parts.append(pquery_to_jplace(pquery, mapper, precision))
        if i < count:
            parts.append(",")
        parts.append(NEWL)
    return "".join(parts)


def full_jplace(
    sample: Sample,
    invocation: str,
    mapper: Optional[EdgeMapper] = None,
    precision: Optional[int] = None,
) -> str:
    """Render a complete jplace document for ``sample``."""
    return (
        init_jplace(sample.newick)
        + sample_to_jplace(sample, mapper, precision)
        + finalize_jplace(invocation)
    )


def merge_into(dest: IO[str], sources: Iterable[Union[str, os.PathLike]]) -> None:
    """Append the contents of each source file to ``dest``, comma separated.

    A source that cannot be read contributes nothing but its separator.
    """
    sources = list(sources)
    for i, source in enumerate(sources, start=1):
        try:
            with open(source, encoding="utf-8") as handle:
                dest.write(handle.read())
        except OSError:
            pass
        if i < len(sources):
            dest.write(",")
        dest.write(NEWL)


class JplaceWriter:
    """Writes samples chunk by chunk into one jplace file."""

    def __init__(
        self,
        out_dir: str,
        file_name: str,
        tree_string: str,
        invocation: str,
        mapper: Optional[EdgeMapper] = None,
    ) -> None:
        self.tree_string = tree_string
        self.invocation = invocation
        self.mapper = mapper
        self.precision = 6
        self.path = os.path.join(out_dir, file_name)
        self._first = True
        try:
            self._file: Optional[IO[str]] = open(self.path, "w+", encoding="utf-8")
        except OSError as err:
            raise OSError(f"{self.path}: could not open!") from err

    def set_precision(self, n: int) -> "JplaceWriter":
        """Set the number of decimals written for floating point values."""
        self.precision = n
        return self

    def write(self, chunk: Sample) -> None:
        """Append the queries of ``chunk`` to the placements array."""
        if self._file is None:
            raise ValueError("write to a closed jplace writer")
        if self._first:
            self._first = False
            self._file.write(init_jplace(self.tree_string))
        else:
            self._file.write(",\n")
        self._file.write(sample_to_jplace(chunk, self.mapper, self.precision))

    def close(self) -> None:
        """Write the closing section and close the file; later calls do nothing."""
        if self._file is None:
            return
        try:
            self._file.write(finalize_jplace(self.invocation))
        finally:
            self._file.close()
            self._file = None

    def __enter__(self) -> "JplaceWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()