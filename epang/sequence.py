"""Sequences and multiple sequence alignments."""

from __future__ import annotations

from typing import Iterable, Iterator, List


class Sequence:
    """An aligned sequence with one or more headers sharing it."""

    def __init__(self, header: str, sequence: str) -> None:
        self.header_list: List[str] = [header]
        self.sequence = sequence

    @property
    def header(self) -> str:
        """The first header of the sequence."""
        return self.header_list[0]

    def merge(self, other: "Sequence") -> None:
        """Record the first header of ``other`` as an additional header."""
        self.header_list.append(other.header)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sequence):
            return NotImplemented
        return self.sequence == other.sequence

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Sequence(headers={self.header_list!r}, sequence={self.sequence!r})"


class MSA:
    """A multiple sequence alignment whose sequences all share one width."""

    def __init__(self, num_sites: int = 0) -> None:
        self.num_sites = num_sites
        self.sequences: List[Sequence] = []

    def append(self, header: str, sequence: str) -> None:
        """Add a sequence; raise ValueError if its width differs from the alignment's."""
        if self.num_sites and len(sequence) != self.num_sites:
            raise ValueError(
                f"Tried to insert sequence to MSA of unequal length: {header}"
            )
        self.sequences.append(Sequence(header, sequence))
        if not self.num_sites:
            self.num_sites = len(sequence)

    def move_sequences(self, sequences: Iterable[Sequence]) -> None:
        """Take over existing sequence objects without checking their width."""
        self.sequences.extend(sequences)

    def clear(self) -> None:
        self.sequences.clear()

    def __len__(self) -> int:
        return len(self.sequences)

    def __iter__(self) -> Iterator[Sequence]:
        return iter(self.sequences)

    def __getitem__(self, index):
        return self.sequences[index]