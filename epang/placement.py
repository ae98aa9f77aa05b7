"""Placement results: single placements, per-query collections and samples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Union

from epang.pipeline import Token

AnyPlacement = Union["Placement", "SlimPlacement"]


@dataclass
class Placement:
    """A query placed on one branch, with its likelihood and branch lengths."""

    branch_id: int = 0
    likelihood: float = 0.0
    pendant_length: float = 0.0
    distal_length: float = 0.0
    lwr: float = 0.0

    def to_slim(self) -> "SlimPlacement":
        """Return the compact form holding only branch and likelihood."""
        return SlimPlacement(self.branch_id, self.likelihood)


@dataclass
class SlimPlacement:
    """Compact placement: branch and likelihood only."""

    branch_id: int = 0
    likelihood: float = 0.0

    def to_placement(self) -> Placement:
        """Return a full placement with zeroed lengths and weight ratio."""
        return Placement(self.branch_id, self.likelihood)


class PQuery:
    """All placements of one query sequence."""

    def __init__(
        self,
        sequence_id: int = 0,
        header: str = "",
        placements: Optional[Iterable[AnyPlacement]] = None,
    ) -> None:
        self.sequence_id = sequence_id
        self.header = header
        self.placements: List[AnyPlacement] = list(placements) if placements else []

    def append(self, placement: AnyPlacement) -> None:
        self.placements.append(placement)

    def extend(self, placements: Iterable[AnyPlacement]) -> None:
        self.placements.extend(placements)

    def to_full(self) -> "PQuery":
        """Return a copy whose placements are all full placements."""
        return PQuery(
            self.sequence_id,
            self.header,
            (
                p.to_placement() if isinstance(p, SlimPlacement) else p
                for p in self.placements
            ),
        )

    def __len__(self) -> int:
        return len(self.placements)

    def __iter__(self) -> Iterator[AnyPlacement]:
        return iter(self.placements)

    def __getitem__(self, index):
        return self.placements[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PQuery):
            return NotImplemented
        return self.sequence_id == other.sequence_id

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"PQuery(sequence_id={self.sequence_id!r}, header={self.header!r}, "
            f"placements={self.placements!r})"
        )


class Sample(Token):
    """A collection of placed queries together with the reference tree."""

    def __init__(
        self, newick: str = "", pqueries: Optional[Iterable[PQuery]] = None
    ) -> None:
        super().__init__()
        self.newick = newick
        self.pqueries: List[PQuery] = list(pqueries) if pqueries else []

    @classmethod
    def sized(cls, size: int, depth: int = 0) -> "Sample":
        """Create ``size`` queries numbered from 0, each holding ``depth`` blank placements."""
        return cls(
            pqueries=(
                PQuery(i, placements=[Placement() for _ in range(depth)])
                for i in range(size)
            )
        )

    def add_placement(self, seq_id: int, label: str, placement: AnyPlacement) -> None:
        """Add a placement to the query with ``seq_id``, creating the query if needed."""
        for pquery in self.pqueries:
            if pquery.sequence_id == seq_id:
                pquery.append(placement)
                return
        self.pqueries.append(PQuery(seq_id, label, [placement]))

    def add_pquery(self, seq_id: int, label: str) -> int:
        """Append a new empty query and return its index."""
        self.pqueries.append(PQuery(seq_id, label))
        return len(self.pqueries) - 1

    def append(self, pquery: PQuery) -> None:
        self.pqueries.append(pquery)

    def extend(self, pqueries: Iterable[PQuery]) -> None:
        self.pqueries.extend(pqueries)

    def clear(self) -> None:
        self.pqueries.clear()

    def to_full(self) -> "Sample":
        """Return a sample in which every placement is a full placement."""
        return Sample(self.newick, (pq.to_full() for pq in self.pqueries))

    def __len__(self) -> int:
        return len(self.pqueries)

    def __iter__(self) -> Iterator[PQuery]:
        return iter(self.pqueries)

    def __getitem__(self, index):
        return self.pqueries[index]

    def __repr__(self) -> str:
        return f"Sample(newick={self.newick!r}, pqueries={self.pqueries!r})"