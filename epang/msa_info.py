"""Alignment file inspection and streaming of aligned sequences in chunks."""

from __future__ import annotations

import abc
import gzip
import itertools
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from epang.schedule import local_seq_package
from epang.sequence import MSA

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
Mask = List[bool]

UNDETERMINED_CHARS = "NOX.-?"
_GAP_SET = frozenset(UNDETERMINED_CHARS.upper()) | frozenset(UNDETERMINED_CHARS.lower())
_GZIP_MAGIC = b"\x1f\x8b"


def _open_text(path: PathLike):
    with open(path, "rb") as probe:
        magic = probe.read(2)
    if magic == _GZIP_MAGIC:
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, encoding="utf-8")


def read_fasta(path: PathLike) -> Iterator[Tuple[str, str]]:
    """Yield ``(label, sites)`` for each record of a (possibly gzipped) FASTA file.

    Sites are joined across lines and converted to upper case.
    """
    label: Optional[str] = None
    chunks: List[str] = []
    with _open_text(path) as handle:
        for lineno, raw in enumerate(handle, start=1):
            line = raw.strip()
            if not line:
                continue
            if line.startswith(">"):
                if label is not None:
                    yield label, "".join(chunks).upper()
                label = line[1:].strip()
                chunks = []
            elif label is None:
                raise ValueError(
                    f"{os.fspath(path)}:{lineno}: sequence data before the first header"
                )
            else:
                chunks.append("".join(line.split()))
    if label is not None:
        yield label, "".join(chunks).upper()


def gap_sites(sequence: str) -> Mask:
    """Return a mask that is True at every site holding an undetermined character."""
    return [c in _GAP_SET for c in sequence]


def subset_sequence(sequence: str, mask: Sequence[bool]) -> str:
    """Return ``sequence`` with every masked site removed."""
    if len(sequence) != len(mask):
        raise ValueError("In subset_sequence: mask and seq incompatible")
    return "".join(c for c, masked in zip(sequence, mask) if not masked)


@dataclass
class MsaInfo:
    """Width, sequence count and common gap mask of an alignment file."""

    path: str = ""
    sequences: int = 0
    gap_mask: Mask = field(default_factory=list)
    sites: int = 0

    @classmethod
    def from_file(
        cls,
        file_path: PathLike,
        callback: Optional[Callable[[str, str], None]] = None,
    ) -> "MsaInfo":
        """Scan a FASTA file, calling ``callback(label, sites)`` for every record.

        Raises ValueError if the sequences are not all of the same width.
        """
        path = os.fspath(file_path)
        info = cls(path=path)
        for label, sites in read_fasta(path):
            if info.sequences == 0:
                info.sites = len(sites)
                info.gap_mask = [True] * info.sites
            info.sequences += 1
            if callback is not None:
                callback(label, sites)
            if info.sites and info.sites != len(sites):
                raise ValueError(
                    f"{path} does not contain equal size sequences! "
                    f"First offending sequence: {label}"
                )
            info.gap_mask = [
                a and b for a, b in zip(info.gap_mask, gap_sites(sites))
            ]
        return info

    def gap_count(self) -> int:
        """Number of sites masked as gaps in every sequence."""
        return sum(self.gap_mask)

    @staticmethod
    def or_mask(lhs: "MsaInfo", rhs: "MsaInfo") -> None:
        """Give both infos a mask that is set wherever either of them has a gap."""
        if lhs.sites != rhs.sites:
            raise ValueError(
                f"MSA_Infos are unequal site width: {lhs.sites} vs. {rhs.sites}"
            )
        if len(lhs.gap_mask) != len(rhs.gap_mask):
            raise ValueError("MSA_Infos have masks of unequal size")
        combined = [a or b for a, b in zip(lhs.gap_mask, rhs.gap_mask)]
        lhs.gap_mask = list(combined)
        rhs.gap_mask = list(combined)

    def __str__(self) -> str:
        fraction = self.gap_count() / self.sites if self.sites else math.nan
        return (
            f"Path: {self.path}\n"
            f"Sequences: {self.sequences}\n"
            f"Sites: {self.sites}\n"
            f"Gaps: {self.gap_count()}\n"
            f"Fraction of gaps: {fraction}\n"
        )


def make_msa_info(file_path: PathLike) -> MsaInfo:
    """Build the info record of an alignment file."""
    return MsaInfo.from_file(file_path)


class MsaReader(abc.ABC):
    """Source of alignment sequences read in chunks."""

    @abc.abstractmethod
    def num_sequences(self) -> int:
        """Total number of sequences in the underlying file."""

    @abc.abstractmethod
    def local_seq_offset(self) -> int:
        """Index of the first sequence this reader delivers."""

    @abc.abstractmethod
    def read_next(self, number: Optional[int]) -> MSA:
        """Read up to ``number`` further sequences (all remaining if None)."""


class MsaStream(MsaReader):
    """Reads a FASTA alignment chunk by chunk, optionally masking gap sites.

    With ``num_ranks`` above one, only the share of sequences belonging to
    ``local_rank`` is read.
    """

    def __init__(
        self,
        msa_file: PathLike,
        info: MsaInfo,
        premasking: bool = True,
        local_rank: int = 0,
        num_ranks: int = 1,
    ) -> None:
        self.info = info
        self.premasking = premasking
        self._num_read = 0
        self._max_read: Optional[int] = None
        self._local_seq_offset = 0
        self._first = True

        records = read_fasta(msa_file)
        try:
            head = next(records)
        except StopIteration:
            raise ValueError(f"Cannot open file: {os.fspath(msa_file)}") from None
        self._records = itertools.chain([head], records)

        if num_ranks > 1:
            self._local_seq_offset, self._max_read = local_seq_package(
                info.sequences, local_rank, num_ranks
            )
            self.skip_to_sequence(self._local_seq_offset)

    def num_sequences(self) -> int:
        return self.info.sequences

    def local_seq_offset(self) -> int:
        return self._local_seq_offset

    def read_next(self, number: Optional[int] = None) -> MSA:
        """Return an alignment of up to ``number`` further sequences; empty at the end."""
        self._first = False
        to_read = number
        if self._max_read is not None:
            remaining = max(self._max_read - self._num_read, 0)
            to_read = remaining if number is None else min(number, remaining)

        chunk = MSA()
        length = self.info.sites
        for label, sites in itertools.islice(self._records, to_read):
            if length and length != len(sites):
                raise ValueError("MSA file does not contain equal size sequences")
            length = len(sites)
            chunk.append(
                label,
                subset_sequence(sites, self.info.gap_mask) if self.premasking else sites,
            )
        self._num_read += len(chunk)
        return chunk

    def skip_to_sequence(self, n: int) -> None:
        """Move forward so that the next read starts at sequence ``n``.

        Only allowed before the first read.
        """
        if not self._first:
            raise RuntimeError("Skipping currently not allowed after first read!")
        if n >= self.num_sequences():
            raise IndexError("Trying to skip out of bounds!")
        if n < self._num_read:
            raise IndexError("Trying to skip behind!")
        offset = n - self._num_read
        next(itertools.islice(self._records, offset, offset), None)


def make_msa_reader(
    file_name: PathLike, info: MsaInfo, premasking: bool = True
) -> MsaReader:
    """Open a reader suited to the alignment file."""
    return MsaStream(file_name, info, premasking)


def build_msa_from_file(
    msa_file: PathLike, info: MsaInfo, premasking: bool = False
) -> MSA:
    """Read a whole alignment file into memory."""
    return make_msa_reader(msa_file, info, premasking).read_next(None)


def file_check(file_path: PathLike) -> None:
    """Raise OSError unless ``file_path`` can be opened for reading."""
    try:
        with open(file_path, "rb"):
            pass
    except OSError as err:
        raise OSError(f"file_check failed: {os.fspath(file_path)}") from err