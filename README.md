# epang

Data structures and helpers for evolutionary placement of query sequences
on a reference tree: containers for placement results, likelihood weight
ratios and filtering, FASTA alignment reading with gap masking, jplace
output, and scheduling of pipeline stages over worker ranks.

The package has no dependencies outside the Python standard library and
supports Python 3.10 and later.

## Modules

- `epang.placement`: `Placement` (branch, likelihood, pendant and distal
  length, weight ratio), the compact `SlimPlacement`, `PQuery` (all
  placements of one query sequence, compared by `sequence_id`) and `Sample`
  (a list of queries plus the reference tree in `newick`).
  `Sample.add_placement` adds to an existing query with the same id or
  creates one; `Sample.sized` builds numbered, pre-filled queries;
  `to_full` turns slim placements into full ones.
- `epang.sequence`: `Sequence` (one sequence that may carry several
  headers) and `MSA`, an alignment whose `append` raises `ValueError` when a
  sequence's width differs from the alignment's.
- `epang.msa_info`: `read_fasta` (plain or gzipped FASTA, sites upper-cased),
  `gap_sites`, `subset_sequence`, `MsaInfo` (path, sequence count, width and
  the gap mask shared by all sequences), `make_msa_info`, the `MsaReader`
  interface and its implementation `MsaStream`, `make_msa_reader`,
  `build_msa_from_file` and `file_check`.
- `epang.set_manipulators`: `compute_and_set_lwr`, `sort_by_lwr`,
  `sort_by_logl`, the filters `discard_by_accumulated_threshold`,
  `discard_by_support_threshold`, `discard_bottom_x_percent` and
  `filter_sample`, plus `collapse`, `find_collapse_equal_sequences`,
  `split_sample`, `split_even`, `merge_samples` and `merge_all`.
- `epang.jplace`: string builders (`placement_to_jplace`,
  `pquery_to_jplace`, `sample_to_jplace`, `init_jplace`, `finalize_jplace`,
  `full_jplace`), `merge_into` for concatenating partial files, and
  `JplaceWriter`, a context manager that writes samples chunk by chunk into
  one jplace file. An optional edge mapper (any object with `in_rtree`
  returning `(branch_id, distal_length)`) can renumber edges on output.
- `epang.schedule`: `to_difficulty`, `solve` (nodes per stage in proportion
  to stage difficulty), `assign` and `reassign` (ranks per stage, returned
  together with the stage of the local rank), and `local_seq_package`
  (the share of a sequence file a rank should read).
- `epang.pipeline`: `TokenStatus`, `Token`, `VoidToken` and `Stage`, the
  building blocks of a processing pipeline.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

Weighting, filtering and writing placements (the output directory must
already exist):

```python
from epang.placement import Placement, Sample
from epang.set_manipulators import compute_and_set_lwr, filter_sample
from epang.jplace import JplaceWriter

sample = Sample(newick="((A:0.1,B:0.2){0}:0.1,C:0.3){1};")
sample.add_placement(0, "query1", Placement(0, -100.0, 0.01, 0.05))
sample.add_placement(0, "query1", Placement(1, -102.5, 0.02, 0.03))

compute_and_set_lwr(sample)
filter_sample(sample, acc_threshold=True, support_threshold=0.99,
              filter_min=1, filter_max=7)

with JplaceWriter("out/", "epa_result.jplace", sample.newick,
                  "example invocation", None) as writer:
    writer.write(sample)
```

`JplaceWriter` writes floating point values with 6 decimals unless
`set_precision` is called; the string builders use general notation when
`precision` is left as `None`.

Reading an alignment in chunks, with sites that are gaps in every sequence
removed:

```python
from epang.msa_info import make_msa_info, make_msa_reader

info = make_msa_info("query.fasta")
reader = make_msa_reader("query.fasta", info, premasking=True)
while chunk := reader.read_next(500):
    for seq in chunk:
        print(seq.header, len(seq.sequence))
```

Spreading 8 ranks over 4 pipeline stages:

```python
from epang.schedule import solve, assign

nodes = solve(4, 8, [1.0, 3.0, 1.0, 1.0])
schedule, my_stage = assign(local_rank=2, nodes_per_stage=nodes)
```

## What it does not do

- It does not compute placements: there is no tree parsing, no model of
  sequence evolution and no likelihood calculation. Placements are built by
  the caller.
- It provides no command-line program.
- Alignments are read from FASTA only; there is no binary alignment format
  and no binary store of a reference tree.
- The schedule functions compute assignments only; no messages are sent
  between processes, and `MsaStream` reads a rank's share of a file only
  when given its rank and the number of ranks.