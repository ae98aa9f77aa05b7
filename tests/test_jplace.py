import io
import json

import pytest

from epang.jplace import (
    JplaceWriter,
    finalize_jplace,
    full_jplace,
    init_jplace,
    merge_into,
    placement_to_jplace,
    pquery_to_jplace,
    sample_to_jplace,
)
from epang.placement import Placement, PQuery, Sample, SlimPlacement


class ShiftMapper:
    def __init__(self, active=True):
        self.active = active

    def __bool__(self):
        return self.active

    def in_rtree(self, branch_id, distal_length):
        return branch_id + 100, distal_length * 2


def make_sample():
    return Sample(
        "((A:0.1{0},B:0.2{1}):0.5{2},C:0.3{3});",
        [
            PQuery(0, "q0", [Placement(1, -10.5, 0.25, 0.125, 0.75),
                             Placement(2, -12.0, 0.5, 0.0625, 0.25)]),
            PQuery(1, "q1", [Placement(3, -8.0, 0.375, 0.5, 1.0)]),
        ],
    )


def test_placement_fields_roundtrip():
    p = Placement(4, -12.25, 1.0, 0.25, 0.5)
    assert json.loads(placement_to_jplace(p, None, 3)) == [4, -12.25, 0.5, 0.25, 1.0]


def test_placement_fixed_precision_text():
    p = Placement(4, -12.25, 1.0, 0.25, 0.5)
    assert placement_to_jplace(p, None, 2) == "[4, -12.25, 0.50, 0.25, 1.00]"


def test_placement_general_notation():
    p = Placement(1, -2.5, 0.75, 0.125, 0.5)
    assert json.loads(placement_to_jplace(p)) == [1, -2.5, 0.5, 0.125, 0.75]


def test_slim_placement_rendered_as_full():
    text = placement_to_jplace(SlimPlacement(7, -3.5))
    assert json.loads(text) == [7, -3.5, 0, 0, 0]


def test_mapper_translates_edge_and_distal():
    p = Placement(5, -1.0, 0.5, 0.25, 1.0)
    result = json.loads(placement_to_jplace(p, ShiftMapper()))
    assert result[0] == 105
    assert result[3] == 0.5


def test_falsy_mapper_is_ignored():
    p = Placement(5, -1.0, 0.5, 0.25, 1.0)
    result = json.loads(placement_to_jplace(p, ShiftMapper(active=False)))
    assert result[0] == 5
    assert result[3] == 0.25


def test_pquery_object_parses():
    pq = make_sample()[0]
    obj = json.loads(pquery_to_jplace(pq))
    assert obj["n"] == ["q0"]
    assert [row[0] for row in obj["p"]] == [1, 2]


def test_empty_pquery_has_empty_placement_list():
    obj = json.loads(pquery_to_jplace(PQuery(3, "lonely")))
    assert obj == {"p": [], "n": ["lonely"]}


def test_sample_to_jplace_is_comma_separated_array():
    sample = make_sample()
    objs = json.loads("[" + sample_to_jplace(sample) + "]")
    assert [o["n"][0] for o in objs] == ["q0", "q1"]


def test_full_jplace_document():
    sample = make_sample()
    doc = json.loads(full_jplace(sample, "epa-ng -t tree", None, 6))
    assert doc["tree"] == sample.newick
    assert doc["version"] == 3
    assert doc["metadata"] == {"invocation": "epa-ng -t tree"}
    assert doc["fields"] == [
        "edge_num", "likelihood", "like_weight_ratio", "distal_length", "pendant_length"
    ]
    assert len(doc["placements"]) == len(sample)


def test_init_jplace_contains_tree():
    text = init_jplace("(a,b,c);")
    assert text.startswith('{\n  "tree": "(a,b,c);",\n')
    assert text.endswith("  [\n")


def test_finalize_rejects_empty_invocation():
    with pytest.raises(ValueError):
        finalize_jplace("")


def test_merge_into_joins_files(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_text("first")
    b.write_text("second")
    dest = io.StringIO()
    merge_into(dest, [str(a), str(b)])
    assert dest.getvalue() == "first,\nsecond\n"


def test_merge_into_missing_file_contributes_nothing(tmp_path):
    a = tmp_path / "a"
    a.write_text("x")
    dest = io.StringIO()
    merge_into(dest, [str(tmp_path / "missing"), str(a)])
    assert dest.getvalue() == ",\nx\n"


def test_writer_chunks_match_full_document(tmp_path):
    sample = make_sample()
    chunk1 = Sample(sample.newick, [sample[0]])
    chunk2 = Sample(sample.newick, [sample[1]])
    with JplaceWriter(str(tmp_path), "out.jplace", sample.newick, "run") as writer:
        writer.write(chunk1)
        writer.write(chunk2)
    written = json.loads((tmp_path / "out.jplace").read_text())
    expected = json.loads(full_jplace(sample, "run", None, 6))
    assert written == expected


def test_writer_precision(tmp_path):
    p = Placement(2, -1.23456, 0.5, 0.25, 0.75)
    sample = Sample("t;", [PQuery(0, "q", [p])])
    writer = JplaceWriter(str(tmp_path), "p.jplace", "t;", "run").set_precision(2)
    writer.write(sample)
    writer.close()
    text = (tmp_path / "p.jplace").read_text()
    assert placement_to_jplace(p, None, 2) in text
    assert writer.precision == 2


def test_writer_applies_mapper(tmp_path):
    sample = make_sample()
    with JplaceWriter(str(tmp_path), "m.jplace", "t;", "run", ShiftMapper()) as writer:
        writer.write(sample)
    doc = json.loads((tmp_path / "m.jplace").read_text())
    assert doc["placements"][1]["p"][0][0] == 103


def test_writer_without_chunks_writes_only_closing(tmp_path):
    writer = JplaceWriter(str(tmp_path), "e.jplace", "t;", "run")
    writer.close()
    assert (tmp_path / "e.jplace").read_text() == finalize_jplace("run")


def test_writer_close_twice_and_write_after_close(tmp_path):
    writer = JplaceWriter(str(tmp_path), "c.jplace", "t;", "run")
    writer.write(make_sample())
    writer.close()
    content = (tmp_path / "c.jplace").read_text()
    writer.close()
    assert (tmp_path / "c.jplace").read_text() == content
    with pytest.raises(ValueError):
        writer.write(make_sample())


def test_writer_bad_directory_raises(tmp_path):
    with pytest.raises(OSError):
        JplaceWriter(str(tmp_path / "nope"), "x.jplace", "t;", "run")