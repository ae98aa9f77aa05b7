from epang.pipeline import TokenStatus
from epang.placement import PQuery, Placement, Sample, SlimPlacement


def test_placement_defaults_lwr_zero():
    p = Placement(3, -10.5, 0.2, 0.1)
    assert p.lwr == 0.0
    assert p.pendant_length == 0.2
    assert p.distal_length == 0.1


def test_slim_round_trip_keeps_branch_and_likelihood():
    p = Placement(7, -3.25, 0.5, 0.75, lwr=0.4)
    slim = p.to_slim()
    assert slim == SlimPlacement(7, -3.25)
    full = slim.to_placement()
    assert full == Placement(7, -3.25)
    assert full.lwr == 0.0 and full.distal_length == 0.0


def test_pquery_equality_by_sequence_id():
    a = PQuery(4, "a", [Placement(1, -1.0)])
    b = PQuery(4, "b")
    c = PQuery(5, "a")
    assert a == b
    assert not (a == c)


def test_pquery_container_behaviour():
    pq = PQuery(1, "seq")
    pq.append(Placement(0, -1.0))
    pq.extend([Placement(1, -2.0), Placement(2, -3.0)])
    assert len(pq) == 3
    assert [p.branch_id for p in pq] == [0, 1, 2]
    assert pq[-1].likelihood == -3.0


def test_pquery_to_full_converts_slim():
    pq = PQuery(2, "h", [SlimPlacement(9, -4.0)])
    full = pq.to_full()
    assert full.sequence_id == 2
    assert full.header == "h"
    assert full[0] == Placement(9, -4.0)


def test_sample_sized():
    sample = Sample.sized(4, 2)
    assert [pq.sequence_id for pq in sample] == list(range(4))
    assert all(len(pq) == 2 for pq in sample)


def test_sample_add_placement_groups_by_id():
    sample = Sample("(a,b,c);")
    sample.add_placement(1, "q1", Placement(0, -1.0))
    sample.add_placement(2, "q2", Placement(1, -2.0))
    sample.add_placement(1, "ignored", Placement(2, -3.0))
    assert len(sample) == 2
    assert sample[0].header == "q1"
    assert [p.branch_id for p in sample[0]] == [0, 2]


def test_sample_add_pquery_returns_index():
    sample = Sample()
    assert sample.add_pquery(10, "x") == 0
    assert sample.add_pquery(11, "y") == 1
    assert sample[1].sequence_id == 11


def test_sample_append_extend_clear():
    sample = Sample()
    sample.append(PQuery(0))
    sample.extend([PQuery(1), PQuery(2)])
    assert len(sample) == 3
    sample.clear()
    assert len(sample) == 0


def test_sample_is_token_and_to_full():
    sample = Sample("tree", [PQuery(0, "a", [SlimPlacement(1, -2.0)])])
    sample.mark_last(True)
    assert sample.status is TokenStatus.END
    full = sample.to_full()
    assert full.newick == "tree"
    assert full[0][0] == Placement(1, -2.0)
    assert full.valid() is True