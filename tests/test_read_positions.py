import pytest

from cavesnv.read_positions import (
    PileupRead,
    ReadPos,
    ReadPositionError,
    insert_sorted,
    merge_sorted,
    reads_at_position,
)

LANES = ["rg1_0", "rg1_1", "rg2_1"]


def entry(name, base="A", qual=30, qpos=9, reverse=False, group="rg1", **kw):
    return PileupRead(
        name=name,
        base=base,
        qual=qual,
        qpos=qpos,
        read_length=100,
        map_qual=60,
        read_group=group,
        is_reverse=reverse,
        **kw,
    )


def rp(ref_pos, tag=0):
    return ReadPos(
        ref_pos=ref_pos, rd_len=100, normal=False, read_order=0, strand=0,
        called_base="A", rd_pos=1, base_qual=30, map_qual=tag, lane_i=0,
    )


def test_single_forward_read_fields():
    reads = reads_at_position([entry("r1")], 1234, LANES, True)
    assert len(reads) == 1
    read = reads[0]
    assert read.ref_pos == 1234
    assert read.strand == 0
    assert read.normal is True
    assert read.lane_i == LANES.index("rg1_1")
    assert read.called_base == "A"
    assert read.base_qual == 30
    assert read.map_qual == 60
    assert read.rd_len == 100


def test_reverse_read_position_mirrors_forward():
    fwd = reads_at_position([entry("r1", qpos=20)], 5, LANES, False)[0]
    rev = reads_at_position([entry("r2", qpos=20, reverse=True)], 5, LANES, False)[0]
    assert rev.strand == 1
    assert fwd.rd_pos + rev.rd_pos == fwd.rd_len + 1
    assert fwd.lane_i == LANES.index("rg1_0")


def test_unusable_bases_are_skipped():
    entries = [
        entry("low", qual=5),
        entry("del", is_del=True),
        entry("n", base="N"),
    ]
    assert reads_at_position(entries, 10, LANES, True, min_base_qual=10) == []


def test_read_order_from_flags():
    reads = reads_at_position([entry("r1", is_read2=True)], 10, LANES, True)
    assert reads[0].read_order == 1
    reads = reads_at_position([entry("r1", is_read1=True)], 10, LANES, True)
    assert reads[0].read_order == 0


def test_unknown_lane_raises():
    with pytest.raises(ReadPositionError):
        reads_at_position([entry("r1", group="missing")], 10, LANES, True)


def test_repeated_strand_raises():
    with pytest.raises(ReadPositionError):
        reads_at_position([entry("r1"), entry("r1", base="C")], 10, LANES, True)


def test_overlapping_pair_with_different_bases_keeps_both():
    entries = [entry("p", base="A"), entry("p", base="C", reverse=True)]
    reads = reads_at_position(entries, 10, LANES, True)
    assert sorted((r.strand, r.called_base) for r in reads) == [(0, "A"), (1, "C")]


def test_overlapping_pair_with_same_base_counts_once():
    entries = [entry("p", base="G"), entry("p", base="G", reverse=True)]
    reads = reads_at_position(entries, 10, LANES, True)
    assert len(reads) == 1
    assert reads[0].called_base == "G"


def test_same_base_pairs_balance_strands():
    entries = [
        entry("p1", base="T"), entry("p1", base="T", reverse=True),
        entry("p2", base="T"), entry("p2", base="T", reverse=True),
    ]
    reads = reads_at_position(entries, 10, LANES, True)
    assert sorted(r.strand for r in reads) == [0, 1]


def test_sorted_and_unsorted_hold_same_reads():
    entries = [entry("a"), entry("b", base="C", reverse=True), entry("c", base="T")]
    kept = reads_at_position(entries, 10, LANES, True, keep_sorted=True)
    pushed = reads_at_position(entries, 10, LANES, True, keep_sorted=False)
    assert sorted(kept, key=repr) == sorted(pushed, key=repr)


def test_insert_sorted_keeps_order():
    reads = []
    for pos in [5, 3, 9, 7, 1, 7]:
        insert_sorted(reads, rp(pos))
    positions = [r.ref_pos for r in reads]
    assert positions == sorted(positions)
    assert len(reads) == 6


def test_insert_sorted_equal_goes_after_in_middle():
    reads = [rp(1), rp(5, tag=1), rp(9)]
    new = rp(5, tag=2)
    insert_sorted(reads, new)
    assert reads[2] is new


def test_insert_sorted_equal_to_first_goes_in_front():
    reads = [rp(5, tag=1), rp(9)]
    new = rp(5, tag=2)
    insert_sorted(reads, new)
    assert reads[0] is new


def test_merge_sorted_is_stable_and_complete():
    first = [rp(1, tag=1), rp(4, tag=1), rp(8, tag=1)]
    second = [rp(2, tag=2), rp(4, tag=2)]
    merged = merge_sorted(first, second)
    assert len(merged) == len(first) + len(second)
    assert [r.ref_pos for r in merged] == sorted(r.ref_pos for r in merged)
    ties = [r for r in merged if r.ref_pos == 4]
    assert ties[0] is first[1]
    assert ties[1] is second[1]