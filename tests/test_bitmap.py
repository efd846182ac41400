import pytest

from ellyn.bitmap import BitMap, round_to_power_of_two


@pytest.mark.parametrize(
    "capacity, slots",
    [(1, 1), (64, 1), (65, 2), (128, 2), (129, 3)],
)
def test_slot_count(capacity, slots):
    assert len(BitMap(capacity).slots) == slots


def test_basic():
    m = BitMap(10)
    m.set(1)
    m.set(2)
    assert m.get(1)
    assert m.get(2)
    assert len(m) == 2
    assert not m.get(3)
    m.clear(1)
    assert not m.get(1)
    assert len(m) == 1


def test_set_twice_counts_once():
    m = BitMap(10)
    m.set(5)
    m.set(5)
    assert len(m) == 1
    m.clear(7)
    assert len(m) == 1


def test_high_positions():
    m = BitMap(200)
    m.set(64)
    m.set(199)
    assert m.get(64)
    assert m.get_without_check(199)
    assert not m.get(63)
    assert not m.get(128)


def test_out_of_range():
    m = BitMap(10)
    with pytest.raises(IndexError):
        m.set(10)
    with pytest.raises(IndexError):
        m.get(-1)


def test_invalid_capacity():
    with pytest.raises(ValueError):
        BitMap(0)


def test_merge():
    a = BitMap(63)
    b = BitMap(63)
    a.set(1)
    b.set(41)
    b.set(1)
    a.merge(b)
    assert a.get(1) and a.get(41)
    assert len(a) == 2


def test_merge_capacity_mismatch():
    with pytest.raises(ValueError):
        BitMap(10).merge(BitMap(11))


@pytest.mark.parametrize(
    "size, expected",
    [(0, 0), (1, 1), (2, 2), (3, 4), (10, 16), (2048, 2048), (2049, 4096)],
)
def test_round_to_power_of_two(size, expected):
    assert round_to_power_of_two(size) == expected