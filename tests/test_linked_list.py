from ellyn.linked_list import LinkedList


def test_linked_list():
    lst = LinkedList()
    lst.add(1)
    lst.add(2)
    assert len(lst) == 2
    lst.remove(0)
    assert len(lst) == 1
    assert lst.values() == [2]
    assert not lst.is_empty()
    lst.clear()
    assert lst.is_empty()


def test_remove_out_of_range_is_ignored():
    lst = LinkedList()
    lst.add("a")
    lst.remove(5)
    lst.remove(-1)
    assert lst.values() == ["a"]


def test_remove_middle_and_tail_keeps_order():
    lst = LinkedList()
    for v in range(5):
        lst.add(v)
    lst.remove(2)
    lst.remove(3)
    lst.add(9)
    assert lst.values() == [0, 1, 3, 9]


def test_values_is_a_copy():
    lst = LinkedList()
    lst.add(1)
    snapshot = lst.values()
    snapshot.append(2)
    assert lst.values() == [1]