import pytest

from ellyn.stacks import CompressedStack, Frame, SimpleStack, Uint32Stack


class IntFrame(Frame):
    def __init__(self, value):
        self.value = value
        self.inits = 0
        self.re_enters = 0

    def equals(self, other):
        return isinstance(other, IntFrame) and other.value == self.value

    def init(self):
        self.inits += 1

    def re_enter(self):
        self.re_enters += 1


def test_compressed_stack_push():
    stack = CompressedStack()
    stack.push(IntFrame(1))
    stack.push(IntFrame(1))
    assert len(stack) == 2
    assert stack.frame_count() == 1


def test_compressed_stack_pop_and_hooks():
    stack = CompressedStack()
    first = IntFrame(1)
    assert stack.push(first) is True
    assert stack.push(IntFrame(1)) is False
    assert stack.push(IntFrame(2)) is True
    assert first.inits == 1
    assert first.re_enters == 1
    assert stack.pop().value == 2
    assert stack.top() is first
    assert stack.pop() is first
    assert stack.pop() is first
    assert stack.is_empty()
    with pytest.raises(IndexError):
        stack.pop()


def test_uint32_stack():
    s = Uint32Stack()
    for v in (1, 1, 2, 3, 3, 4):
        s.push(v)
    assert s.pop() == 4
    assert s.pop() == 3
    assert s.pop() == 3
    assert s.pop() == 2
    assert s.pop() == 1
    assert s.pop() == 1
    with pytest.raises(IndexError):
        s.pop()
    assert s.is_empty()


def test_uint32_stack_push_reports_new_element():
    s = Uint32Stack()
    assert s.push(7) is True
    assert s.push(7) is False
    assert s.push(8) is True


def test_uint32_stack_extra():
    s = Uint32Stack()
    assert s.top_extra() is None
    s.push(5)
    s.set_top_extra("node-5")
    s.push(5)
    assert s.top_with_extra() == (5, "node-5")
    assert s.pop_with_extra() == (5, "node-5")
    assert s.pop_with_extra() == (5, "node-5")
    assert s.top_extra() is None


def test_uint32_stack_range_and_clear():
    s = Uint32Stack()
    with pytest.raises(ValueError):
        s.push(-1)
    with pytest.raises(ValueError):
        s.push(1 << 32)
    s.push(0xFFFFFFFF)
    assert s.top() == 0xFFFFFFFF
    s.clear()
    assert s.is_empty()
    with pytest.raises(IndexError):
        s.top()


def test_simple_stack():
    s = SimpleStack()
    assert s.push("a") is True
    s.push("b")
    assert len(s) == 2
    assert s.top() == "b"
    assert s.pop() == "b"
    assert s.pop() == "a"
    assert s.is_empty()
    with pytest.raises(IndexError):
        s.pop()
    s.push("c")
    s.clear()
    assert len(s) == 0