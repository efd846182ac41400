import contextvars
import json

from ellyn.params import MARSHAL_FAILED, NOT_COLLECTED, NOT_COLLECTED_DISPLAY, encode_vars


def test_not_collected_is_unique():
    assert NOT_COLLECTED != object()
    assert encode_vars([NOT_COLLECTED]) == [NOT_COLLECTED_DISPLAY]
    assert encode_vars([{}]) == ["{}"]
    assert NOT_COLLECTED_DISPLAY == '"[NotCollected]"'


def test_plain_values():
    assert encode_vars([1, "a", None, True]) == ["1", '"a"', "null", "true"]


def test_unserializable_value():
    assert encode_vars([object()]) == [MARSHAL_FAILED]
    assert MARSHAL_FAILED == '"[Marshal failed]"'


def test_map_keys_are_filtered():
    encoded = encode_vars([{1: "x", "k": 2, (1, 2): 3}])
    assert json.loads(encoded[0]) == {"1": "x", "k": 2}


def test_context_values():
    var = contextvars.ContextVar("uid")
    ctx = contextvars.Context()
    ctx.run(var.set, 7)
    assert json.loads(encode_vars([ctx])[0]) == {"uid": 7}


def test_empty():
    assert encode_vars([]) == []