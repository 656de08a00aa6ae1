"""
Binary encoding of graphs: round trips, the wire layout, corrupt input and file I/O.
"""

import struct

import pytest
from numpy.testing import assert_allclose

from graph_autodiff import (
    CodecConfig, Const, Graph, GraphIOError, InvalidEncoding, Mul, Sum,
    UnsupportedFormatVersion, Var, as_graph, deserialize, get_graph_stats,
    read_from_path, serialize, write_to_path,
)
from graph_autodiff.config import FORMAT_MAGIC, FORMAT_VERSION

HEADER = FORMAT_MAGIC + bytes([FORMAT_VERSION])


def const_record(v):
    return b"\x04" + struct.pack("<d", v)


def var_record(name):
    raw = name.encode("utf-8")
    return b"\x03" + struct.pack("<I", len(raw)) + raw


def test_write_and_read_graph(tmp_path):
    c = Const(20.0)
    x = Var("x")
    g1 = x + c * x

    path = tmp_path / "test.gadg"
    write_to_path(g1, path)
    g2 = read_from_path(path)

    assert isinstance(g2, Graph)
    assert g2.eval({"x": 2.0}) == pytest.approx(42.0)


def test_round_trip_preserves_value_and_gradient():
    x, y = Var("x"), Var("y")
    g = (x + Const(1.5)) * y + x * x * Const(-0.25)
    g2 = deserialize(serialize(g))
    for inputs in ({"x": 2.0, "y": 3.0}, {"x": -7.5, "y": 0.125}):
        assert g2.eval(inputs) == g.eval(inputs)
        v1, gr1 = g.eval_grad(inputs)
        v2, gr2 = g2.eval_grad(inputs)
        assert v1 == v2
        assert_allclose(gr1, gr2)


def test_encoding_layout():
    g = Var("x") + Const(2.0) * Var("x")
    expected = HEADER + b"\x01" + var_record("x") + b"\x02" + const_record(2.0) + var_record("x")
    assert serialize(g) == expected


def test_encoding_is_deterministic():
    g = Var("a") * Var("b") + Const(3.0)
    assert serialize(g) == serialize(g)


def test_constants_keep_double_precision():
    v = 0.1 + 0.2
    g = deserialize(serialize(Const(v)))
    assert g.eval({}) == v


def test_unicode_variable_names():
    g = Var("σ") * Var("ξ_1")
    g2 = deserialize(serialize(g))
    assert g2.variables() == ["ξ_1", "σ"]
    assert g2.eval({"σ": 2.0, "ξ_1": 4.0}) == pytest.approx(8.0)


def test_sharing_is_expanded_on_decode():
    p = Var("x") * Var("y")
    g = p + p
    stats = get_graph_stats(g)
    assert stats["nodes"] == 4
    assert stats["tree_nodes"] == 7

    g2 = deserialize(serialize(g))
    assert g2.root.op1 is not g2.root.op2
    assert get_graph_stats(g2)["nodes"] == 7
    assert g2.eval({"x": 2.0, "y": 3.0}) == pytest.approx(12.0)


def test_deep_graph_round_trip():
    g = as_graph(Const(0.0))
    for i in range(5000):
        g = Graph(Sum(g.root, Const(1.0)))
    data = serialize(g)
    g2 = deserialize(data)
    assert isinstance(g2.root, Sum)
    assert get_graph_stats(g2)["depth"] == 5001
    assert g2.eval({}) == pytest.approx(5000.0)
    value, grad = g2.eval_grad({"x": 1.0})
    assert value == pytest.approx(5000.0)
    assert_allclose(grad, [0.0])


def test_serialize_bare_node():
    assert deserialize(serialize(Var("x"))).eval({"x": 5.0}) == pytest.approx(5.0)


@pytest.mark.parametrize("data", [
    b"",
    FORMAT_MAGIC,
    HEADER,
    HEADER + b"\x04\x00\x00",                          # short Const payload
    HEADER + b"\x03\x05\x00\x00\x00ab",                # short Var name
    HEADER + b"\x01" + var_record("x"),                # Sum missing op2
    HEADER + b"\x02",                                  # Mul missing both operands
    HEADER + b"\x07",                                  # unknown tag
    HEADER + b"\x00",                                  # zero tag
    HEADER + const_record(1.0) + b"\x00",              # trailing byte
    HEADER + b"\x03\x02\x00\x00\x00\xff\xfe",          # invalid UTF-8
    HEADER + b"\x03\x00\x00\x00\x00",                  # empty name
    b"NOPE" + bytes([FORMAT_VERSION]) + const_record(1.0),
])
def test_invalid_encoding(data):
    with pytest.raises(InvalidEncoding):
        deserialize(data)


def test_invalid_encoding_reports_offset():
    with pytest.raises(InvalidEncoding) as info:
        deserialize(HEADER + b"\x01" + const_record(1.0) + b"\x09")
    assert info.value.offset == len(HEADER) + 1 + 9


def test_unknown_version_is_distinguished():
    data = FORMAT_MAGIC + bytes([FORMAT_VERSION + 1]) + const_record(1.0)
    with pytest.raises(UnsupportedFormatVersion) as info:
        deserialize(data)
    assert info.value.version == FORMAT_VERSION + 1
    assert isinstance(info.value, InvalidEncoding)


def test_record_limit():
    g = Var("x") * Var("x") + Const(1.0)
    data = serialize(g)
    assert deserialize(data, CodecConfig(max_nodes=5)).eval({"x": 2.0}) == pytest.approx(5.0)
    with pytest.raises(InvalidEncoding):
        deserialize(data, CodecConfig(max_nodes=4))


def test_name_length_limit():
    data = serialize(Var("abcdef"))
    assert deserialize(data, CodecConfig(max_name_bytes=6)).variables() == ["abcdef"]
    with pytest.raises(InvalidEncoding):
        deserialize(data, CodecConfig(max_name_bytes=4))
    with pytest.raises(ValueError):
        CodecConfig(max_name_bytes=0)


def test_deserialize_rejects_non_bytes():
    with pytest.raises(TypeError):
        deserialize("GADG")


def test_decoded_nodes_are_plain_variants():
    g = deserialize(serialize(Var("x") * Const(2.0)))
    assert isinstance(g.root, Mul)
    assert isinstance(g.root.op1, Var)
    assert isinstance(g.root.op2, Const)
    assert g.root.op2.value == 2.0


def test_read_missing_file(tmp_path):
    path = tmp_path / "missing.gadg"
    with pytest.raises(GraphIOError) as info:
        read_from_path(path)
    assert info.value.path == path
    assert isinstance(info.value.cause, FileNotFoundError)
    assert info.value.__cause__ is info.value.cause


def test_write_to_directory_fails(tmp_path):
    with pytest.raises(GraphIOError) as info:
        write_to_path(Var("x") + Const(1.0), tmp_path)
    assert info.value.path == tmp_path


def test_corrupt_file_raises_invalid_encoding(tmp_path):
    path = tmp_path / "corrupt.gadg"
    path.write_bytes(HEADER + b"\x01")
    with pytest.raises(InvalidEncoding):
        read_from_path(path)


def test_path_may_be_a_string(tmp_path):
    path = str(tmp_path / "g.gadg")
    write_to_path(Var("x") * Var("x"), path)
    assert read_from_path(path).eval({"x": 3.0}) == pytest.approx(9.0)


def test_long_names_always_serialize():
    name = "v" * ((1 << 20) + 1)
    data = serialize(Var(name) * Const(2.0))
    with pytest.raises(InvalidEncoding):
        deserialize(data)
    g = deserialize(data, CodecConfig(max_name_bytes=2 << 20))
    assert g.eval({name: 3.0}) == pytest.approx(6.0)
