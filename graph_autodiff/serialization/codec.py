# graph_autodiff/serialization/codec.py
"""
Binary encoding of expression graphs.

Stream layout (all integers little-endian):

    header  := "GADG" version:u8
    record  := tag:u8 payload
    Sum/Mul := record(op1) record(op2)
    Var     := length:u32 utf8-bytes
    Const   := value:f64

Records are written depth-first, root first, op1 before op2. The format has
no notion of node identity: a subgraph shared by several parents is written
once per parent and decoded as independent copies. Evaluation results are
preserved, sharing is not.

Both directions walk the graph with an explicit stack, so arbitrarily deep
graphs never hit the interpreter recursion limit.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..config import (
    DEFAULT_CODEC_CONFIG, F64, FORMAT_MAGIC, FORMAT_VERSION, MAX_WIRE_NAME_BYTES,
    TAG_CONST, TAG_MUL, TAG_SUM, TAG_VAR, U8, U32, CodecConfig,
)
from ..core.graph import Graph, as_graph
from ..core.node import Const, Mul, Op, Sum, Var
from ..errors import GraphIOError, InvalidEncoding, UnsupportedFormatVersion

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_BRANCHES = {TAG_SUM: Sum, TAG_MUL: Mul}


# ----------------------------- encoding ----------------------------- #
def serialize(graph) -> bytes:
    """
    Encode a graph (or a bare node) to bytes.

    Never fails for a well-formed graph. The only bound is the wire format's
    u32 name length; `CodecConfig` limits apply to decoding only.
    """
    root = as_graph(graph).root

    out = bytearray(FORMAT_MAGIC)
    out += U8.pack(FORMAT_VERSION)

    n_records = 0
    stack: List[Op] = [root]
    while stack:
        node = stack.pop()
        n_records += 1
        if isinstance(node, Sum):
            out += U8.pack(TAG_SUM)
            stack.append(node.op2)
            stack.append(node.op1)
        elif isinstance(node, Mul):
            out += U8.pack(TAG_MUL)
            stack.append(node.op2)
            stack.append(node.op1)
        elif isinstance(node, Var):
            name = node.name.encode("utf-8")
            if len(name) > MAX_WIRE_NAME_BYTES:
                raise ValueError(
                    f"variable name is {len(name)} bytes, the format allows {MAX_WIRE_NAME_BYTES}"
                )
            out += U8.pack(TAG_VAR)
            out += U32.pack(len(name))
            out += name
        elif isinstance(node, Const):
            out += U8.pack(TAG_CONST)
            out += F64.pack(node.value)
        else:
            raise TypeError(f"cannot serialize node of type {type(node).__name__}")

    logger.debug("serialized graph: %d records, %d bytes", n_records, len(out))
    return bytes(out)


# ----------------------------- decoding ----------------------------- #
class _Reader:
    """Cursor over an immutable byte buffer; every short read is InvalidEncoding."""

    def __init__(self, data):
        self.buf = memoryview(data)
        self.pos = 0

    def remaining(self) -> int:
        return len(self.buf) - self.pos

    def take(self, n: int, what: str) -> memoryview:
        if self.remaining() < n:
            raise InvalidEncoding(
                f"truncated {what}: need {n} bytes, have {self.remaining()}", self.pos
            )
        chunk = self.buf[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def unpack(self, fmt, what: str):
        return fmt.unpack(self.take(fmt.size, what))[0]


def _read_header(reader: _Reader) -> None:
    magic = bytes(reader.take(len(FORMAT_MAGIC), "header"))
    if magic != FORMAT_MAGIC:
        raise InvalidEncoding(f"bad magic {magic!r}, expected {FORMAT_MAGIC!r}", 0)
    version = reader.unpack(U8, "format version")
    if version != FORMAT_VERSION:
        raise UnsupportedFormatVersion(version)


def _read_leaf(reader: _Reader, tag: int, config: CodecConfig) -> Op:
    if tag == TAG_CONST:
        return Const(reader.unpack(F64, "Const payload"))
    # TAG_VAR
    start = reader.pos
    length = reader.unpack(U32, "Var name length")
    if length > config.max_name_bytes:
        raise InvalidEncoding(
            f"variable name length {length} exceeds limit {config.max_name_bytes}", start
        )
    raw = reader.take(length, "Var name")
    try:
        name = str(raw, "utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncoding(f"variable name is not valid UTF-8: {exc.reason}", start) from None
    if not name:
        raise InvalidEncoding("empty variable name", start)
    return Var(name)


def deserialize(data: Union[bytes, bytearray, memoryview],
                config: Optional[CodecConfig] = None) -> Graph:
    """
    Rebuild a Graph from bytes produced by `serialize`.

    All-or-nothing: any corruption raises InvalidEncoding (or its subclass
    UnsupportedFormatVersion) and no partial graph is returned.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"deserialize expects bytes, got {type(data).__name__}")
    config = config or DEFAULT_CODEC_CONFIG
    reader = _Reader(data)
    _read_header(reader)

    # Branch records whose operands are still being read: (node class, operands so far)
    pending: List[Tuple[type, List[Op]]] = []
    n_records = 0
    root = None
    while root is None:
        start = reader.pos
        if reader.remaining() == 0:
            what = "operand record" if pending else "root record"
            raise InvalidEncoding(f"truncated stream: missing {what}", start)
        tag = reader.unpack(U8, "record tag")
        n_records += 1
        if n_records > config.max_nodes:
            raise InvalidEncoding(f"stream holds more than {config.max_nodes} records", start)

        if tag in _BRANCHES:
            pending.append((_BRANCHES[tag], []))
            continue
        if tag not in (TAG_VAR, TAG_CONST):
            raise InvalidEncoding(f"unknown record tag {tag}", start)

        node = _read_leaf(reader, tag, config)
        # Attach the finished node to its parent, closing every branch that is now complete
        while pending:
            cls, operands = pending[-1]
            operands.append(node)
            if len(operands) < 2:
                break
            pending.pop()
            node = cls(operands[0], operands[1])
        else:
            root = node

    if reader.remaining():
        raise InvalidEncoding(f"{reader.remaining()} trailing bytes after root record", reader.pos)

    logger.debug("deserialized graph: %d records, %d bytes", n_records, reader.pos)
    return Graph(root)


# ----------------------------- files ----------------------------- #
def write_to_path(graph, path: PathLike) -> None:
    """
    Serialize `graph` and write it to `path`, replacing any existing file.

    Filesystem failures raise GraphIOError(path, cause).
    """
    path = Path(path)
    payload = serialize(graph)
    try:
        with path.open("wb") as fh:
            fh.write(payload)
    except OSError as exc:
        raise GraphIOError(path, exc) from exc
    logger.debug("wrote graph to %s (%d bytes)", path, len(payload))


def read_from_path(path: PathLike, config: Optional[CodecConfig] = None) -> Graph:
    """
    Read and decode a graph file.

    Filesystem failures raise GraphIOError(path, cause); bad contents raise
    InvalidEncoding unchanged.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            payload = fh.read()
    except OSError as exc:
        raise GraphIOError(path, exc) from exc
    logger.debug("read graph from %s (%d bytes)", path, len(payload))
    return deserialize(payload, config)
