"""
Shared configuration for graph evaluation and the binary graph format.

Precision:
    Every value, gradient entry and serialized constant is an IEEE-754 double
    (`DTYPE`). There is exactly one precision in the package, so a graph that
    is written to disk and read back evaluates to bit-identical results.

Wire format:
    A stream starts with `FORMAT_MAGIC` followed by a one-byte
    `FORMAT_VERSION`. Readers reject unknown versions with
    `UnsupportedFormatVersion` rather than treating them as corruption.
"""

import struct
from dataclasses import dataclass

import numpy as np

DTYPE = np.float64

FORMAT_MAGIC = b"GADG"
FORMAT_VERSION = 1

# Record discriminators (same numbering as the oneof fields of the graph schema)
TAG_SUM = 1
TAG_MUL = 2
TAG_VAR = 3
TAG_CONST = 4

# Little-endian fixed-width fields
U8 = struct.Struct("<B")
U32 = struct.Struct("<I")
F64 = struct.Struct("<d")

MAX_WIRE_NAME_BYTES = 0xFFFFFFFF


@dataclass(frozen=True)
class CodecConfig:
    """Limits applied when decoding untrusted bytes. Encoding is unrestricted."""
    # Longest accepted variable name, in UTF-8 bytes
    max_name_bytes: int = 1 << 20

    # Decoding refuses streams with more records than this
    max_nodes: int = 10_000_000

    def __post_init__(self):
        if not 0 < self.max_name_bytes <= MAX_WIRE_NAME_BYTES:
            raise ValueError(f"max_name_bytes must be in (0, 2**32), got {self.max_name_bytes}")
        if self.max_nodes < 1:
            raise ValueError(f"max_nodes must be positive, got {self.max_nodes}")


DEFAULT_CODEC_CONFIG = CodecConfig()
