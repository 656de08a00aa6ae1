# graph_autodiff/errors.py
"""
Exception types raised by graph evaluation and by the binary codec.

All of them derive from `GraphAutodiffError`, so callers can catch the whole
family at once. Each one is a recoverable error: inputs and file contents are
caller-controlled, so nothing in this package aborts the process.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union


class GraphAutodiffError(Exception):
    """Base class for every error raised by graph_autodiff."""


class MissingVariable(GraphAutodiffError, LookupError):
    """A Var node's name has no value in the supplied inputs."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"no value bound to variable {self.name!r}"


class InvalidEncoding(GraphAutodiffError, ValueError):
    """
    Serialized bytes are corrupt, truncated or carry an unknown discriminator.

    `offset` is the byte position where decoding stopped, when known.
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self):
        if self.offset is None:
            return self.message
        return f"{self.message} (at byte {self.offset})"


class UnsupportedFormatVersion(InvalidEncoding):
    """The stream is a graph encoding, but of a format version we cannot read."""

    def __init__(self, version: int):
        super().__init__(f"unsupported graph format version {version}", offset=4)
        self.version = version


class GraphIOError(GraphAutodiffError):
    """Opening, reading or writing a graph file failed."""

    def __init__(self, path: Union[str, Path], cause: BaseException):
        super().__init__(path, cause)
        self.path = Path(path)
        self.cause = cause

    def __str__(self):
        return f"I/O error on {str(self.path)!r}: {self.cause}"
