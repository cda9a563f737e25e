from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class TapeProtocol(Protocol):
    def read(self, size: int, move_pointer: bool = True) -> bytes:
        """Read symbols from the data."""
        ...

    def has_terminated(self) -> bool:
        """Return whether or not the tape has terminated."""
        ...


@runtime_checkable
class ScriptProtocol(Protocol):
    """Represent a script as a pairing of source and byte code."""
    src: str
    bytes: bytes

    @classmethod
    def from_src(cls, src: str) -> ScriptProtocol:
        """Create an instance from script source code."""
        ...

    @classmethod
    def from_bytes(cls, code: bytes) -> ScriptProtocol:
        """Create an instance from script byte code."""
        ...

    def commitment(self) -> bytes:
        """Return a cryptographic commitment for the Script."""
        ...

    def __bytes__(self) -> bytes:
        """Return the script byte code."""
        ...

    def __str__(self) -> str:
        """Return the script source code."""
        ...

    def __add__(self, other: ScriptProtocol) -> ScriptProtocol:
        """Add two instances together."""
        ...
