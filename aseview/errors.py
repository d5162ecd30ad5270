"""
Errors raised while decoding and compositing Aseprite documents.

Fatal problems are exceptions derived from :class:`StructuralError`. Problems
the decoder can recover from are reported as :class:`DecodeAnomaly` records
instead of being raised.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


class AsepriteError(Exception):
    """Base class for every error raised by aseview."""


class StructuralError(AsepriteError):
    """
    The byte stream or the decoded document is malformed beyond repair.

    Attributes:
        offset: Absolute byte offset at fault, when known
        chain: Frame indices followed while resolving linked cels, when relevant
    """

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        chain: Optional[Sequence[int]] = None,
    ):
        self.offset = offset
        self.chain: Tuple[int, ...] = tuple(chain) if chain is not None else ()
        if offset is not None:
            message = f'{message} (at byte offset {offset})'
        if chain:
            message = f"{message} (chain: {' -> '.join(str(i) for i in self.chain)})"
        super().__init__(message)


class OutOfBounds(StructuralError):
    """A read or skip went past the end of the available bytes."""


class ChunkSizeMismatch(StructuralError):
    """A known chunk did not consume exactly its declared byte size."""


class ParseError(StructuralError):
    """A header field holds a value the decoder cannot work with."""


class LinkedCelError(StructuralError):
    """A linked cel chain is cyclic, too long, or points at nothing."""


class CompositeError(AsepriteError, IndexError):
    """The requested frame does not exist in the document."""


@dataclass(frozen=True)
class DecodeAnomaly:
    """
    A recoverable decoding problem and the fallback that was applied.

    Attributes:
        kind: One of 'decompression', 'shortfall', 'palette_index',
            'unsupported_cel', 'layer_index', 'loop_direction'
        message: Human readable description
        frame_index: Frame the problem was found in, if any
        layer_index: Layer the problem relates to, if any
    """

    kind: str
    message: str
    frame_index: Optional[int] = None
    layer_index: Optional[int] = None

    def __str__(self) -> str:
        where = []
        if self.frame_index is not None:
            where.append(f'frame {self.frame_index}')
        if self.layer_index is not None:
            where.append(f'layer {self.layer_index}')
        prefix = f"[{', '.join(where)}] " if where else ''
        return f'{prefix}{self.kind}: {self.message}'
