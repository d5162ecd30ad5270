"""aseview package entrypoints."""

from .compositor import composite_frame
from .document import Color, DirectCel, Document, Frame, Layer, LinkedCel, Palette, Tag
from .document_decoder import AsepriteDecoder, parse
from .errors import (
    AsepriteError,
    ChunkSizeMismatch,
    CompositeError,
    DecodeAnomaly,
    LinkedCelError,
    OutOfBounds,
    ParseError,
    StructuralError,
)
from .viewer import AsepriteViewer
from .visibility import LayerVisibilityPolicy, VisibilityOverrides, list_layers

__all__ = [
    'parse', 'composite_frame', 'list_layers',
    'AsepriteDecoder', 'AsepriteViewer', 'LayerVisibilityPolicy', 'VisibilityOverrides',
    'Document', 'Layer', 'Frame', 'DirectCel', 'LinkedCel', 'Palette', 'Color', 'Tag',
    'AsepriteError', 'StructuralError', 'OutOfBounds', 'ChunkSizeMismatch', 'ParseError',
    'LinkedCelError', 'CompositeError', 'DecodeAnomaly',
]
