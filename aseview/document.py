from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

from .const import BYTES_PER_PIXEL, ColorProfileType, LayerType, LoopDirection
from .errors import DecodeAnomaly


@dataclass(frozen=True)
class Color:
    """Palette entry with straight (non-premultiplied) alpha."""

    r: int
    g: int
    b: int
    a: int = 255
    name: Optional[str] = None

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        return self.r, self.g, self.b, self.a


TRANSPARENT = Color(0, 0, 0, 0)


@dataclass(frozen=True)
class Palette:
    """Ordered color table addressed by the indexes of 8-bit pixels."""

    colors: Tuple[Color, ...] = ()

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> Color:
        return self.colors[index]

    def __iter__(self):
        return iter(self.colors)


@dataclass(frozen=True)
class Layer:
    """
    A layer as declared in the file.

    `visible` is bit 0 of `raw_flags`, computed once at decode time. Layers
    built without flag data (`raw_flags is None`) count as visible.
    """

    index: int
    name: str
    type: LayerType = LayerType.NORMAL
    child_level: int = 0
    blend_mode: int = 0
    opacity: int = 255
    raw_flags: Optional[int] = None
    tileset_index: Optional[int] = None

    @property
    def visible(self) -> bool:
        if self.raw_flags is None:
            return True
        return bool(self.raw_flags & 1)


@dataclass(frozen=True)
class DirectCel:
    """Cel that stores its own pixels (raw or decompressed)."""

    layer_index: int
    x: int
    y: int
    opacity: int
    width: int
    height: int
    pixel_bytes: bytes = field(repr=False)
    compressed: bool = False


@dataclass(frozen=True)
class LinkedCel:
    """Cel that reuses the pixels of the same layer in another frame."""

    layer_index: int
    x: int
    y: int
    opacity: int
    linked_frame_index: int


Cel = Union[DirectCel, LinkedCel]


@dataclass(frozen=True)
class Frame:
    index: int
    duration_ms: int
    cels: Tuple[Cel, ...] = ()
    byte_size: int = 0

    def cel_for_layer(self, layer_index: int) -> Optional[Cel]:
        """Return the cel this frame holds for a layer, or None."""
        for cel in self.cels:
            if cel.layer_index == layer_index:
                return cel
        return None


@dataclass(frozen=True)
class Tag:
    from_frame: int
    to_frame: int
    loop_direction: LoopDirection
    name: str
    color: str = '#000000'


@dataclass(frozen=True)
class ColorProfile:
    type: ColorProfileType
    flags: int
    gamma: float
    icc: Optional[bytes] = field(default=None, repr=False)


class Document(object):
    """
    Decoded Aseprite file.

    A Document is built once by the decoder and never changes afterwards.
    Caller side state such as layer visibility overrides lives outside of it
    (see :class:`aseview.visibility.VisibilityOverrides`).
    """

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def frame_count(self) -> int:
        """Number of frames declared in the header."""
        return self._frame_count

    @property
    def width(self) -> int:
        """Canvas width in pixels."""
        return self._width

    @property
    def height(self) -> int:
        """Canvas height in pixels."""
        return self._height

    @property
    def color_depth(self) -> int:
        """Bits per pixel: 32 (RGBA), 16 (grayscale) or 8 (indexed)."""
        return self._color_depth

    @property
    def bytes_per_pixel(self) -> int:
        return BYTES_PER_PIXEL[self._color_depth]

    @property
    def pixel_ratio(self) -> Tuple[int, int]:
        return self._pixel_ratio

    @property
    def palette(self) -> Optional[Palette]:
        return self._palette

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return self._layers

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return self._frames

    @property
    def tags(self) -> Tuple[Tag, ...]:
        return self._tags

    @property
    def flags(self) -> int:
        return self._flags

    @property
    def transparent_index(self) -> int:
        return self._transparent_index

    @property
    def color_profile(self) -> Optional[ColorProfile]:
        return self._color_profile

    @property
    def anomalies(self) -> Tuple[DecodeAnomaly, ...]:
        """Recoverable problems found while parsing."""
        return self._anomalies

    @property
    def total_duration_ms(self) -> int:
        return sum(frame.duration_ms for frame in self._frames)

    def __init__(
        self,
        file_size: int,
        frame_count: int,
        width: int,
        height: int,
        color_depth: int,
        pixel_ratio: Tuple[int, int] = (1, 1),
        palette: Optional[Palette] = None,
        layers: Sequence[Layer] = (),
        frames: Sequence[Frame] = (),
        tags: Sequence[Tag] = (),
        flags: int = 0,
        transparent_index: int = 0,
        color_profile: Optional[ColorProfile] = None,
        anomalies: Sequence[DecodeAnomaly] = (),
    ):
        if color_depth not in BYTES_PER_PIXEL:
            raise ValueError(f'Unsupported color depth: {color_depth}')

        self._file_size = file_size
        self._frame_count = frame_count
        self._width = width
        self._height = height
        self._color_depth = color_depth
        self._pixel_ratio = tuple(pixel_ratio)
        self._palette = palette
        self._layers = tuple(layers)
        self._frames = tuple(frames)
        self._tags = tuple(tags)
        self._flags = flags
        self._transparent_index = transparent_index
        self._color_profile = color_profile
        self._anomalies = tuple(anomalies)

    def __repr__(self) -> str:
        return (
            f'Document({self._width}x{self._height}, depth={self._color_depth}, '
            f'frames={len(self._frames)}, layers={len(self._layers)})'
        )

    def layer(self, layer_index: int) -> Optional[Layer]:
        """Return the layer at `layer_index`, or None when out of range."""
        if 0 <= layer_index < len(self._layers):
            return self._layers[layer_index]
        return None
