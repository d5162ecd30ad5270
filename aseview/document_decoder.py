import logging
from io import IOBase
from typing import List, Optional, Sequence

from .byte_cursor import ByteCursor
from .chunk_decoder import ChunkDecoder
from .const import BYTES_PER_PIXEL, FILE_MAGIC, FRAME_HEADER_SIZE, FRAME_MAGIC
from .document import (
    TRANSPARENT,
    Cel,
    Color,
    ColorProfile,
    Document,
    Frame,
    Layer,
    Palette,
    Tag,
)
from .errors import DecodeAnomaly, ParseError, StructuralError

logger = logging.getLogger(__name__)


class DocumentBuilder(object):
    """
    Accumulates header fields and decoded chunks into a Document.

    Frames are opened and closed in file order; cels are appended to the
    frame that is currently open.
    """

    def __init__(self):
        self.file_size = 0
        self.frame_count = 0
        self.width = 0
        self.height = 0
        self.color_depth = 32
        self.flags = 0
        self.transparent_index = 0
        self.color_count = 0
        self.pixel_ratio = (1, 1)

        self._layers: List[Layer] = []
        self._frames: List[Frame] = []
        self._tags: List[Tag] = []
        self._palette_colors: Optional[List[Color]] = None
        self._color_profile: Optional[ColorProfile] = None
        self._anomalies: List[DecodeAnomaly] = []

        self._frame_index: Optional[int] = None
        self._frame_duration = 0
        self._frame_byte_size = 0
        self._frame_cels: List[Cel] = []

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    def set_header(
        self,
        file_size: int,
        frame_count: int,
        width: int,
        height: int,
        color_depth: int,
        flags: int = 0,
        transparent_index: int = 0,
        color_count: int = 0,
        pixel_ratio=(1, 1),
        color_depth_offset: Optional[int] = None,
    ) -> None:
        if color_depth not in BYTES_PER_PIXEL:
            raise ParseError(
                f'Unsupported color depth {color_depth}, expected 8, 16 or 32',
                offset=color_depth_offset,
            )

        self.file_size = file_size
        self.frame_count = frame_count
        self.width = width
        self.height = height
        self.color_depth = color_depth
        self.flags = flags
        self.transparent_index = transparent_index
        self.color_count = color_count
        self.pixel_ratio = pixel_ratio

        # Indexed documents always have a palette, even if no chunk defines one
        if color_depth == 8:
            self._palette_colors = []

    def begin_frame(self, duration_ms: int, byte_size: int) -> None:
        if self._frame_index is not None:
            self.end_frame()
        self._frame_index = len(self._frames)
        self._frame_duration = duration_ms
        self._frame_byte_size = byte_size
        self._frame_cels = []

    def end_frame(self) -> None:
        if self._frame_index is None:
            return
        self._frames.append(
            Frame(
                index=self._frame_index,
                duration_ms=self._frame_duration,
                cels=tuple(self._frame_cels),
                byte_size=self._frame_byte_size,
            )
        )
        self._frame_index = None
        self._frame_cels = []

    def add_layer(self, layer: Layer) -> None:
        self._layers.append(layer)

    def add_cel(self, cel: Cel) -> None:
        if self._frame_index is None:
            raise StructuralError('Cel chunk found outside of a frame')
        self._frame_cels.append(cel)

    def add_tag(self, tag: Tag) -> None:
        self._tags.append(tag)

    def set_color_profile(self, profile: ColorProfile) -> None:
        self._color_profile = profile

    def update_palette(self, palette_size: int, first_index: int, colors: Sequence[Color]) -> None:
        """
        Apply a palette chunk: resize to `palette_size` and overwrite the
        entries starting at `first_index`.
        """
        current = list(self._palette_colors or [])
        size = max(palette_size, first_index + len(colors))
        if len(current) < size:
            current.extend([TRANSPARENT] * (size - len(current)))
        else:
            del current[size:]
        current[first_index : first_index + len(colors)] = colors
        self._palette_colors = current

    def record_anomaly(
        self,
        kind: str,
        message: str,
        frame_index: Optional[int] = None,
        layer_index: Optional[int] = None,
    ) -> None:
        anomaly = DecodeAnomaly(kind, message, frame_index, layer_index)
        logger.warning(str(anomaly))
        self._anomalies.append(anomaly)

    def build(self) -> Document:
        self.end_frame()

        for frame in self._frames:
            for cel in frame.cels:
                if cel.layer_index >= len(self._layers):
                    self.record_anomaly(
                        'layer_index',
                        f'Cel refers to layer {cel.layer_index} but only '
                        f'{len(self._layers)} layers exist, it will not be drawn',
                        frame_index=frame.index,
                        layer_index=cel.layer_index,
                    )

        palette = None
        if self._palette_colors is not None:
            palette = Palette(tuple(self._palette_colors))

        return Document(
            file_size=self.file_size,
            frame_count=self.frame_count,
            width=self.width,
            height=self.height,
            color_depth=self.color_depth,
            pixel_ratio=self.pixel_ratio,
            palette=palette,
            layers=self._layers,
            frames=self._frames,
            tags=self._tags,
            flags=self.flags,
            transparent_index=self.transparent_index,
            color_profile=self._color_profile,
            anomalies=self._anomalies,
        )


class AsepriteDecoder(object):
    """Reads an Aseprite byte stream into a Document."""

    @staticmethod
    def decode_file(file_path: str) -> Document:
        with open(file_path, 'rb') as fp:
            return AsepriteDecoder.decode_stream(fp)

    @staticmethod
    def decode_stream(fp: IOBase) -> Document:
        return AsepriteDecoder(fp.read()).decode()

    def __init__(self, data: bytes):
        self._cursor = ByteCursor(data)
        self._builder = DocumentBuilder()
        self._chunks = ChunkDecoder(self._builder)

    def decode(self) -> Document:
        frame_count = self._read_header()
        for frame_index in range(frame_count):
            self._read_frame(frame_index)
        document = self._builder.build()
        logger.debug(f'Decoded {document!r}')
        return document

    def _read_header(self) -> int:
        cursor = self._cursor
        file_size = cursor.read_dword()
        magic = cursor.read_word()
        if magic != FILE_MAGIC:
            logger.warning(f'Unexpected file magic 0x{magic:04X}, expected 0x{FILE_MAGIC:04X}')
        frame_count = cursor.read_word()
        width = cursor.read_word()
        height = cursor.read_word()
        color_depth_offset = cursor.offset
        color_depth = cursor.read_word()

        flags = cursor.read_dword()
        cursor.skip(2)  # deprecated speed
        cursor.skip(8)
        transparent_index = cursor.read_byte()
        cursor.skip(3)

        color_count = cursor.read_word()
        pixel_width = cursor.read_byte()
        pixel_height = cursor.read_byte()
        cursor.skip(92)  # grid and reserved bytes

        self._builder.set_header(
            file_size=file_size,
            frame_count=frame_count,
            width=width,
            height=height,
            color_depth=color_depth,
            flags=flags,
            transparent_index=transparent_index,
            color_count=color_count,
            pixel_ratio=(pixel_width or 1, pixel_height or 1),
            color_depth_offset=color_depth_offset,
        )
        return frame_count

    def _read_frame(self, frame_index: int) -> None:
        cursor = self._cursor
        frame_offset = cursor.offset
        byte_size = cursor.read_dword()
        magic = cursor.read_word()
        if magic != FRAME_MAGIC:
            logger.warning(f'Frame {frame_index}: unexpected magic 0x{magic:04X} at {frame_offset}')
        legacy_chunk_count = cursor.read_word()
        duration_ms = cursor.read_word()
        cursor.skip(2)
        chunk_count = cursor.read_dword()
        if chunk_count == 0:
            chunk_count = legacy_chunk_count

        self._builder.begin_frame(duration_ms, byte_size)
        for _ in range(chunk_count):
            self._chunks.decode(cursor, frame_index)
        self._builder.end_frame()

        read = cursor.offset - frame_offset
        if byte_size >= FRAME_HEADER_SIZE:
            if read > byte_size:
                raise StructuralError(
                    f'Frame {frame_index} declares {byte_size} bytes but its chunks span {read}',
                    offset=frame_offset,
                )
            cursor.skip(byte_size - read)


def parse(data: bytes) -> Document:
    """
    Decode an Aseprite file held in memory.

    Args:
        data: The complete file contents

    Returns:
        Immutable Document

    Raises:
        StructuralError: If the bytes are truncated or malformed
    """
    return AsepriteDecoder(data).decode()
