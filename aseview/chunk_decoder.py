import logging
import zlib
from typing import TYPE_CHECKING, List, Optional

from .byte_cursor import ByteCursor
from .const import (
    BYTES_PER_PIXEL,
    CEL_PAYLOAD_OFFSET,
    CHUNK_HEADER_SIZE,
    CelType,
    ChunkType,
    ColorProfileType,
    HeaderFlags,
    LayerType,
    LoopDirection,
)
from .document import Cel, Color, ColorProfile, DirectCel, Layer, LinkedCel, Tag
from .errors import ChunkSizeMismatch, StructuralError

if TYPE_CHECKING:
    from .document_decoder import DocumentBuilder

logger = logging.getLogger(__name__)


class ChunkDecoder(object):
    """
    Decodes the chunks of a frame and hands the results to a DocumentBuilder.

    Every known chunk is decoded from a cursor confined to its declared size,
    so a chunk can neither read into its neighbour nor leave bytes unread
    without raising a StructuralError.
    """

    def __init__(self, builder: 'DocumentBuilder'):
        self._builder = builder
        self._payload_decoders = {
            ChunkType.LAYER: self._decode_layer,
            ChunkType.CEL: self._decode_cel,
            ChunkType.COLOR_PROFILE: self._decode_color_profile,
            ChunkType.TAGS: self._decode_tags,
            ChunkType.PALETTE: self._decode_palette,
        }

    def decode(self, cursor: ByteCursor, frame_index: int) -> Optional[int]:
        """
        Decode the chunk at the cursor position.

        Args:
            cursor: Cursor positioned on a chunk header
            frame_index: Frame the chunk belongs to

        Returns:
            The chunk type code, or None when the chunk was skipped
        """
        chunk_offset = cursor.offset
        chunk_size = cursor.read_dword()
        chunk_type = cursor.read_word()

        if chunk_size < CHUNK_HEADER_SIZE:
            raise StructuralError(
                f'Chunk 0x{chunk_type:04X} declares size {chunk_size}, '
                f'smaller than its {CHUNK_HEADER_SIZE}-byte header',
                offset=chunk_offset,
            )

        payload = cursor.take(chunk_size - CHUNK_HEADER_SIZE)
        payload_decoder = self._payload_decoders.get(chunk_type)
        if payload_decoder is None:
            logger.debug(f'Skipping chunk 0x{chunk_type:04X} ({chunk_size} bytes) at {chunk_offset}')
            return None

        logger.debug(f'Chunk 0x{chunk_type:04X} ({chunk_size} bytes) at {chunk_offset}')
        payload_decoder(payload, chunk_size, frame_index)

        if payload.remaining != 0:
            raise ChunkSizeMismatch(
                f'Chunk 0x{chunk_type:04X} declares {chunk_size} bytes '
                f'but only {payload.consumed + CHUNK_HEADER_SIZE} were decoded',
                offset=chunk_offset,
            )
        return chunk_type

    def _decode_layer(self, payload: ByteCursor, chunk_size: int, frame_index: int) -> None:
        flags = payload.read_word()
        layer_type = payload.read_word()
        child_level = payload.read_word()
        payload.skip(4)  # default layer width/height, ignored by the format
        blend_mode = payload.read_word()
        opacity = payload.read_byte()
        payload.skip(3)
        name = payload.read_string()

        tileset_index = None
        if layer_type == LayerType.TILEMAP:
            tileset_index = payload.read_dword()
        if self._builder.flags & HeaderFlags.LAYERS_HAVE_UUID:
            payload.skip(16)

        try:
            layer_type = LayerType(layer_type)
        except ValueError:
            raise StructuralError(f'Unknown layer type {layer_type}', offset=payload.offset)

        self._builder.add_layer(
            Layer(
                index=self._builder.layer_count,
                name=name,
                type=layer_type,
                child_level=child_level,
                blend_mode=blend_mode,
                opacity=opacity,
                raw_flags=flags,
                tileset_index=tileset_index,
            )
        )

    def _decode_cel(self, payload: ByteCursor, chunk_size: int, frame_index: int) -> None:
        layer_index = payload.read_word()
        x = payload.read_short()
        y = payload.read_short()
        opacity = payload.read_byte()
        cel_type = payload.read_word()
        payload.skip(7)  # z-index and reserved bytes

        cel: Cel
        if cel_type == CelType.LINKED:
            cel = LinkedCel(
                layer_index=layer_index,
                x=x,
                y=y,
                opacity=opacity,
                linked_frame_index=payload.read_word(),
            )
        elif cel_type in (CelType.RAW, CelType.COMPRESSED):
            width = payload.read_word()
            height = payload.read_word()
            data = payload.read_bytes(chunk_size - CEL_PAYLOAD_OFFSET)

            compressed = cel_type == CelType.COMPRESSED
            if compressed:
                data = self._inflate(data, frame_index, layer_index)

            expected = width * height * BYTES_PER_PIXEL[self._builder.color_depth]
            if len(data) < expected:
                self._builder.record_anomaly(
                    'shortfall',
                    f'Cel {width}x{height} holds {len(data)} of {expected} pixel bytes, '
                    f'missing pixels are transparent',
                    frame_index=frame_index,
                    layer_index=layer_index,
                )

            cel = DirectCel(
                layer_index=layer_index,
                x=x,
                y=y,
                opacity=opacity,
                width=width,
                height=height,
                pixel_bytes=data,
                compressed=compressed,
            )
        else:
            payload.skip(payload.remaining)
            self._builder.record_anomaly(
                'unsupported_cel',
                f'Cel type {cel_type} is not supported, cel skipped',
                frame_index=frame_index,
                layer_index=layer_index,
            )
            return

        self._builder.add_cel(cel)

    def _inflate(self, data: bytes, frame_index: int, layer_index: int) -> bytes:
        try:
            return zlib.decompress(data)
        except zlib.error as e:
            self._builder.record_anomaly(
                'decompression',
                f'Could not inflate {len(data)} byte payload ({e}), using it as raw pixels',
                frame_index=frame_index,
                layer_index=layer_index,
            )
            return data

    def _decode_color_profile(self, payload: ByteCursor, chunk_size: int, frame_index: int) -> None:
        profile_type = payload.read_word()
        flags = payload.read_word()
        gamma = payload.read_float()
        payload.skip(8)

        icc = None
        if profile_type == ColorProfileType.ICC:
            icc = payload.read_bytes(payload.read_dword())

        try:
            profile_type = ColorProfileType(profile_type)
        except ValueError:
            raise StructuralError(f'Unknown color profile type {profile_type}', offset=payload.offset)

        self._builder.set_color_profile(ColorProfile(profile_type, flags, gamma, icc))

    def _decode_palette(self, payload: ByteCursor, chunk_size: int, frame_index: int) -> None:
        palette_size = payload.read_dword()
        first_index = payload.read_dword()
        last_index = payload.read_dword()
        payload.skip(8)

        if last_index < first_index:
            raise StructuralError(
                f'Palette range {first_index}..{last_index} is inverted',
                offset=payload.offset,
            )

        colors: List[Color] = []
        for _ in range(first_index, last_index + 1):
            entry_flags = payload.read_word()
            r, g, b, a = payload.read_byte(), payload.read_byte(), payload.read_byte(), payload.read_byte()
            name = payload.read_string() if entry_flags & 1 else None
            colors.append(Color(r, g, b, a, name))

        self._builder.update_palette(palette_size, first_index, colors)

    def _decode_tags(self, payload: ByteCursor, chunk_size: int, frame_index: int) -> None:
        tag_count = payload.read_word()
        payload.skip(8)

        for _ in range(tag_count):
            from_frame = payload.read_word()
            to_frame = payload.read_word()
            direction = payload.read_byte()
            payload.skip(8)  # repeat count and reserved bytes
            color = payload.read_bytes(3)
            payload.skip(1)
            name = payload.read_string()

            try:
                loop_direction = LoopDirection(direction)
            except ValueError:
                self._builder.record_anomaly(
                    'loop_direction',
                    f'Tag {name!r} has unknown loop direction {direction}, using forward',
                    frame_index=frame_index,
                )
                loop_direction = LoopDirection.FORWARD

            self._builder.add_tag(
                Tag(
                    from_frame=from_frame,
                    to_frame=to_frame,
                    loop_direction=loop_direction,
                    name=name,
                    color='#' + color.hex(),
                )
            )
