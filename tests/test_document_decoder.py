"""
Tests for parsing Aseprite bytes into a Document.
"""

import struct

import pytest

from aseview import parse
from aseview.const import ColorProfileType, LayerType, LoopDirection
from aseview.document import DirectCel, LinkedCel
from aseview.document_decoder import AsepriteDecoder
from aseview.errors import ChunkSizeMismatch, OutOfBounds, ParseError, StructuralError

from ase_factory import (
    AseFileBuilder,
    cel_chunk,
    chunk,
    color_profile_chunk,
    layer_chunk,
    linked_cel_chunk,
    palette_chunk,
    raw_compressed_cel_chunk,
    tags_chunk,
)


class TestHeader:
    """Header fields and frame/layer bookkeeping."""

    def test_header_fields(self, single_cel_file):
        document = parse(single_cel_file)

        assert document.width == 8
        assert document.height == 8
        assert document.color_depth == 32
        assert document.frame_count == 1
        assert document.file_size == len(single_cel_file)
        assert document.pixel_ratio == (1, 1)
        assert document.palette is None
        assert document.anomalies == ()

    def test_frame_count_matches_header(self, ase_builder_frames):
        document = parse(ase_builder_frames)
        assert len(document.frames) == document.frame_count == 3
        assert [frame.index for frame in document.frames] == [0, 1, 2]
        assert [frame.duration_ms for frame in document.frames] == [100, 50, 200]

    def test_every_cel_refers_to_a_layer(self, ase_builder_frames):
        document = parse(ase_builder_frames)
        for frame in document.frames:
            for cel in frame.cels:
                assert cel.layer_index < len(document.layers)

    def test_unsupported_color_depth(self):
        data = AseFileBuilder(color_depth=24).add_frame().build()
        with pytest.raises(ParseError) as exc_info:
            parse(data)
        # color depth word follows size, magic, frames, width and height
        assert exc_info.value.offset == 12
        assert 'byte offset 12' in str(exc_info.value)

    def test_truncated_file(self, single_cel_file):
        with pytest.raises(OutOfBounds) as exc_info:
            parse(single_cel_file[:-5])
        assert exc_info.value.offset is not None

    def test_truncated_header(self):
        with pytest.raises(StructuralError):
            parse(b'\x00' * 40)

    def test_legacy_chunk_count_used_when_new_count_is_zero(self, single_cel_file):
        data = bytearray(single_cel_file)
        # new chunk count dword of the first frame header
        struct.pack_into('<I', data, 128 + 12, 0)

        document = parse(bytes(data))
        assert len(document.layers) == 1
        assert len(document.frames[0].cels) == 1

    def test_decode_file(self, tmp_path, single_cel_file):
        path = tmp_path / 'sprite.aseprite'
        path.write_bytes(single_cel_file)

        document = AsepriteDecoder.decode_file(str(path))
        assert len(document.frames) == 1

    def test_document_is_read_only(self, single_cel_file):
        document = parse(single_cel_file)
        with pytest.raises(AttributeError):
            document.width = 3
        assert isinstance(document.frames, tuple)
        assert isinstance(document.layers, tuple)


@pytest.fixture
def ase_builder_frames(rgba_block) -> bytes:
    return (
        AseFileBuilder(width=4, height=4)
        .add_frame(layer_chunk('Back'), layer_chunk('Front'),
                   cel_chunk(0, 0, 0, 2, 2, rgba_block), cel_chunk(1, 2, 2, 2, 2, rgba_block))
        .add_frame(cel_chunk(1, 0, 0, 2, 2, rgba_block), duration=50)
        .add_frame(duration=200)
        .build()
    )


class TestLayers:
    """Layer chunk decoding."""

    def test_layers_in_declaration_order(self):
        data = (
            AseFileBuilder()
            .add_frame(layer_chunk('Back', flags=3), layer_chunk('Group', layer_type=1),
                       layer_chunk('Child', child_level=1, blend_mode=4, opacity=128))
            .build()
        )
        layers = parse(data).layers

        assert [layer.index for layer in layers] == [0, 1, 2]
        assert [layer.name for layer in layers] == ['Back', 'Group', 'Child']
        assert layers[1].type == LayerType.GROUP
        assert layers[2].child_level == 1
        assert layers[2].blend_mode == 4
        assert layers[2].opacity == 128
        assert layers[0].raw_flags == 3

    def test_visibility_flag_normalized(self):
        data = AseFileBuilder().add_frame(layer_chunk('Shown', flags=1), layer_chunk('Hidden', flags=2)).build()
        shown, hidden = parse(data).layers

        assert shown.visible is True
        assert hidden.visible is False
        assert hidden.raw_flags == 2

    def test_tilemap_layer_reads_tileset_index(self):
        payload = struct.pack('<HHHHHHB3x', 1, 2, 0, 0, 0, 0, 255) + struct.pack('<H', 3) + b'map'
        payload += struct.pack('<I', 7)
        data = AseFileBuilder().add_frame(chunk(0x2004, payload)).build()

        layer = parse(data).layers[0]
        assert layer.type == LayerType.TILEMAP
        assert layer.tileset_index == 7

    def test_layer_uuid_skipped_when_header_flag_set(self):
        payload = struct.pack('<HHHHHHB3x', 1, 0, 0, 0, 0, 0, 255) + struct.pack('<H', 1) + b'L'
        payload += bytes(range(16))
        data = AseFileBuilder(flags=4).add_frame(chunk(0x2004, payload)).build()

        assert parse(data).layers[0].name == 'L'


class TestChunks:
    """Chunk dispatch, skipping and size enforcement."""

    def test_unknown_chunk_is_skipped(self, rgba_block):
        data = (
            AseFileBuilder()
            .add_frame(layer_chunk('A'), chunk(0x2022, b'slice data'), chunk(0x7777, b''),
                       cel_chunk(0, 0, 0, 2, 2, rgba_block))
            .build()
        )
        document = parse(data)
        assert len(document.layers) == 1
        assert len(document.frames[0].cels) == 1

    def test_known_chunk_with_leftover_bytes(self):
        payload = struct.pack('<HHHHHHB3x', 1, 0, 0, 0, 0, 0, 255) + struct.pack('<H', 1) + b'L'
        data = AseFileBuilder().add_frame(chunk(0x2004, payload + b'\x00\x00')).build()

        with pytest.raises(ChunkSizeMismatch) as exc_info:
            parse(data)
        assert exc_info.value.offset == 128 + 16

    def test_known_chunk_overrunning_declared_size(self):
        payload = struct.pack('<HHHHHHB3x', 1, 0, 0, 0, 0, 0, 255) + struct.pack('<H', 4) + b'Name'
        data = AseFileBuilder().add_frame(chunk(0x2004, payload, size=len(payload) + 6 - 2)).build()

        with pytest.raises(StructuralError):
            parse(data)

    def test_chunk_size_smaller_than_header(self):
        data = AseFileBuilder().add_frame(chunk(0x2004, b'', size=3)).build()
        with pytest.raises(StructuralError):
            parse(data)

    def test_color_profile(self):
        data = AseFileBuilder().add_frame(color_profile_chunk(1, flags=1, gamma=2.2)).build()
        profile = parse(data).color_profile

        assert profile.type == ColorProfileType.SRGB
        assert profile.flags == 1
        assert profile.gamma == pytest.approx(2.2)
        assert profile.icc is None

    def test_icc_color_profile(self):
        data = AseFileBuilder().add_frame(color_profile_chunk(2, icc=b'ICCDATA')).build()
        profile = parse(data).color_profile

        assert profile.type == ColorProfileType.ICC
        assert profile.icc == b'ICCDATA'

    def test_tags(self):
        data = (
            AseFileBuilder()
            .add_frame(tags_chunk([(0, 1, 0, 'walk'), (2, 3, 2, 'jump')], color=(0x12, 0x34, 0x56)))
            .add_frame()
            .build()
        )
        walk, jump = parse(data).tags

        assert (walk.from_frame, walk.to_frame, walk.name) == (0, 1, 'walk')
        assert walk.loop_direction == LoopDirection.FORWARD
        assert jump.loop_direction == LoopDirection.PING_PONG
        assert jump.loop_direction.label == 'ping-pong'
        assert jump.color == '#123456'

    def test_tag_with_unknown_direction(self):
        document = parse(AseFileBuilder().add_frame(tags_chunk([(0, 0, 9, 'odd')])).build())

        assert document.tags[0].loop_direction == LoopDirection.FORWARD
        assert [a.kind for a in document.anomalies] == ['loop_direction']

    def test_truncated_tag_chunk(self):
        tags = tags_chunk([(0, 0, 0, 'idle')])
        data = AseFileBuilder().add_frame(chunk(0x2018, tags[6:], size=len(tags) - 4)).build()

        with pytest.raises(StructuralError):
            parse(data)


class TestPalette:
    """Palette chunk decoding."""

    def test_palette_colors_and_names(self):
        data = (
            AseFileBuilder(color_depth=8)
            .add_frame(palette_chunk([(0, 0, 0, 0), (10, 20, 30, 255)], names=[None, 'navy']))
            .build()
        )
        palette = parse(data).palette

        assert len(palette) == 2
        assert palette[1].rgba == (10, 20, 30, 255)
        assert palette[1].name == 'navy'
        assert palette[0].name is None

    def test_partial_palette_update(self):
        data = (
            AseFileBuilder(color_depth=8)
            .add_frame(palette_chunk([(1, 1, 1, 255)] * 4))
            .add_frame(palette_chunk([(9, 9, 9, 255)], first=2, size=4))
            .build()
        )
        palette = parse(data).palette

        assert len(palette) == 4
        assert palette[1].rgba == (1, 1, 1, 255)
        assert palette[2].rgba == (9, 9, 9, 255)

    def test_indexed_document_without_palette_chunk(self):
        document = parse(AseFileBuilder(color_depth=8).add_frame().build())
        assert document.palette is not None
        assert len(document.palette) == 0

    def test_rgba_document_with_palette_chunk(self):
        document = parse(AseFileBuilder().add_frame(palette_chunk([(5, 5, 5, 255)])).build())
        assert len(document.palette) == 1


class TestCels:
    """Cel chunk decoding."""

    def test_raw_cel(self, single_cel_file, rgba_block):
        cel = parse(single_cel_file).frames[0].cels[0]

        assert isinstance(cel, DirectCel)
        assert (cel.layer_index, cel.x, cel.y, cel.width, cel.height) == (0, 3, 2, 2, 2)
        assert cel.pixel_bytes == rgba_block
        assert cel.compressed is False

    def test_negative_position(self, rgba_block):
        data = AseFileBuilder().add_frame(layer_chunk('A'), cel_chunk(0, -1, -3, 2, 2, rgba_block)).build()
        cel = parse(data).frames[0].cels[0]
        assert (cel.x, cel.y) == (-1, -3)

    def test_compressed_cel_is_inflated(self, linked_file, rgba_block):
        cel = parse(linked_file).frames[0].cels[0]

        assert cel.compressed is True
        assert cel.pixel_bytes == rgba_block

    def test_linked_cel(self, linked_file):
        cel = parse(linked_file).frames[2].cels[0]

        assert isinstance(cel, LinkedCel)
        assert cel.linked_frame_index == 0
        assert (cel.x, cel.y) == (1, 1)

    def test_corrupt_compressed_payload_falls_back_to_raw(self):
        garbage = bytes(range(16))
        data = AseFileBuilder().add_frame(layer_chunk('A'), raw_compressed_cel_chunk(0, 2, 2, garbage)).build()
        document = parse(data)

        assert document.frames[0].cels[0].pixel_bytes == garbage
        assert [a.kind for a in document.anomalies] == ['decompression']
        assert document.anomalies[0].frame_index == 0
        assert document.anomalies[0].layer_index == 0

    def test_short_payload_records_anomaly(self):
        data = AseFileBuilder().add_frame(layer_chunk('A'), cel_chunk(0, 0, 0, 2, 2, b'\xff' * 6)).build()
        document = parse(data)

        assert len(document.frames[0].cels[0].pixel_bytes) == 6
        assert [a.kind for a in document.anomalies] == ['shortfall']

    def test_cel_for_missing_layer_records_anomaly(self, rgba_block):
        data = AseFileBuilder().add_frame(layer_chunk('A'), cel_chunk(4, 0, 0, 2, 2, rgba_block)).build()
        document = parse(data)

        assert [a.kind for a in document.anomalies] == ['layer_index']
        assert document.anomalies[0].layer_index == 4

    def test_unsupported_cel_type_is_skipped(self):
        payload = struct.pack('<HhhBH7xHH', 0, 0, 0, 255, 3, 1, 1) + b'tiles'
        data = AseFileBuilder().add_frame(layer_chunk('A'), chunk(0x2005, payload)).build()
        document = parse(data)

        assert document.frames[0].cels == ()
        assert [a.kind for a in document.anomalies] == ['unsupported_cel']

    def test_linked_cel_chunk_size(self):
        data = AseFileBuilder().add_frame(layer_chunk('A')).add_frame(linked_cel_chunk(0, 0)).build()
        assert isinstance(parse(data).frames[1].cels[0], LinkedCel)
