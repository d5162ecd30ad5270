from enum import Enum, IntEnum


FILE_MAGIC = 0xA5E0
FRAME_MAGIC = 0xF1FA

HEADER_SIZE = 128
FRAME_HEADER_SIZE = 16
CHUNK_HEADER_SIZE = 6

# Bytes a cel chunk spends before its pixel payload (chunk header included)
CEL_PAYLOAD_OFFSET = 26


class ChunkType(IntEnum):
    OLD_PALETTE_0x0004 = 0x0004
    OLD_PALETTE_0x0011 = 0x0011
    LAYER = 0x2004
    CEL = 0x2005
    CEL_EXTRA = 0x2006
    COLOR_PROFILE = 0x2007
    EXTERNAL_FILES = 0x2008
    MASK = 0x2016  # deprecated
    PATH = 0x2017  # never used
    TAGS = 0x2018
    PALETTE = 0x2019
    USER_DATA = 0x2020
    SLICE = 0x2022
    TILESET = 0x2023


class CelType(IntEnum):
    RAW = 0
    LINKED = 1
    COMPRESSED = 2
    COMPRESSED_TILEMAP = 3


class LayerType(IntEnum):
    NORMAL = 0
    GROUP = 1
    TILEMAP = 2  # 256x256 tile grid referencing a tileset


class LayerFlags(IntEnum):
    VISIBLE = 1
    EDITABLE = 2
    LOCK_MOVEMENT = 4
    BACKGROUND = 8
    PREFER_LINKED_CELS = 16
    COLLAPSED = 32
    REFERENCE = 64


class HeaderFlags(IntEnum):
    LAYER_OPACITY_VALID = 1
    GROUP_OPACITY_VALID = 2
    LAYERS_HAVE_UUID = 4


class LoopDirection(Enum):
    FORWARD = 0
    REVERSE = 1
    PING_PONG = 2
    PING_PONG_REVERSE = 3

    @property
    def label(self) -> str:
        return self.name.lower().replace('_', '-')


class ColorProfileType(IntEnum):
    NONE = 0
    SRGB = 1
    ICC = 2


# Bytes per pixel for each supported color depth
BYTES_PER_PIXEL = {
    32: 4,  # RGBA
    16: 2,  # grayscale value + alpha
    8: 1,   # palette index
}
