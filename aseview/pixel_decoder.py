from typing import List, Optional

import numpy as np

from .const import BYTES_PER_PIXEL
from .document import Palette
from .errors import DecodeAnomaly


def palette_lut(palette: Optional[Palette]) -> np.ndarray:
    """
    Build a 256 entry RGBA lookup table from a palette.

    Indexes the palette does not define map to transparent black.
    """
    lut = np.zeros((256, 4), dtype=np.uint8)
    if palette is not None:
        for index, color in enumerate(palette.colors[:256]):
            lut[index] = color.rgba
    return lut


def decode_pixels(
    color_depth: int,
    width: int,
    height: int,
    raw_bytes: bytes,
    palette: Optional[Palette] = None,
    anomalies: Optional[List[DecodeAnomaly]] = None,
) -> np.ndarray:
    """
    Expand cel pixel bytes into canonical RGBA.

    Args:
        color_depth: 32 (RGBA), 16 (value + alpha) or 8 (palette index)
        width: Cel width in pixels
        height: Cel height in pixels
        raw_bytes: Uncompressed pixel bytes, row-major
        palette: Palette used to resolve 8-bit indexes
        anomalies: Optional list that receives recoverable problems

    Returns:
        numpy array of shape (height, width, 4) with dtype uint8. Pixels the
        input does not cover are transparent black.
    """
    bpp = BYTES_PER_PIXEL.get(color_depth)
    if bpp is None:
        raise ValueError(f'Unsupported color depth: {color_depth}')

    pixel_count = width * height
    expected = pixel_count * bpp
    available = min(len(raw_bytes), expected)

    # Whole pixels only for 16 and 8 bit; a trailing partial pixel counts as missing
    covered = available // bpp
    if available:
        source = np.frombuffer(raw_bytes, dtype=np.uint8, count=available)
    else:
        source = np.zeros(0, dtype=np.uint8)

    rgba = np.zeros((pixel_count, 4), dtype=np.uint8)
    if color_depth == 32:
        flat = rgba.reshape(-1)
        flat[:available] = source
    elif color_depth == 16:
        pairs = source[: covered * 2].reshape(covered, 2)
        rgba[:covered, 0] = pairs[:, 0]
        rgba[:covered, 1] = pairs[:, 0]
        rgba[:covered, 2] = pairs[:, 0]
        rgba[:covered, 3] = pairs[:, 1]
    else:
        palette_size = len(palette) if palette is not None else 0
        rgba[:covered] = palette_lut(palette)[source]
        out_of_range = int(np.count_nonzero(source >= palette_size))
        if out_of_range and anomalies is not None:
            anomalies.append(
                DecodeAnomaly(
                    'palette_index',
                    f'{out_of_range} pixels use indexes outside the '
                    f'{palette_size} color palette, drawn transparent',
                )
            )

    if available < expected and anomalies is not None:
        anomalies.append(
            DecodeAnomaly(
                'shortfall',
                f'{width}x{height} block has {len(raw_bytes)} of {expected} bytes, '
                f'zero-filled the rest',
            )
        )

    return rgba.reshape(height, width, 4)
