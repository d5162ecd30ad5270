import logging
from typing import List, Optional

import numpy as np

from .cel_resolver import CelResolver
from .document import Document
from .errors import CompositeError, DecodeAnomaly
from .pixel_decoder import decode_pixels
from .visibility import LayerVisibilityPolicy, OverridesLike

logger = logging.getLogger(__name__)


def blit(canvas: np.ndarray, block: np.ndarray, x: int, y: int) -> None:
    """
    Copy an RGBA block onto the canvas at (x, y), clipped to the canvas.

    Pixels with nonzero alpha replace what is underneath (straight alpha, no
    blending); fully transparent pixels leave the canvas untouched.
    """
    canvas_height, canvas_width = canvas.shape[:2]
    block_height, block_width = block.shape[:2]

    left, top = max(x, 0), max(y, 0)
    right = min(x + block_width, canvas_width)
    bottom = min(y + block_height, canvas_height)
    if left >= right or top >= bottom:
        return

    source = block[top - y : bottom - y, left - x : right - x]
    opaque = source[..., 3] > 0
    canvas[top:bottom, left:right][opaque] = source[opaque]


def composite_frame(
    document: Document,
    frame_index: int,
    visibility_overrides: OverridesLike = None,
    warnings: Optional[List[DecodeAnomaly]] = None,
) -> np.ndarray:
    """
    Paint the visible cels of a frame into a new canvas-sized RGBA buffer.

    Args:
        document: Parsed document, left untouched
        frame_index: 0-based frame number
        visibility_overrides: Optional per-layer visibility overrides
        warnings: Optional list that receives decode anomalies found while painting

    Returns:
        numpy array of shape (height, width, 4), dtype uint8

    Raises:
        CompositeError: If frame_index is out of range
        LinkedCelError: If a linked cel chain is cyclic or dangling
    """
    if not 0 <= frame_index < len(document.frames):
        raise CompositeError(
            f'Frame {frame_index} out of range, document has {len(document.frames)} frames'
        )

    frame = document.frames[frame_index]
    policy = LayerVisibilityPolicy(document, visibility_overrides)
    resolver = CelResolver(document)
    canvas = np.zeros((document.height, document.width, 4), dtype=np.uint8)

    for cel in sorted(frame.cels, key=lambda c: c.layer_index):
        if not policy.effective_visible(cel.layer_index):
            continue

        resolved = resolver.resolve(frame, cel)
        found: List[DecodeAnomaly] = []
        block = decode_pixels(
            document.color_depth,
            resolved.width,
            resolved.height,
            resolved.pixel_bytes,
            document.palette,
            found,
        )
        for anomaly in found:
            anomaly = DecodeAnomaly(anomaly.kind, anomaly.message, frame_index, cel.layer_index)
            logger.warning(str(anomaly))
            if warnings is not None:
                warnings.append(anomaly)

        blit(canvas, block, cel.x, cel.y)

    return canvas
