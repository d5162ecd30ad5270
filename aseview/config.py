"""
Configuration constants for the aseview decoder and tooling.
"""

import logging


class Config:
    """Configuration constants for the aseview decoder and tooling."""

    # Output directory for rendered frames and animations
    OUTPUT_DIR = 'out'

    # Rendering
    DEFAULT_SCALE = 1
    DEFAULT_FRAME_DURATION = 100  # ms, used when a frame declares 0

    # WebP export (animated, lossless like the rest of the pipeline)
    WEBP_LOSSLESS = True
    WEBP_LOOP = 0  # 0 = loop forever
    WEBP_DISPOSAL = 0

    # Logging
    LOG_LEVEL = logging.INFO
    LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'

    # Layer list display
    UNNAMED_LAYER = 'Layer {number}'
