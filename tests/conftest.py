"""
Pytest fixtures for aseview tests
"""

import pytest

from ase_factory import AseFileBuilder, cel_chunk, layer_chunk, linked_cel_chunk


@pytest.fixture
def rgba_block() -> bytes:
    """A 2x2 RGBA block with four distinct opaque colors."""
    return bytes([
        255, 0, 0, 255,
        0, 255, 0, 255,
        0, 0, 255, 255,
        255, 255, 255, 255,
    ])


@pytest.fixture
def single_cel_file(rgba_block) -> bytes:
    """One 32-bit layer, one frame, one raw 2x2 cel at (3, 2) on an 8x8 canvas."""
    return (
        AseFileBuilder(width=8, height=8)
        .add_frame(layer_chunk('Background'), cel_chunk(0, 3, 2, 2, 2, rgba_block))
        .build()
    )


@pytest.fixture
def linked_file(rgba_block) -> bytes:
    """Three frames; frames 1 and 2 link back to frame 0's cel on layer 0."""
    return (
        AseFileBuilder(width=4, height=4)
        .add_frame(layer_chunk('Body'), cel_chunk(0, 1, 1, 2, 2, rgba_block, compressed=True))
        .add_frame(linked_cel_chunk(0, 0, x=1, y=1))
        .add_frame(linked_cel_chunk(0, 0, x=1, y=1))
        .build()
    )
