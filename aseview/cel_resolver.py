from dataclasses import dataclass, field
from typing import List

from .document import Cel, DirectCel, Document, Frame, LinkedCel
from .errors import LinkedCelError


@dataclass(frozen=True)
class ResolvedCel:
    """Pixel block a cel draws, after following any links."""

    width: int
    height: int
    pixel_bytes: bytes = field(repr=False)


class CelResolver(object):
    """
    Follows linked cels to the direct cel that owns the pixels.

    A linked cel is a reference by `(linked_frame_index, layer_index)`. The
    walk is bounded by the number of frames in the document, so a malformed
    chain always ends in a LinkedCelError.
    """

    def __init__(self, document: Document):
        self._frames = document.frames

    def resolve(self, frame: Frame, cel: Cel) -> ResolvedCel:
        if isinstance(cel, DirectCel):
            return ResolvedCel(cel.width, cel.height, cel.pixel_bytes)

        chain: List[int] = [frame.index]
        max_hops = len(self._frames)
        current: Cel = cel

        while isinstance(current, LinkedCel):
            target_index = current.linked_frame_index
            chain.append(target_index)

            if len(chain) - 1 > max_hops:
                raise LinkedCelError(
                    f'Linked cel for layer {cel.layer_index} exceeds {max_hops} hops',
                    chain=chain,
                )
            if not 0 <= target_index < len(self._frames):
                raise LinkedCelError(
                    f'Linked cel for layer {cel.layer_index} points at missing frame {target_index}',
                    chain=chain,
                )
            if target_index in chain[:-1]:
                raise LinkedCelError(
                    f'Linked cel for layer {cel.layer_index} forms a cycle',
                    chain=chain,
                )

            target = self._frames[target_index].cel_for_layer(cel.layer_index)
            if target is None:
                raise LinkedCelError(
                    f'Frame {target_index} has no cel for layer {cel.layer_index}',
                    chain=chain,
                )
            current = target

        return ResolvedCel(current.width, current.height, current.pixel_bytes)
