from typing import Dict, List, Optional, Tuple, Union

from PIL import Image

from .compositor import composite_frame
from .config import Config
from .document import Document
from .document_decoder import AsepriteDecoder, parse
from .errors import DecodeAnomaly
from .visibility import VisibilityOverrides, list_layers


class AsepriteViewer(object):
    """
    An open Aseprite document together with the viewer's layer overrides.

    The viewer is the caller-owned "current document" of an interactive
    consumer. Hiding or showing layers only touches the viewer's overrides;
    the Document itself stays immutable and can be shared.

    Can be created in two ways:
    1. From an already parsed Document
    2. From a file path or raw bytes (see from_file / from_bytes)
    """

    @property
    def document(self) -> Document:
        return self._document

    @property
    def overrides(self) -> VisibilityOverrides:
        return self._overrides

    @property
    def total_frames(self) -> int:
        return len(self._document.frames)

    @property
    def width(self) -> int:
        return self._document.width

    @property
    def height(self) -> int:
        return self._document.height

    @property
    def warnings(self) -> List[DecodeAnomaly]:
        """
        Anomalies found while parsing, plus those found while compositing.

        Compositing the same frame again does not add duplicates: each
        composite-time anomaly is kept once per (frame, layer, kind).
        """
        return list(self._document.anomalies) + list(self._warnings.values())

    def __init__(self, document: Document, overrides: Optional[VisibilityOverrides] = None):
        self._document = document
        self._overrides = overrides if overrides is not None else VisibilityOverrides()
        self._warnings: Dict[Tuple[int, Optional[int], str], DecodeAnomaly] = {}

    @classmethod
    def from_file(cls, file_path: str) -> 'AsepriteViewer':
        return cls(AsepriteDecoder.decode_file(file_path))

    @classmethod
    def from_bytes(cls, data: bytes) -> 'AsepriteViewer':
        return cls(parse(data))

    def list_layers(self) -> List[Dict]:
        return list_layers(self._document, self._overrides)

    def set_layer_visible(self, layer_index: int, visible: bool) -> None:
        self._overrides.set_layer_visible(layer_index, visible)

    def reset_layer_visible(self) -> None:
        self._overrides.reset_layer_visible()

    def toggle_layer_visible(self, layer_index: int) -> bool:
        return self._overrides.toggle_layer_visible(self._document, layer_index)

    def show_all_layers(self) -> None:
        self._overrides.show_all_layers(self._document)

    def hide_all_layers(self) -> None:
        self._overrides.hide_all_layers(self._document)

    def composite(self, frame_index: int):
        """Composite a frame into an RGBA numpy array of shape (height, width, 4)."""
        found: List[DecodeAnomaly] = []
        canvas = composite_frame(self._document, frame_index, self._overrides, found)
        for anomaly in found:
            self._warnings[(anomaly.frame_index, anomaly.layer_index, anomaly.kind)] = anomaly
        return canvas

    def frame_duration(self, frame_index: int) -> int:
        """Frame duration in milliseconds, falling back to Config.DEFAULT_FRAME_DURATION."""
        return self._document.frames[frame_index].duration_ms or Config.DEFAULT_FRAME_DURATION

    def get_frame_image(
        self,
        frame_index: int,
        scale: Union[int, float] = 1,
        target_width: int = None,
        target_height: int = None,
    ) -> Image.Image:
        """
        Get Pillow Image of a frame.

        Args:
            frame_index: Frame number (0-indexed)
            scale: Optional scale factor
            target_width: Optional target width
            target_height: Optional target height

        Returns:
            PIL Image in RGBA mode
        """
        img = Image.fromarray(self.composite(frame_index))
        return self._resize(
            img, scale=scale, target_width=target_width, target_height=target_height
        )

    def _resize(
        self,
        img: Image.Image,
        scale: Union[int, float] = 1,
        target_width: int = None,
        target_height: int = None,
    ) -> Image.Image:
        """
        Resize a composited frame with nearest-neighbour sampling.

        Explicit target dimensions win over `scale`. When only one target
        dimension is given, the other follows the canvas aspect ratio.
        Computed dimensions never drop below 1 pixel.

        Args:
            img: RGBA frame image
            scale: Scale factor (default 1, no scaling)
            target_width: Optional explicit output width
            target_height: Optional explicit output height

        Returns:
            The resized image, or `img` itself when no resize was requested
        """
        if target_width is not None and target_height is not None:
            return img.resize((target_width, target_height), Image.NEAREST)
        elif target_width is not None:
            new_height = max(1, int(img.height * target_width / img.width))
            return img.resize((target_width, new_height), Image.NEAREST)
        elif target_height is not None:
            new_width = max(1, int(img.width * target_height / img.height))
            return img.resize((new_width, target_height), Image.NEAREST)
        elif scale != 1:
            new_width = max(1, int(img.width * scale))
            new_height = max(1, int(img.height * scale))
            return img.resize((new_width, new_height), Image.NEAREST)
        return img

    def save_frame_png(
        self,
        frame_index: int,
        output_path: str,
        scale: Union[int, float] = 1,
        target_width: int = None,
        target_height: int = None,
    ) -> None:
        img = self.get_frame_image(
            frame_index, scale=scale, target_width=target_width, target_height=target_height
        )
        img.save(output_path, format='PNG')

    def save_to_webp(
        self,
        output_path: str,
        scale: Union[int, float] = 1,
        target_width: int = None,
        target_height: int = None,
        frame_indexes=None,
    ) -> None:
        """
        Convert the animation to an animated WebP file.

        Args:
            output_path: Path to save WebP file
            scale: Optional scale factor
            target_width: Optional target width
            target_height: Optional target height
            frame_indexes: Optional iterable of frames to include (default: all)
        """
        if frame_indexes is None:
            frame_indexes = range(self.total_frames)
        webp_frames = []
        durations = []
        for frame_index in frame_indexes:
            webp_frames.append(
                self.get_frame_image(
                    frame_index,
                    scale=scale,
                    target_width=target_width,
                    target_height=target_height,
                )
            )
            durations.append(self.frame_duration(frame_index))

        if not webp_frames:
            raise ValueError('Document has no frames to export')

        webp_frames[0].save(
            output_path,
            format='WEBP',
            append_images=webp_frames[1:],
            duration=durations,
            save_all=True,
            loop=Config.WEBP_LOOP,
            disposal=Config.WEBP_DISPOSAL,
            lossless=Config.WEBP_LOSSLESS,
        )
