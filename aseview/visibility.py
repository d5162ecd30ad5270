from typing import Dict, List, Mapping, Optional, Union

from .config import Config
from .document import Document


class VisibilityOverrides(object):
    """
    Caller-held sparse map of layer visibility overrides.

    Only layers that were explicitly shown or hidden have an entry; every
    other layer falls back to the visibility flag stored in the file.
    """

    def __init__(self, overrides: Optional[Mapping[int, bool]] = None):
        self._overrides: Dict[int, bool] = dict(overrides or {})

    def set_layer_visible(self, layer_index: int, visible: bool) -> None:
        self._overrides[layer_index] = bool(visible)

    def reset_layer_visible(self, layer_index: Optional[int] = None) -> None:
        """Drop the override for one layer, or all overrides when no index is given."""
        if layer_index is None:
            self._overrides.clear()
        else:
            self._overrides.pop(layer_index, None)

    def toggle_layer_visible(self, document: Document, layer_index: int) -> bool:
        visible = not LayerVisibilityPolicy(document, self).effective_visible(layer_index)
        self.set_layer_visible(layer_index, visible)
        return visible

    def show_all_layers(self, document: Document) -> None:
        for layer in document.layers:
            self._overrides[layer.index] = True

    def hide_all_layers(self, document: Document) -> None:
        for layer in document.layers:
            self._overrides[layer.index] = False

    def get(self, layer_index: int) -> Optional[bool]:
        return self._overrides.get(layer_index)

    def as_dict(self) -> Dict[int, bool]:
        return dict(self._overrides)

    def __contains__(self, layer_index: int) -> bool:
        return layer_index in self._overrides

    def __len__(self) -> int:
        return len(self._overrides)


OverridesLike = Union[VisibilityOverrides, Mapping[int, bool], None]


class LayerVisibilityPolicy(object):
    """
    Effective layer visibility: a caller override when one is set, else the
    visibility flag parsed from the file.
    """

    def __init__(self, document: Document, overrides: OverridesLike = None):
        self._document = document
        if isinstance(overrides, VisibilityOverrides):
            self._overrides = overrides.as_dict()
        else:
            self._overrides = dict(overrides or {})

    def effective_visible(self, layer_index: int) -> bool:
        layer = self._document.layer(layer_index)
        if layer is None:
            return False
        override = self._overrides.get(layer_index)
        if override is not None:
            return override
        return layer.visible


def list_layers(document: Document, overrides: OverridesLike = None) -> List[Dict]:
    """
    Describe the layers of a document for display.

    Args:
        document: Parsed document
        overrides: Optional visibility overrides to apply

    Returns:
        One dict per layer in declaration order with keys index, name,
        visible, opacity, blend_mode and type
    """
    policy = LayerVisibilityPolicy(document, overrides)
    return [
        {
            'index': layer.index,
            'name': layer.name or Config.UNNAMED_LAYER.format(number=layer.index + 1),
            'visible': policy.effective_visible(layer.index),
            'opacity': layer.opacity,
            'blend_mode': layer.blend_mode,
            'type': layer.type.name.lower(),
        }
        for layer in document.layers
    ]
