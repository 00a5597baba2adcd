"""
Creation of layers from raw host descriptors.

The set of layer kinds is closed: every LayerType maps to exactly one
class. A descriptor without a type tag and without a parent is the
document itself and becomes the root group.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import layerstack.constants as constants
import layerstack.errors as errors
import layerstack.layers.base as base
import layerstack.layers.group as layer_group

_logger = _logging.getLogger(__name__)


def layer_class_for(layer_type: base.LayerType) -> type[base.LayerNode]:
    """
    Return the class that implements a layer type.

    Args:
        layer_type: The type tag.

    Returns:
        The LayerNode subclass for that tag.
    """
    classes: dict[base.LayerType, type[base.LayerNode]] = {
        base.LayerType.LAYER: base.Layer,
        base.LayerType.BACKGROUND: base.BackgroundLayer,
        base.LayerType.SHAPE: base.ShapeLayer,
        base.LayerType.TEXT: base.TextLayer,
        base.LayerType.ADJUSTMENT: base.AdjustmentLayer,
        base.LayerType.SMART_OBJECT: base.SmartObjectLayer,
        base.LayerType.GROUP: layer_group.LayerGroup,
    }
    return classes[layer_type]


def parse_layer_type(value: _typing.Any) -> base.LayerType:
    """
    Convert a raw type tag to a LayerType.

    Raises:
        UnknownLayerTypeError: If the tag is not a known layer type.
    """
    try:
        return base.LayerType(value)
    except ValueError:
        raise errors.UnknownLayerTypeError(value) from None


def create_layer(
    parent: layer_group.LayerGroup | None,
    raw: base.RawLayer,
) -> base.LayerNode:
    """
    Create the layer described by a raw descriptor.

    Group descriptors build their whole subtree from their ``layers``.

    Args:
        parent: Group the layer is created for, or None for the root.
        raw: Raw layer descriptor.

    Returns:
        The new layer. It is not yet listed by ``parent``; insert it with
        ``LayerGroup.add_layer_at_index``.

    Raises:
        UnknownLayerTypeError: If the descriptor has an unknown type tag.
    """
    if constants.KEY_TYPE not in raw:
        if parent is None:
            return layer_group.LayerGroup(None, raw)
        _logger.debug(
            "Layer %s has no type tag, creating a plain layer",
            raw.get(constants.KEY_ID),
        )
        return base.Layer(parent, raw)

    layer_type = parse_layer_type(raw[constants.KEY_TYPE])
    return layer_class_for(layer_type)(parent, raw)
