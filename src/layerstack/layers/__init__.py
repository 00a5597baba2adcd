"""
Layer tree model.

- base: the common layer behavior and the leaf variants
- group: LayerGroup, the flat index arithmetic and lookup
- factory: creation of layers from raw host descriptors
"""

from layerstack.layers.base import (
    AdjustmentLayer,
    BackgroundLayer,
    ChangeResult,
    Layer,
    LayerNode,
    LayerType,
    ShapeLayer,
    SmartObjectLayer,
    TextLayer,
)
from layerstack.layers.factory import create_layer
from layerstack.layers.group import LayerGroup, LayerLocation

__all__ = [
    "AdjustmentLayer",
    "BackgroundLayer",
    "ChangeResult",
    "Layer",
    "LayerGroup",
    "LayerLocation",
    "LayerNode",
    "LayerType",
    "ShapeLayer",
    "SmartObjectLayer",
    "TextLayer",
    "create_layer",
]
