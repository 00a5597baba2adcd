"""
Layer variants of the document tree.

Every layer the host reports shares one attribute set (id, index, name,
bounds, visibility, mask and so on); each variant adds the payload fields
that belong to its kind. Payloads such as pixels, paths or smart object
content are opaque here: they are carried through untouched.

Groups live in layerstack.layers.group; the factory that maps a raw
descriptor to the right class lives in layerstack.layers.factory.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import typing as _typing
import weakref as _weakref

import layerstack.constants as constants
import layerstack.errors as errors

if _typing.TYPE_CHECKING:
    import layerstack.layers.group as layer_group

_logger = _logging.getLogger(__name__)

RawLayer = _typing.Mapping[str, _typing.Any]
"""Raw layer descriptor as delivered by the host (usually decoded JSON)."""

RawChange = _typing.Mapping[str, _typing.Any]
"""Raw change record as delivered by the host."""


class LayerType(_enum.Enum):
    """Type tags the host uses for layers."""

    LAYER = "layer"
    BACKGROUND = "backgroundLayer"
    SHAPE = "shapeLayer"
    TEXT = "textLayer"
    ADJUSTMENT = "adjustmentLayer"
    SMART_OBJECT = "smartObjectLayer"
    GROUP = "layerSection"


@_dataclasses.dataclass(frozen=True)
class ChangeResult:
    """Description of a change a layer applied to itself."""

    op: str
    """Operation tag (currently only "rename")."""

    layer_id: _typing.Any
    """Id of the layer that changed."""

    new_name: str | None = None
    """Name after the change."""

    previous_name: str | None = None
    """Name held immediately before the change."""


class LayerNode:
    """
    Common behavior of every layer in the tree.

    The ``group`` back-reference is non-owning: it is held through a weak
    reference and only used to detach a layer from its owner. Ownership
    flows from a group to its children through ``LayerGroup.layers``.
    """

    layer_type: _typing.ClassVar[LayerType | None] = None

    def __init__(
        self,
        group: layer_group.LayerGroup | None,
        raw: RawLayer,
    ) -> None:
        self._group_ref: _weakref.ReferenceType[layer_group.LayerGroup] | None = None
        self.group = group

        self.id: _typing.Any = raw.get(constants.KEY_ID)
        self.index: int | None = raw.get(constants.KEY_INDEX)
        self.type: LayerType | None = self.layer_type
        self.name: str | None = raw.get(constants.KEY_NAME)
        self.bounds: _typing.Any = raw.get("bounds")
        self.visible: bool | None = raw.get("visible")
        self.clipped: bool | None = raw.get("clipped")
        self.mask: _typing.Any = raw.get("mask")
        self.generator_settings: _typing.Any = raw.get("generatorSettings")

    @property
    def group(self) -> layer_group.LayerGroup | None:
        """Owning group, or None for the root and for detached layers."""
        if self._group_ref is None:
            return None
        return self._group_ref()

    @group.setter
    def group(self, value: layer_group.LayerGroup | None) -> None:
        self._group_ref = _weakref.ref(value) if value is not None else None

    @property
    def is_attached(self) -> bool:
        """Whether the owning group currently lists this layer."""
        owner = self.group
        if owner is None:
            return False
        return any(child is self for child in owner.layers)

    def __str__(self) -> str:
        return f"{self.id}:{self.name or constants.UNNAMED_PLACEHOLDER}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"

    def get_size(self) -> int:
        """Number of flat index slots this layer occupies."""
        return constants.LEAF_SIZE

    def set_name(self, name: str | None) -> ChangeResult | None:
        """
        Rename the layer.

        Args:
            name: The new name.

        Returns:
            A rename ChangeResult, or None if the name did not change.
        """
        if self.name == name:
            return None

        previous_name = self.name
        self.name = name
        return ChangeResult(
            op=constants.RENAME_OP,
            layer_id=self.id,
            new_name=name,
            previous_name=previous_name,
        )

    def detach(self) -> None:
        """
        Remove this layer from its owning group.

        Does nothing for a layer without an owner. The back-reference is
        cleared once the layer is removed.

        Raises:
            DetachError: If the owner does not list this layer.
        """
        owner = self.group
        if owner is None:
            return

        for position, child in enumerate(owner.layers):
            if child.id == self.id:
                break
        else:
            raise errors.DetachError(self.id, owner.id)

        del owner.layers[position]
        self.group = None

    def apply_change(self, change: RawChange) -> list[ChangeResult]:
        """
        Apply the recognized fields of a change record to this layer.

        Args:
            change: Raw change record addressed to this layer.

        Returns:
            Results of the changes that took effect (empty if none did).

        Raises:
            LayerIdMismatchError: If the record is for another layer.
        """
        change_id = change.get(constants.KEY_ID)
        if change_id != self.id:
            raise errors.LayerIdMismatchError(self.id, change_id)

        results: list[ChangeResult] = []

        if constants.KEY_NAME in change:
            result = self.set_name(change[constants.KEY_NAME])
            if result is not None:
                _logger.debug(
                    "Renamed layer %s: %r -> %r",
                    self.id,
                    result.previous_name,
                    result.new_name,
                )
                results.append(result)

        return results

    def summary(self) -> dict[str, _typing.Any]:
        """Short JSON-friendly description used for display."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value if self.type is not None else None,
            "size": self.get_size(),
        }


class Layer(LayerNode):
    """Plain pixel layer."""

    layer_type = LayerType.LAYER

    def __init__(self, group: layer_group.LayerGroup | None, raw: RawLayer) -> None:
        super().__init__(group, raw)
        self.pixels: _typing.Any = raw.get("pixels")


class BackgroundLayer(LayerNode):
    """The document's background layer."""

    layer_type = LayerType.BACKGROUND

    def __init__(self, group: layer_group.LayerGroup | None, raw: RawLayer) -> None:
        super().__init__(group, raw)
        self.protection: _typing.Any = raw.get("protection")
        self.pixels: _typing.Any = raw.get("pixels")


class ShapeLayer(LayerNode):
    layer_type = LayerType.SHAPE

    def __init__(self, group: layer_group.LayerGroup | None, raw: RawLayer) -> None:
        super().__init__(group, raw)
        self.fill: _typing.Any = raw.get("fill")
        self.path: _typing.Any = raw.get("path")


class TextLayer(LayerNode):
    layer_type = LayerType.TEXT

    def __init__(self, group: layer_group.LayerGroup | None, raw: RawLayer) -> None:
        super().__init__(group, raw)
        self.text: _typing.Any = raw.get("text")


class AdjustmentLayer(LayerNode):
    layer_type = LayerType.ADJUSTMENT

    def __init__(self, group: layer_group.LayerGroup | None, raw: RawLayer) -> None:
        super().__init__(group, raw)
        self.adjustment: _typing.Any = raw.get("adjustment")


class SmartObjectLayer(LayerNode):
    """Embedded or linked smart object, optionally with timeline content."""

    layer_type = LayerType.SMART_OBJECT

    def __init__(self, group: layer_group.LayerGroup | None, raw: RawLayer) -> None:
        super().__init__(group, raw)
        self.smart_object: _typing.Any = raw.get("smartObject")
        self.time_content: _typing.Any = raw.get("timeContent")
