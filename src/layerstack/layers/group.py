"""
Layer groups and the flat index arithmetic.

The host addresses every layer of a document by a single flat index. A
group takes two slots of that index space besides its children (an
opening marker below them and the group itself above them), so the
flattened size of a group is ``2 + sum(child sizes)`` while every other
layer takes one slot.

Positions handed to a group are local to it: slot 0 is the first slot
after the group's opening marker. The document root is a group too; its
markers never show up in the host's numbering, so its local positions are
the document's flat indices.

Example, for a root holding ``A`` and a group ``G`` that holds ``B``::

    slot   0   1        2   3
    layer  A   G-open   B   G
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import operator as _operator
import typing as _typing

import layerstack.changes as changes
import layerstack.constants as constants
import layerstack.errors as errors
import layerstack.layers.base as base
import layerstack.layers.factory as factory

_logger = _logging.getLogger(__name__)

_by_index = _operator.itemgetter(constants.KEY_INDEX)


@_dataclasses.dataclass(frozen=True)
class LayerLocation:
    """A layer together with its flat position inside the searched group."""

    layer: base.LayerNode
    index: int


class LayerGroup(base.LayerNode):
    """
    A group of layers, and the document root.

    Children are kept in ``layers`` in ascending flat position order (bottom
    of the stack first). The host's raw ``index`` is only used to order
    children while building the group; afterwards positions are computed
    from the sizes of the children.
    """

    layer_type = base.LayerType.GROUP

    def __init__(self, group: LayerGroup | None, raw: base.RawLayer) -> None:
        super().__init__(group, raw)
        if constants.KEY_TYPE not in raw:
            # Only the document root comes without a type tag
            self.type = None
        self.blend_options: _typing.Any = raw.get("blendOptions")
        self.layers: list[base.LayerNode] = []

        target_index = 0
        for raw_child in sorted(raw.get(constants.KEY_LAYERS, ()), key=_by_index):
            child = factory.create_layer(self, raw_child)
            target_index += child.get_size() - 1
            self.add_layer_at_index(child, target_index)
            target_index += 1

    def __str__(self) -> str:
        children = ", ".join(str(child) for child in self.layers)
        return f"{super().__str__()} [{children}]"

    def get_size(self) -> int:
        return constants.GROUP_MARKER_SIZE + sum(child.get_size() for child in self.layers)

    def add_layer_at_index(self, layer: base.LayerNode, target_index: int) -> None:
        """
        Insert a layer so that it ends up at a given flat position.

        The position is the slot the layer will occupy, local to this
        group; for a group being inserted it is the slot of the group
        itself (its topmost slot). If the position falls inside a child
        group, the layer is handed down to that group.

        A position one past the end of the children (the slot above this
        group's own closing marker) also appends the layer as the last
        child.

        Args:
            layer: The layer to insert. Must not be attached anywhere.
            target_index: Local flat position for the layer.

        Raises:
            InsertionIndexError: If no child boundary matches the position.
        """
        # A layer's position is its topmost slot; it spans `reach` slots below it
        reach = layer.get_size() - 1
        current_index = reach
        next_index = current_index

        # Invariant: current_index <= target_index while scanning
        for position, child in enumerate(self.layers):
            if target_index <= current_index:
                break

            next_index += child.get_size()

            if target_index < next_index and isinstance(child, LayerGroup):
                # current_index < target_index < next_index: translate past the
                # slots scanned so far and the child's opening marker
                child.add_layer_at_index(layer, target_index - (current_index - reach + 1))
                return

            current_index = next_index
        else:
            position = len(self.layers)

        if current_index != target_index:
            if position == len(self.layers) and target_index == current_index + 1:
                _logger.debug(
                    "Appending layer %s to group %s past its closing marker (%d)",
                    layer.id,
                    self.id,
                    target_index,
                )
            else:
                raise errors.InsertionIndexError(self.id, target_index, current_index)

        layer.group = self
        self.layers.insert(position, layer)

    def find_layer(self, layer_id: _typing.Any) -> LayerLocation | None:
        """
        Find a layer anywhere below this group.

        Args:
            layer_id: Id of the layer to look for.

        Returns:
            The layer and its flat position relative to this group, or
            None if no layer below this group has that id. The position of
            a group is the slot of the group itself (its topmost slot).
        """
        offset = 0

        for child in self.layers:
            if isinstance(child, LayerGroup):
                found = child.find_layer(layer_id)
                if found is not None:
                    # +1 for the child group's opening marker
                    return LayerLocation(found.layer, found.index + offset + 1)
                offset += child.get_size() - 1

            if child.id == layer_id:
                return LayerLocation(child, offset)

            offset += 1

        return None

    def iter_layers(self) -> _typing.Iterator[base.LayerNode]:
        """Yield every layer below this group, depth first, bottom first."""
        for child in self.layers:
            yield child
            if isinstance(child, LayerGroup):
                yield from child.iter_layers()

    def apply_layer_changes(
        self,
        changed_layers: changes.ChangedLayers,
        raw_changes: _typing.Sequence[base.RawChange],
        parent_index: int | None = None,
    ) -> list[base.ChangeResult]:
        """
        Apply a batch of change records to the children of this group.

        See layerstack.changes.apply_layer_changes for the protocol.

        Args:
            changed_layers: Layers touched by the batch, keyed by id. New
                layers are registered here as they are created.
            raw_changes: Change records for this group's direct children.
            parent_index: This group's new flat position in its parent's
                frame; None when this group is the document root.

        Returns:
            Results of the attribute changes applied along the way.
        """
        return changes.apply_layer_changes(self, changed_layers, raw_changes, parent_index)

    def summary(self) -> dict[str, _typing.Any]:
        result = super().summary()
        result["layers"] = [child.summary() for child in self.layers]
        return result
