"""
Exception types raised by the layer tree.

All of these are fatal for the mutation in progress: the tree is a pure
in-memory mirror of the host's layer stack and the host stays the source
of truth. A caller that catches a StructuralError should discard the tree
and rebuild it from a fresh snapshot.
"""

import typing as _typing


class LayerStackError(Exception):
    """Base class for all layerstack errors."""

    pass


class StructuralError(LayerStackError):
    """The tree no longer matches the flat index space it mirrors."""

    pass


class DetachError(StructuralError):
    """Raised when a layer's owning group does not list the layer."""

    def __init__(self, layer_id: _typing.Any, group_id: _typing.Any) -> None:
        self.layer_id = layer_id
        self.group_id = group_id
        super().__init__(
            f"Unable to detach layer {layer_id!r} from parent {group_id!r}: "
            "parent does not contain it"
        )


class InsertionIndexError(StructuralError):
    """Raised when a target flat index cannot be matched exactly."""

    def __init__(
        self,
        group_id: _typing.Any,
        target_index: int,
        actual_index: int,
    ) -> None:
        self.group_id = group_id
        self.target_index = target_index
        self.actual_index = actual_index
        super().__init__(
            f"Invalid insertion index {target_index} in group {group_id!r} "
            f"(scan ended at {actual_index})"
        )


class NotAGroupError(StructuralError):
    """Raised when nested layer changes are addressed to a non-group layer."""

    def __init__(self, layer_id: _typing.Any) -> None:
        self.layer_id = layer_id
        super().__init__(f"Layer {layer_id!r} has nested changes but is not a group")


class UnknownLayerTypeError(LayerStackError, ValueError):
    """Raised by the factory for a type tag it does not know."""

    def __init__(self, layer_type: _typing.Any) -> None:
        self.layer_type = layer_type
        super().__init__(f"Unknown layer type: {layer_type!r}")


class MissingChangedLayerError(LayerStackError, KeyError):
    """Raised when a change references a layer the caller never registered.

    This usually means an upstream notification was missed or arrived out
    of order.
    """

    def __init__(self, layer_id: _typing.Any) -> None:
        self.layer_id = layer_id
        super().__init__(layer_id)

    def __str__(self) -> str:
        return f"Can't find changed layer: {self.layer_id!r}"


class LayerIdMismatchError(LayerStackError, ValueError):
    """Raised when a change record is applied to a layer with another id."""

    def __init__(self, layer_id: _typing.Any, change_id: _typing.Any) -> None:
        self.layer_id = layer_id
        self.change_id = change_id
        super().__init__(f"Layer ID mismatch: layer {layer_id!r}, change {change_id!r}")


class DuplicateLayerIdError(StructuralError):
    """Raised when an added record reuses the id of a layer already in the tree."""

    def __init__(self, layer_id: _typing.Any) -> None:
        self.layer_id = layer_id
        super().__init__(f"Cannot add layer {layer_id!r}: the id is already in use")


class UnknownGroupPositionError(StructuralError):
    """Raised when children move inside a group whose position is not known.

    A group record without ``index`` means the group stayed where it was;
    its children can only be placed if the caller registered the group
    together with that position.
    """

    def __init__(self, layer_id: _typing.Any) -> None:
        self.layer_id = layer_id
        super().__init__(
            f"Cannot place children of layer {layer_id!r}: its position is unknown"
        )
