"""
Incremental change application.

The host reports edits as a batch of change records, one per touched
layer, nested the same way the layers are::

    {"id": 7, "index": 4, "layers": [{"id": 9, "index": 3, "added": True, ...}]}

``index`` is present only when a layer moved, appeared or disappeared; it
is the layer's new position in the host's flat numbering. ``layers`` holds
the records for the children of a group whose descendants changed.

A batch is applied against the existing tree together with a table of the
layers it touches (``changed_layers``), built by the caller from the tree
before the batch is applied. Applying the batch runs in four steps:

0. Check: the batch is rejected before anything changes if an added
   record reuses an id, or if children move inside a group whose position
   is unknown.
1. Detach: every registered layer whose record carries an ``index`` is
   removed from its current group, so sizes reflect the tree without the
   layers about to move.
2. Materialize: per group, records with an ``index`` are visited in index
   order. New layers are created and registered, nested records are
   applied to their group, and the final size of the group is computed.
3. Place: once every child has its final size, each layer is inserted at
   its new position, translated into the group's local frame.

A group record without ``index`` did not move. Its children are still
placed, relative to the position the caller registered for the group.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import operator as _operator
import typing as _typing

import layerstack.constants as constants
import layerstack.errors as errors
import layerstack.layers.base as base
import layerstack.layers.factory as factory
import layerstack.layers.group as layer_group

_logger = _logging.getLogger(__name__)

_by_index = _operator.itemgetter(constants.KEY_INDEX)


@_dataclasses.dataclass
class LayerRecord:
    """A layer touched by a change batch."""

    layer: base.LayerNode
    """The existing layer, or the one created for an added record."""

    index: int | None = None
    """Flat position of the layer before the batch, if the caller knows it.

    Required for groups whose children move while the group stays put.
    """

    previous_group: layer_group.LayerGroup | None = None
    """Group the layer belonged to before it was placed by the batch."""


ChangedLayers = dict[_typing.Any, LayerRecord]
"""Layers touched by a change batch, keyed by layer id."""


def apply_layer_changes(
    target: layer_group.LayerGroup,
    changed_layers: ChangedLayers,
    raw_changes: _typing.Sequence[base.RawChange],
    parent_index: int | None = None,
) -> list[base.ChangeResult]:
    """
    Apply a batch of change records to a group's children.

    Args:
        target: Group whose direct children the records describe.
        changed_layers: Layers touched by the batch, keyed by id. Layers
            created for added records are registered here.
        raw_changes: Change records for the direct children of ``target``.
        parent_index: New flat position of ``target`` in its parent's
            frame, or None when ``target`` is the document root.

    Returns:
        Results of the attribute changes (renames) applied to layers.

    Raises:
        MissingChangedLayerError: If a record that is not a removal names a
            layer missing from ``changed_layers``.
        StructuralError: If an added record reuses an id, or a layer cannot
            be detached or placed. Id reuse and unknown group positions are
            detected before the tree changes.
        UnknownLayerTypeError: If an added record has an unknown type.
    """
    check_changes(target, changed_layers, raw_changes)
    detach_changed_layers(changed_layers, raw_changes)
    return _apply_to_group(target, changed_layers, raw_changes, parent_index)


def check_changes(
    target: layer_group.LayerGroup,
    changed_layers: ChangedLayers,
    raw_changes: _typing.Iterable[base.RawChange],
) -> None:
    """
    Reject a batch that cannot be applied, before the tree is touched.

    Raises:
        DuplicateLayerIdError: If an added record reuses the id of a layer
            that stays in the tree, or two added records share an id.
        UnknownGroupPositionError: If children move inside a group record
            without ``index`` whose position was not registered.
        NotAGroupError: If such a record names a layer that is not a group.
    """
    existing = {layer.id for layer in target.iter_layers()}
    removed: set[_typing.Any] = set()
    added: list[_typing.Any] = []

    for change in _iter_changes(raw_changes):
        layer_id = change[constants.KEY_ID]
        if change.get(constants.KEY_ADDED):
            added.append(layer_id)
        elif change.get(constants.KEY_REMOVED):
            removed.add(layer_id)
        elif constants.KEY_INDEX not in change and _has_positioned_children(change):
            _unmoved_group(changed_layers, layer_id)

    seen: set[_typing.Any] = set()
    for layer_id in added:
        record = changed_layers.get(layer_id)
        registered = record is not None and record.layer.is_attached
        if layer_id in seen or (
            (layer_id in existing or registered) and layer_id not in removed
        ):
            raise errors.DuplicateLayerIdError(layer_id)
        seen.add(layer_id)


def detach_changed_layers(
    changed_layers: ChangedLayers,
    raw_changes: _typing.Iterable[base.RawChange],
) -> None:
    """
    Detach every registered layer that a batch moves or removes.

    Walks nested records too. The group each layer leaves is remembered as
    the record's ``previous_group``.
    """
    for change in raw_changes:
        record = changed_layers.get(change[constants.KEY_ID])
        if (
            record is not None
            and constants.KEY_INDEX in change
            and not change.get(constants.KEY_ADDED)
            and record.layer.is_attached
        ):
            record.previous_group = record.layer.group
            record.layer.detach()

        detach_changed_layers(changed_layers, change.get(constants.KEY_LAYERS, ()))


def _apply_to_group(
    target: layer_group.LayerGroup,
    changed_layers: ChangedLayers,
    raw_changes: _typing.Sequence[base.RawChange],
    parent_index: int | None,
) -> list[base.ChangeResult]:
    results: list[base.ChangeResult] = []

    for change in raw_changes:
        if constants.KEY_INDEX not in change:
            results.extend(_apply_unplaced(changed_layers, change))

    positioned = sorted(
        (change for change in raw_changes if constants.KEY_INDEX in change),
        key=_by_index,
    )

    # Materialize: bring every child to its final size
    final_size = target.get_size()

    for change in positioned:
        layer_id = change[constants.KEY_ID]
        removed = bool(change.get(constants.KEY_REMOVED))

        if change.get(constants.KEY_ADDED):
            child = factory.create_layer(target, _without_children(change))
            changed_layers[layer_id] = LayerRecord(layer=child)
            _logger.debug("Created layer %s in group %s", layer_id, target.id)
        else:
            record = changed_layers.get(layer_id)
            if record is None:
                if removed:
                    _logger.debug("Removed layer %s was never registered", layer_id)
                    continue
                raise errors.MissingChangedLayerError(layer_id)

            child = record.layer
            if removed:
                continue
            results.extend(child.apply_change(change))

        if constants.KEY_LAYERS in change:
            results.extend(
                _apply_to_group(
                    _require_group(child),
                    changed_layers,
                    change[constants.KEY_LAYERS],
                    change[constants.KEY_INDEX],
                )
            )

        if not removed:
            final_size += child.get_size()

    # Place: translate host indices into this group's frame
    if parent_index is None:
        offset = 0
    else:
        offset = parent_index - (final_size - constants.GROUP_MARKER_SIZE)

    for change in positioned:
        if change.get(constants.KEY_REMOVED):
            continue

        layer_id = change[constants.KEY_ID]
        record = changed_layers.get(layer_id)
        if record is None:
            _logger.warning("Skipping group end layer: %s", layer_id)
            continue

        child = record.layer
        if record.previous_group is None:
            record.previous_group = child.group
        target.add_layer_at_index(child, change[constants.KEY_INDEX] - offset)

    return results


def _apply_unplaced(
    changed_layers: ChangedLayers,
    change: base.RawChange,
) -> list[base.ChangeResult]:
    """Apply a record that does not move its layer.

    Children that do move are placed relative to the group's registered
    position, which is also its position after the batch.
    """
    results: list[base.ChangeResult] = []
    layer_id = change[constants.KEY_ID]
    record = changed_layers.get(layer_id)

    if record is not None:
        results.extend(record.layer.apply_change(change))
    elif constants.KEY_NAME in change:
        _logger.debug("Ignoring rename of unregistered layer %s", layer_id)

    nested_changes = change.get(constants.KEY_LAYERS, ())
    if _has_positioned_children(change):
        group, index = _unmoved_group(changed_layers, layer_id)
        results.extend(_apply_to_group(group, changed_layers, nested_changes, index))
    else:
        for nested in nested_changes:
            results.extend(_apply_unplaced(changed_layers, nested))

    return results


def _iter_changes(
    raw_changes: _typing.Iterable[base.RawChange],
) -> _typing.Iterator[base.RawChange]:
    for change in raw_changes:
        yield change
        yield from _iter_changes(change.get(constants.KEY_LAYERS, ()))


def _has_positioned_children(change: base.RawChange) -> bool:
    return any(constants.KEY_INDEX in nested for nested in change.get(constants.KEY_LAYERS, ()))


def _unmoved_group(
    changed_layers: ChangedLayers,
    layer_id: _typing.Any,
) -> tuple[layer_group.LayerGroup, int]:
    """The group of a record without index, and its registered position."""
    record = changed_layers.get(layer_id)
    if record is None or record.index is None:
        raise errors.UnknownGroupPositionError(layer_id)
    return _require_group(record.layer), record.index


def _without_children(change: base.RawChange) -> dict[str, _typing.Any]:
    """Copy of a record without nested records.

    The children of an added group arrive as nested records of their own
    and are created when those are applied.
    """
    return {key: value for key, value in change.items() if key != constants.KEY_LAYERS}


def _require_group(layer: base.LayerNode) -> layer_group.LayerGroup:
    if not isinstance(layer, layer_group.LayerGroup):
        raise errors.NotAGroupError(layer.id)
    return layer
