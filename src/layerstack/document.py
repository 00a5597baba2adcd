"""
Document - owner of a layer tree and caller of the change applicator.

A Document is built from the host's full snapshot. Incremental batches are
applied with apply_changes, which looks up every layer the batch touches,
hands the table to the root group and returns the resulting changes.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import layerstack.changes as changes
import layerstack.constants as constants
import layerstack.layers.base as base
import layerstack.layers.factory as factory
import layerstack.layers.group as layer_group
import layerstack.loader as loader

_logger = _logging.getLogger(__name__)


class Document:
    """
    Layer tree of one host document.

    Not safe for concurrent mutation: apply one batch at a time. If a batch
    raises StructuralError the tree is left partially updated and the
    document should be rebuilt from a fresh snapshot.
    """

    def __init__(self, raw: base.RawLayer) -> None:
        """
        Build the tree from a full snapshot.

        Args:
            raw: Raw document descriptor (no type tag, children in
                ``layers``).
        """
        root = factory.create_layer(None, raw)
        if not isinstance(root, layer_group.LayerGroup):
            raise TypeError(f"Snapshot root must be a group, got {type(root).__name__}")
        self.root: layer_group.LayerGroup = root
        self.id: _typing.Any = raw.get(constants.KEY_ID)
        _logger.debug(
            "Built document %s with %d layers",
            self.id,
            sum(1 for _ in self.root.iter_layers()),
        )

    @classmethod
    def from_file(cls, path: _pathlib.Path) -> Document:
        """Build a document from a JSON or YAML snapshot file."""
        return cls(loader.load_snapshot(path))

    def __str__(self) -> str:
        return str(self.root)

    def get_size(self) -> int:
        """Flattened size of the whole document, markers of the root included."""
        return self.root.get_size()

    def find_layer(self, layer_id: _typing.Any) -> layer_group.LayerLocation | None:
        """Find a layer and its flat index in the document."""
        return self.root.find_layer(layer_id)

    def iter_layers(self) -> _typing.Iterator[base.LayerNode]:
        """Yield every layer of the document, the root excluded."""
        return self.root.iter_layers()

    def collect_changed_layers(
        self,
        raw_changes: _typing.Iterable[base.RawChange],
    ) -> changes.ChangedLayers:
        """
        Look up every existing layer a batch touches.

        Added records are skipped (their layers do not exist yet), as are
        ids not found in the tree.

        Args:
            raw_changes: Change records for the root, nested as sent.

        Returns:
            Table of LayerRecord keyed by layer id.
        """
        changed_layers: changes.ChangedLayers = {}
        self._collect(raw_changes, changed_layers)
        return changed_layers

    def _collect(
        self,
        raw_changes: _typing.Iterable[base.RawChange],
        changed_layers: changes.ChangedLayers,
    ) -> None:
        for change in raw_changes:
            layer_id = change[constants.KEY_ID]
            if not change.get(constants.KEY_ADDED) and layer_id not in changed_layers:
                location = self.root.find_layer(layer_id)
                if location is not None:
                    changed_layers[layer_id] = changes.LayerRecord(
                        layer=location.layer,
                        index=location.index,
                    )
                else:
                    _logger.debug("Changed layer %s is not in the tree", layer_id)

            self._collect(change.get(constants.KEY_LAYERS, ()), changed_layers)

    def apply_changes(
        self,
        raw_changes: _typing.Sequence[base.RawChange],
    ) -> list[base.ChangeResult]:
        """
        Apply one change batch to the tree.

        Args:
            raw_changes: Change records for the root's children.

        Returns:
            Results of the attribute changes applied (renames).

        Raises:
            LayerStackError: If the batch cannot be applied. After a
                StructuralError the document must be rebuilt.
        """
        changed_layers = self.collect_changed_layers(raw_changes)
        results = self.root.apply_layer_changes(changed_layers, raw_changes)
        _logger.debug(
            "Applied %d change records to document %s (%d layers touched, %d results)",
            len(raw_changes),
            self.id,
            len(changed_layers),
            len(results),
        )
        return results
