"""
Shared constants for layerstack.

This module provides a single source of truth for values that are used
across the layer tree, the change applicator and the CLI.
"""

# Flat index arithmetic
LEAF_SIZE = 1
"""Flattened size of every non-group layer."""

GROUP_MARKER_SIZE = 2
"""Extra flat index slots a group occupies besides its children.

The host models a group as an opening and a closing marker around its
children, so an empty group still spans two slots.
"""

# Rendering
UNNAMED_PLACEHOLDER = "-"
"""Shown in place of the name for layers that have none."""

# Change results
RENAME_OP = "rename"
"""Operation tag of a ChangeResult produced by a name change."""

# Raw record keys whose presence (not value) carries meaning
KEY_ID = "id"
KEY_INDEX = "index"
KEY_TYPE = "type"
KEY_NAME = "name"
KEY_LAYERS = "layers"
KEY_ADDED = "added"
KEY_REMOVED = "removed"
