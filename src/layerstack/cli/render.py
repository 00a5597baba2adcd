"""
Rendering of layer trees for the CLI.

Three formats are supported:
- tree: a rich tree, one node per layer, top of the stack first
- text: the one-line ``str()`` form of the root group
- json: the summary of every layer as JSON
"""

import json as _json
import typing as _typing

import rich.text as _rich_text
import rich.tree as _rich_tree

import layerstack.layers.base as base
import layerstack.layers.group as layer_group


def _label(layer: base.LayerNode, index: int | None) -> _rich_text.Text:
    label = _rich_text.Text()
    if index is not None:
        label.append(f"[{index}] ", style="dim")
    label.append(str(layer.id), style="bold")
    label.append(f" {layer.name or '-'}")
    if layer.type is not None:
        label.append(f" ({layer.type.value})", style="cyan")
    return label


def _add_children(
    node: _rich_tree.Tree,
    group: layer_group.LayerGroup,
    start: int,
    show_index: bool,
) -> None:
    # Positions are computed bottom up, the tree lists the top of the stack first
    entries: list[tuple[base.LayerNode, int]] = []
    offset = start
    for child in group.layers:
        offset += child.get_size() - 1
        entries.append((child, offset))
        offset += 1

    for child, index in reversed(entries):
        branch = node.add(_label(child, index if show_index else None))
        if isinstance(child, layer_group.LayerGroup):
            # Children of a group start right after its opening marker
            _add_children(branch, child, index - child.get_size() + 2, show_index)


def build_tree(root: layer_group.LayerGroup, *, show_index: bool = True) -> _rich_tree.Tree:
    """Build a rich tree for a root group."""
    tree = _rich_tree.Tree(_label(root, None))
    _add_children(tree, root, 0, show_index)
    return tree


def to_json(
    root: layer_group.LayerGroup,
    results: _typing.Sequence[base.ChangeResult] = (),
) -> str:
    """Render a root group and optional change results as JSON."""
    payload: dict[str, _typing.Any] = {"document": root.summary()}
    if results:
        payload["changes"] = [
            {
                "op": result.op,
                "id": result.layer_id,
                "newName": result.new_name,
                "previousName": result.previous_name,
            }
            for result in results
        ]
    return _json.dumps(payload, indent=2, default=str)


def format_result(result: base.ChangeResult) -> str:
    """One line describing a change result."""
    return f"{result.op} {result.layer_id}: {result.previous_name!r} -> {result.new_name!r}"
