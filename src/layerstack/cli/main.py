"""
Main CLI entry point for layerstack.

Commands:
- show: print the layer tree of a snapshot
- find: print the flat index of a layer
- apply: apply change batches to a snapshot and print the result
- config: show the config files in use and the effective settings
"""

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import click as _click
import rich.console as _rich_console
import yaml as _yaml

import layerstack
import layerstack.cli.render as render
import layerstack.config as config
import layerstack.config.sources as config_sources
import layerstack.document as document
import layerstack.errors as errors
import layerstack.layers.base as base
import layerstack.loader as loader

_logger = _logging.getLogger(__name__)

CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_FORMATS = ["tree", "text", "json"]

_SnapshotPath = _click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path)


def _configure_logging(settings: config.Settings, verbose: bool) -> None:
    """Set up logging for a CLI run."""
    level = _logging.DEBUG if verbose else settings.log_level
    _logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    _logging.getLogger("layerstack").setLevel(level)


def _load_document(path: _pathlib.Path) -> document.Document:
    try:
        return document.Document.from_file(path)
    except (loader.LoadError, errors.LayerStackError) as e:
        raise _click.ClickException(str(e)) from e


def _print_document(
    ctx: _click.Context,
    doc: document.Document,
    output_format: str | None,
    results: list[base.ChangeResult] | None = None,
) -> None:
    settings: config.Settings = ctx.obj["settings"]
    output_format = output_format or settings.output.format

    if output_format == "json":
        _click.echo(render.to_json(doc.root, results or []))
        return

    for result in results or []:
        _click.echo(render.format_result(result))

    if output_format == "text":
        _click.echo(str(doc))
    else:
        console = _rich_console.Console(
            highlight=False,
            no_color=ctx.obj["no_color"],
        )
        console.print(render.build_tree(doc.root, show_index=settings.output.show_index))


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(layerstack.__version__, "-V", "--version", prog_name="layerstack")
@_click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@_click.option("--no-color", is_flag=True, help="Disable colored output")
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool, no_color: bool) -> None:
    """layerstack - inspect and update document layer trees."""
    try:
        settings = config.Settings()
    except config.ConfigFileError as e:
        raise _click.ClickException(str(e)) from e

    _configure_logging(settings, verbose)
    for key, value in settings.collect_all_extra_fields().items():
        _logger.warning("Unknown config key %s (value %r)", key, value)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["no_color"] = no_color


@cli.command()
@_click.argument("snapshot", type=_SnapshotPath)
@_click.option(
    "-o",
    "--output",
    "output_format",
    type=_click.Choice(_FORMATS),
    default=None,
    help="Output format (default from config: output.format)",
)
@_click.pass_context
def show(ctx: _click.Context, snapshot: _pathlib.Path, output_format: str | None) -> None:
    """Show the layer tree of a SNAPSHOT file (JSON or YAML)."""
    _print_document(ctx, _load_document(snapshot), output_format)


@cli.command()
@_click.argument("snapshot", type=_SnapshotPath)
@_click.argument("layer_id")
def find(snapshot: _pathlib.Path, layer_id: str) -> None:
    """Print the flat index of LAYER_ID in SNAPSHOT.

    Numeric ids are matched as integers first, then as strings.
    """
    doc = _load_document(snapshot)

    location = None
    if layer_id.lstrip("-").isdigit():
        location = doc.find_layer(int(layer_id))
    if location is None:
        location = doc.find_layer(layer_id)

    if location is None:
        _click.echo(f"Layer not found: {layer_id}", err=True)
        raise SystemExit(1)

    _click.echo(f"{location.index}\t{location.layer}")


@cli.command()
@_click.argument("snapshot", type=_SnapshotPath)
@_click.argument("changes", nargs=-1, required=True, type=_SnapshotPath)
@_click.option(
    "-o",
    "--output",
    "output_format",
    type=_click.Choice(_FORMATS),
    default=None,
    help="Output format (default from config: output.format)",
)
@_click.pass_context
def apply(
    ctx: _click.Context,
    snapshot: _pathlib.Path,
    changes: tuple[_pathlib.Path, ...],
    output_format: str | None,
) -> None:
    """Apply CHANGES files to SNAPSHOT, in order, and show the result."""
    doc = _load_document(snapshot)
    results: list[base.ChangeResult] = []

    for path in changes:
        try:
            batch = loader.load_changes(path)
            results.extend(doc.apply_changes(batch))
        except loader.LoadError as e:
            raise _click.ClickException(str(e)) from e
        except errors.LayerStackError as e:
            _click.echo(f"Error applying {path}: {e}", err=True)
            raise SystemExit(1) from e

    _print_document(ctx, doc, output_format, results)


@cli.command("config")
@_click.pass_context
def show_config(ctx: _click.Context) -> None:
    """Show the config files in use and the effective settings as YAML."""
    settings: config.Settings = ctx.obj["settings"]
    source = config_sources.YamlLayersSettingsSource(config.Settings, _pathlib.Path.cwd())

    for name, path in source.get_loaded_layers():
        _click.echo(f"# [{name}] {path}")
    _click.echo(_yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False), nl=False)


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="layerstack")


if __name__ == "__main__":
    main()
