"""nsloader command-line interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from . import __version__
from .config import Config, ConfigError, load_config, resolve_config_path
from .errors import LoaderError
from .logging import configure_logging
from .manifest import ManifestError, dump_manifest, scan_units
from .modules import ModuleLoader

app = typer.Typer(help="Dependency-driven namespace loader utilities.")
LOGGER = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None


@app.callback()
def _nsloader(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Path to loader config (env NSLOADER_CONFIG or ~/.config/nsloader/config.yaml).",
        ),
    ] = None,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved)


@app.command()
def load(
    ctx: typer.Context,
    names: Annotated[list[str], typer.Argument(..., help="Logical names to require.")],
) -> None:
    """Require names, run deferred units, and report what was loaded."""

    loader = _build_loader(_state(ctx))
    try:
        for name in names:
            loader.require(name)
        loader.signal_ready()
    except LoaderError as exc:
        _loader_failure(exc)

    typer.echo("→ Loaded units")
    for location in loader.load_order:
        typer.echo(f"  {location}")
    if loader.pending:
        typer.echo("Pending:")
        for location in loader.pending:
            typer.echo(f"  {location}")
    missing = [name for name in names if not loader.is_provided(name)]
    if missing:
        typer.secho(f"Not provided: {', '.join(missing)}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)


@app.command()
def order(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(..., help="Logical name to plan.")],
) -> None:
    """Print the load order for a name without executing anything."""

    loader = _build_loader(_state(ctx))
    try:
        planned = loader.plan(name)
    except LoaderError as exc:
        _loader_failure(exc)
    for index, location in enumerate(planned, start=1):
        typer.echo(f"{index}. {location}")


@app.command()
def deps(
    ctx: typer.Context,
    directory: Annotated[
        Path | None,
        typer.Argument(help="Unit directory to scan (defaults to the configured base_path)."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Write the manifest to a file instead of stdout."),
    ] = None,
) -> None:
    """Scan unit sources and emit a dependency manifest."""

    if directory is None:
        directory = _load_config(_state(ctx).config_path).base_path
    directory = directory.expanduser()
    if not directory.is_dir():
        typer.secho(f"Unit directory not found: {directory}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    try:
        entries = scan_units(directory)
    except ManifestError as exc:
        typer.secho(f"Scan failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    rendered = dump_manifest(entries)
    if output is None:
        typer.echo(rendered, nl=False)
        return
    output.expanduser().write_text(rendered, encoding="utf-8")
    typer.echo(f"Wrote {len(entries)} unit(s) to {output}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Display loader configuration and manifest summary."""

    state = _state(ctx)
    config = _load_config(state.config_path)
    loader = _build_loader(state, config)
    records = list(loader.graph)
    modules = sum(1 for record in records if record.is_module)

    typer.echo("→ nsloader Status")
    typer.echo(f"Version: {__version__}")
    typer.echo(f"Config path: {resolve_config_path(state.config_path)}")
    typer.echo(f"Base path: {config.base_path}")
    typer.echo(f"Execution: {loader.mode.value}")
    typer.echo(f"Seal module exports: {'yes' if config.seal_module_exports else 'no'}")
    typer.echo(f"Strict provides: {'yes' if config.strict_provides else 'no'}")
    typer.echo("Manifests:")
    for manifest in config.manifests:
        typer.echo(f"  - {manifest}")
    typer.echo(f"Units: {len(records)} ({modules} module-style)")


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state missing from context.")
    return state


def _build_loader(state: CLIState, config: Config | None = None) -> ModuleLoader:
    config = config or _load_config(state.config_path)
    configure_logging(config.logging, config.root_dir)
    try:
        return ModuleLoader.from_config(config)
    except ManifestError as exc:
        typer.secho(f"Manifest error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2) from exc
    except LoaderError as exc:
        _loader_failure(exc)


def _load_config(path: Path | None) -> Config:
    try:
        return load_config(path)
    except ConfigError as exc:
        _config_failure(exc)


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _loader_failure(exc: LoaderError) -> NoReturn:
    LOGGER.debug("Loader failure", exc_info=exc)
    typer.secho(f"{type(exc).__name__}: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1) from exc


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
