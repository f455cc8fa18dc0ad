"""Compliance Masonry (masonry) - OpenControl workspace gap analysis."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from .. import __version__


def _build_config(
    ctx: click.Context,
    certification: str,
    opencontrols: str | None,
    project: str | None,
    output_format: str | None,
    output: str | None,
    workers: int | None,
):
    from ..core.config import get_effective_config

    overrides: dict = {
        "certification": certification,
        "opencontrol_dir": opencontrols,
        "verbose": ctx.obj.get("verbose") or None,
    }
    output_overrides = {k: v for k, v in (("format", output_format), ("path", output)) if v is not None}
    if output_overrides:
        overrides["output"] = output_overrides
    if workers is not None:
        overrides["loader"] = {"max_workers": workers}

    try:
        return get_effective_config(Path(project) if project else None, cli_overrides=overrides)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        raise click.UsageError(str(e)) from e


_common_options = [
    click.option("--opencontrols", "-o", type=str, help="OpenControl workspace directory (default: opencontrols)"),
    click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), help="Project path holding .masonry/config.yaml"),
    click.option("--workers", type=click.IntRange(min=1), help="Maximum parallel file loads"),
]


def _with_common_options(fn):
    for option in reversed(_common_options):
        fn = option(fn)
    return fn


@click.group()
@click.version_option(__version__, prog_name="masonry")
@click.option("--verbose", "-v", is_flag=True, help="Print loading progress")
@click.pass_context
def masonry_cli(ctx: click.Context, verbose: bool) -> None:
    """Compliance Masonry - OpenControl workspace tools."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@masonry_cli.command()
@click.argument("certification")
@_with_common_options
@click.option("--output-format", "-f", type=click.Choice(["text", "json", "junit"]))
@click.option("--output", type=click.Path(dir_okay=False), help="Write the report to a file")
@click.pass_context
def diff(
    ctx: click.Context,
    certification: str,
    opencontrols: str | None,
    project: str | None,
    workers: int | None,
    output_format: str | None,
    output: str | None,
) -> None:
    """Compute the gap analysis for CERTIFICATION.

    Example: masonry diff LATO -o ./opencontrols
    """
    from ..core.orchestrator import run_diff

    config = _build_config(ctx, certification, opencontrols, project, output_format, output, workers)
    sys.exit(run_diff(config))


@masonry_cli.command()
@click.argument("certification")
@_with_common_options
@click.pass_context
def inventory(
    ctx: click.Context,
    certification: str,
    opencontrols: str | None,
    project: str | None,
    workers: int | None,
) -> None:
    """List each control with the components that satisfy it."""
    from ..core.orchestrator import run_inventory

    config = _build_config(ctx, certification, opencontrols, project, None, None, workers)
    sys.exit(run_inventory(config))


def main() -> None:
    masonry_cli()


if __name__ == "__main__":
    main()
