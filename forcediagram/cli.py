"""CLI entrypoint for forcediagram."""

import sys
from pathlib import Path

import click
import yaml
from rich.console import Console

from . import __version__
from .diagram import Diagram
from .errors import DiagramError
from .options import DiagramOptions


@click.group()
@click.version_option(__version__, prog_name="forcediagram")
def cli() -> None:
    """forcediagram - force-directed node-link diagrams from JSON.

    Lay out nodes with a force simulation, cluster them into groups and
    annotate links with their metadata.
    """


@cli.command()
@click.argument("source")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with diagram options (flags override it)",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["svg", "html"]),
    default="html",
    show_default=True,
    help="Output format",
)
@click.option("--width", type=int, default=None, help="Canvas width (default 960)")
@click.option("--height", type=int, default=None, help="Canvas height (default 600)")
@click.option("--distance", type=float, default=None, help="Link distance (default 150)")
@click.option("--group-pattern", default=None, metavar="REGEX", help="Group nodes by this pattern on node names")
@click.option("--meta", "meta_keys", multiple=True, metavar="KEY", help="Metadata key to display (repeatable)")
@click.option("--link-width-key", default=None, metavar="KEY", help="Link metadata field giving the stroke width")
@click.option("--max-ticks", type=int, default=None, help="Tick budget for the initial layout (default 1000)")
@click.option("--zoom", "zoom_scale", type=float, default=None, help="Initial zoom scale")
@click.option("--container", default="diagram", show_default=True, help="Container id for HTML output")
def render(
    source: str,
    config_path: Path | None,
    out: Path | None,
    fmt: str,
    width: int | None,
    height: int | None,
    distance: float | None,
    group_pattern: str | None,
    meta_keys: tuple[str, ...],
    link_width_key: str | None,
    max_ticks: int | None,
    zoom_scale: float | None,
    container: str,
) -> None:
    """Render the diagram described by the JSON at SOURCE (path or URL)."""
    console = Console(stderr=True)

    options = DiagramOptions()
    if config_path is not None:
        try:
            options = DiagramOptions.from_yaml(config_path)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            raise click.BadParameter(str(e), param_hint="--config")

    options = options.merged(
        width=width,
        height=height,
        distance=distance,
        group_pattern=group_pattern,
        meta_keys=list(meta_keys) or None,
        link_width_key=link_width_key,
        max_ticks=max_ticks,
    )

    diagram = Diagram.from_options(container, source, options, console=console)
    try:
        diagram.init(*options.meta_keys)
    except DiagramError as e:
        raise click.ClickException(str(e))

    if zoom_scale is not None:
        diagram.zoom(zoom_scale)

    text = diagram.to_html(title=source) if fmt == "html" else diagram.to_svg()
    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote diagram to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    sys.exit(0)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
