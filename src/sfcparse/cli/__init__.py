"""Command-line interface for :mod:`sfcparse`.

Two inspection commands are exposed through the ``sfcparse`` console script:
``tokens`` lists every token of a file in source order and ``tree`` prints
the transformed template.

Example:
    >>> import typer
    >>> from sfcparse.cli import create_app
    >>> isinstance(create_app(), typer.Typer)
    True
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from sfcparse.component import ComponentResult, parse_component
from sfcparse.core.config import ConfigError, SfcConfig, load_config
from sfcparse.core.logging import configure_logging, get_logger
from sfcparse.markup import MarkupParserUnavailableError
from sfcparse.script import ScriptParserUnavailableError, ScriptSyntaxError
from sfcparse.template import ExpressionContainerNode, iter_nodes

from .render import collect_tokens, format_token, format_tree, node_to_dict, token_to_dict

_app_help = (
    "Inspect the unified token stream and template tree of single-file "
    "components."
)


def _load_settings(config_path: Path | None) -> SfcConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _parse_file(path: Path, config: SfcConfig) -> ComponentResult:
    """Read and parse ``path``, turning expected failures into exit code 1."""

    logger = get_logger(__name__, path=str(path))
    try:
        code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        typer.secho(f"Failed to read {path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    try:
        return parse_component(code, file_path=path, config=config)
    except (MarkupParserUnavailableError, ScriptParserUnavailableError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    except ScriptSyntaxError as exc:
        logger.warning("script-syntax-error", error=str(exc))
        typer.secho(f"{path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc


def create_app() -> "typer.Typer":
    """Return the Typer application powering the ``sfcparse`` CLI."""

    app = typer.Typer(
        help=_app_help,
        no_args_is_help=True,
        rich_markup_mode="rich",
    )

    @app.callback()
    def main_callback(
        ctx: typer.Context,
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML file (or pyproject.toml) layered over the packaged defaults.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            "-l",
            help="Override the logging level (DEBUG/INFO/WARNING/ERROR).",
        ),
    ) -> None:
        """Load configuration and install logging for every subcommand."""

        settings = _load_settings(config)
        try:
            configure_logging(level=log_level or settings.log_level)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        ctx.obj = settings

    @app.command("tokens", help="List script and template tokens in source order.")
    def tokens_command(
        ctx: typer.Context,
        path: Path = typer.Argument(
            ...,
            exists=True,
            dir_okay=False,
            readable=True,
            help="Component or script file to parse.",
        ),
        as_json: bool = typer.Option(
            False,
            "--json",
            help="Emit tokens as a JSON array.",
        ),
    ) -> None:
        result = _parse_file(path, ctx.obj)
        pairs = collect_tokens(result)

        if as_json:
            payload = [token_to_dict(region, token) for region, token in pairs]
            typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
            return

        for region, token in pairs:
            typer.echo(format_token(region, token))

    @app.command("tree", help="Print the transformed template tree.")
    def tree_command(
        ctx: typer.Context,
        path: Path = typer.Argument(
            ...,
            exists=True,
            dir_okay=False,
            readable=True,
            help="Component file to parse.",
        ),
        as_json: bool = typer.Option(
            False,
            "--json",
            help="Emit the tree and comments as JSON.",
        ),
    ) -> None:
        result = _parse_file(path, ctx.obj)
        template = result.template

        if as_json:
            payload = {
                "template": node_to_dict(template.root) if template else None,
                "comments": (
                    [node_to_dict(comment) for comment in template.comments]
                    if template
                    else []
                ),
            }
            typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
            return

        if template is None:
            typer.secho("No template found.", fg=typer.colors.YELLOW)
            return

        for line in format_tree(template.root):
            typer.echo(line)
        errors = sum(
            1
            for node in iter_nodes(template.root)
            if isinstance(node, ExpressionContainerNode) and node.syntax_error is not None
        )
        if errors:
            typer.secho(
                f"{errors} expression(s) failed to parse.",
                fg=typer.colors.YELLOW,
            )

    return app


__all__ = ["create_app"]
