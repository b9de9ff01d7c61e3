"""commitgate CLI - run the push policy as a git server-side hook."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from commitgate import __version__
from commitgate.config import OPTION_KEYS, PolicyConfig, PolicyConfigError, load_policy_config
from commitgate.git import GitCommandError, GitRepository, parse_pre_receive
from commitgate.hook import on_receive
from commitgate.render import DEFAULT_HEADER
from commitgate.types import Identity, RefChange

console = Console()

EXIT_REJECTED = 1
EXIT_CONFIG_ERROR = 2

cli = typer.Typer(
    name="commitgate",
    help="Validate pushed commits against a configurable commit policy.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Inspect policy configuration", no_args_is_help=True)
cli.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"commitgate {__version__}")
        raise typer.Exit()


@cli.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log rule evaluation to stderr."),
) -> None:
    """commitgate - commit policy checks for git pushes."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    envvar="COMMITGATE_CONFIG",
    help="Policy option file (.yaml, .toml or .json).",
)
RepoOption = typer.Option(
    None,
    "--repo",
    help="Repository path (defaults to current working directory).",
)
PusherNameOption = typer.Option(None, "--pusher-name", envvar="COMMITGATE_PUSHER_NAME", help="Pushing user's name.")
PusherEmailOption = typer.Option(None, "--pusher-email", envvar="COMMITGATE_PUSHER_EMAIL", help="Pushing user's email.")


def _load_config(config_path: Path | None) -> PolicyConfig:
    if config_path is None:
        return PolicyConfig()
    try:
        return load_policy_config(config_path)
    except PolicyConfigError as exc:
        typer.echo(f"commitgate: {exc}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR) from exc


def _pusher(name: str | None, email: str | None) -> Identity | None:
    if not name and not email:
        return None
    return Identity(name=name or "", email=email or "")


def _decide(
    ref_changes: list[RefChange],
    config: PolicyConfig,
    repo: Path | None,
    pusher: Identity | None,
) -> None:
    try:
        allowed = on_receive(ref_changes, config, GitRepository(repo), sys.stderr, pusher=pusher)
    except GitCommandError as exc:
        typer.echo(f"commitgate: {exc}", err=True)
        raise typer.Exit(EXIT_REJECTED) from exc
    if not allowed:
        raise typer.Exit(EXIT_REJECTED)


@cli.command("pre-receive")
def pre_receive(
    config_path: Path | None = ConfigOption,
    repo: Path | None = RepoOption,
    pusher_name: str | None = PusherNameOption,
    pusher_email: str | None = PusherEmailOption,
) -> None:
    """Read `<old> <new> <ref>` lines from stdin; exit non-zero to reject the push."""
    config = _load_config(config_path)
    try:
        ref_changes = parse_pre_receive(sys.stdin)
    except ValueError as exc:
        typer.echo(f"commitgate: {exc}", err=True)
        raise typer.Exit(EXIT_REJECTED) from exc
    _decide(ref_changes, config, repo, _pusher(pusher_name, pusher_email))


@cli.command("check")
def check(
    ref: str = typer.Argument(..., help="Full ref name, e.g. refs/heads/main."),
    from_id: str = typer.Option(..., "--from", help="Old object id (40 zeros for a new ref)."),
    to_id: str = typer.Option(..., "--to", help="New object id."),
    config_path: Path | None = ConfigOption,
    repo: Path | None = RepoOption,
    pusher_name: str | None = PusherNameOption,
    pusher_email: str | None = PusherEmailOption,
) -> None:
    """Evaluate a single ref change the way pre-receive would."""
    config = _load_config(config_path)
    ref_change = RefChange.from_ids(from_id, to_id, ref)
    _decide([ref_change], config, repo, _pusher(pusher_name, pusher_email))
    typer.echo(f"{ref}: ok")


@config_app.command("show")
def config_show(config_path: Path | None = ConfigOption) -> None:
    """Print the effective policy options."""
    config = _load_config(config_path)
    options = config.to_options()

    table = Table(title="commitgate policy")
    table.add_column("Option", style="cyan")
    table.add_column("Value")
    for key in OPTION_KEYS:
        value = options.get(key)
        if key == "errorMessageHeader" and value is None:
            value = "(default banner)"
        table.add_row(key, "-" if value is None else escape(str(value)))
    for key, value in options.items():
        if key not in OPTION_KEYS:
            table.add_row(key, escape(str(value)))
    console.print(table)


@config_app.command("banner")
def config_banner() -> None:
    """Print the built-in rejection header."""
    typer.echo(DEFAULT_HEADER)


if __name__ == "__main__":
    cli()
