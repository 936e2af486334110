"""Command-line interface for the QUIC interop harness.

Example:
    >>> # From terminal:
    >>> # quic-interop --version
    >>> # quic-interop peers
    >>> # quic-interop run -p local -T h3
    >>> # quic-interop run --config peers.json --format json --fail-on-error
"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from quic_interop import __version__
from quic_interop.config import InteropConfig, LabelFilter, Selection, load_config
from quic_interop.errors import ConfigError
from quic_interop.models.enums import ProbeKind
from quic_interop.observability import configure_logging, get_logger
from quic_interop.observability.logging import LOG_FORMATS
from quic_interop.report import all_passed, format_table, summarize, to_json
from quic_interop.runner import InteropRunner

logger = get_logger(__name__)

app = typer.Typer(help="QUIC interop client: run probes against remote peers.")

OUTPUT_FORMATS = ("table", "json")


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show quic-interop version and exit.",
    callback=_version_callback,
    is_eager=True,
)

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="JSON peer table (default: the packaged table).",
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """quic-interop entrypoint."""


def _load(config_path: Optional[Path]) -> InteropConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        raise typer.BadParameter(exc.message, param_hint="--config") from exc


def _check_labels(labels: list[str], known: list[str], option: str) -> None:
    unknown = sorted(set(labels) - set(known))
    if unknown:
        raise typer.BadParameter(
            f"unknown label(s): {', '.join(unknown)} (known: {', '.join(known)})",
            param_hint=option,
        )


def _warn_unmatched(labels: list[str], known: list[str], option: str) -> None:
    """Log exclusions that match no known label; they remove nothing."""
    unknown = sorted(set(labels) - set(known))
    if unknown:
        logger.warning("interop.cli.unmatched_exclude", option=option, labels=unknown)


@app.command("run")
def run(
    include: Annotated[
        Optional[list[str]],
        typer.Option("--include", "-p", help="Peer to include (repeatable; default: all)."),
    ] = None,
    exclude: Annotated[
        Optional[list[str]],
        typer.Option("--exclude", "-P", help="Peer to exclude (repeatable; wins over include)."),
    ] = None,
    include_tests: Annotated[
        Optional[list[str]],
        typer.Option("--include-tests", "-t", help="Probe to include (connect, h9, h3)."),
    ] = None,
    exclude_tests: Annotated[
        Optional[list[str]],
        typer.Option("--exclude-tests", "-T", help="Probe to exclude (repeatable)."),
    ] = None,
    config_path: Optional[Path] = CONFIG_OPTION,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", min=0.001, help="Per-phase budget in seconds."),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Report format: table or json."),
    ] = "table",
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Log format: console or json."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Minimum log level (DEBUG, INFO, WARNING, ERROR)."),
    ] = None,
    fail_on_error: Annotated[
        bool,
        typer.Option("--fail-on-error", help="Exit with status 1 unless every probe passed."),
    ] = False,
) -> None:
    """Run the selected probes against the selected peers and report each outcome."""
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"must be one of {', '.join(OUTPUT_FORMATS)}", param_hint="--format")
    if log_format is not None and log_format not in LOG_FORMATS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_FORMATS)}", param_hint="--log-format")
    try:
        configure_logging(log_format=log_format, log_level=log_level, force=True)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc

    config = _load(config_path)
    if timeout is not None:
        config = config.model_copy(update={"phase_timeout_seconds": timeout})

    include, exclude = include or [], exclude or []
    include_tests, exclude_tests = include_tests or [], exclude_tests or []
    probe_labels = [kind.label for kind in ProbeKind.ordered()]
    _check_labels(include, config.peer_labels, "--include")
    _check_labels(include_tests, probe_labels, "--include-tests")
    _warn_unmatched(exclude, config.peer_labels, "--exclude")
    _warn_unmatched(exclude_tests, probe_labels, "--exclude-tests")

    selection = Selection(
        peers=LabelFilter.of(include, exclude),
        probes=LabelFilter.of(include_tests, exclude_tests),
    )
    outcomes = InteropRunner(config, selection).run()

    if output_format == "json":
        typer.echo(to_json(outcomes))
    else:
        typer.echo(format_table(outcomes))
        counts = summarize(outcomes)
        typer.echo(
            f"\n{len(outcomes)} result(s): "
            + ", ".join(f"{count} {status}" for status, count in counts.items())
        )

    if fail_on_error and not all_passed(outcomes):
        raise typer.Exit(1)


@app.command("peers")
def peers(config_path: Optional[Path] = CONFIG_OPTION) -> None:
    """List the configured peers."""
    config = _load(config_path)
    width = max((len(peer.label) for peer in config.peers), default=0)
    for peer in config.peers:
        typer.echo(f"{peer.label:<{width}}  {peer.authority}")


@app.command("probes")
def probes() -> None:
    """List the available probes."""
    for kind in ProbeKind.ordered():
        typer.echo(f"{kind.label:<8} {', '.join(kind.default_alpn):<12} {kind.description}")


def main() -> None:
    app()
