"""The ``kubectl-watch`` command."""

from __future__ import annotations

import asyncio

import click
from click.core import ParameterSource

from kubectl_watch.app import main
from kubectl_watch.config import OUTPUT_FORMATS, load_config

_FILTER_HELP = (
    "Comma separated list of {what} to watch. Repeatable. "
    "Prefix a name with '!' to exclude it ('!!name' includes it again)."
)


def _patterns(values: tuple[str, ...]) -> list[str] | None:
    # None keeps the environment default; an explicit flag replaces it.
    return list(values) if values else None


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--master", default=None, help="Address of the Kubernetes API server. Overrides kubeconfig.")
@click.option("--kubeconfig", default=None, help="Path to a kubeconfig. Only required if out-of-cluster.")
@click.option("--context", "kube_context", default=None, help="Kubeconfig context to use.")
@click.option("-c/-C", "--color/--no-color", "colorize", default=None, help="Colorize the output (default: on).")
@click.option(
    "-o",
    "--out",
    "output",
    default=None,
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    help="Output format.",
)
@click.option("-n", "--namespace", "namespaces", multiple=True, help=_FILTER_HELP.format(what="namespaces"))
@click.option(
    "-g", "--group-version", "group_versions", multiple=True, help=_FILTER_HELP.format(what="GroupVersions")
)
@click.option(
    "-r",
    "--group-version-resource",
    "group_version_resources",
    multiple=True,
    help=_FILTER_HELP.format(what="GroupVersionResources"),
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level for diagnostics written to stderr.",
)
def cli(
    master: str | None,
    kubeconfig: str | None,
    kube_context: str | None,
    colorize: bool | None,
    output: str | None,
    namespaces: tuple[str, ...],
    group_versions: tuple[str, ...],
    group_version_resources: tuple[str, ...],
    log_level: str | None,
) -> None:
    """Watch every resource in the cluster and print changes as diffs."""
    if click.get_current_context().get_parameter_source("colorize") is ParameterSource.DEFAULT:
        colorize = None
    try:
        config = load_config(
            master=master,
            kubeconfig=kubeconfig,
            context=kube_context,
            colorize=colorize,
            output=output,
            namespaces=_patterns(namespaces),
            group_versions=_patterns(group_versions),
            group_version_resources=_patterns(group_version_resources),
            log_level=log_level,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    raise SystemExit(asyncio.run(main(config)))
