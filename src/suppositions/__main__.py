"""Main entry point for suppositions."""

import signal
import sys
import traceback
from typing import Any

import click

from suppositions.cli import EnumChoice, validate_target
from suppositions.properties import PropertyTest
from suppositions.runner import CheckStatus
from suppositions.work import Volume


EXIT_CODES = {
    CheckStatus.passed: 0,
    CheckStatus.failed: 1,
    CheckStatus.discards_exhausted: 2,
}


@click.command(
    help="""
suppositions runs a property test, given as MODULE:ATTRIBUTE naming a function
decorated with @forall. It exits with status 0 if the property held for every
trial, 1 if a counterexample was found (which is shrunk and printed), and 2 if
too many generated values were discarded in a row.
""".strip()
)
@click.version_option()
@click.option(
    "--runs",
    type=click.INT,
    default=None,
    help="Number of successful trials to run. Defaults to the property's own setting.",
)
@click.option(
    "--max-discards",
    type=click.INT,
    default=None,
    help="Give up after this many consecutive discarded trials.",
)
@click.option(
    "--seed",
    type=click.INT,
    default=None,
    help="Random seed for generating trials. Unseeded runs use fresh entropy.",
)
@click.option(
    "--max-shrinks",
    type=click.INT,
    default=None,
    help="Stop shrinking after this many successful reductions.",
)
@click.option(
    "--parallelism",
    type=click.INT,
    default=None,
    help="Number of shrink proposals to evaluate concurrently. Defaults to the property's own setting.",
)
@click.option(
    "--volume",
    default=None,
    type=EnumChoice(Volume),
    help="Level of output to provide. Defaults to the property's own setting.",
)
@click.option(
    "--stats/--no-stats",
    default=False,
    help="Print statistics about the run when it finishes.",
)
@click.argument("target", callback=validate_target)
def main(
    target: PropertyTest,
    runs: int | None,
    max_discards: int | None,
    seed: int | None,
    max_shrinks: int | None,
    parallelism: int | None,
    volume: Volume | None,
    stats: bool,
) -> None:
    # This is a debugging option so that when shrinking seems to be taking
    # a long time you can Ctrl-\ to find out what it's up to.
    def dump_trace(signum: int, frame: Any) -> None:  # pragma: no cover
        traceback.print_stack()

    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, dump_trace)

    overrides: dict[str, Any] = {}
    if runs is not None:
        overrides["runs"] = runs
    if max_discards is not None:
        overrides["max_discards"] = max_discards
    if seed is not None:
        overrides["seed"] = seed
    if max_shrinks is not None:
        overrides["max_shrinks"] = max_shrinks
    if parallelism is not None:
        overrides["parallelism"] = parallelism
    if volume is not None:
        overrides["volume"] = volume

    try:
        result = target.check(**overrides)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    click.echo(result.display())
    if stats:
        click.echo(result.stats.display_stats())
        if result.shrink_stats is not None:
            click.echo(result.shrink_stats.display_stats())
    sys.exit(EXIT_CODES[result.status])


if __name__ == "__main__":  # pragma: no cover
    main(prog_name="suppositions")
