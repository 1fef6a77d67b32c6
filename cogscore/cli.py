"""Click-based CLI for scoring expressions."""

import asyncio
import logging
from pathlib import Path
from typing import Any

import click

from cogscore.bias import PROFILES
from cogscore.config import EngineConfig
from cogscore.errors import PipelineError
from cogscore.lexical import LEARNER_PROFILES
from cogscore.orchestrator import CognitiveScoringEngine
from cogscore.schemas import CognitiveStateVector

logger = logging.getLogger(__name__)


def parse_config_args(config_args: list[str]) -> dict[str, Any]:
    """Parse key=value configuration overrides into numbers.

    Args:
        config_args: List of "key=value" strings

    Returns:
        Dictionary of parsed overrides (ints where possible, else floats)

    Raises:
        ValueError: If any arg is not key=value or the value is not numeric

    Example:
        >>> parse_config_args(["lambda1=0.5", "seed=7"])
        {"lambda1": 0.5, "seed": 7}
    """
    overrides: dict[str, Any] = {}
    for arg in config_args:
        if "=" not in arg:
            raise ValueError(f"Invalid config format: {arg}. Expected key=value")
        key, raw = arg.split("=", 1)
        raw = raw.strip()
        try:
            value: Any = int(raw)
        except ValueError:
            try:
                value = float(raw)
            except ValueError:
                raise ValueError(f"Config value for '{key.strip()}' must be numeric, got {raw!r}") from None
        overrides[key.strip()] = value
    return overrides


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def cli(verbose: bool) -> None:
    """Cognitive-weighted scoring of symbolic expressions."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.debug("CLI initialized")


@cli.command()
@click.argument("expression")
@click.option(
    "--learner",
    "-l",
    type=click.Choice(sorted(LEARNER_PROFILES), case_sensitive=False),
    default="intermediate",
    help="Learner profile used for viability",
)
@click.option(
    "--bias-profile",
    "-b",
    type=click.Choice(sorted(PROFILES), case_sensitive=False),
    default=None,
    help="Bias profile for the session",
)
@click.option(
    "--config",
    "-c",
    "config_args",
    multiple=True,
    help="Configuration override as key=value (repeatable)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the full result as JSON",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the JSON result to a file",
)
def score(
    expression: str,
    learner: str,
    bias_profile: str | None,
    config_args: tuple[str, ...],
    as_json: bool,
    output: Path | None,
) -> None:
    """Compute Ψ for EXPRESSION and suggest a rewrite.

    Examples:

        cogscore score "{1,2} ∪ {3,4}"

        cogscore score "A ∩ B" --learner beginner -c lambda1=0.5 --json
    """
    try:
        config = EngineConfig.from_mapping(parse_config_args(list(config_args)))
    except ValueError as e:
        raise click.BadParameter(str(e))

    with CognitiveScoringEngine(config, learner_profile=learner) as engine:
        session = engine.open_session(bias_profile=bias_profile)
        try:
            result = asyncio.run(session.optimize(expression))
        except PipelineError as e:
            logger.error(f"Scoring failed: {e}")
            raise click.ClickException(str(e))

    result_json = result.model_dump_json(indent=2)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result_json)
        click.echo(f"Result written to {output}")
    elif as_json:
        click.echo(result_json)
    else:
        components = result.components
        meta = result.meta_analysis
        click.echo(f"Ψ            {result.psi:.4f}")
        click.echo(f"symbolic     {components.symbolic:.4f}")
        click.echo(f"neural       {components.neural:.4f}")
        click.echo(f"alpha        {components.alpha:.4f}")
        click.echo(f"penalty      {components.penalty_factor:.4f}")
        click.echo(f"bias         {components.biased_probability:.4f}")
        click.echo(f"health       {meta.system_health.value}")
        if meta.recommendations:
            click.echo(f"recommend    {', '.join(r.value for r in meta.recommendations)}")
        click.echo(f"optimized    {result.optimized_expression}")


@cli.command()
@click.argument("expression")
@click.option("--attention", "-a", type=click.FloatRange(0.0, 1.0), default=0.5, help="Attention level")
@click.option("--recognition", "-r", type=click.FloatRange(0.0, 1.0), default=0.5, help="Recognition level")
@click.option("--wandering", "-w", type=click.FloatRange(0.0, 1.0), default=0.1, help="Mind-wandering level")
@click.option(
    "--learner",
    "-l",
    type=click.Choice(sorted(LEARNER_PROFILES), case_sensitive=False),
    default="intermediate",
    help="Learner profile used for viability",
)
def suggest(
    expression: str,
    attention: float,
    recognition: float,
    wandering: float,
    learner: str,
) -> None:
    """List alternative notations for EXPRESSION ranked by viability."""
    state = CognitiveStateVector(attention=attention, recognition=recognition, wandering=wandering)
    with CognitiveScoringEngine(learner_profile=learner) as engine:
        ranked = engine.rank_notations(expression, state)
    for suggestion in ranked:
        click.echo(f"{suggestion.score:.4f}  {suggestion.transform:<12} {suggestion.notation}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
