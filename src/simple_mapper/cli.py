"""
Command-line interface for simple-mapper.

Loads mapping profiles from an importable module and inspects the
configuration they produce: the compiled member plan of every type pair,
and destination members that nothing populates.
"""

import json
import logging
import sys
import warnings

import click

from . import __version__
from .definitions import MappingDefinition
from .engine import MappingEngine
from .errors import MappingError
from .profiles import load_target


def _load_engine(target: str) -> MappingEngine:
    """Build an engine from TARGET, exiting with status 1 on failure."""
    engine = MappingEngine()
    try:
        profiles = load_target(target)
        engine.add_profile(*profiles)
        with warnings.catch_warnings():
            # Recorded on the registry and reported by the commands
            warnings.simplefilter("ignore")
            engine.seal()
    except (ImportError, AttributeError, LookupError, TypeError, MappingError) as e:
        click.echo(click.style(f"Error loading {target}: {e}", fg="red"), err=True)
        sys.exit(1)
    return engine


def _definition_dict(definition: MappingDefinition) -> dict:
    return {
        "source": definition.source_type.__qualname__,
        "destination": definition.destination_type.__qualname__,
        "reverse": definition.is_reverse,
        "max_depth": definition.max_depth,
        "preserve_references": definition.preserve_references,
        "ignored": definition.ignored_members,
        "members": [
            {
                "name": plan.name,
                "source": plan.source.name if plan.source is not None else None,
                "computed": plan.rule is not None and plan.rule.source_selector is not None,
                "kind": plan.kind.value,
            }
            for plan in definition.plan
        ],
    }


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """
    Simple Mapper.

    Inspect object mapping profiles.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("target")
@click.option("--json", "as_json", is_flag=True, help="Output the plan as JSON")
def plan(target: str, as_json: bool) -> None:
    """Print the member plan of every configured type pair.

    TARGET is a module (profiles are discovered) or module:attribute
    naming one profile.

    Example:

        simple-mapper plan myapp.mapping:UserProfile
    """
    engine = _load_engine(target)
    registry = engine.registry
    definitions = [registry.resolve(*pair) for pair in registry.type_pairs()]

    if as_json:
        click.echo(json.dumps([_definition_dict(d) for d in definitions], indent=2))
        return

    for definition in definitions:
        label = str(definition.type_pair)
        if definition.is_reverse:
            label += " (reverse)"
        click.echo(click.style(label, fg="cyan", bold=True))
        options = []
        if definition.max_depth:
            options.append(f"max_depth={definition.max_depth}")
        if definition.preserve_references:
            options.append("preserve_references")
        if options:
            click.echo(f"  options: {', '.join(options)}")
        for member_plan in definition.plan:
            click.echo(f"  {member_plan.describe()}")
        for name in definition.ignored_members:
            click.echo(f"  {name} (ignored)")
        click.echo()


@main.command()
@click.argument("target")
def check(target: str) -> None:
    """Report unmapped destination members and dropped reverse rules.

    Exits with status 1 when any destination member is left unmapped.
    """
    engine = _load_engine(target)
    registry = engine.registry

    unmapped_total = 0
    for pair in registry.type_pairs():
        unmapped = registry.unmapped_members(*pair)
        if unmapped:
            unmapped_total += len(unmapped)
            click.echo(click.style(f"{pair}: unmapped {', '.join(unmapped)}", fg="red"))

    for warning in registry.warnings:
        click.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)

    pairs = len(registry.type_pairs())
    if unmapped_total:
        click.echo(click.style(f"{unmapped_total} unmapped member(s) in {pairs} type pair(s)", fg="red"))
        sys.exit(1)
    click.echo(click.style(f"✓ {pairs} type pair(s), all destination members mapped", fg="green"))


if __name__ == "__main__":
    main()
