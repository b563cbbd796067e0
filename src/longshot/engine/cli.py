"""Command line interface for the longshot odds engine."""

from __future__ import annotations

import argparse
import dataclasses
import json
from pathlib import Path
from typing import Any, Callable, Dict, Sequence

from ..cache import get_dataset_cache
from ..config import get_config, update_config
from .configuration import (
    Calibration,
    ConfigurationError,
    load_calibration,
    validate_calibration,
)
from .logging import configure_logging
from .models import PlayerProfile
from .outcomes import OutcomeContext, build_performance_threshold_outcome
from .pipeline import EstimateRequest, OddsEngine


@dataclasses.dataclass(slots=True)
class CommandContext:
    """Runtime objects shared across command handlers."""

    engine: OddsEngine
    calibration: Calibration
    verbose: bool = False


CommandHandler = Callable[[CommandContext, argparse.Namespace], None]


@dataclasses.dataclass(slots=True)
class Subcommand:
    """Container describing a CLI sub-command."""

    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    handler: CommandHandler

    def add_to_parser(
        self,
        subparsers,
        parent: argparse.ArgumentParser,
    ) -> argparse.ArgumentParser:
        """Create the parser for this subcommand."""

        parser = subparsers.add_parser(self.name, parents=[parent], help=self.help)
        self.configure(parser)
        parser.set_defaults(handler=self.handler, command=self.name)
        return parser


class SubcommandApp:
    """Registry that wires handlers into an :class:`argparse` parser."""

    def __init__(self, description: str | None = None) -> None:
        self._commands: list[Subcommand] = []
        self._description = description

    def command(
        self,
        name: str,
        *,
        help: str,
        configure: Callable[[argparse.ArgumentParser], None],
    ) -> Callable[[CommandHandler], CommandHandler]:
        """Register ``handler`` as a sub-command with configuration callback."""

        def _decorator(handler: CommandHandler) -> CommandHandler:
            self._commands.append(Subcommand(name=name, help=help, configure=configure, handler=handler))
            return handler

        return _decorator

    @property
    def commands(self) -> Sequence[Subcommand]:
        return tuple(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parent = argparse.ArgumentParser(add_help=False)
        parent.add_argument("--calibration", dest="calibration_file")
        parent.add_argument("--environment", dest="calibration_environment")
        parent.add_argument("--data-dir")
        parent.add_argument("--log-level")
        parent.add_argument("--verbose", action="store_true", default=None)

        parser = argparse.ArgumentParser(description=self._description)
        subparsers = parser.add_subparsers(dest="command", required=True)
        for command in self._commands:
            command.add_to_parser(subparsers, parent)
        return parser


APP = SubcommandApp(description=__doc__)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=False))


def _configure_profile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", dest="player_name")
    parser.add_argument("--position")
    parser.add_argument("--age", type=float)
    parser.add_argument("--years-exp", type=int)
    parser.add_argument("--team", dest="team_abbr")
    parser.add_argument("--status", choices=("active", "retired", "deceased", "unknown"))
    parser.add_argument("--team-sb-pct", type=float, dest="team_super_bowl_pct")
    parser.add_argument("--as-of", dest="as_of_date")


def _profile_from_args(args: argparse.Namespace) -> PlayerProfile | None:
    if not getattr(args, "player_name", None):
        return None
    values: Dict[str, object] = {
        "name": args.player_name,
        "position": args.position,
        "age": args.age,
        "years_exp": args.years_exp,
        "team_abbr": args.team_abbr,
        "status": args.status,
    }
    return PlayerProfile.from_mapping(values)


def _configure_estimate_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("prompt", nargs="+")
    _configure_profile_arguments(parser)


@APP.command(
    "estimate",
    help="Price a free-text hypothetical",
    configure=_configure_estimate_parser,
)
def _cmd_estimate(context: CommandContext, args: argparse.Namespace) -> None:
    request = EstimateRequest(
        prompt=" ".join(args.prompt),
        profile=_profile_from_args(args),
        calibration=context.calibration,
        as_of_date=args.as_of_date,
        team_super_bowl_pct=args.team_super_bowl_pct,
    )
    estimate = context.engine.estimate(request)
    if estimate is None:
        print("No estimator recognised this prompt.")
        raise SystemExit(1)
    _print_json(estimate.to_dict(include_trace=context.verbose))


def _configure_outlook_parser(parser: argparse.ArgumentParser) -> None:
    _configure_profile_arguments(parser)
    parser.add_argument("--threshold", nargs=2, action="append", metavar=("METRIC", "VALUE"))


@APP.command(
    "outlook",
    help="Project career outcome distributions for a player",
    configure=_configure_outlook_parser,
)
def _cmd_outlook(context: CommandContext, args: argparse.Namespace) -> None:
    profile = _profile_from_args(args)
    if profile is None:
        print("outlook requires --name")
        raise SystemExit(2)
    outlook = context.engine.outlook(
        profile,
        team_super_bowl_pct=args.team_super_bowl_pct,
        as_of_date=args.as_of_date,
        calibration=context.calibration,
    )
    payload = outlook.to_dict()
    if args.threshold:
        outcome_context = OutcomeContext(calibration=context.calibration)
        payload["customThresholds"] = [
            build_performance_threshold_outcome(profile, metric, float(value), outcome_context).to_dict()
            for metric, value in args.threshold
        ]
    _print_json(payload)


def _configure_validate_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--warnings-as-errors", action="store_true", default=False)


@APP.command(
    "validate-config",
    help="Validate calibration overrides",
    configure=_configure_validate_parser,
)
def _cmd_validate_config(context: CommandContext, args: argparse.Namespace) -> None:
    try:
        warnings = validate_calibration(context.calibration)
    except ConfigurationError as exc:
        print("Calibration invalid:")
        for line in str(exc).splitlines():
            text = line if line.startswith("-") else f"- {line}"
            print(text)
        raise SystemExit(1) from exc

    print("Calibration is valid.")
    if warnings:
        print("Warnings:")
        for message in warnings:
            print(f"- {message}")
        if args.warnings_as_errors:
            raise SystemExit(2)


def _configure_datasets_parser(parser: argparse.ArgumentParser) -> None:
    return None


@APP.command(
    "datasets",
    help="Show which season datasets are available",
    configure=_configure_datasets_parser,
)
def _cmd_datasets(context: CommandContext, args: argparse.Namespace) -> None:
    cfg = get_config()
    cache = get_dataset_cache()
    rows = []
    for name, path in (("qb", cfg.qb_dataset_path), ("skill", cfg.skill_dataset_path)):
        dataset = cache.get(name)
        rows.append(
            {
                "name": name,
                "path": str(path),
                "loaded": dataset is not None,
                "players": len(dataset) if dataset is not None else 0,
                "latestSeason": dataset.latest_season if dataset is not None else None,
            }
        )
    _print_json(rows)


def _build_parser() -> argparse.ArgumentParser:
    return APP.build_parser()


def _dispatch(args: argparse.Namespace) -> None:
    if args.data_dir:
        update_config(data_dir=Path(args.data_dir))
    if args.verbose is not None:
        update_config(verbose=args.verbose)
    cfg = get_config()
    configure_logging(args.log_level or cfg.log_level)

    base_path = args.calibration_file or cfg.calibration_path
    calibration = load_calibration(base_path=base_path, environment=args.calibration_environment)
    context = CommandContext(
        engine=OddsEngine(calibration=calibration),
        calibration=calibration,
        verbose=cfg.verbose,
    )
    handler: CommandHandler = args.handler
    handler(context, args)


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _dispatch(args)


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
