"""CLI entrypoints for rulescout commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from .config import ConfigError, RuleScoutConfig, load_config
from .logging import configure_logging
from .models import rule_to_dict
from .orchestrator import DiscoveryOrchestrator, ProjectDiscovery
from .stores import ResultCache


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_quiet_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Only log warnings and errors.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("concurrency must be at least 1")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulescout",
        description="Discover AI-assistant usage rules for a project's dependencies.",
    )
    _add_verbose_option(parser)
    _add_quiet_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    discover_parser = subparsers.add_parser(
        "discover",
        help="Discover rules for every dependency declared in the project manifests.",
    )
    _add_verbose_option(discover_parser, suppress_default=True)
    _add_quiet_option(discover_parser, suppress_default=True)
    _add_path_argument(discover_parser)
    discover_parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Ignore cached results and query registries again.",
    )
    discover_parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help="Maximum number of dependencies processed at once.",
    )
    discover_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the ranked rules and batch statistics as JSON.",
    )

    cache_parser = subparsers.add_parser("cache", help="Manage the discovery result cache.")
    _add_verbose_option(cache_parser, suppress_default=True)
    _add_quiet_option(cache_parser, suppress_default=True)
    cache_subparsers = cache_parser.add_subparsers(dest="cache_command", required=True)
    clear_parser = cache_subparsers.add_parser("clear", help="Remove every cached result.")
    _add_verbose_option(clear_parser, suppress_default=True)
    _add_quiet_option(clear_parser, suppress_default=True)
    _add_path_argument(clear_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for rulescout commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet))

    root = Path(args.path).expanduser().resolve()
    if not root.is_dir():
        parser.exit(1, f"{root} is not a directory\n")

    try:
        config = load_config(root)
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")

    if args.command == "discover":
        _run_discover(parser, args, config)
    elif args.command == "cache" and args.cache_command == "clear":
        _run_cache_clear(config)


def _run_discover(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: RuleScoutConfig
) -> None:
    if args.concurrency is not None:
        config.discovery.concurrency = args.concurrency
    orchestrator = DiscoveryOrchestrator.from_config(config)
    try:
        outcome = orchestrator.discover_project(
            config.root, force_refresh=True if args.force_refresh else None
        )
    except OSError as exc:
        parser.exit(1, f"rulescout discover failed: {exc}\nRun with --verbose for more details.\n")

    if args.json:
        json.dump(_as_json(outcome), sys.stdout, indent=2)
        sys.stdout.write("\n")
        return
    _print_summary(outcome)


def _run_cache_clear(config: RuleScoutConfig) -> None:
    path = config.cache_path
    if path is None:
        print("Cache is disabled; nothing to clear")
        return
    cache = ResultCache(path)
    count = len(cache)
    cache.clear()
    print(f"Cleared {count} cached result(s) from {_relativize(path)}")


def _print_summary(outcome: ProjectDiscovery) -> None:
    stats = outcome.batch.stats
    print(
        f"Processed {stats.processed} dependencies: "
        f"{stats.successful} with rules, {stats.failed} failed, {stats.total_rules} rules"
    )
    for rule in outcome.rules:
        print(f"  [{rule.confidence:.1f}] {rule.package_name}: {rule.name} ({rule.source.value})")
    for result in sorted(outcome.batch.failed, key=lambda item: item.dependency.name):
        print(f"  ! {result.dependency.name}: {result.error}")


def _as_json(outcome: ProjectDiscovery) -> Dict[str, Any]:
    stats = outcome.batch.stats
    return {
        "root": str(outcome.root),
        "stats": {
            "processed": stats.processed,
            "successful": stats.successful,
            "failed": stats.failed,
            "totalRules": stats.total_rules,
        },
        "rules": [rule_to_dict(rule) for rule in outcome.rules],
        "failed": [
            {"name": result.dependency.name, "version": result.dependency.version, "error": result.error}
            for result in sorted(outcome.batch.failed, key=lambda item: item.dependency.name)
        ],
    }


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":  # pragma: no cover
    main()
