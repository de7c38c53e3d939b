"""Command-line interface for pathspectre.
Provides two commands:
1. Exploration of a JSON graph file: pathspectre explore graph.json
2. Config file creation: pathspectre init
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from pathspectre import __version__
from pathspectre.analysis.cfg import load_graphs
from pathspectre.config import STRATEGIES, init_config, load_config
from pathspectre.core.errors import MalformedGraphError
from pathspectre.execution.parallel import explore_functions
from pathspectre.logging import LogLevel, configure_logging
from pathspectre.reporting.formatters import format_result
from pathspectre.testing.annotations import AnnotationError, verify
def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="pathspectre",
        description="pathspectre - path-sensitive symbolic execution over control-flow graphs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Explore every function of a graph file
  pathspectre explore graph.json
  # Depth-first, with a smaller step budget, as JSON
  pathspectre explore graph.json --strategy dfs --max-steps 500 --format json
  # Check the expected-state annotations stored in the graph
  pathspectre explore graph.json --check
  # Write a default pathspectre.toml
  pathspectre init
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"pathspectre {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    explore_parser = subparsers.add_parser(
        "explore",
        help="Explore the functions of a JSON graph file",
        description="Run path exploration on every function of a graph file",
    )
    explore_parser.add_argument(
        "graph",
        type=str,
        help="JSON file with one graph or {\"functions\": [...]}",
    )
    explore_parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Step budget per function (default: from config, 10000)",
    )
    explore_parser.add_argument(
        "--strategy",
        type=str,
        choices=sorted(STRATEGIES),
        default=None,
        help="Frontier order (default: from config, bfs)",
    )
    explore_parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default=None,
        help="Output format (default: from config, text)",
    )
    explore_parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file path (default: stdout)",
    )
    explore_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Config file (default: search from the current directory)",
    )
    explore_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Functions explored concurrently (default: from config)",
    )
    explore_parser.add_argument(
        "--check",
        action="store_true",
        help="Verify the expected-state annotations of the graph; exit 1 on mismatch",
    )
    explore_parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write log output to this file",
    )
    verbosity = explore_parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Verbose output (-vv for debug, -vvv for per-step trace)",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report errors",
    )
    init_parser = subparsers.add_parser(
        "init",
        help="Create a default pathspectre.toml",
    )
    init_parser.add_argument(
        "directory",
        type=str,
        nargs="?",
        default=None,
        help="Directory to create the file in (default: current)",
    )
    return parser
def _log_level(args, config) -> LogLevel:
    if args.quiet or config.output.quiet:
        return LogLevel.QUIET
    verbose = args.verbose or (1 if config.output.verbose else 0)
    return LogLevel(min(LogLevel.NORMAL + verbose, LogLevel.TRACE))
def cmd_explore(args) -> int:
    """Execute explore command."""
    config_path = Path(args.config) if args.config else None
    if config_path is not None and not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return 1
    config = load_config(config_path)
    if args.max_steps is not None:
        config.limits.max_steps = args.max_steps
    if args.strategy is not None:
        config.exploration.strategy = args.strategy
    if args.format is not None:
        config.output.format = args.format
    if args.workers is not None:
        config.parallel.max_workers = args.workers
    logger = configure_logging(
        level=_log_level(args, config),
        color=config.output.color,
        file_path=Path(args.log_file) if args.log_file else None,
    )
    try:
        return _run_explore(args, config, logger)
    finally:
        logger.close()
def _run_explore(args, config, logger) -> int:
    path = Path(args.graph)
    if not path.exists():
        logger.error(f"Graph file not found: {path}")
        return 1
    try:
        graphs = load_graphs(path)
        with logger.timer(f"explored {len(graphs)} function(s)", category="cli"):
            results = explore_functions(
                graphs,
                config.to_exploration_config(),
                max_workers=config.parallel.max_workers,
                logger=logger,
            )
    except MalformedGraphError as e:
        logger.error(str(e))
        return 1
    output = format_result(
        results,
        config.output.format,
        **_formatter_options(config),
    )
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info(f"Report saved to: {args.output}", category="cli")
    else:
        print(output, end="")
    for result in results:
        if result.budget is not None:
            logger.warning(str(result.budget))
    if not args.check:
        return 0
    failures = 0
    try:
        for graph, result in zip(graphs, results):
            for mismatch in verify(graph, result):
                failures += 1
                logger.error(f"{graph.name}: {mismatch}")
    except AnnotationError as e:
        logger.error(str(e))
        return 1
    if failures:
        return 1
    logger.success("All annotations hold")
    return 0
def _formatter_options(config) -> dict:
    if config.output.format == "json":
        return {"include_summary": config.output.show_summary}
    return {
        "show_states": config.output.show_states,
        "show_summary": config.output.show_summary,
    }
def cmd_init(args) -> int:
    """Execute init command."""
    directory = Path(args.directory) if args.directory else None
    try:
        path = init_config(directory)
    except FileExistsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Created {path}")
    return 0
def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.command == "explore":
        return cmd_explore(args)
    elif args.command == "init":
        return cmd_init(args)
    parser.print_help()
    return 0
if __name__ == "__main__":
    sys.exit(main())
