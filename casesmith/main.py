"""Command line entry point: ``casesmith run`` and ``casesmith generate``."""

import argparse
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .analysis.extractor import extract_cfgs_from_tree
from .analysis.security_flow import SecurityFlow, to_security_flow
from .config import DEFAULT_CONFIG_PATH, Settings, load_config_text
from .output import ResultsWriter
from .parser_loader import ParserLoadError, create_parser, load_language
from .processing.parallel_processor import EXECUTORS, ParallelProcessor

console = Console()

DEMO_SOURCE = """function helloWorld(param: string): void {
    console.log('Hello, world!');
    if (param) {
        fetch(process.env.API_URL + param);
    }
}
"""


def setup_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def _show_config(command: str, config: str) -> None:
    body = escape(config) if config else "[dim](empty)[/dim]"
    console.print(Panel(body, title=escape(f"[{command}] Using config")))


def handle_run(name: str, verbose: bool, count: int, config: str) -> None:
    """Parse the built-in demo snippet ``count`` times and show its CFGs."""
    _show_config("run", config)
    source = DEMO_SOURCE.encode("utf-8")
    for i in range(count):
        if verbose:
            console.print(f"[dim]Verbose mode is enabled ({escape(name)}, pass {i + 1}/{count}).[/dim]")
        tree = create_parser("typescript").parse(source)
        console.print(f"Root node: [cyan]{tree.root_node.type}[/cyan]")

        cfgs = extract_cfgs_from_tree(source, tree)
        table = Table(title=f"Demo CFGs for {escape(name)}")
        table.add_column("Function", style="cyan")
        table.add_column("Nodes", style="yellow")
        table.add_column("Edges", style="green")
        for func, cfg in cfgs.items():
            table.add_row(escape(func), escape("\n".join(cfg.nodes)), str(len(cfg.edges)))
        console.print(table)


def handle_generate(
    output: str | None,
    config: str,
    workers: int | None = None,
    executor: str | None = None,
    show_progress: bool = False,
) -> SecurityFlow | None:
    """Extract CFGs for every source file under ``output`` and write all artifacts.

    Returns the security flow, or None when the run could not start.
    """
    _show_config("generate", config)
    if not output:
        console.print("[red]No output directory specified.[/red]")
        return None

    root = Path(output)
    if not root.is_dir():
        console.print(
            f"[red]Output path '{escape(output)}' is not a directory. Create it first, then rerun.[/red]"
        )
        return None

    settings = Settings.from_text(config)
    for language in set(settings.extensions.values()):
        load_language(language)

    writer = ResultsWriter(root, settings.results_dir)
    if not writer.prepare():
        console.print(f"[red]Failed to create results dir {escape(str(writer.results_root))}[/red]")
        return None

    processor = ParallelProcessor(
        root,
        max_workers=workers or settings.workers,
        executor=executor or settings.executor,
        extensions=settings.extensions,
        ignore_dirs=settings.ignore_dirs,
        show_progress=show_progress,
    )
    all_cfgs = processor.run()

    flow = to_security_flow(all_cfgs)
    writer.write_all(all_cfgs, flow)
    _show_index(flow)
    return flow


def _show_index(flow: SecurityFlow) -> None:
    table = Table(title="Security Flow")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="yellow")
    for metric, value in flow.index.to_dict().items():
        table.add_row(metric, str(value))
    console.print(table)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="casesmith",
        description="Extract security-tagged control flow graphs from TypeScript code.",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to the config file (default: config.toml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the built-in demo")
    run.add_argument("-n", "--name", required=True)
    run.add_argument("-v", "--verbose", action="store_true")
    run.add_argument("-c", "--count", type=int, default=1)

    generate = subparsers.add_parser(
        "generate", help="Write CFGs and the security flow for a source tree"
    )
    generate.add_argument("-o", "--output", help="Directory to scan; results are written inside it")
    generate.add_argument("--workers", type=int, help="Number of workers (default: auto-detect)")
    generate.add_argument("--executor", choices=EXECUTORS, help="Worker pool type")
    generate.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)
    config = load_config_text(args.config)

    try:
        if args.command == "run":
            handle_run(args.name, args.verbose, args.count, config)
            return 0
        flow = handle_generate(
            args.output,
            config,
            workers=args.workers,
            executor=args.executor,
            show_progress=True,
        )
    except ParserLoadError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        logger.exception("Parser setup failed")
        return 1
    return 0 if flow is not None else 1


if __name__ == "__main__":
    sys.exit(main())
