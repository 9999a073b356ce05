"""
Axiom CLI: command-line shell for the hybrid query orchestrator.

Answers a single query with --query, or runs an interactive loop with the
commands `help`, `stats` and `exit`/`quit`.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import asyncio
from typing import Optional, TextIO

from orchestrator import __version__
from orchestrator.config import OrchestratorConfig
from orchestrator.error_handler import ConfigurationError, ValidationError
from orchestrator.flow_manager import QueryOrchestrator
from orchestrator.intent_classifier import describe_intent
from orchestrator.models import QueryResult
from utils.logging_config import setup_logging

HELP_TEXT = """Commands:
  help         Show this message
  stats        Show query statistics
  exit, quit   Leave the shell
Anything else is answered as a query, for example:
  calculate (2 + 3) * 4
  prove ancestor(uranus, hercules)
  explain why 10 * 5 = 50"""

EXIT_COMMANDS = {'exit', 'quit'}


def _print_verification(result: QueryResult, out: TextIO):
    summary = result.verification
    if summary is None:
        return
    if summary.total == 0:
        print("🔍 No verifiable claims in the draft", file=out)
    else:
        status = "✅" if summary.all_verified else "⚠️ "
        print(f"{status} Verified {summary.verified}/{summary.total} claims", file=out)


async def answer_query(orchestrator: QueryOrchestrator, query: str, out: TextIO = sys.stdout) -> Optional[QueryResult]:
    """
    Answer one query, streaming chunks to `out` as they arrive.

    Returns:
        The completed QueryResult, or None when the query was rejected
    """
    try:
        result = await orchestrator.process(query)
    except ValidationError as e:
        print(f"❌ {e}", file=out)
        return None

    print(f"🧭 {describe_intent(result.intent)}", file=out)
    last_chunk = ""
    async for chunk in result.iter_chunks():
        out.write(chunk)
        out.flush()
        last_chunk = chunk
    if not last_chunk.endswith("\n"):
        out.write("\n")

    if result.error is not None:
        print(f"❌ {result.error}", file=out)
    _print_verification(result, out)
    return result


async def run_interactive(orchestrator: QueryOrchestrator, source: TextIO = sys.stdin, out: TextIO = sys.stdout):
    """Read queries line by line until exit or end of input."""
    print(f"🤖 Axiom {__version__} (producer: {orchestrator.producer.name}). Type 'help' for commands.", file=out)

    while True:
        out.write("axiom> ")
        out.flush()
        line = source.readline()
        if not line:
            print(file=out)
            break

        command = line.strip()
        if not command:
            continue
        if command.lower() in EXIT_COMMANDS:
            break
        if command.lower() == 'help':
            print(HELP_TEXT, file=out)
            continue
        if command.lower() == 'stats':
            print(orchestrator.statistics.generate_report(), file=out)
            continue

        await answer_query(orchestrator, command, out)


async def run_cli(args: argparse.Namespace, out: TextIO = sys.stdout) -> int:
    """Build the orchestrator from arguments and environment, then run."""
    try:
        config = OrchestratorConfig.from_env(
            producer_backend=args.backend,
            model=args.model,
            verbose=True if args.verbose else None
        )
    except (ConfigurationError, ValueError) as e:
        print(f"❌ Invalid configuration: {e}", file=out)
        return 2

    orchestrator = QueryOrchestrator(config=config)

    if args.query:
        result = await answer_query(orchestrator, args.query, out)
        exit_code = 1 if result is None else 0
    else:
        await run_interactive(orchestrator, out=out)
        exit_code = 0

    if args.stats or not args.query:
        print(orchestrator.statistics.generate_report(), file=out)
    return exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Answer queries with a text model, a deterministic evaluator, or both",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/axiom_cli.py                                   # Interactive shell
  python scripts/axiom_cli.py --query "calculate 2 + 2"         # One-shot logical query
  python scripts/axiom_cli.py -q "explain 10 * 5 = 50" --backend echo
  python scripts/axiom_cli.py --model llama3.2:3b --verbose     # Use another Ollama model
        """
    )

    parser.add_argument('--query', '-q', help='Answer a single query and exit')
    parser.add_argument('--backend', '-b', choices=['ollama', 'echo', 'none'],
                        help='Text producer backend (default: AXIOM_PRODUCER_BACKEND or ollama)')
    parser.add_argument('--model', '-m', help='Ollama model name (default: AXIOM_MODEL or gemma3:4b)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show detailed pipeline output')
    parser.add_argument('--log-level', default='WARNING',
                        help='Logging level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--stats', action='store_true',
                        help='Print a statistics report after a one-shot query')
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        setup_logging(level='DEBUG' if args.verbose else args.log_level)
    except ValueError as e:
        print(f"❌ {e}")
        return 2

    try:
        return asyncio.run(run_cli(args))
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
