"""Command line interface for Swiss Forecast.

Usage examples::

    swissforecast predict tournament.json
    swissforecast predict tournament.json --round 5 --engine javafo --json
    swissforecast standings tournament.json
    swissforecast backtest tournament.json
    swissforecast interactive tournament.json
"""

# Swiss Forecast
# Copyright (C) 2025  Swiss Forecast developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import argparse
import json
import sys
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter, WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from swissforecast import __version__
from swissforecast.comparison import backtest
from swissforecast.compatibility.javafo import JaVaFoEngine
from swissforecast.config import PairingConfig, load_config
from swissforecast.exceptions import (
    ConfigurationException,
    InputException,
    InvalidTournamentDataException,
    SwissForecastException,
)
from swissforecast.forecast import ForecastReport, PairingEngine, forecast_round
from swissforecast.pairing import DutchSwissEngine
from swissforecast.tournament import TournamentState, build_standings
from swissforecast.utils import setup_logger
from swissforecast.utils.logging import set_verbose

logger = setup_logger(__name__)

EXIT_OK = 0
EXIT_ENGINE_FAILURE = 1
EXIT_INPUT_ERROR = 2
EXIT_INTERRUPTED = 130


# ANSI color codes for terminal output
class Colors:
    HEADER = "\033[95m"
    OKBLUE = "\033[94m"
    OKCYAN = "\033[96m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


# Commands available in interactive mode
COMMANDS = {
    "predict": {
        "description": "Predict the next round, or a historical one",
        "options": {
            "--round": "Round to predict (default: next round)",
            "--engine": "dutch (built-in) or javafo",
            "--json": "Print the report as JSON",
        },
    },
    "standings": {
        "description": "Show the current standings",
        "options": {"--json": "Print the standings as JSON"},
    },
    "backtest": {
        "description": "Predict every played round and compare with reality",
        "options": {"--engine": "dutch (built-in) or javafo"},
    },
    "help": {"description": "Show the list of commands", "options": {}},
    "exit": {"description": "Leave interactive mode", "options": {}},
}


def load_state(path: str) -> TournamentState:
    """Read a tournament JSON file.

    Raises:
        InvalidTournamentDataException: If the file cannot be read or parsed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidTournamentDataException(f"Cannot read {path}: {e}") from e
    return TournamentState.from_dict(data)


def create_engine(name: str, config: PairingConfig) -> PairingEngine:
    """Instantiate the pairing engine called ``name``."""
    if name == JaVaFoEngine.name:
        return JaVaFoEngine(config)
    return DutchSwissEngine(config)


def print_report(report: ForecastReport) -> None:
    """Print a forecast as a pairing table."""
    info = report.info
    print(f"\n{Colors.BOLD}{info.name}{Colors.ENDC}")
    print(f"Rounds played: {info.completed_rounds}/{info.total_rounds or '?'}")

    if report.prediction is None:
        print(f"{Colors.OKGREEN}Tournament completed, nothing to predict{Colors.ENDC}")
        return

    prediction = report.prediction
    print(
        f"\n{Colors.OKBLUE}Predicted pairings, round "
        f"{prediction.round_number}{Colors.ENDC}\n"
    )
    print(f"{'Bd':>3}  {'White':<32} {'Pts':>4}   {'Black':<32} {'Pts':>4}")
    for pairing in prediction.pairings:
        white, black = pairing.white, pairing.black
        print(
            f"{pairing.board:>3}  {str(white):<32} {white.score:>4.1f} - "
            f"{str(black):<32} {black.score:>4.1f}"
        )
    if prediction.bye:
        print(f"\nBye: {prediction.bye.start_no}. {prediction.bye.name}")
    if prediction.unpaired:
        names = ", ".join(str(p) for p in prediction.unpaired)
        print(f"\n{Colors.WARNING}Unpaired: {names}{Colors.ENDC}")
    if report.actual_pool_size is not None:
        print(f"Players in the recorded round: {report.actual_pool_size}")


def run_predict_command(args: argparse.Namespace, state: TournamentState) -> int:
    """Run the predict command."""
    engine = create_engine(args.engine, args.pairing_config)
    report = forecast_round(state, args.round, engine)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(report)
    return EXIT_OK


def run_standings_command(args: argparse.Namespace, state: TournamentState) -> int:
    """Run the standings command."""
    standings = build_standings(state)
    if args.json:
        rows = [entry.to_dict() for entry in standings]
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return EXIT_OK
    print(f"{'Rk':>3}  {'No':>4}  {'Name':<32} {'Rtg':>4} {'Pts':>5}")
    for entry in standings:
        print(
            f"{entry.rank:>3}  {entry.start_no:>4}  {entry.name:<32} "
            f"{entry.rating:>4} {entry.score:>5.1f}"
        )
    return EXIT_OK


def run_backtest_command(args: argparse.Namespace, state: TournamentState) -> int:
    """Run the backtest command."""
    engine = create_engine(args.engine, args.pairing_config)
    comparisons = backtest(state, engine)
    if not comparisons:
        print(f"{Colors.WARNING}No recorded rounds to compare{Colors.ENDC}")
        return EXIT_OK
    for comparison in comparisons:
        print(comparison)
    total = sum(c.total_boards for c in comparisons)
    matched = sum(c.pairing_matches for c in comparisons)
    if total:
        rate = round(100 * matched / total)
        print(f"\nOverall: {matched}/{total} pairings ({rate}%)")
    return EXIT_OK


def create_completer() -> NestedCompleter:
    """Create autocomplete completer for interactive mode."""
    completions = {}
    for cmd, info in COMMANDS.items():
        options_completer = (
            WordCompleter(list(info["options"].keys())) if info["options"] else None
        )
        completions[cmd] = options_completer
        completions[f"/{cmd}"] = options_completer
    completions["quit"] = None
    return NestedCompleter.from_nested_dict(completions)


def print_commands_list() -> None:
    """Print list of all available commands."""
    print(f"\n{Colors.BOLD}Available Commands:{Colors.ENDC}\n")
    for cmd, info in COMMANDS.items():
        print(f"  {Colors.OKGREEN}{cmd:12}{Colors.ENDC} - {info['description']}")
        for option, description in info["options"].items():
            print(f"      {Colors.OKCYAN}{option:10}{Colors.ENDC} {description}")
    print()


def run_interactive_command(args: argparse.Namespace, state: TournamentState) -> int:
    """Run an interactive shell over one loaded tournament."""
    print(
        f"{Colors.OKBLUE}Swiss Forecast {__version__}{Colors.ENDC} - "
        f"{state.info.name}, {len(state.players)} players"
    )
    print(
        f"Type {Colors.BOLD}help{Colors.ENDC} for commands, "
        f"{Colors.BOLD}exit{Colors.ENDC} to leave\n"
    )

    parser = create_parser()
    session = PromptSession(
        completer=create_completer(),
        history=InMemoryHistory(),
        style=Style.from_dict({"prompt": "#00aa00 bold"}),
    )

    while True:
        try:
            user_input = session.prompt("forecast> ").strip()
        except KeyboardInterrupt:
            print(f"{Colors.WARNING}Use 'exit' or 'quit' to leave{Colors.ENDC}")
            continue
        except EOFError:
            break

        if not user_input:
            continue
        parts = user_input.split()
        command = parts[0].lstrip("/")

        if command in ("exit", "quit", "q"):
            break
        if command in ("help", "?"):
            print_commands_list()
            continue
        if command not in COMMANDS:
            print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
            continue

        try:
            cmd_args = parser.parse_args([command, args.file] + parts[1:])
        except SystemExit:
            # argparse already printed the problem
            continue
        cmd_args.pairing_config = args.pairing_config

        try:
            cmd_args.handler(cmd_args, state)
        except SwissForecastException as e:
            print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
            logger.warning("Interactive command %r failed: %s", user_input, e)

    print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="swissforecast",
        description="Predict the next round of a FIDE Dutch Swiss tournament",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  swissforecast predict tournament.json
  swissforecast predict tournament.json --round 5 --json
  swissforecast backtest tournament.json --engine javafo --config javafo.json
        """,
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--config", help="Load engine configuration from JSON file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    predict_parser = subparsers.add_parser("predict", help="Predict a round")
    predict_parser.add_argument("file", help="Tournament JSON file")
    predict_parser.add_argument(
        "--round", type=int, help="Historical round to predict (default: next round)"
    )
    predict_parser.add_argument(
        "--engine", choices=["dutch", "javafo"], default="dutch"
    )
    predict_parser.add_argument("--json", action="store_true", help="Output JSON")
    predict_parser.set_defaults(handler=run_predict_command)

    standings_parser = subparsers.add_parser("standings", help="Show standings")
    standings_parser.add_argument("file", help="Tournament JSON file")
    standings_parser.add_argument("--json", action="store_true", help="Output JSON")
    standings_parser.set_defaults(handler=run_standings_command)

    backtest_parser = subparsers.add_parser(
        "backtest", help="Compare predictions of every played round with reality"
    )
    backtest_parser.add_argument("file", help="Tournament JSON file")
    backtest_parser.add_argument(
        "--engine", choices=["dutch", "javafo"], default="dutch"
    )
    backtest_parser.set_defaults(handler=run_backtest_command)

    interactive_parser = subparsers.add_parser(
        "interactive", help="Explore a tournament in an interactive shell"
    )
    interactive_parser.add_argument("file", help="Tournament JSON file")
    interactive_parser.set_defaults(handler=run_interactive_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI.

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        set_verbose(True)

    try:
        args.pairing_config = load_config(args.config)
        state = load_state(args.file)
        return args.handler(args, state)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except (InputException, ConfigurationException) as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except SwissForecastException as e:
        logger.error("Prediction failed: %s", e)
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}", file=sys.stderr)
        return EXIT_ENGINE_FAILURE


if __name__ == "__main__":
    sys.exit(main())
