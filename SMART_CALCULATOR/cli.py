"""Command-line entrypoint for driving the SmartCalculator ledger."""
from __future__ import annotations

import argparse
import re
from pathlib import Path
import sys
from typing import Iterable

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from SMART_CALCULATOR.config.logger_config import configure_logging
from SMART_CALCULATOR.config.settings import get_settings
from SMART_CALCULATOR.engine.calculator import CalculationEngine
from SMART_CALCULATOR.engine.step import Operation, Step
from SMART_CALCULATOR.storage.history_store import JsonFileHistoryStore
from SMART_CALCULATOR.writing.history_writer import history_to_frame, write_history


_NUMBER_TOKEN = re.compile(r"^[0-9.]+$")
_CLEAR_TOKENS = {"c", "ac", "clear"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Calculator with an editable, self-recalculating history")
    parser.add_argument(
        "--history-path",
        type=Path,
        help="JSON file holding the history (defaults to SMART_CALC_HISTORY_PATH)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    keys = subparsers.add_parser("keys", help="Press keypad keys in order, e.g. 2 + 3 x 4 =")
    keys.add_argument("tokens", nargs="+", metavar="KEY", help="Digits, '.', + - x / =, or C to clear")

    subparsers.add_parser("history", help="Print the recorded steps")

    edit = subparsers.add_parser("edit", help="Change a step's operands and recalculate the rest")
    edit.add_argument("step_id", help="Id of the step to edit (see `history`)")
    edit.add_argument("--operand1", type=float, help="New left operand")
    edit.add_argument("--operand2", type=float, help="New right operand")

    insert = subparsers.add_parser("insert", help="Insert a step and recalculate the rest")
    insert.add_argument("index", type=int, help="Zero-based position of the new step")
    insert.add_argument("operation", help="Operation symbol: + - x / =")
    insert.add_argument(
        "--operand1",
        type=float,
        default=0.0,
        help="Left operand; 0 derives it from the previous step's result",
    )
    insert.add_argument("--operand2", type=float, help="Right operand")

    subparsers.add_parser("clear", help="Erase the history")

    export = subparsers.add_parser("export", help="Write the history to a .csv or .json file")
    export.add_argument("out", type=Path, help="Destination file")
    return parser


def feed_tokens(engine: CalculationEngine, tokens: Iterable[str]) -> None:
    """Translate keypad tokens into engine events."""
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        if token.lower() in _CLEAR_TOKENS:
            engine.clear()
        elif _NUMBER_TOKEN.match(token):
            for piece in re.findall(r"[0-9]+|\.", token):
                engine.input_digit(piece)
        else:
            engine.set_operation(Operation.from_symbol(token))


def print_history(engine: CalculationEngine) -> None:
    history = engine.history
    if not history:
        print("History is empty.")
        return
    print(history_to_frame(history).to_string(index=False))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    history_path = args.history_path or settings.history_path
    engine = CalculationEngine(JsonFileHistoryStore(history_path, key=settings.history_key))

    if args.command == "keys":
        try:
            feed_tokens(engine, args.tokens)
        except ValueError as exc:
            parser.error(str(exc))
        print(engine.current_display_value)
    elif args.command == "history":
        print_history(engine)
    elif args.command == "edit":
        if args.operand1 is None and args.operand2 is None:
            parser.error("edit needs --operand1 and/or --operand2")
        if not engine.update_step(args.step_id, operand1=args.operand1, operand2=args.operand2):
            print(f"No step with id {args.step_id}", file=sys.stderr)
            return 1
        print(engine.current_display_value)
    elif args.command == "insert":
        try:
            operation = Operation.from_symbol(args.operation)
            step = Step(operand1=args.operand1, operand2=args.operand2, operation=operation)
            engine.insert_step(step, args.index)
        except (IndexError, ValueError) as exc:
            parser.error(str(exc))
        print(engine.current_display_value)
    elif args.command == "clear":
        engine.clear()
        print(engine.current_display_value)
    elif args.command == "export":
        try:
            path = write_history(engine.history, args.out)
        except ValueError as exc:
            parser.error(str(exc))
        print(f"History with {len(engine.history)} steps saved to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
