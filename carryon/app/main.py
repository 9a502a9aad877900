"""
CarryOn Baggage Checker - Main Entry Point

Command-line interface for checking whether an item may travel in hand
or checked baggage.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from carryon import __version__
from carryon.adapters.classifier.response_parser import parse_classifier_response
from carryon.adapters.persistence.history import SQLiteHistoryAdapter
from carryon.app.checker import BaggageChecker, CheckerConfig, CheckResult, CheckSession
from carryon.core.catalog import DEFAULT_CATALOG
from carryon.core.config import get_history_db_path, get_history_limit
from carryon.core.entities import BaggageVerdict, VerdictStatus
from carryon.core.questions import InvalidAnswerError, Question

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    VerdictStatus.ALLOWED: "✅",
    VerdictStatus.CONDITIONAL: "⚠️",
    VerdictStatus.NOT_ALLOWED: "⛔",
}


def setup_logging(verbose: bool = False) -> None:
    """Sets up logging."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_fact_arguments(pairs: Optional[List[str]]) -> Dict[str, str]:
    """
    Parses ``KEY=VALUE`` pairs.

    Values are kept as strings; the rules engine validates them.

    Raises:
        ValueError: If a pair has no ``=`` or an empty key
    """
    facts: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        facts[key.strip()] = value.strip()
    return facts


def print_categories() -> None:
    """Prints the category catalog grouped for display."""
    for group in DEFAULT_CATALOG.groups():
        print(group)
        print("-" * 40)
        for category in DEFAULT_CATALOG.by_group(group):
            marker = "" if category.direct_rule else "  (questions)"
            print(f"  {category.id:26s} {category.name}{marker}")
        print()


def print_baggage(title: str, verdict: BaggageVerdict) -> None:
    icon = STATUS_ICONS[verdict.status]
    print(f"{icon} {title}: {verdict.status.value.replace('_', ' ').upper()}")
    print(f"   {verdict.message}")
    if verdict.tip:
        print(f"   Tip: {verdict.tip}")


def print_result(result: CheckResult) -> None:
    """Prints a resolved check."""
    name = result.category.name if result.category else "Unknown item"
    print()
    print("=" * 60)
    print(name)
    print("=" * 60)
    for warning in result.warnings:
        print(f"⚠️  {warning}")
    if result.summary:
        print(f"Detected: {result.summary}")
    print()
    print_baggage("Hand baggage", result.verdict.hand_baggage)
    print()
    print_baggage("Checked baggage", result.verdict.checked_baggage)
    print()


def ask_question(question: Question) -> str:
    """Prompts for one answer."""
    print(question.text)
    for i, (label, value) in enumerate(question.options, 1):
        print(f"  {i}. {label} [{value}]")
    suffix = f" ({question.unit})" if question.unit else ""
    if not question.required:
        suffix += " [Enter to skip]"
    return input(f"> {suffix.strip()} ").strip()


def run_questions(session: CheckSession) -> bool:
    """
    Asks pending questions interactively until the session is complete.

    Returns:
        False if the traveller aborted
    """
    while session.pending_questions:
        question = session.pending_questions[0]
        try:
            raw = ask_question(question)
        except (EOFError, KeyboardInterrupt):
            print("\nAborted.")
            return False

        if not raw and not question.required:
            session.skip_optional()
            continue

        try:
            session.answer(question.fact_key, raw)
        except InvalidAnswerError:
            print("That answer is not valid, please try again.")
    return True


def complete_session(session: CheckSession) -> bool:
    """
    Fills in missing facts.

    Prompts when attached to a terminal. Otherwise reports the missing
    required facts.

    Returns:
        True if the session can be evaluated
    """
    if sys.stdin.isatty():
        return run_questions(session)

    missing = [q.fact_key for q in session.pending_questions if q.required]
    if missing:
        print(f"❌ Missing facts: {', '.join(missing)}")
        print("   Tip: Pass them with --fact KEY=VALUE.")
        return False
    return True


def print_history(history: SQLiteHistoryAdapter, limit: int) -> None:
    """Prints recent checks, newest first."""
    records = history.get_records(limit=limit)
    if not records:
        print("No checks recorded.")
        return

    print(f"Last {len(records)} of {history.count()} check(s):")
    for i, record in enumerate(records, 1):
        icon = STATUS_ICONS[record.verdict.overall_status]
        stamp = record.timestamp.strftime("%Y-%m-%d %H:%M")
        print(f"{i}. {icon} [{stamp}] {record.category_name}")
        print(f"   Hand: {record.verdict.hand_baggage.status.value}  "
              f"Checked: {record.verdict.checked_baggage.status.value}")


def load_extraction_payload(path: str) -> Any:
    """Reads raw classifier output from a file ('-' for stdin)."""
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def run_check(checker: BaggageChecker, parsed: argparse.Namespace) -> int:
    """Runs a single check and returns the exit code."""
    try:
        facts = parse_fact_arguments(parsed.fact)
    except ValueError as e:
        print(f"❌ {e}")
        return 2

    if parsed.extraction:
        try:
            content = load_extraction_payload(parsed.extraction)
        except OSError as e:
            print(f"❌ Cannot read classifier output: {e}")
            return 1
        extraction = parse_classifier_response(content)
        result = checker.check_extraction(extraction, category_id=parsed.category)

        if result.needs_category:
            print(f"❌ Item not identified: {result.error or result.summary or 'no category'}")
            print("   Tip: Run again with --category (see --list).")
            return 1

        if result.needs_questions:
            session = result.session
            session.facts.update(facts)
            if not complete_session(session):
                return 1
            result = checker.finish(session)
    else:
        if DEFAULT_CATALOG.get_category(parsed.category) is None:
            print(f"❌ Unknown category: {parsed.category}")
            print("   Tip: Use --list to see all categories.")
            return 1

        session = checker.start_session(parsed.category, facts)
        if not complete_session(session):
            return 1
        result = checker.finish(session)

    logger.debug(f"Check of {result.category.id!r} finished in {result.duration_ms:.1f} ms")

    if parsed.json:
        payload = {
            "categoryId": result.category.id,
            "facts": dict(result.facts),
            "result": result.verdict.to_dict(),
            "warnings": list(result.warnings),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print_result(result)
    return 0


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="carryon",
        description="CarryOn - check whether an item is allowed in hand or checked baggage",
    )

    parser.add_argument(
        "-l", "--list",
        action="store_true",
        help="List item categories and exit",
    )

    parser.add_argument(
        "-c", "--category",
        type=str,
        help="Category id of the item (see --list)",
    )

    parser.add_argument(
        "-f", "--fact",
        action="append",
        metavar="KEY=VALUE",
        help="Known fact, e.g. capacity_mAh=20000 (repeatable)",
    )

    parser.add_argument(
        "-e", "--extraction",
        type=str,
        metavar="FILE",
        help="Raw classifier output (JSON, '-' for stdin)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not record the check in the history",
    )

    parser.add_argument(
        "--history",
        type=int,
        nargs="?",
        const=20,
        metavar="N",
        help="Show the last N checks (default: 20)",
    )

    parser.add_argument(
        "--clear-history",
        action="store_true",
        help="Delete all recorded checks",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"CarryOn Baggage Checker v{__version__}",
    )

    parsed = parser.parse_args(args)

    # Sets up logging
    setup_logging(parsed.verbose)

    if parsed.list:
        print_categories()
        return 0

    if not parsed.category and not parsed.extraction and parsed.history is None \
            and not parsed.clear_history:
        parser.print_usage()
        return 2

    history = SQLiteHistoryAdapter(
        str(get_history_db_path()),
        limit=get_history_limit(),
    )

    if parsed.clear_history:
        removed = history.clear()
        print(f"Removed {removed} record(s).")
        return 0

    if parsed.history is not None:
        print_history(history, parsed.history)
        return 0

    config = CheckerConfig(save_history=not parsed.no_save)
    checker = BaggageChecker(config=config, history=history)
    return run_check(checker, parsed)


if __name__ == "__main__":
    sys.exit(main())
