"""Terminal client that drives the viewer controller in-process."""
from __future__ import annotations

import argparse
import logging
from typing import Iterable

from offviewer.config import settings
from offviewer.controller import ViewController
from offviewer.errors import InvalidCommand
from offviewer.http_client import HttpFetcher
from offviewer.models import DetailError, Details, Results, ResultsError, Snapshot

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"
HELP = "Commands: <term> to search, :open <code|#>, :back, :state, exit"


def pretty_print_snapshot(snapshot: Snapshot) -> None:
    state = snapshot.state
    failed = isinstance(state, (ResultsError, DetailError))
    color = RED if failed else GREEN
    print(f"{color}{snapshot.title}{RESET} | {snapshot.status_text}")
    if isinstance(state, Results):
        for idx, product in enumerate(state.products, start=1):
            print(f"  {idx:02d}. {product.code} | {product.name}")
    elif isinstance(state, Details):
        print(f"  code: {state.detail.code}")
    if snapshot.can_go_back:
        print("  (:back returns to the search results)")


def _resolve_code(controller: ViewController, ref: str) -> str:
    """Accept either a catalog code or a 1-based index into the last results."""
    state = controller.state
    if ref.isdigit() and isinstance(state, Results) and 1 <= int(ref) <= len(state.products):
        return state.products[int(ref) - 1].code
    return ref


def run_command(controller: ViewController, line: str) -> Snapshot:
    if line.startswith(":open"):
        controller.select_product(_resolve_code(controller, line[len(":open"):].strip()))
    elif line == ":back":
        controller.go_back()
    elif line != ":state":
        controller.search(line)
    controller.wait_until_settled(settings.request_timeout_seconds + 5)
    return controller.snapshot()


def interactive_shell(controller: ViewController) -> None:
    print("OpenFoodFacts viewer. " + HELP)
    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not line:
            continue
        if line.lower() in {"exit", "quit"}:
            return
        try:
            pretty_print_snapshot(run_command(controller, line))
        except InvalidCommand as exc:
            print(f"{RED}{exc}{RESET}")


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Browse the OpenFoodFacts catalog from a terminal")
    parser.add_argument("query", nargs="?", help="Search term. If omitted, starts REPL mode.")
    parser.add_argument("--verbose", action="store_true", help="Log request URLs and statuses")
    args = parser.parse_args(list(argv) if argv is not None else None)

    level = logging.DEBUG if args.verbose else logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s", force=True)

    fetcher = HttpFetcher(settings=settings)
    try:
        with ViewController(fetcher, settings=settings) as controller:
            if args.query:
                pretty_print_snapshot(run_command(controller, args.query))
                return 0
            interactive_shell(controller)
    finally:
        fetcher.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
