#!/usr/bin/env python3
"""Route documents from disk through the classification pipeline.

Each file (or stdin) is classified, extracted by the matching agent and
recorded in an in-process history. Result envelopes are printed as JSON and
optionally written to an output file together with the history stats.

Usage:
    # Route a single email
    python -m scripts.route_documents samples/rfq.eml

    # Several files, with a format hint for all of them
    python -m scripts.route_documents payloads/*.json --hint json

    # Read from stdin
    cat complaint.txt | python -m scripts.route_documents -

    # Specific provider/model, export results
    python -m scripts.route_documents inbox/* --provider anthropic --output results.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# Add project root to path for imports
_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_root))

# Load .env before importing app modules
from dotenv import load_dotenv
load_dotenv(_root / ".env")

import structlog

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ]
)

from docrouter.core.config import settings
from docrouter.modules.routing.agents.router_agent import RouterAgent
from docrouter.modules.routing.errors import DocRouterError
from docrouter.modules.routing.memory import HistoryStore
from docrouter.modules.routing.oracle import LLMOracle

logger = structlog.get_logger()


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


async def route_all(
    router_agent: RouterAgent,
    sources: list[str],
    hint: str | None,
) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    total = len(sources)

    for idx, source in enumerate(sources, 1):
        logger.info(f"Routing [{idx}/{total}]", source=source)
        try:
            envelope = await router_agent.process(_read_input(source), hint)
        except (DocRouterError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Routing [{idx}/{total}] failed", source=source, error=str(e))
            results.append({"source": source, "success": False, "error": str(e)})
            continue

        results.append({
            "source": source,
            "success": True,
            "result": envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
        })

    return results


def main() -> None:
    parser = argparse.ArgumentParser(description="Route documents through the classifier pipeline")
    parser.add_argument("sources", nargs="+", help="Files to route ('-' reads stdin)")
    parser.add_argument("--hint", default=None, help="Input type hint: email|json|pdf|text")
    parser.add_argument("--provider", default=None, help="LLM provider: google|anthropic")
    parser.add_argument("--model", default=None, help="Model name (defaults per provider)")
    parser.add_argument("--output", type=Path, default=None, help="Write results + stats to this JSON file")
    args = parser.parse_args()

    oracle = LLMOracle(provider=args.provider, model=args.model)
    try:
        oracle.check_configured()
    except DocRouterError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    history = HistoryStore(capacity=settings.history_capacity)
    router_agent = RouterAgent(oracle, history)

    results = asyncio.run(route_all(router_agent, args.sources, args.hint))
    stats = history.get_stats()

    print(json.dumps(results, indent=2, ensure_ascii=False))

    print(f"\n{'='*60}", file=sys.stderr)
    print(f"  ROUTING SUMMARY", file=sys.stderr)
    print(f"{'='*60}", file=sys.stderr)
    print(f"  routed: {sum(1 for r in results if r['success'])}/{len(results)}", file=sys.stderr)
    for fmt, count in sorted(stats.by_format.items()):
        print(f"  format {fmt}: {count}", file=sys.stderr)
    for intent, count in sorted(stats.by_intent.items()):
        print(f"  intent {intent}: {count}", file=sys.stderr)
    print(f"{'='*60}\n", file=sys.stderr)

    if args.output:
        args.output.write_text(
            json.dumps(
                {"results": results, "stats": stats.model_dump(by_alias=True)},
                indent=2,
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        logger.info("Results exported", path=str(args.output))


if __name__ == "__main__":
    main()
