from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import load_config
from .guidance import SessionRejected
from .i18n import SUPPORTED_LANGUAGES
from .payloads import SessionSummary
from .runtime import build_runtime
from .simulator import PROFILE_LIBRARY, simulated_suite

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 2

WARMUP_S = 1.5
"""Let every channel report before asking for a session."""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a simulated capture session through the SteadyFrame guidance core"
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument(
        "--profile",
        choices=sorted(PROFILE_LIBRARY),
        default="handheld",
        help="Simulated motion profile (default: handheld)",
    )
    parser.add_argument(
        "--duration-s",
        type=float,
        default=5.0,
        help="Session length in seconds (default: 5)",
    )
    parser.add_argument(
        "--language",
        default=None,
        help=f"Output language, one of {', '.join(SUPPORTED_LANGUAGES)} (default: from config)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser.parse_args(argv)


async def run_session(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    language = args.language or config.guidance.language
    runtime = build_runtime(simulated_suite(args.profile, seed=args.seed), config, seed=args.seed)
    await runtime.start()
    try:
        await asyncio.sleep(WARMUP_S)
        result = runtime.composer.begin_session()
        if isinstance(result, SessionRejected):
            reason = " / ".join(
                runtime.translations.resolve(key, language) for key in result.message_keys
            )
            print(f"session rejected ({result.reason}): {reason}")
            return EXIT_REJECTED

        elapsed = 0.0
        while elapsed < args.duration_s:
            step = min(1.0, args.duration_s - elapsed)
            await asyncio.sleep(step)
            elapsed += step
            print(f"[{elapsed:5.1f}s] {runtime.render(language=language)}")

        events = runtime.composer.end_session()
        summary = SessionSummary.from_events(
            events, language=language, resolver=runtime.translations
        )
        print(summary.model_dump_json(indent=2))
        return EXIT_OK
    finally:
        runtime.stop()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.duration_s <= 0:
        print("Error: --duration-s must be positive", file=sys.stderr)
        return 1
    try:
        return asyncio.run(run_session(args))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
