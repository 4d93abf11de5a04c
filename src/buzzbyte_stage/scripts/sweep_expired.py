"""Run one expiration sweep from the command line.

Suitable for an external scheduler such as cron when the in-process
sweeper is disabled (``SWEEPER_ENABLED=false``).
"""
from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from buzzbyte_stage.core.errors import SweepTimeoutError
from buzzbyte_stage.core.logging import configure_logging
from buzzbyte_stage.services.sweeper import ExpirationSweeper


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Purge posts whose lifetime has elapsed")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Posts loaded per batch (defaults to SWEEP_BATCH_SIZE)",
    )
    parser.add_argument(
        "--max-runtime",
        type=float,
        default=None,
        help="Abort after this many seconds (defaults to SWEEP_MAX_RUNTIME_SECONDS)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this run",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        sweeper = ExpirationSweeper(
            batch_size=args.batch_size,
            max_runtime_seconds=args.max_runtime,
        )
        result = sweeper.run_once()
    except SweepTimeoutError as exc:
        print(f"[sweep] TIMEOUT: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"[sweep] ERROR: {exc}", file=sys.stderr)
        return 1

    if result.skipped:
        print("[sweep] skipped: another sweeper holds the lease")
        return 0

    print(
        f"[sweep] purged={result.purged} asset_failures={result.asset_failures} "
        f"batches={result.batches} elapsed_ms={result.elapsed_ms}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
