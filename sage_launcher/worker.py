"""Child-process entry point for the out-of-process backend.

Run: python -m sage_launcher.worker <spec.json>

The outcome is reported only through the exit status: 0 on success, 1 on failure.
"""

from __future__ import annotations

import argparse
import logging
import sys

from sage_launcher.core.errors import AppError
from sage_launcher.core.observability.logging_config import setup_logging
from sage_launcher.engine import run_search
from sage_launcher.models import JobSpec

logger = logging.getLogger("sage_launcher.worker")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Run one Sage search from a serialized job spec.")
    p.add_argument("spec", type=str, help="Path to the job spec (JSON or YAML).")
    p.add_argument("--parquet", action="store_true", help="Write parquet instead of TSV.")
    args = p.parse_args(argv)

    setup_logging(log_to_file=False)
    try:
        spec = JobSpec.load(args.spec)
        summary = run_search(spec, parquet=args.parquet)
    except AppError as e:
        logger.error("Search failed: %s", e)
        return 1
    logger.info(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
