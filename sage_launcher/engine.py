"""Search engine entry point.

Converts a ``JobSpec`` into Sage's input document and runs the Sage CLI to
completion. Blocking: callers run it on a worker thread or in a child process.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

from sage_launcher import config
from sage_launcher.core.errors import EngineError
from sage_launcher.core.observability.timing import time_block
from sage_launcher.models import JobSpec

logger = logging.getLogger(__name__)


def write_engine_input(spec: JobSpec, directory: str | Path) -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"sage_launcher{config.ENGINE_INPUT_SUFFIX}"
    path.write_text(json.dumps(spec.to_sage_input(), indent=2), encoding="utf-8")
    return path


def build_command(
    input_path: Path, *, parallel: int, parquet: bool, executable: str | None = None
) -> list[str]:
    cmd = [executable or config.sage_executable(), str(input_path), "--batch-size", str(parallel)]
    if parquet:
        cmd.append("--parquet")
    return cmd


def run_search(spec: JobSpec, *, parallel: int | None = None, parquet: bool = False) -> str:
    """Run one search; returns a summary or raises ``EngineError``."""
    spec.validate()
    workers = parallel if parallel is not None else config.default_parallelism()
    try:
        input_path = write_engine_input(spec, spec.output_directory)
    except OSError as e:
        raise EngineError(f"cannot write engine input to {spec.output_directory}", cause=e) from e

    cmd = build_command(input_path, parallel=workers, parquet=parquet)
    logger.info("Running analysis: %s", " ".join(cmd))
    try:
        with time_block("sage search", logger=logger):
            proc = subprocess.run(cmd, check=False)
    except OSError as e:
        raise EngineError(f"cannot run {cmd[0]}", cause=e) from e
    if proc.returncode != 0:
        raise EngineError(f"sage exited with code {proc.returncode}")
    return config.SUCCESS_MESSAGE
