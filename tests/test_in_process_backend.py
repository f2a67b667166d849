from __future__ import annotations

import threading
import time

import pytest

from sage_launcher.core.jobs import Completed, InProcessBackend, JobStatus, JobSupervisor, Progress
from sage_launcher.core.jobs.types import DISCONNECTED
from sage_launcher.models import JobSpec


def _spec() -> JobSpec:
    return JobSpec(output_directory="/tmp/out").with_files("/data/human.fasta", "/data/run1.mzML")


def _poll_until_terminal(sup: JobSupervisor, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    seen = []
    while time.monotonic() < deadline:
        state = sup.poll()
        seen.append(state.status)
        if state.is_terminal:
            return state, seen
        time.sleep(0.01)
    pytest.fail("job did not reach a terminal state in time")


def test_worker_completes_with_summary_then_resubmits_cleanly() -> None:
    backend = InProcessBackend(lambda spec: "42 results")
    sup = JobSupervisor(backend)
    try:
        sup.submit(_spec())
        assert sup.state.status is JobStatus.STARTING

        state, _ = _poll_until_terminal(sup)
        assert state.status is JobStatus.COMPLETED
        assert state.message == "42 results"

        sup.submit(_spec())
        assert sup.state.status is JobStatus.STARTING
        state, _ = _poll_until_terminal(sup)
        assert state.status is JobStatus.COMPLETED
    finally:
        sup.close()


def test_engine_exception_is_reported_as_failed() -> None:
    def _boom(_spec):
        raise RuntimeError("database build failed")

    sup = JobSupervisor(InProcessBackend(_boom))
    try:
        sup.submit(_spec())
        state, _ = _poll_until_terminal(sup)
        assert state.status is JobStatus.FAILED
        assert state.message == "database build failed"
    finally:
        sup.close()


def test_worker_that_dies_without_result_reads_as_disconnected() -> None:
    def _dies(_spec):
        raise SystemExit(3)

    sup = JobSupervisor(InProcessBackend(_dies))
    try:
        sup.submit(_spec())
        state, _ = _poll_until_terminal(sup)
        assert state.status is JobStatus.FAILED
        assert state.message == DISCONNECTED
    finally:
        sup.close()


def test_worker_sends_starting_before_completion() -> None:
    backend = InProcessBackend(lambda spec: "ok")
    try:
        backend.start(_spec())
        msgs: list = []
        deadline = time.monotonic() + 5.0
        while not any(isinstance(m, Completed) for m in msgs) and time.monotonic() < deadline:
            msgs.extend(backend.poll_liveness())
            time.sleep(0.01)

        assert msgs == [Progress("starting"), Completed(ok=True, text="ok")]
        assert backend.poll_liveness() == []
    finally:
        backend.close()


def test_poll_does_not_block_while_worker_runs() -> None:
    gate = threading.Event()

    def _slow(_spec):
        gate.wait(timeout=5.0)
        return "done"

    sup = JobSupervisor(InProcessBackend(_slow))
    try:
        sup.submit(_spec())
        t0 = time.monotonic()
        for _ in range(20):
            sup.poll()
        assert time.monotonic() - t0 < 1.0
        assert sup.state.is_active
    finally:
        gate.set()
        sup.close()


def test_cancel_detaches_and_worker_is_joined_later() -> None:
    gate = threading.Event()
    finished = threading.Event()

    def _slow(_spec):
        gate.wait(timeout=5.0)
        finished.set()
        return "done"

    backend = InProcessBackend(_slow)
    sup = JobSupervisor(backend)
    try:
        sup.submit(_spec())
        _wait_for_running(sup)

        state = sup.cancel()
        assert state.status is JobStatus.CANCELLED
        assert backend.detached_count == 1

        gate.set()
        assert finished.wait(timeout=5.0)
        deadline = time.monotonic() + 5.0
        while backend.detached_count and time.monotonic() < deadline:
            time.sleep(0.01)
        assert backend.detached_count == 0
        # The detached result never reaches the supervisor.
        assert sup.poll().status is JobStatus.CANCELLED
    finally:
        gate.set()
        sup.close()


def test_job_queued_behind_detached_worker_stays_starting() -> None:
    gate = threading.Event()
    calls: list[str] = []

    def _entry(spec):
        calls.append(spec.database.fasta)
        if len(calls) == 1:
            gate.wait(timeout=5.0)
        return "done"

    sup = JobSupervisor(InProcessBackend(_entry))
    try:
        sup.submit(_spec())
        _wait_for_running(sup)
        sup.cancel()

        sup.submit(_spec().with_files("/data/mouse.fasta", "/data/run2.mzML"))
        for _ in range(5):
            assert sup.poll().status is JobStatus.STARTING

        gate.set()
        state, _ = _poll_until_terminal(sup)
        assert state.status is JobStatus.COMPLETED
        assert calls == ["/data/human.fasta", "/data/mouse.fasta"]
    finally:
        gate.set()
        sup.close()


def test_cancelling_a_queued_job_prevents_it_from_running() -> None:
    gate = threading.Event()
    calls: list[str] = []

    def _entry(spec):
        calls.append(spec.database.fasta)
        gate.wait(timeout=5.0)
        return "done"

    backend = InProcessBackend(_entry)
    sup = JobSupervisor(backend)
    try:
        sup.submit(_spec())
        _wait_for_running(sup)
        sup.cancel()
        sup.submit(_spec().with_files("/data/mouse.fasta", "/data/run2.mzML"))
        assert sup.cancel().status is JobStatus.CANCELLED

        gate.set()
        deadline = time.monotonic() + 5.0
        while backend.detached_count and time.monotonic() < deadline:
            time.sleep(0.01)
        time.sleep(0.05)
        assert calls == ["/data/human.fasta"]
    finally:
        gate.set()
        sup.close()


def _wait_for_running(sup: JobSupervisor, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if sup.poll().status is JobStatus.RUNNING:
            return
        time.sleep(0.01)
    pytest.fail("job never reported running")
