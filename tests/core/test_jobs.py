import threading

import pytest

from packages.core.errors import ConflictError
from packages.core.jobs import GuardedJob


def test_job_refuses_overlapping_runs():
    started = threading.Event()
    release = threading.Event()

    def slow():
        started.set()
        release.wait(timeout=5)
        return "done"

    job = GuardedJob("fetch_feeds", slow)
    results = []
    worker = threading.Thread(target=lambda: results.append(job.run()))
    worker.start()
    started.wait(timeout=5)

    assert job.running is True
    with pytest.raises(ConflictError):
        job.run()
    assert job.run_scheduled() is None

    release.set()
    worker.join(timeout=5)
    assert results == ["done"]
    assert job.running is False


def test_scheduled_run_logs_and_swallows_errors():
    def broken():
        raise RuntimeError("database is locked")

    job = GuardedJob("daily_newsletter", broken)

    assert job.run_scheduled() is None
    assert job.running is False
    with pytest.raises(RuntimeError):
        job.run()
