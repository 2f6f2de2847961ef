"""
Tests for running the worker tick through APScheduler.
"""
import random

import pytest
from sqlalchemy import func, select

from sensorfleet.jobs.sensor_worker import SensorWorker
from sensorfleet.models.sensor_reading import SensorReading
from sensorfleet.services.scheduler_service import SchedulerService
from sensorfleet.services.sensor_registry import RegistryMissingError


@pytest.fixture
def worker(engine, session_factory):
    # long period so the background thread never fires during a test
    return SensorWorker(engine, session_factory, target_count=6, tick_seconds=3600, rng=random.Random(2))


def test_start_bootstraps_and_schedules_tick(worker):
    service = SchedulerService(worker)
    try:
        service.start()

        assert service.state is not None
        assert service.state.sensor_codes == tuple(range(1, 7))
        job = service.scheduler.get_job("sensor_worker_tick")
        assert job is not None
        assert job.trigger.interval.total_seconds() == 3600
    finally:
        service.stop()

    assert not service.scheduler.running


def test_run_tick_writes_readings(worker, db):
    service = SchedulerService(worker)
    try:
        service.start()
        service.run_tick()
    finally:
        service.stop()

    assert db.scalar(select(func.count()).select_from(SensorReading)) == 6


def test_run_tick_logs_instead_of_raising(worker, caplog):
    service = SchedulerService(worker)

    # not bootstrapped: the tick fails, the scheduler thread must survive it
    service.run_tick()

    assert "Error during sensor tick" in caplog.text


def test_start_fails_without_registry(bare_engine, session_factory):
    service = SchedulerService(SensorWorker(bare_engine, session_factory))

    with pytest.raises(RegistryMissingError):
        service.start()
    assert not service.scheduler.running
