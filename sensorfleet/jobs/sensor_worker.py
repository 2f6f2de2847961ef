"""
Sensor Worker
-------------
Continuous simulation loop for the sensor fleet.

Bootstrapping:
 - abort if the sensors table is missing
 - fill the fleet up to TARGET_SENSOR_COUNT
 - designate ~1% of the codes as permanently malfunctioning
Running (one tick per TICK_SECONDS):
 - write one reading per known sensor in a single batch
 - every AGGREGATION_INTERVAL seconds: compute each face's overall average
   over the window since the last check, prune sensors outside ±20% of it,
   top the fleet back up and refresh the known sensor list
"""

import enum
import logging
import random
import sys
import time
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from sensorfleet.core.config import settings
from sensorfleet.services import anomaly_service, fleet_service, sensor_registry
from sensorfleet.services.aggregation_service import overall_face_average
from sensorfleet.services.reading_store import bulk_insert_readings
from sensorfleet.services.sensor_registry import RegistryMissingError
from sensorfleet.services.simulation import designate_malfunctioning, generate_tick

logger = logging.getLogger(__name__)


class WorkerPhase(str, enum.Enum):
    BOOTSTRAPPING = "bootstrapping"
    RUNNING = "running"


@dataclass(frozen=True)
class WorkerState:
    """Iteration state threaded from one tick to the next."""

    sensor_codes: Tuple[int, ...]
    last_aggregation_check: float


# -------------------------------------------------------------------------
# Worker
# -------------------------------------------------------------------------
class SensorWorker:
    """Generates readings and keeps the fleet healthy at a fixed size."""

    def __init__(
        self,
        engine: Engine,
        session_factory: sessionmaker,
        target_count: int = 10000,
        tick_seconds: float = 1.0,
        aggregation_interval: float = 1,
        aggregation_bucket: str = "minute",
        deviation_ratio: float = anomaly_service.DEFAULT_DEVIATION,
        malfunction_ratio: float = 0.01,
        malfunction_seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.engine = engine
        self.session_factory = session_factory
        self.target_count = target_count
        self.tick_seconds = tick_seconds
        self.aggregation_interval = aggregation_interval
        self.aggregation_bucket = aggregation_bucket
        self.deviation_ratio = deviation_ratio
        self.malfunction_ratio = malfunction_ratio
        self.malfunction_seed = malfunction_seed
        self.rng = rng or random.Random()
        self.clock = clock
        self.sleep = sleep

        self.phase = WorkerPhase.BOOTSTRAPPING
        self.malfunctioning: FrozenSet[int] = frozenset()

    @classmethod
    def from_settings(cls, **overrides) -> "SensorWorker":
        from sensorfleet.db.session import SessionLocal, engine

        options = dict(
            engine=engine,
            session_factory=SessionLocal,
            target_count=settings.TARGET_SENSOR_COUNT,
            tick_seconds=settings.TICK_SECONDS,
            aggregation_interval=settings.AGGREGATION_INTERVAL,
            aggregation_bucket=settings.AGGREGATION_BUCKET,
            deviation_ratio=settings.DEVIATION_RATIO,
            malfunction_ratio=settings.MALFUNCTION_RATIO,
            malfunction_seed=settings.MALFUNCTION_SEED,
        )
        options.update(overrides)
        return cls(**options)

    # ---------------------------------------------------------------------
    def bootstrap(self) -> WorkerState:
        """
        Bootstrapping phase. Store errors here are not retried.

        Raises:
            RegistryMissingError: the sensors table has not been created.
        """
        sensor_registry.ensure_registry(self.engine)

        with self.session_factory() as db:
            fleet_service.ensure_fleet(db, self.target_count, rng=self.rng, now=int(self.clock()))
            codes = tuple(sensor_registry.list_sensor_codes(db))

        logger.info(f"Starting sensor worker for {len(codes)} sensors.")

        self.malfunctioning = designate_malfunctioning(codes, self.malfunction_ratio, self.malfunction_seed)
        logger.info(f"Designated {len(self.malfunctioning)} sensors as malfunctioning.")

        self.phase = WorkerPhase.RUNNING
        return WorkerState(sensor_codes=codes, last_aggregation_check=self.clock())

    # ---------------------------------------------------------------------
    def tick(self, state: WorkerState) -> WorkerState:
        """One Running iteration: generate, then aggregate and prune when due."""
        self.generate_readings(state.sensor_codes)

        if self.clock() - state.last_aggregation_check >= self.aggregation_interval:
            state = self.run_aggregation_check(state)

        return state

    def generate_readings(self, sensor_codes: Tuple[int, ...]) -> int:
        """Write one reading per code. A failed batch is logged and dropped."""
        rows = generate_tick(sensor_codes, self.malfunctioning, int(self.clock()), self.rng)
        try:
            with self.session_factory() as db:
                inserted = bulk_insert_readings(db, rows)
        except SQLAlchemyError:
            logger.exception("Failed to write readings for this tick")
            return 0

        logger.debug(f"Inserted {inserted} temperature readings in this iteration.")
        return inserted

    def run_aggregation_check(self, state: WorkerState) -> WorkerState:
        now = self.clock()
        window_start = int(state.last_aggregation_check)
        window_end = int(now)
        logger.info(f"Running aggregation check from {window_start} to {window_end}...")

        try:
            with self.session_factory() as db:
                averages = overall_face_average(db, self.aggregation_bucket, window_start, window_end)
        except SQLAlchemyError:
            logger.exception("Aggregation query failed; skipping pruning")
            averages = {}

        for face, average in averages.items():
            logger.info(f"Face: {face} - Overall Average Temperature: {average:.2f}")
            self.prune_face(face, average)

        sensor_codes = self.top_up(state.sensor_codes)
        return WorkerState(sensor_codes=sensor_codes, last_aggregation_check=self.clock())

    def prune_face(self, face: str, average: float) -> int:
        allowed_min, allowed_max = anomaly_service.allowed_range(average, self.deviation_ratio)
        logger.info(f"For face {face}, allowed temperature range: [{allowed_min:.2f}, {allowed_max:.2f}]")

        try:
            with self.session_factory() as db:
                if anomaly_service.count_out_of_range(db, face, allowed_min, allowed_max) == 0:
                    logger.info(f"No malfunctioning sensors to delete on face {face}.")
                    return 0
                deleted = anomaly_service.prune_face(db, face, allowed_min, allowed_max)
        except SQLAlchemyError:
            logger.exception(f"Pruning failed on face {face}")
            return 0

        logger.info(f"Deleted {deleted} malfunctioning sensors on face {face}.")
        return deleted

    def top_up(self, sensor_codes: Tuple[int, ...]) -> Tuple[int, ...]:
        """Refill the fleet if it fell below target and return the refreshed code list."""
        try:
            with self.session_factory() as db:
                live = sensor_registry.count_codes_in_range(db, self.target_count)
                if live >= self.target_count:
                    logger.info(f"Total sensors remain at {self.target_count}. No regeneration needed.")
                    return sensor_codes

                try:
                    fleet_service.ensure_fleet(db, self.target_count, rng=self.rng, now=int(self.clock()))
                except SQLAlchemyError:
                    logger.exception("Fleet regeneration failed")

                refreshed = tuple(sensor_registry.list_sensor_codes(db))
        except SQLAlchemyError:
            logger.exception("Could not refresh the sensor list")
            return sensor_codes

        logger.info(f"Sensor list updated. Total sensors: {len(refreshed)}")
        return refreshed

    # ---------------------------------------------------------------------
    def run(self, max_ticks: Optional[int] = None) -> WorkerState:
        """Bootstrap, then tick until the process ends (or max_ticks is reached)."""
        state = self.bootstrap()
        ticks = 0

        while max_ticks is None or ticks < max_ticks:
            started = self.clock()
            state = self.tick(state)
            ticks += 1

            remaining = self.tick_seconds - (self.clock() - started)
            if remaining > 0:
                self.sleep(remaining)

        return state


# -------------------------------------------------------------------------
# Entrypoint
# -------------------------------------------------------------------------
def main() -> None:
    from sensorfleet.core.logging_config import setup_logging

    setup_logging(settings.LOG_LEVEL)
    worker = SensorWorker.from_settings()

    try:
        worker.run()
    except RegistryMissingError as e:
        logger.error(f"{e} Exiting sensor worker.")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Sensor worker stopped.")


if __name__ == "__main__":
    main()
