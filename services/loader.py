"""One-time background load of the SWaT CSV exports."""

from __future__ import annotations

import csv
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Iterator, Optional, TextIO

from services.attack_index import AttackIntervalIndex
from services.query_engine import DatasetSnapshot, QueryEngine, build_default_engine
from services.record_store import RecordStore
from storage.dataset_files import DatasetDirectory, build_default_directory

logger = logging.getLogger(__name__)


class MissingHeader(ValueError):
    """Raised when a CSV file has no header row."""


def read_rows(handle: TextIO) -> Iterator[Dict[str, str]]:
    """Yield CSV rows with trimmed column names and trimmed values."""
    reader = csv.DictReader(handle)
    if not reader.fieldnames:
        raise MissingHeader("CSV file is missing a header row.")

    for row in reader:
        yield {
            name.strip(): (value or "").strip()
            for name, value in row.items()
            if name is not None
        }


class DatasetLoader:
    """Reads the attack list, then the sensor readings, and publishes them."""

    def __init__(self, directory: DatasetDirectory, engine: QueryEngine) -> None:
        self.directory = directory
        self.engine = engine
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dataset-loader")
        self._future: Optional[Future[None]] = None

    def start(self) -> Future[None]:
        """Schedule the load in the background; later calls return the same future."""
        if self._future is None:
            self._future = self.executor.submit(self.load)
        return self._future

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)

    def load(self) -> None:
        start_time = time.perf_counter()
        try:
            attacks = self._load_attacks()
            records = self._load_records()
        except Exception as exc:  # noqa: BLE001 - a failed load must not kill the server
            logger.exception("Dataset load aborted", extra={"reason": str(exc)})
            self.engine.mark_failed(str(exc))
            return

        load_ms = int((time.perf_counter() - start_time) * 1000)
        snapshot = DatasetSnapshot(
            records=records,
            attacks=attacks,
            loaded_at=datetime.now(timezone.utc),
            load_ms=load_ms,
        )
        logger.info(
            "Dataset loaded",
            extra={"row_count": len(records), "attack_count": len(attacks), "load_ms": load_ms},
        )
        self.engine.publish(snapshot)

    def _load_attacks(self) -> AttackIntervalIndex:
        name = self.directory.attack_file
        logger.info("Loading attack list", extra={"file_name": name})
        with self.directory.open_text(name) as handle:
            try:
                attacks = AttackIntervalIndex.from_rows(read_rows(handle))
            except MissingHeader as exc:
                logger.warning(
                    "Attack list is empty; continuing without attacks",
                    extra={"file_name": name, "reason": str(exc)},
                )
                attacks = AttackIntervalIndex(())
        logger.info(
            "Attack data loaded",
            extra={
                "file_name": name,
                "attack_count": len(attacks),
                "dropped_count": attacks.dropped,
            },
        )
        return attacks

    def _load_records(self) -> RecordStore:
        name = self.directory.dataset_file
        logger.info("Loading sensor readings", extra={"file_name": name})
        with self.directory.open_text(name) as handle:
            records = RecordStore.from_rows(read_rows(handle))
        logger.info(
            "SWaT dataset loaded and sorted",
            extra={
                "file_name": name,
                "row_count": len(records),
                "dropped_count": records.dropped,
            },
        )
        return records


@lru_cache
def build_default_loader() -> DatasetLoader:
    """Factory that wires the loader to the configured data directory."""
    return DatasetLoader(directory=build_default_directory(), engine=build_default_engine())
