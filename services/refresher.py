"""Periodic station feed refresh driving the directory."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional, Protocol

from app.schemas import RefreshStatus
from datastore.preferences import PreferencesStore
from errors import FetchError
from integrations.station_feed import StationFeedClient
from services.directory import StationDirectory, build_default_directory
from services.parser import ParseReport
from settings import get_settings

logger = logging.getLogger(__name__)


class StationFeed(Protocol):
    def fetch_stations(self) -> ParseReport: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class RefreshResult:
    status: RefreshStatus
    station_count: int = 0
    issue_count: int = 0
    detail: Optional[str] = None
    refreshed_at: Optional[datetime] = None


class RefreshLoop:
    """Re-fetches stations on a fixed interval and swaps the directory state.

    Only one refresh runs at a time; a tick that arrives while a fetch is in
    flight is skipped. Fetch failures keep the last good state.
    """

    def __init__(
        self,
        feed: StationFeed,
        directory: StationDirectory,
        interval: float = 60.0,
    ) -> None:
        self.feed = feed
        self.directory = directory
        self.interval = interval
        self._in_flight = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def preferences(self) -> PreferencesStore:
        return self.directory.preferences

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh_once(self) -> RefreshResult:
        if not self._in_flight.acquire(blocking=False):
            logger.info("Refresh already in flight; skipping tick")
            return RefreshResult(status=RefreshStatus.skipped, detail="refresh already in progress")
        try:
            return self._refresh()
        finally:
            self._in_flight.release()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="station-refresh", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        self._thread = None

    def shutdown(self) -> None:
        self.stop()
        self.feed.close()

    def _run(self) -> None:
        logger.info("Starting refresh loop every %.0fs", self.interval)
        while not self._stop_event.is_set():
            try:
                self.refresh_once()
            except Exception:
                logger.exception("Unexpected error during station refresh; retrying next tick")
            self._stop_event.wait(self.interval)

    def _refresh(self) -> RefreshResult:
        start_time = time.perf_counter()
        try:
            report = self.feed.fetch_stations()
        except FetchError as exc:
            logger.warning("Station refresh failed; keeping previous data", extra={"reason": str(exc)})
            previous = self.directory.snapshot()
            return RefreshResult(
                status=RefreshStatus.failed,
                station_count=len(previous.stations),
                detail=str(exc),
                refreshed_at=previous.refreshed_at,
            )

        snapshot = self.directory.replace(report.stations)
        logger.info(
            "Station directory refreshed",
            extra={
                "station_count": len(snapshot.stations),
                "issue_count": len(report.issues),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return RefreshResult(
            status=RefreshStatus.refreshed,
            station_count=len(snapshot.stations),
            issue_count=len(report.issues),
            refreshed_at=snapshot.refreshed_at,
        )


@lru_cache
def build_default_refresher() -> RefreshLoop:
    """Factory that wires the refresh loop with the configured feed and stores."""
    settings = get_settings()
    return RefreshLoop(
        feed=StationFeedClient.from_settings(settings),
        directory=build_default_directory(),
        interval=settings.refresh_interval,
    )
