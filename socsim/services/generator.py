"""
Background alert generator: one periodic task synthesizing an alert and
its correlated log entry per tick.
"""

import asyncio
import logging
import random
from typing import Optional, Tuple

from socsim.config import settings
from socsim.schemas import Alert, LogEntry
from socsim.services.simulator import SimulatorController, get_controller
from socsim.services.synthesis import generate_alert, log_from_alert

logger = logging.getLogger(__name__)


class AlertGenerator:

    def __init__(
        self,
        controller: SimulatorController,
        rng: random.Random,
        interval_seconds: float = 3.6,
        spike_probability: float = 0.14,
    ):
        self.controller = controller
        self.rng = rng
        self.interval_seconds = interval_seconds
        self.spike_probability = spike_probability
        self._task: Optional[asyncio.Task] = None

    def tick(self, force: bool = False) -> Optional[Tuple[Alert, LogEntry]]:
        """
        Run one generator step.

        Skipped (returns None) while the generator preference is off,
        unless ``force`` is set.
        """
        if not force and not self.controller.prefs.generator_on:
            return None

        with self.controller.lock:
            spike = self.rng.random() < self.spike_probability
            alert = generate_alert(self.rng, force_severity="high" if spike else None)
            log = log_from_alert(alert)
            self.controller.record_generated(alert, log)

        logger.info(
            "New alert id=%s severity=%s source=%s title=%s",
            alert.id, alert.severity, alert.source, alert.title,
        )
        return alert, log

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                # Off the loop: tick blocks on the controller lock and the store
                await asyncio.to_thread(self.tick)
            except Exception as exc:
                logger.error("Generator tick failed: %s", exc, exc_info=True)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info("Generator loop started interval=%ss", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Generator loop stopped")


_generator: Optional[AlertGenerator] = None


def get_generator() -> AlertGenerator:
    global _generator
    if _generator is None:
        controller = get_controller()
        _generator = AlertGenerator(
            controller,
            controller.rng,
            interval_seconds=settings.GENERATOR_INTERVAL_SECONDS,
            spike_probability=settings.GENERATOR_SPIKE_PROBABILITY,
        )
    return _generator
