"""The tank fill measurement: drive the pumps, follow the scale, capture COG data."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from os import PathLike
from typing import Callable, Optional, Protocol, Union

from autompg.records import Record, write_csv
from autompg.scale import read_scale

logger = logging.getLogger(__name__)

PUMP_CHANNEL = 2
FILL_CHANNELS = (1, 3)
WEIGHT_QUEUE_SIZE = 128
POLL_INTERVAL = 1.0


class Phase(Enum):
    """Steps of a measurement run, in order."""

    START_PUMP = auto()
    WAIT_STABLE_DECREASE = auto()
    STOP_PUMP = auto()
    TARE_SCALE = auto()
    START_FILL = auto()
    WAIT_STABLE_INCREASE = auto()
    STOP_FILL = auto()
    STORE_DATA = auto()
    DONE = auto()


class PowerSupply(Protocol):
    """A switchable multi-channel power supply."""

    def turn_on(self, channel: int) -> None:
        """Switch the output of ``channel`` on."""

    def turn_off(self, channel: int) -> None:
        """Switch the output of ``channel`` off."""


@dataclass(frozen=True)
class CogPacket:
    """One packet from the COG reader: a counter and eight sensor values."""

    counter: int
    cog_values: tuple[float, ...]


class CogReaderError(Exception):
    """Raised by a COG reader that can no longer deliver packets."""


class CogReader(Protocol):
    """A source of COG packets that queues them in the background."""

    def try_recv_packet(self) -> Optional[CogPacket]:
        """Return the next queued packet, or None when none is waiting."""

    def stop(self) -> None:
        """Stop reading and release the device."""


class WeightSource(Protocol):
    """A queue of weights; None marks the end of the stream."""

    def get(self) -> Optional[float]:
        """Block until the next weight is available."""

    def get_nowait(self) -> Optional[float]:
        """Return a waiting weight or raise queue.Empty."""


class Collector:
    """Runs the measurement phases and keeps the captured records."""

    def __init__(
        self,
        weights: WeightSource,
        psu: PowerSupply,
        stable_secs: int,
        output_file: Union[str, "PathLike[str]"],
        gtr: Optional[CogReader] = None,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        logger.info("Creating collector with stable_secs=%s, output=%s", stable_secs, output_file)
        self.weights = weights
        self.psu = psu
        self.stable_secs = stable_secs
        self.output_file = output_file
        self.gtr = gtr
        self.capture: list[Record] = []
        self._sleep = sleep
        self._closed = False

    def _next_weight(self) -> Optional[float]:
        if self._closed:
            return None
        weight = self.weights.get()
        if weight is None:
            self._closed = True
        return weight

    def _latest_weight(self, current: float) -> float:
        while not self._closed:
            try:
                weight = self.weights.get_nowait()
            except queue.Empty:
                break
            if weight is None:
                self._closed = True
            else:
                current = weight
        return current

    def _set_power(self, channel: int, on: bool) -> None:
        action = "ON" if on else "OFF"
        logger.info("Setting PSU channel %s %s", channel, action)
        if on:
            self.psu.turn_on(channel)
        else:
            self.psu.turn_off(channel)
        logger.debug("PSU channel %s set %s successfully", channel, action)

    def collect_cog_data(self, weight: float) -> int:
        """Drain all queued COG packets into records at ``weight``; return how many."""
        if self.gtr is None:
            logger.warning("GTR not initialized, skipping COG data collection")
            return 0
        collected = 0
        while True:
            try:
                packet = self.gtr.try_recv_packet()
            except (CogReaderError, OSError) as exc:
                logger.error("GTR error: %s", exc)
                break
            if packet is None:
                break
            self.capture.append(
                Record(datetime.now(timezone.utc), weight, *packet.cog_values[:8])
            )
            collected += 1
            logger.debug(
                "Packet #%d: Weight=%.2flb, Counter=%s, COGs=%s",
                collected,
                weight,
                packet.counter,
                [round(value, 2) for value in packet.cog_values[:8]],
            )
        if collected:
            logger.info(
                "Collected %d GTR packets at weight %.2flb (Total records: %d)",
                collected,
                weight,
                len(self.capture),
            )
        else:
            logger.debug("No GTR packets available at weight %.2flb", weight)
        return collected

    def flush_to_csv(self) -> None:
        """Write all captured records to the output file."""
        logger.info("Saving %d records to CSV file: %s", len(self.capture), self.output_file)
        write_csv(self.capture, self.output_file)
        logger.info("Data saved to %s successfully", self.output_file)

    def wait_for_stability(self, increasing: bool, collect: bool = False) -> Optional[float]:
        """Poll once a second until the weight trend holds for ``stable_secs`` polls.

        The trend holds while each change is >= 0 (``increasing``) or <= 0.
        With ``collect`` set, COG packets are captured on every poll. Returns
        the final weight, or None if the weight stream has ended.
        """
        trend = "increasing" if increasing else "decreasing"
        logger.info("Waiting for %s trend to stabilize for %s seconds...", trend, self.stable_secs)
        last = self._next_weight()
        if last is None:
            logger.error("No weight data received")
            return None
        logger.info("Initial weight: %.2flb", last)

        stable = 0
        cycles = 0
        while stable < self.stable_secs:
            self._sleep(POLL_INTERVAL)
            current = self._latest_weight(last)
            cycles += 1
            if collect:
                logger.debug("Collection cycle #%d at weight %.2flb", cycles, current)
                self.collect_cog_data(current)
            delta = current - last
            ok = delta >= 0.0 if increasing else delta <= 0.0
            stable = stable + 1 if ok else 0
            logger.debug(
                "Weight: %.2flb, Delta: %+.2flb, Stable: %d/%s %s%s",
                current,
                delta,
                stable,
                self.stable_secs,
                "✓" if ok else "✗",
                "" if ok else " (reset counter)",
            )
            last = current

        logger.info("Stability achieved! Final weight: %.2flb", last)
        if collect:
            logger.info(
                "Total collection cycles: %d, Total records captured: %d",
                cycles,
                len(self.capture),
            )
        return last

    def step(self, phase: Phase) -> Phase:
        """Carry out ``phase`` and return the phase that follows it."""
        logger.info("Entering phase: %s", phase.name)
        if phase is Phase.START_PUMP:
            self._set_power(PUMP_CHANNEL, True)
            return Phase.WAIT_STABLE_DECREASE
        if phase is Phase.WAIT_STABLE_DECREASE:
            self.wait_for_stability(increasing=True)
            return Phase.STOP_PUMP
        if phase is Phase.STOP_PUMP:
            self._set_power(PUMP_CHANNEL, False)
            return Phase.TARE_SCALE
        if phase is Phase.TARE_SCALE:
            logger.info("Taring scale")
            return Phase.START_FILL
        if phase is Phase.START_FILL:
            for channel in FILL_CHANNELS:
                self._set_power(channel, True)
            return Phase.WAIT_STABLE_INCREASE
        if phase is Phase.WAIT_STABLE_INCREASE:
            self.wait_for_stability(increasing=False, collect=True)
            return Phase.STOP_FILL
        if phase is Phase.STOP_FILL:
            for channel in FILL_CHANNELS:
                self._set_power(channel, False)
            return Phase.STORE_DATA
        if phase is Phase.STORE_DATA:
            self.flush_to_csv()
            return Phase.DONE
        logger.info("Process completed successfully")
        return Phase.DONE

    def run_all(self) -> None:
        """Run every phase from START_PUMP until DONE."""
        phase = Phase.START_PUMP
        while phase is not Phase.DONE:
            phase = self.step(phase)

    def stop_gtr(self) -> None:
        """Stop and release the COG reader, logging any failure."""
        gtr, self.gtr = self.gtr, None
        if gtr is None:
            return
        logger.info("Stopping GTR reader...")
        try:
            gtr.stop()
        except (CogReaderError, OSError) as exc:
            logger.error("Error stopping GTR: %s", exc)
        else:
            logger.info("GTR reader stopped successfully")


def run(
    psu: PowerSupply,
    scale_port: str,
    gtr: Optional[CogReader],
    stable_secs: int = 5,
    output_file: Union[str, "PathLike[str]"] = "tank_run.csv",
) -> list[Record]:
    """Run a full measurement with the scale on ``scale_port``; return the records."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    logger.info("Starting data collection (scale: %s)", scale_port)

    weights: "queue.Queue[Optional[float]]" = queue.Queue(maxsize=WEIGHT_QUEUE_SIZE)
    stop = threading.Event()

    def _read() -> None:
        try:
            read_scale(scale_port, weights.put, stop)
        except OSError as exc:
            logger.error("Scale reader error: %s", exc)
        finally:
            weights.put(None)

    reader = threading.Thread(target=_read, name="scale-reader", daemon=True)
    reader.start()

    collector = Collector(weights, psu, stable_secs, output_file, gtr)
    try:
        logger.info("Starting state machine...")
        collector.run_all()
    finally:
        logger.info("Shutting down GTR...")
        collector.stop_gtr()
        stop.set()
    logger.info("Data collection completed successfully")
    return collector.capture