"""Reading weights from a serial scale."""

from __future__ import annotations

import logging
import re
import threading
from typing import Callable, Iterable, Optional

import serial

logger = logging.getLogger(__name__)

BAUD_RATE = 9600
READ_TIMEOUT = 1.0
READ_SIZE = 1024

# The scale sends some characters with the high bit set.
EXTRA_CHARMAP = {0xA0: 0x20, **{0xB0 + digit: 0x30 + digit for digit in range(10)}}
_TRANSLATION = bytes.maketrans(bytes(EXTRA_CHARMAP), bytes(EXTRA_CHARMAP.values()))

WEIGHT_PATTERN = re.compile(r"\d{1,3}\.\d{2}(?:lb|l)", re.ASCII)
_ASCII_WHITESPACE = frozenset(" \t\n\x0c\r")


def decode_ascii_with_extra(data: bytes) -> str:
    """Map the scale's high-bit characters to ASCII and decode.

    Chunks without a decimal point at index 3 or later cannot hold a reading
    and decode to an empty string.
    """
    if data.find(b".") < 3:
        return ""
    return data.translate(_TRANSLATION).decode("utf-8", errors="replace")


def filter_printable(text: str) -> str:
    """Keep only printable ASCII characters and ASCII whitespace."""
    return "".join(ch for ch in text if "!" <= ch <= "~" or ch in _ASCII_WHITESPACE)


def remove_chars(text: str, chars: Iterable[str]) -> str:
    """Drop every occurrence of the given characters from ``text``."""
    unwanted = set(chars)
    return "".join(ch for ch in text if ch not in unwanted)


class WeightParser:
    """Accumulates raw scale output and extracts weights in pounds."""

    def __init__(self) -> None:
        self._buffer = ""
        self.last_weight: Optional[float] = None

    @property
    def pending(self) -> str:
        """Text received but not yet consumed by a reading."""
        return self._buffer

    def feed(self, data: bytes) -> Optional[float]:
        """Add a chunk of raw bytes; return a weight if one is now complete."""
        filtered = filter_printable(decode_ascii_with_extra(data))
        if not filtered.strip():
            return None
        self._buffer = remove_chars(self._buffer + filtered, "\r\n")
        match = WEIGHT_PATTERN.search(self._buffer)
        if match is None:
            return None
        self._buffer = ""
        try:
            weight = float(match.group().replace("lb", "").replace("l", ""))
        except ValueError:
            return None
        if self.last_weight is None or abs(weight - self.last_weight) > 0.01:
            logger.debug(
                "Scale: %.2flb -> %.2flb",
                self.last_weight if self.last_weight is not None else 0.0,
                weight,
            )
            self.last_weight = weight
        return weight


def read_scale(
    port_name: str,
    sink: Callable[[float], object],
    stop: Optional[threading.Event] = None,
) -> None:
    """Read weights from the scale on ``port_name`` and pass each to ``sink``.

    Runs until ``stop`` is set or the port fails. Opening the port raises
    ``serial.SerialException`` on failure.
    """
    logger.info("Opening serial port %s...", port_name)
    with serial.Serial(port_name, BAUD_RATE, timeout=READ_TIMEOUT) as port:
        logger.info("Scale reader started on %s", port_name)
        parser = WeightParser()
        while stop is None or not stop.is_set():
            try:
                data = port.read(1)
                waiting = port.in_waiting if data else 0
                if waiting:
                    data += port.read(min(waiting, READ_SIZE - 1))
            except OSError as exc:
                logger.error("Error reading from serial port: %s", exc)
                break
            if not data:
                logger.debug("Scale read timeout")
                continue
            weight = parser.feed(data)
            if weight is not None:
                sink(weight)
    logger.info("Scale reader task terminated")