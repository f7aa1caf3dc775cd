"""Measurement records and their CSV representation."""

from __future__ import annotations

import csv
import re
from dataclasses import astuple, dataclass
from datetime import datetime, timezone
from os import PathLike
from typing import Iterable, Union

COG_SENSORS = 8
FIELDNAMES = ("timestamp", "weight", *(f"cog_{i}" for i in range(1, COG_SENSORS + 1)))

_TIMESTAMP = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<zone>Z|z|[+-]\d{2}:\d{2})?$"
)

PathType = Union[str, "PathLike[str]"]


@dataclass(frozen=True)
class Record:
    """One sample: the scale weight and the eight COG sensor values."""

    timestamp: datetime
    weight: float
    cog_1: float = 0.0
    cog_2: float = 0.0
    cog_3: float = 0.0
    cog_4: float = 0.0
    cog_5: float = 0.0
    cog_6: float = 0.0
    cog_7: float = 0.0
    cog_8: float = 0.0

    @property
    def cogs(self) -> tuple[float, ...]:
        """All eight COG values, sensor 1 first."""
        return astuple(self)[2:]

    def cog(self, sensor: int) -> float:
        """Value of COG sensor ``sensor`` (1 to 8); 0.0 for any other number."""
        if 1 <= sensor <= COG_SENSORS:
            return self.cogs[sensor - 1]
        return 0.0


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    if moment.microsecond == 0:
        spec = "seconds"
    elif moment.microsecond % 1000 == 0:
        spec = "milliseconds"
    else:
        spec = "microseconds"
    return moment.replace(tzinfo=None).isoformat(timespec=spec) + "Z"


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP.match(text.strip())
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    fraction = (match["fraction"] or "").ljust(6, "0")[:6]
    zone = match["zone"]
    if zone is None or zone in ("Z", "z"):
        zone = "+00:00"
    moment = datetime.fromisoformat(f"{match['base']}.{fraction}{zone}")
    return moment.astimezone(timezone.utc)


def _format_float(value: float) -> str:
    return repr(float(value))


def write_csv(records: Iterable[Record], path: PathType) -> None:
    """Write ``records`` to ``path`` with a header row."""
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(FIELDNAMES)
        for record in records:
            writer.writerow(
                [
                    _format_timestamp(record.timestamp),
                    _format_float(record.weight),
                    *(_format_float(value) for value in record.cogs),
                ]
            )


def read_csv(path: PathType) -> list[Record]:
    """Read records written by :func:`write_csv`; raise ValueError on bad data."""
    with open(path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        missing = [name for name in FIELDNAMES if name not in (reader.fieldnames or ())]
        if missing:
            raise ValueError(f"{path}: missing columns: {', '.join(missing)}")
        records = []
        for row in reader:
            try:
                records.append(
                    Record(
                        _parse_timestamp(row["timestamp"]),
                        *(float(row[name]) for name in FIELDNAMES[1:]),
                    )
                )
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{path}: line {reader.line_num}: {exc}") from exc
    return records