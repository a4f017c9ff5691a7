from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Iterator

from sortedcontainers import SortedDict, SortedSet


class EditActivityError(ValueError):
    """Base class for fatal errors; every one of them aborts the run."""


class MalformedEventError(EditActivityError):
    """Raised when an event has no usable editor id or timestamp."""


class EmptyInputError(EditActivityError):
    """Raised when the source yielded no events, so there is no observed day range."""


class InputReadError(EditActivityError):
    """Raised when the input file cannot be decoded into edit events."""


class ConfigurationRangeError(EditActivityError):
    """Raised when the requested report span is inverted after clamping."""


@dataclasses.dataclass(frozen=True)
class EditEvent:
    editor_id: int | None
    editor_name: str | None
    timestamp: int | None  # epoch seconds

    @property
    def calendar_day(self) -> dt.date:
        if self.timestamp is None:
            raise MalformedEventError("event has no timestamp")
        return dt.datetime.fromtimestamp(self.timestamp, tz=dt.timezone.utc).date()


@dataclasses.dataclass(frozen=True)
class LatestName:
    timestamp: int
    name: str


@dataclasses.dataclass(frozen=True)
class DayRange:
    start: dt.date  # inclusive
    end: dt.date  # inclusive

    def __len__(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    def days(self) -> Iterator[dt.date]:
        cur = self.start
        while cur <= self.end:
            yield cur
            cur += dt.timedelta(days=1)


@dataclasses.dataclass
class ActivityIndex:
    user_days: dict[int, SortedSet] = dataclasses.field(default_factory=dict)  # editor_id -> {date}
    day_users: SortedDict = dataclasses.field(default_factory=SortedDict)  # date -> {editor_id}
    latest_names: dict[int, LatestName] = dataclasses.field(default_factory=dict)

    @property
    def num_users(self) -> int:
        return len(self.user_days)

    @property
    def num_days(self) -> int:
        return len(self.day_users)

    def latest_name(self, editor_id: int) -> str:
        entry = self.latest_names.get(editor_id)
        return entry.name if entry is not None else ""

    def users_on(self, day: dt.date) -> set[int]:
        return self.day_users.get(day, set())

    def observed_range(self) -> DayRange:
        if not self.day_users:
            raise EmptyInputError("no edit events were read; the observed day range is undefined")
        return DayRange(start=self.day_users.peekitem(0)[0], end=self.day_users.peekitem(-1)[0])


@dataclasses.dataclass(frozen=True)
class ReportConfig:
    min_edit_days: int = 20
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    min_num_days: int | None = 3
    super_user_days: int = 42
    window_days: int = 365
    name_tie_break: str = "largest"  # "largest" or "legacy"
