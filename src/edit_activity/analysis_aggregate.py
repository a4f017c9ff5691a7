from __future__ import annotations

import datetime as dt
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from typing import Callable, Iterable, Iterator

from sortedcontainers import SortedSet

from .models import ActivityIndex, EditEvent, LatestName, MalformedEventError

TIE_BREAKS = ("largest", "legacy")


def validate_event(event: EditEvent) -> tuple[int, str, int, dt.date]:
    try:
        editor_id = int(event.editor_id)
    except (TypeError, ValueError):
        raise MalformedEventError(f"event has no usable editor id: {event!r}") from None
    if editor_id < 0:
        raise MalformedEventError(f"event has no usable editor id: {event!r}")
    if event.timestamp is None:
        raise MalformedEventError(f"event for editor {editor_id} has no timestamp")
    try:
        ts = int(event.timestamp)
        day = event.calendar_day
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise MalformedEventError(f"event for editor {editor_id} has an unusable timestamp {event.timestamp!r}: {e}") from e
    return editor_id, event.editor_name or "", ts, day


def should_replace_name(current: LatestName | None, incoming: LatestName, tie_break: str = "largest") -> bool:
    """
    Latest-name update rule.

    `legacy` keeps the historical comparison: a newer-or-equal timestamp wins only
    when the name differs. With several distinct names sharing a timestamp the
    survivor depends on fold/merge order.

    `largest` orders entries by (timestamp, name) and keeps the maximum, so the
    result is the same for any partitioning of the stream.
    """
    if current is None:
        return True
    if tie_break == "legacy":
        return incoming.timestamp >= current.timestamp and incoming.name != current.name
    if tie_break == "largest":
        return (incoming.timestamp, incoming.name) > (current.timestamp, current.name)
    raise ValueError(f"Invalid name tie-break: {tie_break!r} (expected one of {', '.join(TIE_BREAKS)})")


def fold_event(index: ActivityIndex, event: EditEvent, tie_break: str = "largest") -> None:
    editor_id, name, ts, day = validate_event(event)

    days = index.user_days.get(editor_id)
    if days is None:
        days = SortedSet()
        index.user_days[editor_id] = days
    days.add(day)

    users = index.day_users.get(day)
    if users is None:
        users = set()
        index.day_users[day] = users
    users.add(editor_id)

    incoming = LatestName(timestamp=ts, name=name)
    if should_replace_name(index.latest_names.get(editor_id), incoming, tie_break):
        index.latest_names[editor_id] = incoming


def fold_events(events: Iterable[EditEvent], tie_break: str = "largest") -> ActivityIndex:
    index = ActivityIndex()
    for event in events:
        fold_event(index, event, tie_break)
    return index


def merge_indexes(dst: ActivityIndex, src: ActivityIndex, tie_break: str = "largest") -> ActivityIndex:
    """Union `src` into `dst` and return `dst`. `src` must not be used afterwards."""
    for editor_id, days in src.user_days.items():
        cur = dst.user_days.get(editor_id)
        if cur is None:
            dst.user_days[editor_id] = days
        else:
            cur.update(days)

    for day, users in src.day_users.items():
        cur_users = dst.day_users.get(day)
        if cur_users is None:
            dst.day_users[day] = users
        else:
            cur_users.update(users)

    for editor_id, entry in src.latest_names.items():
        if should_replace_name(dst.latest_names.get(editor_id), entry, tie_break):
            dst.latest_names[editor_id] = entry
    return dst


def merge_all(indexes: Iterable[ActivityIndex], tie_break: str = "largest") -> ActivityIndex:
    out = ActivityIndex()
    for idx in indexes:
        merge_indexes(out, idx, tie_break)
    return out


def iter_batches(events: Iterable[EditEvent], batch_size: int) -> Iterator[list[EditEvent]]:
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    batch: list[EditEvent] = []
    for event in events:
        batch.append(event)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def _print_progress(events_read: int) -> None:
    print(f"Read {events_read:,} events...")


def aggregate_events(
    events: Iterable[EditEvent],
    *,
    jobs: int = 1,
    batch_size: int = 50_000,
    tie_break: str = "largest",
    progress: Callable[[int], None] | None = _print_progress,
    progress_every: int = 1_000_000,
) -> ActivityIndex:
    """
    Fold the event stream into a single ActivityIndex.

    With jobs > 1 the stream is cut into batches that are folded in worker
    processes, each into its own partial index, and merged here as they finish.
    At most 2 * jobs batches are in flight so the source is never drained ahead
    of the workers.
    """
    if tie_break not in TIE_BREAKS:
        raise ValueError(f"Invalid name tie-break: {tie_break!r} (expected one of {', '.join(TIE_BREAKS)})")

    events_read = 0
    next_report = progress_every

    def count(n: int) -> None:
        nonlocal events_read, next_report
        events_read += n
        if progress is not None and events_read >= next_report:
            progress(events_read)
            while next_report <= events_read:
                next_report += progress_every

    if jobs <= 1:
        result = ActivityIndex()
        for batch in iter_batches(events, batch_size):
            for event in batch:
                fold_event(result, event, tie_break)
            count(len(batch))
        return result

    result = ActivityIndex()
    max_in_flight = 2 * jobs
    with ProcessPoolExecutor(max_workers=jobs) as ex:
        pending: set[Future[ActivityIndex]] = set()
        for batch in iter_batches(events, batch_size):
            if len(pending) >= max_in_flight:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for fut in done:
                    merge_indexes(result, fut.result(), tie_break)
            pending.add(ex.submit(fold_events, batch, tie_break))
            count(len(batch))

        done, _ = wait(pending)
        for fut in done:
            merge_indexes(result, fut.result(), tie_break)
    return result
