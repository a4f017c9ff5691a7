from __future__ import annotations

from pathlib import Path
from typing import Iterator

import osmium

from .models import EditEvent, InputReadError

OSM_ENTITIES = osmium.osm.NODE | osmium.osm.WAY | osmium.osm.RELATION


def _edit_event(obj: osmium.osm.OSMObject) -> EditEvent:
    # osmium reports absent metadata as uid 0 / user "" / timestamp at the epoch.
    uid = int(obj.uid)
    user = str(obj.user or "")
    ts = obj.timestamp
    epoch = int(ts.timestamp()) if ts is not None else 0
    return EditEvent(
        editor_id=None if uid == 0 and not user else uid,
        editor_name=user,
        timestamp=epoch if epoch != 0 else None,
    )


def iter_osm_edit_events(path: Path) -> Iterator[EditEvent]:
    """
    Yield one EditEvent per object version in an OSM file.

    History files (.osh.pbf) carry every version of every object, so each
    version becomes an event attributed to the editor that created it.
    Objects without editor or timestamp metadata yield events with those
    fields set to None, which aggregation rejects.
    """
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    try:
        for obj in osmium.FileProcessor(str(path), OSM_ENTITIES):
            yield _edit_event(obj)
    except RuntimeError as e:
        raise InputReadError(f"cannot read {path}: {e}") from e
