"""Event trace: an observer recording every fired event."""

import json
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd
from dataclasses_json import dataclass_json

from ..core.events import Event, EventKind

TRACE_COLUMNS = ["time", "sequence_id", "kind", "event", "ok", "value", "process"]


@dataclass_json
@dataclass
class TraceRecord:
    """One fired event.

    Attributes:
        time: Virtual time the event fired at
        sequence_id: Tie-breaker of the event
        kind: Event kind name
        event: Event class name
        ok: Whether the event succeeded
        value: repr of the delivered value
        process: Name of the finishing process for completion events
    """
    time: float
    sequence_id: int
    kind: str
    event: str
    ok: bool
    value: Optional[str] = None
    process: Optional[str] = None


class EventTrace:
    """Observer collecting ``TraceRecord`` entries.

    Attach it with ``trace.attach(env)`` (or ``env.add_observer(trace)``).
    Cancelled events are skipped by the loop and therefore never traced.
    """

    def __init__(self, kinds: Optional[Iterable[EventKind]] = None,
                 capture_values: bool = True):
        """Initialize trace.

        Args:
            kinds: Only record these event kinds; all kinds when None
            capture_values: Store repr of event values
        """
        self.kinds = frozenset(kinds) if kinds is not None else None
        self.capture_values = capture_values
        self.records: List[TraceRecord] = []

    def __call__(self, env, event: Event) -> None:
        if self.kinds is not None and event.kind not in self.kinds:
            return

        process = getattr(event, 'process', None)
        self.records.append(TraceRecord(
            time=event.scheduled_time,
            sequence_id=event.sequence_id,
            kind=event.kind.value,
            event=type(event).__name__,
            ok=bool(event.ok),
            value=repr(event.value) if self.capture_values else None,
            process=process.name if process is not None else None,
        ))

    def __len__(self) -> int:
        return len(self.records)

    def attach(self, env) -> 'EventTrace':
        env.add_observer(self)
        return self

    def detach(self, env) -> None:
        env.remove_observer(self)

    def clear(self) -> None:
        self.records.clear()

    def to_dicts(self) -> List[dict]:
        return [record.to_dict() for record in self.records]

    def to_json(self) -> str:
        return json.dumps(self.to_dicts())

    def to_dataframe(self) -> pd.DataFrame:
        """Records as a DataFrame, one row per fired event."""
        return pd.DataFrame(self.to_dicts(), columns=TRACE_COLUMNS)
