from __future__ import annotations

import html
import sys
from typing import List, Optional, Protocol, Sequence, TextIO

from reqlog.core.models import LogEntry

NO_ENTRIES_NOTICE = '<p class="reqlog-empty">No log entries for this request.</p>'
TIME_FORMAT = "%H:%M:%S"


class OutputSink(Protocol):
    def emit(self, text: str) -> None:
        ...


class StreamOutput:
    """Writes report text to a stream, ``sys.stdout`` unless told otherwise."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def emit(self, text: str) -> None:
        stream = self._stream or sys.stdout
        stream.write(text)
        stream.write("\n")


class BufferOutput:
    def __init__(self) -> None:
        self.chunks: List[str] = []

    def emit(self, text: str) -> None:
        self.chunks.append(text)

    def getvalue(self) -> str:
        return "".join(self.chunks)


def format_time(entry: LogEntry) -> str:
    stamp = entry.recorded_at
    return f"{stamp.strftime(TIME_FORMAT)}.{stamp.microsecond // 1000:03d}"


def tick_deltas(entries: Sequence[LogEntry]) -> List[int]:
    """Milliseconds since the previous entry; the first row is 0."""
    deltas: List[int] = []
    previous: Optional[int] = None
    for entry in entries:
        current = entry.tick if entry.tick is not None else previous
        if previous is None or current is None:
            deltas.append(0)
        else:
            deltas.append(current - previous)
        previous = current
    return deltas


def render_report(entries: Sequence[LogEntry], *, show_ticks: bool) -> str:
    headers = ["Time", "Type", "Category", "Text"]
    if show_ticks:
        headers.insert(1, "Tick")
    lines = ['<table class="reqlog">', "<thead><tr>"]
    lines.extend(f"<th>{header}</th>" for header in headers)
    lines.append("</tr></thead>")
    lines.append("<tbody>")

    deltas = tick_deltas(entries) if show_ticks else []
    for index, entry in enumerate(entries):
        cells = [format_time(entry)]
        if show_ticks:
            cells.append(str(deltas[index]))
        cells.extend([entry.level.label, entry.category, entry.text])
        row = "".join(f"<td>{html.escape(cell)}</td>" for cell in cells)
        lines.append(f'<tr class="log-{entry.level.name.lower()}">{row}</tr>')

    lines.append("</tbody>")
    lines.append("</table>")
    return "\n".join(lines)


__all__ = [
    "NO_ENTRIES_NOTICE",
    "OutputSink",
    "StreamOutput",
    "BufferOutput",
    "format_time",
    "tick_deltas",
    "render_report",
]
