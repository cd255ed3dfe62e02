"""
Audit history for work items.

Each accepted operation appends exactly one HistoryEntry. Entries are never
rewritten, so the history doubles as the item's audit log.
"""

from datetime import datetime, timezone

from dtq.models import Action, HistoryEntry, WorkItem

__all__ = ["TIMESTAMP_FORMAT", "now", "record", "format_history"]

# Fixed width and zero padded: lexical order matches chronological order.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def now() -> str:
    """Current UTC time as a sortable timestamp string."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def record(item: WorkItem, action: Action, agent: str, at: str, note: str = "") -> HistoryEntry:
    """Append a history entry and stamp the item's updatedAt with the same time."""
    entry = HistoryEntry(action=action.value, agent=agent, at=at, note=note)
    item.history.append(entry)
    item.updated_at = at
    return entry


def format_history(entries: list[HistoryEntry] | None) -> str:
    """
    Format an item's history as one line per entry.

    Used by `dtq status <id> --log` for a quick human-readable trail.
    """
    if not entries:
        return ""

    lines = []
    for entry in entries:
        line = f"{entry.at}  {entry.action:<8} {entry.agent}"
        if entry.note:
            line += f"  ({entry.note})"
        lines.append(line)
    return "\n".join(lines)
