"""
CSV-backed task store.

File layout (one header row, then tasks, epics, subtasks):

    id,type,name,status,description,start,duration,epic
    1,TASK,Write report,NEW,Quarterly numbers,01.02.2026 10:00,30,
    2,EPIC,Move house,IN_PROGRESS,,,,
    3,SUBTASK,Pack books,DONE,,01.02.2026 12:00,45,2

- start uses the configured datetime format, duration is whole minutes
- empty start/duration means no scheduling window
- epic is only set for subtasks
- epic status and window are not trusted on load; they are re-derived

Loading orders rows with a topological sort of the epic -> subtask graph so
every epic exists before its subtasks are attached.
"""

import csv
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import networkx as nx

from tracker.config import get_settings
from tracker.exceptions import InvalidArgumentError, ManagerLoadError, ManagerSaveError, TrackerError
from tracker.logging_config import get_logger
from tracker.models import Epic, Subtask, Task, TaskKind, TaskStatus, WorkItemBase
from tracker.services.store import TaskStore

logger = get_logger(__name__)

FIELDNAMES = ["id", "type", "name", "status", "description", "start", "duration", "epic"]


class FileBackedTaskStore(TaskStore):
    """TaskStore that rewrites its CSV file after every change."""

    def __init__(
        self,
        path: str | Path,
        datetime_format: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.path = Path(path)
        self.datetime_format = datetime_format or get_settings().datetime_format

    @classmethod
    def load_from_file(
        cls,
        path: str | Path,
        datetime_format: Optional[str] = None,
    ) -> "FileBackedTaskStore":
        """
        Build a store from a CSV file.

        A missing or empty file yields an empty store. Ids are kept and the
        id counter continues after the largest one.

        Raises:
            ManagerLoadError: unreadable file, malformed row, duplicate id,
                subtask without a known epic, or overlapping windows
        """
        store = cls(path, datetime_format=datetime_format)
        if not store.path.exists():
            logger.info(f"No data file at {store.path}; starting empty")
            return store

        try:
            with store.path.open(newline="", encoding="utf-8") as fh:
                rows = list(csv.DictReader(fh))
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise ManagerLoadError(f"Failed to read {store.path}: {exc}", str(store.path)) from exc

        items = [store._row_to_item(line_no, row) for line_no, row in enumerate(rows, start=2)]
        graph = build_graph(items)
        missing = [node for node, data in graph.nodes(data=True) if "item" not in data]
        if missing:
            raise ManagerLoadError(
                f"Subtasks reference unknown epics {sorted(missing)} in {store.path}",
                str(store.path),
            )

        try:
            load_order = list(nx.lexicographical_topological_sort(graph))
        except nx.NetworkXUnfeasible as exc:
            raise ManagerLoadError(
                f"Subtasks in {store.path} reference each other as epics", str(store.path)
            ) from exc

        with store._lock:
            for item_id in load_order:
                try:
                    store._restore(graph.nodes[item_id]["item"])
                except TrackerError as exc:
                    raise ManagerLoadError(
                        f"Cannot restore item {item_id} from {store.path}: {exc.message}",
                        str(store.path),
                    ) from exc

        logger.info(
            f"Loaded {len(items)} items from {store.path}; next id={store._ids.next_id}"
        )
        return store

    def save(self) -> None:
        """Rewrite the whole file atomically (temp file + replace)."""
        with self._lock:
            rows = [
                self._item_to_row(item)
                for entities in (self._tasks, self._epics, self._subtasks)
                for item in sorted(entities.values(), key=lambda item: item.id)
            ]
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_name = None
            try:
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                with os.fdopen(fd, "w", newline="", encoding="utf-8") as fh:
                    writer = csv.DictWriter(fh, fieldnames=FIELDNAMES)
                    writer.writeheader()
                    writer.writerows(rows)
                os.replace(tmp_name, self.path)
            except OSError as exc:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise ManagerSaveError(f"Failed to write {self.path}: {exc}", str(self.path)) from exc

            logger.debug(f"Saved {len(rows)} items to {self.path}")

    def _check_storable(self, item: WorkItemBase) -> None:
        """
        Reject windows the file would not reproduce exactly: a start time
        finer than datetime_format, or a duration that is not whole minutes.
        """
        if not item.has_window():
            return
        start = item.start_time
        if datetime.strptime(start.strftime(self.datetime_format), self.datetime_format) != start:
            raise InvalidArgumentError(
                f"start_time {start.isoformat()} is finer than the storage format "
                f"'{self.datetime_format}'",
                field="start_time",
            )
        if item.duration % timedelta(minutes=1):
            raise InvalidArgumentError("duration must be a whole number of minutes", field="duration")

    def _changed(self) -> None:
        """
        Save after a mutation.

        The change is already applied in memory when this runs; if the write
        fails, ManagerSaveError propagates and memory stays ahead of the file
        until the next successful save.
        """
        self.save()

    # ---- row conversion ----

    def _item_to_row(self, item: WorkItemBase) -> dict:
        row = {
            "id": item.id,
            "type": item.kind.value,
            "name": item.title,
            "status": item.status.value,
            "description": item.description,
            "start": "",
            "duration": "",
            "epic": "",
        }
        # Epic windows are derived, not stored
        if not isinstance(item, Epic) and item.has_window():
            row["start"] = item.start_time.strftime(self.datetime_format)
            row["duration"] = int(item.duration.total_seconds() // 60)
        if isinstance(item, Subtask):
            row["epic"] = item.epic_id
        return row

    def _row_to_item(self, line_no: int, row: dict) -> WorkItemBase:
        try:
            kind = TaskKind(row["type"])
            fields = {
                "id": int(row["id"]),
                "title": row["name"] or "",
                "description": row["description"] or "",
                "status": TaskStatus(row["status"]),
            }
            if kind is TaskKind.EPIC:
                return Epic(**fields)

            if row["start"]:
                fields["start_time"] = datetime.strptime(row["start"], self.datetime_format)
            if row["duration"]:
                fields["duration"] = timedelta(minutes=int(row["duration"]))
            if kind is TaskKind.SUBTASK:
                return Subtask(epic_id=int(row["epic"]), **fields)
            return Task(**fields)
        except (KeyError, TypeError, ValueError) as exc:
            raise ManagerLoadError(
                f"Malformed row {line_no} in {self.path}: {exc}", str(self.path)
            ) from exc


def build_graph(items: list[WorkItemBase]) -> nx.DiGraph:
    """
    Build the ownership graph of loaded items.

    Every item is a node carrying the item; each subtask gets an edge from its
    epic. An epic id that is not among the items shows up as a node without
    an "item" attribute.
    """
    graph = nx.DiGraph()

    for item in items:
        if item.id in graph and "item" in graph.nodes[item.id]:
            raise ManagerLoadError(f"Duplicate id {item.id} in saved data")
        graph.add_node(item.id, item=item)

    for item in items:
        if isinstance(item, Subtask):
            graph.add_edge(item.epic_id, item.id)

    return graph
