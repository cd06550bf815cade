"""
In-memory collaborators for pipeline tests
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from core.exceptions import NotificationError, TransientFetchError
from ingestion.checkpoint import CheckpointStore
from ingestion.connectors.base import Connector
from ingestion.loaders.warehouse import Warehouse
from ingestion.transformers.coercion import parse_datetime
from models.base import SourceSystem
from monitoring.notifiers import Notifier
from schemas.pipeline import Alert, ExtractionCursor, Page
from schemas.table_schemas import TableSchema


FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class InMemoryCheckpointStore(CheckpointStore):

    def __init__(self, cursors: Optional[Dict[str, ExtractionCursor]] = None):
        self.cursors: Dict[str, ExtractionCursor] = dict(cursors or {})
        self.writes: List[ExtractionCursor] = []

    async def get_cursor(self, process_name: str) -> ExtractionCursor:
        if process_name not in self.cursors:
            source = process_name[:-len("_sync")]
            self.cursors[process_name] = ExtractionCursor.initial(source)
        return self.cursors[process_name]

    async def put_cursor(self, process_name: str, cursor: ExtractionCursor) -> None:
        self.cursors[process_name] = cursor
        self.writes.append(cursor)


class FakeConnector(Connector):
    """
    Serves ``records`` in offset windows.

    ``has_next`` defaults to "a full page came back"; pass ``flags`` to
    script the continuation flag per call instead. ``fail_at_call`` makes
    that call raise TransientFetchError.
    """

    def __init__(
        self,
        records: List[Dict[str, Any]],
        source: SourceSystem = SourceSystem.GAROON,
        flags: Optional[List[bool]] = None,
        fail_at_call: Optional[int] = None,
        reachable: bool = True,
    ):
        self.records = records
        self.source = source
        self.flags = list(flags) if flags is not None else None
        self.fail_at_call = fail_at_call
        self.reachable = reachable
        self.calls: List[int] = []

    async def fetch_page(self, cursor: ExtractionCursor, limit: int) -> Page:
        self.calls.append(cursor.offset)
        if self.fail_at_call is not None and len(self.calls) - 1 == self.fail_at_call:
            raise TransientFetchError(
                "garoon API request failed: 503",
                context={"offset": cursor.offset, "status_code": 503}
            )

        window = self.records[cursor.offset:cursor.offset + limit]
        if self.flags is not None:
            has_next = self.flags[len(self.calls) - 1] if len(self.calls) <= len(self.flags) else False
        else:
            has_next = len(window) == limit
        return Page(records=window, has_next=has_next)

    async def test_connection(self) -> bool:
        return self.reachable


class InMemoryWarehouse(Warehouse):
    """
    Dict-of-lists warehouse.

    ``fail`` maps an operation name (``ensure_table``, ``bulk_insert``,
    ``merge_upsert``, ``drop_table``) to the set of call numbers (0-based,
    per operation) that should raise.
    """

    def __init__(self, fail: Optional[Dict[str, Set[int]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.schemas: Dict[str, TableSchema] = {}
        self.fail = fail or {}
        self.counts: Dict[str, int] = {}
        self.log: List[tuple] = []

    def _maybe_fail(self, operation: str, name: str) -> None:
        n = self.counts.get(operation, 0)
        self.counts[operation] = n + 1
        self.log.append((operation, name))
        if n in self.fail.get(operation, set()):
            raise RuntimeError(f"{operation} failed on {name}")

    async def ensure_table(self, name: str, schema: TableSchema) -> None:
        self._maybe_fail("ensure_table", name)
        self.schemas.setdefault(name, schema)
        self.tables.setdefault(name, [])

    async def bulk_insert(self, table: str, rows: List[Dict[str, Any]]) -> int:
        self._maybe_fail("bulk_insert", table)
        self.tables[table].extend(dict(row) for row in rows)
        return len(rows)

    async def merge_upsert(self, target: str, staging: str, identity_key: str) -> None:
        self._maybe_fail("merge_upsert", target)
        existing = {row[identity_key]: row for row in self.tables[target]}
        for row in self.tables[staging]:
            key = row[identity_key]
            if key in existing:
                existing[key].update(row)
            else:
                new_row = dict(row)
                self.tables[target].append(new_row)
                existing[key] = new_row

    async def drop_table(self, name: str) -> None:
        self._maybe_fail("drop_table", name)
        self.tables.pop(name, None)
        self.schemas.pop(name, None)

    async def fetch_rows(
        self,
        table: str,
        since: Optional[datetime] = None,
        timestamp_column: str = "processed_at",
    ) -> List[Dict[str, Any]]:
        rows = self.tables.get(table, [])
        if since is None:
            return [dict(r) for r in rows]
        return [
            dict(r) for r in rows
            if parse_datetime(r.get(timestamp_column)) is not None
            and parse_datetime(r.get(timestamp_column)) >= since
        ]

    async def latest_by_group(
        self, table: str, group_column: str, timestamp_column: str
    ) -> Dict[str, datetime]:
        latest: Dict[str, datetime] = {}
        for row in self.tables.get(table, []):
            value = parse_datetime(row.get(timestamp_column))
            group = row.get(group_column)
            if value is not None and (group not in latest or value > latest[group]):
                latest[group] = value
        return latest


class RecordingNotifier(Notifier):

    def __init__(self, fail: bool = False):
        self.sent: List[List[Alert]] = []
        self.fail = fail

    async def send(self, alerts: List[Alert]) -> None:
        if self.fail:
            raise NotificationError("Error sending Slack alert", context={"alerts": len(alerts)})
        self.sent.append(list(alerts))
