"""
Warehouse binding.

The loader and the quality monitor only talk to the ``Warehouse`` contract.
``PostgresWarehouse`` implements it on an async SQLAlchemy engine, building
``Table`` objects from the column specs in ``schemas.table_schemas``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    MetaData,
    Numeric,
    Table,
    Text,
    func,
    insert,
    select,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncEngine

from ingestion.transformers.coercion import parse_datetime, parse_number
from schemas.table_schemas import ColumnSpec, TableSchema

logger = logging.getLogger(__name__)


COLUMN_TYPES = {
    "STRING": Text,
    "DATE": Date,
    "TIMESTAMP": lambda: DateTime(timezone=True),
    "FLOAT": Float,
    "NUMERIC": Numeric,
    "INTEGER": Integer,
    "BOOLEAN": Boolean,
}


class Warehouse(ABC):
    """Table-level operations used by the load stage and quality checks"""

    @abstractmethod
    async def ensure_table(self, name: str, schema: TableSchema) -> None:
        """Create the table if absent; never alter an existing one"""

    @abstractmethod
    async def bulk_insert(self, table: str, rows: List[Dict[str, Any]]) -> int:
        pass

    @abstractmethod
    async def merge_upsert(self, target: str, staging: str, identity_key: str) -> None:
        """Set-based upsert of every staging row into target on ``identity_key``"""

    @abstractmethod
    async def drop_table(self, name: str) -> None:
        pass

    @abstractmethod
    async def fetch_rows(
        self,
        table: str,
        since: Optional[datetime] = None,
        timestamp_column: str = "processed_at",
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def latest_by_group(
        self, table: str, group_column: str, timestamp_column: str
    ) -> Dict[str, datetime]:
        """Return ``max(timestamp_column)`` per value of ``group_column``"""

    async def insert_rows(
        self, table: str, schema: TableSchema, rows: List[Dict[str, Any]]
    ) -> int:
        """Append rows, creating the table on first use"""
        if not rows:
            return 0
        await self.ensure_table(table, schema)
        return await self.bulk_insert(table, rows)


def build_table(name: str, schema: TableSchema, metadata: MetaData) -> Table:
    columns = [
        Column(
            column.name,
            COLUMN_TYPES[column.type](),
            primary_key=column.key,
            nullable=not (column.required or column.key),
        )
        for column in schema
    ]
    return Table(name, metadata, *columns)


def coerce_value(column: ColumnSpec, value: Any) -> Any:
    """Convert a record value into the Python type the driver expects for the column"""
    if value is None:
        return None

    if column.type == "DATE":
        parsed = parse_datetime(value)
        return parsed.date() if parsed else None

    if column.type == "TIMESTAMP":
        return parse_datetime(value)

    if column.type == "NUMERIC":
        number = parse_number(value)
        if number is None:
            return None
        try:
            return Decimal(str(number))
        except InvalidOperation:
            return None

    if column.type == "FLOAT":
        return parse_number(value)

    if column.type == "INTEGER":
        number = parse_number(value)
        return int(number) if number is not None else None

    if column.type == "BOOLEAN":
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def coerce_row(schema: TableSchema, row: Dict[str, Any]) -> Dict[str, Any]:
    return {column.name: coerce_value(column, row.get(column.name)) for column in schema}


def build_merge_statement(target: Table, staging: Table, identity_key: str):
    """
    INSERT INTO target (...) SELECT ... FROM staging
    ON CONFLICT (identity_key) DO UPDATE SET <every non-key column>
    """
    names = [column.name for column in target.columns]
    stmt = pg_insert(target).from_select(
        names, select(*[staging.c[name] for name in names])
    )
    return stmt.on_conflict_do_update(
        index_elements=[identity_key],
        set_={name: stmt.excluded[name] for name in names if name != identity_key},
    )


class PostgresWarehouse(Warehouse):
    """
    Warehouse on PostgreSQL via SQLAlchemy async.

    Each operation runs in its own transaction, so a batch that has been
    merged stays committed if a later batch fails.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.metadata = MetaData()
        self._schemas: Dict[str, TableSchema] = {}

    def register(self, name: str, schema: TableSchema) -> Table:
        self._schemas[name] = schema
        if name in self.metadata.tables:
            return self.metadata.tables[name]
        return build_table(name, schema, self.metadata)

    def table(self, name: str) -> Table:
        if name not in self.metadata.tables:
            raise KeyError(f"Table {name} has not been registered with the warehouse")
        return self.metadata.tables[name]

    async def ensure_table(self, name: str, schema: TableSchema) -> None:
        table = self.register(name, schema)
        async with self.engine.begin() as conn:
            await conn.run_sync(table.create, checkfirst=True)

    async def bulk_insert(self, table: str, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        schema = self._schemas[table]
        values = [coerce_row(schema, row) for row in rows]
        async with self.engine.begin() as conn:
            await conn.execute(insert(self.table(table)), values)
        return len(values)

    async def merge_upsert(self, target: str, staging: str, identity_key: str) -> None:
        stmt = build_merge_statement(self.table(target), self.table(staging), identity_key)
        async with self.engine.begin() as conn:
            await conn.execute(stmt)

    async def drop_table(self, name: str) -> None:
        if name not in self.metadata.tables:
            return
        table = self.metadata.tables[name]
        async with self.engine.begin() as conn:
            await conn.run_sync(table.drop, checkfirst=True)
        self.metadata.remove(table)
        self._schemas.pop(name, None)

    async def fetch_rows(
        self,
        table: str,
        since: Optional[datetime] = None,
        timestamp_column: str = "processed_at",
    ) -> List[Dict[str, Any]]:
        source = self.table(table)
        query = select(source)
        if since is not None:
            query = query.where(source.c[timestamp_column] >= since)

        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            return [dict(row._mapping) for row in result]

    async def latest_by_group(
        self, table: str, group_column: str, timestamp_column: str
    ) -> Dict[str, datetime]:
        source = self.table(table)
        query = select(
            source.c[group_column], func.max(source.c[timestamp_column])
        ).group_by(source.c[group_column])

        async with self.engine.connect() as conn:
            result = await conn.execute(query)
            latest = {}
            for group, value in result:
                if value is not None and value.tzinfo is None:
                    value = value.replace(tzinfo=timezone.utc)
                latest[group] = value
            return latest
