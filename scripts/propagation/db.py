"""PostgreSQL record store: one schema per tenant store.

Layout of every tenant store schema::

    devices(id text primary key, status text, id_data jsonb)
    migration_info(major int, minor int, patch int, created_at timestamptz)

The default (non-partitioned) store is the schema named after the service,
tenant stores are ``<default>-<tenant>``.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional

import psycopg2
import psycopg2.pool
from psycopg2 import sql

from scripts.propagation.config import DatabaseConfig
from scripts.propagation.errors import StoreUnavailable
from scripts.propagation.interfaces import RecordStore
from scripts.propagation.models import MigrationVersion, Record, RecordFilter, RecordStatus
from scripts.propagation.tenants import DEFAULT_STORE

logger = logging.getLogger("propagation.db")


def _like_prefix(prefix: str) -> str:
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped + "%"


def _decode_id_data(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return dict(raw)


def _row_to_record(tenant_store: str, row: tuple) -> Record:
    try:
        status = RecordStatus(row[1])
    except ValueError as exc:
        raise StoreUnavailable(
            f"device {row[0]} in {tenant_store} has unknown status {row[1]!r}"
        ) from exc
    return Record(id=str(row[0]), status=status, id_data=_decode_id_data(row[2]))


class Database(RecordStore):
    """Thin wrapper around a ThreadedConnectionPool serving tenant schemas."""

    def __init__(self, config: DatabaseConfig, default_store: str = DEFAULT_STORE) -> None:
        self.default_store = default_store
        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=config.min_connections,
                maxconn=config.max_connections,
                dsn=config.url,
            )
        except psycopg2.Error as exc:
            raise StoreUnavailable(f"failed to connect to db: {exc}") from exc

    def close(self) -> None:
        self._pool.closeall()

    @contextmanager
    def connection(self) -> Generator:
        conn = self._pool.getconn()
        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def transaction(self, action: str) -> Generator:
        """Yield a cursor inside a commit/rollback transaction.

        psycopg2 errors surface as StoreUnavailable tagged with ``action``.
        """
        try:
            with self.connection() as conn:
                try:
                    with conn.cursor() as cur:
                        yield cur
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except psycopg2.Error as exc:
            raise StoreUnavailable(f"failed to {action}: {exc}") from exc

    # ------------------------------------------------------------------
    # RecordStore
    # ------------------------------------------------------------------

    def list_tenant_stores(self) -> list[str]:
        with self.transaction("retrieve tenant stores") as cur:
            cur.execute(
                """SELECT schema_name
                   FROM information_schema.schemata
                   WHERE schema_name LIKE %s ESCAPE '\\'
                   ORDER BY schema_name""",
                (_like_prefix(f"{self.default_store}-"),),
            )
            stores = [row[0] for row in cur.fetchall()]
        logger.debug("Discovered %d tenant stores", len(stores))
        return stores

    def get_page(
        self,
        tenant_store: str,
        offset: int,
        limit: int,
        record_filter: Optional[RecordFilter] = None,
    ) -> list[Record]:
        params: list[Any] = []
        where = sql.SQL("")
        if record_filter is not None and record_filter.status is not None:
            where = sql.SQL(" WHERE status = %s")
            params.append(record_filter.status.value)
        params.extend([limit, offset])

        query = sql.SQL(
            "SELECT id, status, id_data FROM {}.devices{} ORDER BY id LIMIT %s OFFSET %s"
        ).format(sql.Identifier(tenant_store), where)

        with self.transaction("get devices") as cur:
            cur.execute(query, params)
            rows = cur.fetchall()
        return [_row_to_record(tenant_store, row) for row in rows]

    def write_checkpoint(self, tenant_store: str, version: MigrationVersion) -> None:
        query = sql.SQL(
            "INSERT INTO {}.migration_info (major, minor, patch, created_at) "
            "VALUES (%s, %s, %s, NOW())"
        ).format(sql.Identifier(tenant_store))
        with self.transaction("store migration version") as cur:
            cur.execute(query, (version.major, version.minor, version.patch))
