"""DuckDB Record Store Adapter.

This adapter implements the record store ports (VisitStorePort,
PatientStorePort, RegistrationNumberPort) on DuckDB, an in-process database
that keeps visits, patient demographics and registration number sequences
in a single file (or in memory).

Architecture:
    - Implements the store ports (Hexagonal Architecture)
    - Isolated from the domain core - only depends on ports and models
    - Attribute trees are stored as JSON text and parsed leniently on read
    - Blocking DuckDB calls run in a worker thread (``asyncio.to_thread``)
      serialized by a lock, since one connection is shared
"""

import asyncio
import json
import logging
import threading
import uuid
from datetime import date
from pathlib import Path
from typing import Callable, Optional

import duckdb

from registration_desk.adapters.storage.memory_adapter import format_registration_number
from registration_desk.domain.attribute_tree import AttributeTree
from registration_desk.domain.enums import VisitType
from registration_desk.domain.ports import (
    PatientStorePort,
    RegistrationNumberPort,
    Result,
    StorageError,
    StoredVisit,
    VisitNotFoundError,
    VisitStorePort,
)
from registration_desk.domain.visit_registration import Demographics
from registration_desk.infrastructure.config_manager import DatabaseConfig

logger = logging.getLogger(__name__)

_DEMOGRAPHIC_COLUMNS = (
    "region",
    "district",
    "city",
    "other_address",
    "education",
    "family_status",
    "employment",
)


class DuckDBVisitStore(VisitStorePort, PatientStorePort, RegistrationNumberPort):
    """DuckDB implementation of the record store ports.

    Parameters:
        db_config: DatabaseConfig from the configuration manager (preferred)
        db_path: Path to the DuckDB file (or ':memory:')
        today: Clock used for the registration number year

    Example Usage:
        ```python
        from registration_desk.infrastructure.config_manager import get_database_config

        store = DuckDBVisitStore(db_config=get_database_config())
        result = store.initialize_schema()
        if result.is_success():
            visit_id = await store.create(stored_visit)
        ```
    """

    def __init__(
        self,
        db_config: Optional[DatabaseConfig] = None,
        db_path: Optional[str] = None,
        today: Callable[[], date] = date.today,
    ):
        if db_config:
            if db_config.db_type != "duckdb":
                raise StorageError(
                    f"DatabaseConfig type '{db_config.db_type}' does not match DuckDB adapter",
                    operation="__init__"
                )
            self.db_path = db_config.db_path or ":memory:"
        else:
            self.db_path = db_path or ":memory:"

        if self.db_path != ":memory:" and not Path(self.db_path).parent.exists():
            raise StorageError(
                f"Database directory does not exist: {Path(self.db_path).parent}",
                operation="__init__"
            )

        self._today = today
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.Lock()
        self._initialized = False

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection (created lazily, then reused)."""
        if self._connection is None:
            try:
                self._connection = duckdb.connect(self.db_path)
                logger.info(f"Connected to DuckDB database: {self.db_path}")
            except duckdb.Error as e:
                raise StorageError(
                    f"Failed to connect to DuckDB: {str(e)}",
                    operation="connect",
                    details={"db_path": self.db_path}
                ) from e
        return self._connection

    def initialize_schema(self) -> Result[None]:
        """Create the visits, patients and registration_sequences tables.

        Returns:
            Result[None]: Success or failure result
        """
        try:
            with self._lock:
                conn = self._get_connection()
                conn.execute("CREATE SEQUENCE IF NOT EXISTS visit_order_seq")
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS visits (
                        visit_id VARCHAR PRIMARY KEY,
                        store_order BIGINT DEFAULT nextval('visit_order_seq'),
                        patient_id VARCHAR NOT NULL,
                        visit_date TIMESTAMP,
                        visit_type VARCHAR NOT NULL,
                        registration_number VARCHAR,
                        tree VARCHAR NOT NULL
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS patients (
                        patient_id VARCHAR PRIMARY KEY,
                        region VARCHAR,
                        district VARCHAR,
                        city VARCHAR,
                        other_address VARCHAR,
                        education VARCHAR,
                        family_status VARCHAR,
                        employment VARCHAR
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS registration_sequences (
                        visit_type VARCHAR NOT NULL,
                        year INTEGER NOT NULL,
                        last_value INTEGER NOT NULL,
                        PRIMARY KEY (visit_type, year)
                    )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_visits_patient ON visits(patient_id)")

            self._initialized = True
            logger.info("Database schema initialized successfully")
            return Result.success_result(None)

        except (duckdb.Error, StorageError) as e:
            error_msg = f"Failed to initialize schema: {str(e)}"
            logger.error(error_msg, exc_info=True)
            return Result.failure_result(
                StorageError(error_msg, operation="initialize_schema"),
                error_type="StorageError"
            )

    async def _run(self, operation: str, func, *args):
        """Run a blocking store call in a worker thread, mapping DuckDB errors."""
        def call():
            with self._lock:
                try:
                    return func(self._get_connection(), *args)
                except duckdb.Error as e:
                    raise StorageError(
                        f"DuckDB {operation} failed: {str(e)}",
                        operation=operation
                    ) from e

        return await asyncio.to_thread(call)

    # ------------------------------------------------------------------
    # VisitStorePort
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_visit(row) -> StoredVisit:
        visit_id, patient_id, visit_date, visit_type, registration_number, tree = row
        try:
            raw_tree = json.loads(tree)
        except (TypeError, ValueError) as e:
            logger.warning(f"Unreadable attribute tree for visit {visit_id}, using an empty tree: {e}")
            raw_tree = None
        return StoredVisit(
            visit_id=visit_id,
            patient_id=patient_id,
            visit_date=visit_date,
            visit_type=VisitType(visit_type),
            registration_number=registration_number or "",
            tree=AttributeTree.from_raw(raw_tree),
        )

    async def search_most_recent(self, patient_id: str) -> Optional[StoredVisit]:
        def query(conn, patient_id):
            return conn.execute(
                """
                SELECT visit_id, patient_id, visit_date, visit_type, registration_number, tree
                FROM visits
                WHERE patient_id = ?
                ORDER BY visit_date DESC NULLS LAST, store_order DESC
                LIMIT 1
                """,
                [patient_id]
            ).fetchone()

        row = await self._run("search_most_recent", query, patient_id)
        return self._row_to_visit(row) if row else None

    async def create(self, visit: StoredVisit) -> str:
        visit_id = str(uuid.uuid4())

        def insert(conn, visit):
            conn.execute(
                """
                INSERT INTO visits (visit_id, patient_id, visit_date, visit_type, registration_number, tree)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    visit_id,
                    visit.patient_id,
                    visit.visit_date,
                    visit.visit_type.value,
                    visit.registration_number,
                    json.dumps(visit.tree.to_raw()),
                ]
            )

        await self._run("create", insert, visit)
        logger.info(f"Persisted visit {visit_id} for patient_id: {visit.patient_id}")
        return visit_id

    async def update(self, visit_id: str, visit: StoredVisit) -> None:
        def replace(conn, visit):
            exists = conn.execute("SELECT 1 FROM visits WHERE visit_id = ?", [visit_id]).fetchone()
            if exists is None:
                return False
            conn.execute(
                """
                UPDATE visits
                SET patient_id = ?, visit_date = ?, visit_type = ?, registration_number = ?, tree = ?
                WHERE visit_id = ?
                """,
                [
                    visit.patient_id,
                    visit.visit_date,
                    visit.visit_type.value,
                    visit.registration_number,
                    json.dumps(visit.tree.to_raw()),
                    visit_id,
                ]
            )
            return True

        if not await self._run("update", replace, visit):
            raise VisitNotFoundError(visit_id)

    async def list_visits(self, patient_id: str) -> list[StoredVisit]:
        def query(conn, patient_id):
            return conn.execute(
                """
                SELECT visit_id, patient_id, visit_date, visit_type, registration_number, tree
                FROM visits
                WHERE patient_id = ?
                ORDER BY visit_date ASC NULLS FIRST, store_order ASC
                """,
                [patient_id]
            ).fetchall()

        rows = await self._run("list_visits", query, patient_id)
        return [self._row_to_visit(row) for row in rows]

    # ------------------------------------------------------------------
    # PatientStorePort
    # ------------------------------------------------------------------

    async def get_demographics(self, patient_id: str) -> Optional[Demographics]:
        def query(conn, patient_id):
            return conn.execute(
                f"SELECT {', '.join(_DEMOGRAPHIC_COLUMNS)} FROM patients WHERE patient_id = ?",
                [patient_id]
            ).fetchone()

        row = await self._run("get_demographics", query, patient_id)
        if row is None:
            return None
        return Demographics(**{column: value or "" for column, value in zip(_DEMOGRAPHIC_COLUMNS, row)})

    async def update_demographics(self, patient_id: str, fields: Demographics) -> None:
        def upsert(conn, patient_id, fields):
            columns = ("patient_id",) + _DEMOGRAPHIC_COLUMNS
            conn.execute(
                f"INSERT OR REPLACE INTO patients ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                [patient_id] + [getattr(fields, column) for column in _DEMOGRAPHIC_COLUMNS]
            )

        await self._run("update_demographics", upsert, patient_id, fields)
        logger.info(f"Updated demographics for patient_id: {patient_id}")

    # ------------------------------------------------------------------
    # RegistrationNumberPort
    # ------------------------------------------------------------------

    async def generate(self, visit_type: VisitType) -> str:
        visit_type = VisitType(visit_type)
        year = self._today().year

        def next_value(conn, visit_type, year):
            row = conn.execute(
                "SELECT last_value FROM registration_sequences WHERE visit_type = ? AND year = ?",
                [visit_type.value, year]
            ).fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO registration_sequences VALUES (?, ?, 1)",
                    [visit_type.value, year]
                )
                return 1
            conn.execute(
                "UPDATE registration_sequences SET last_value = ? WHERE visit_type = ? AND year = ?",
                [row[0] + 1, visit_type.value, year]
            )
            return row[0] + 1

        sequence = await self._run("generate", next_value, visit_type, year)
        return format_registration_number(visit_type, sequence, year)

    def close(self) -> None:
        """Close storage connection and release resources."""
        if self._connection is not None:
            try:
                self._connection.close()
                self._connection = None
                logger.info("Closed DuckDB connection")
            except duckdb.Error as e:
                logger.warning(f"Error closing connection: {str(e)}")
