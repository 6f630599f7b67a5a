"""Application wiring for Registration-Desk.

Builds the configured record store and the Visit Upsert Controller on top
of it, and bootstraps logging from the application settings.

Architecture:
    - Follows Hexagonal Architecture principles
    - The store adapter is selected via the configuration manager
    - One adapter instance serves all three store ports
"""

import logging
from typing import Optional, Union

from registration_desk.adapters.storage import DuckDBVisitStore, InMemoryVisitStore
from registration_desk.domain.ports import StorageError
from registration_desk.domain.services.visit_upsert import VisitUpsertController
from registration_desk.infrastructure.config_manager import DatabaseConfig, get_database_config
from registration_desk.infrastructure.logging_config import setup_logging
from registration_desk.infrastructure.settings import settings

logger = logging.getLogger(__name__)

RecordStore = Union[DuckDBVisitStore, InMemoryVisitStore]


def bootstrap_logging() -> None:
    """Configure root logging from RD_LOG_LEVEL / RD_LOG_JSON."""
    setup_logging(use_json=settings.log_json, log_level=settings.log_level)


def create_storage_adapter(db_config: Optional[DatabaseConfig] = None) -> RecordStore:
    """Create the record store based on configuration.

    Parameters:
        db_config: Explicit configuration; read from the environment when None

    Returns:
        A store implementing VisitStorePort, PatientStorePort and
        RegistrationNumberPort

    Raises:
        StorageError: If the DuckDB schema cannot be initialized
        ValueError: If database type is unsupported
    """
    db_config = db_config or get_database_config()

    if db_config.db_type == "duckdb":
        logger.info(f"Initializing DuckDB adapter with path: {db_config.db_path or ':memory:'}")
        store = DuckDBVisitStore(db_config=db_config)
        result = store.initialize_schema()
        if result.is_failure():
            raise StorageError(result.error, operation="initialize_schema", details=result.error_details)
        return store
    elif db_config.db_type == "memory":
        logger.info("Initializing in-memory record store")
        return InMemoryVisitStore()
    else:
        raise ValueError(f"Unsupported database type: {db_config.db_type}")


def create_controller(store: Optional[RecordStore] = None) -> VisitUpsertController:
    """Build a VisitUpsertController backed by ``store`` (or the configured one)."""
    store = store or create_storage_adapter()
    return VisitUpsertController(
        visit_store=store,
        patient_store=store,
        number_generator=store,
    )
