"""Storage adapters for Registration-Desk.

This module contains record store adapters that implement VisitStorePort,
PatientStorePort and RegistrationNumberPort.
"""

from registration_desk.adapters.storage.duckdb_adapter import DuckDBVisitStore
from registration_desk.adapters.storage.memory_adapter import InMemoryVisitStore

__all__ = ["DuckDBVisitStore", "InMemoryVisitStore"]
