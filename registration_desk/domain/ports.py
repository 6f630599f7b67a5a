"""Domain Ports - Abstract Contracts for the Registration Record Store.

This module defines the Port interfaces (abstract contracts) that storage
adapters must implement, the port-level visit record, the ``Result`` type
used by adapter maintenance operations and the exception hierarchy of the
registration core.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (in-memory, DuckDB) implement these ports
    - Ports are asynchronous; the Upsert Controller awaits every call
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from registration_desk.domain.attribute_tree import AttributeTree
from registration_desk.domain.enums import VisitType
from registration_desk.domain.visit_registration import Demographics

T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Used by adapter maintenance operations (schema initialization) so that
    callers can report failures without unwinding.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Type of error (StorageError, etc.)
        error_details: Additional error context
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (defaults to the exception class name)
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class RegistrationError(Exception):
    """Base exception for all visit-registration errors."""
    pass


class RegistrationValidationError(RegistrationError):
    """Raised when a record fails validation before save.

    No store call has been made when this is raised.

    Attributes:
        messages: Field name -> human readable problem
    """

    def __init__(self, messages: dict[str, str]):
        summary = "; ".join(f"{field}: {message}" for field, message in messages.items())
        super().__init__(f"Visit registration is invalid: {summary}")
        self.messages = dict(messages)


class SlotRemovalError(RegistrationError, ValueError):
    """Raised when a repeating-group slot cannot be removed."""
    pass


class InactiveSlotError(RegistrationError, ValueError):
    """Raised when editing a repeating-group slot that is not active."""
    pass


class StorageError(RegistrationError):
    """Raised when a store operation fails.

    Attributes:
        operation: The port operation that failed (create, update, ...)
        details: Additional error context
    """

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


class PartialSaveError(StorageError):
    """Raised when the visit was written but the demographic write failed.

    The two writes are independent; nothing is rolled back.

    Attributes:
        visit_id: Id of the visit that was persisted
    """

    def __init__(self, message: str, visit_id: str, details: Optional[dict] = None):
        super().__init__(message, operation="update_demographics", details=details)
        self.visit_id = visit_id


class SaveInProgressError(RegistrationError):
    """Raised when a save is requested while another one is in flight."""
    pass


class VisitNotFoundError(StorageError):
    """Raised when updating a visit id the store does not know."""

    def __init__(self, visit_id: str):
        super().__init__(f"Visit not found: {visit_id}", operation="update", details={"visit_id": visit_id})
        self.visit_id = visit_id


# ============================================================================
# Port-level records
# ============================================================================

class StoredVisit(BaseModel):
    """A visit as exchanged with the record store.

    Parameters:
        visit_id: Store identifier (None before creation)
        patient_id: Owning patient
        visit_date: Visit timestamp, ordering key for "most recent"
        visit_type: Ambulatory or stationary
        registration_number: Human-readable registration number
        tree: Encoded attribute tree
    """

    model_config = ConfigDict(frozen=True)

    visit_id: Optional[str] = None
    patient_id: str
    visit_date: Optional[datetime] = None
    visit_type: VisitType = VisitType.AMBULATORY
    registration_number: str = ""
    tree: AttributeTree = Field(default_factory=AttributeTree)


# ============================================================================
# Ports
# ============================================================================

class VisitStorePort(ABC):
    """Abstract contract for the visit record store."""

    @abstractmethod
    async def search_most_recent(self, patient_id: str) -> Optional[StoredVisit]:
        """Return the patient's most recent visit (visit date descending).

        Ties are broken by store order. Returns None when the patient has
        no visits.
        """
        pass

    @abstractmethod
    async def create(self, visit: StoredVisit) -> str:
        """Persist a new visit and return its id."""
        pass

    @abstractmethod
    async def update(self, visit_id: str, visit: StoredVisit) -> None:
        """Replace the stored visit ``visit_id`` (last write wins).

        Raises:
            VisitNotFoundError: If the id is unknown
        """
        pass

    @abstractmethod
    async def list_visits(self, patient_id: str) -> list[StoredVisit]:
        """Return every visit of the patient ordered by visit date ascending."""
        pass


class PatientStorePort(ABC):
    """Abstract contract for reading and writing patient demographics."""

    @abstractmethod
    async def get_demographics(self, patient_id: str) -> Optional[Demographics]:
        """Return the patient's current demographics, None if unknown."""
        pass

    @abstractmethod
    async def update_demographics(self, patient_id: str, fields: Demographics) -> None:
        """Overwrite the patient's demographic fields."""
        pass


class RegistrationNumberPort(ABC):
    """Abstract contract for minting registration numbers.

    Numbers must be unique; the registration core performs no uniqueness
    check of its own.
    """

    @abstractmethod
    async def generate(self, visit_type: VisitType) -> str:
        pass
