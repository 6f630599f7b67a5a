"""In-Memory Record Store Adapter.

Implements VisitStorePort, PatientStorePort and RegistrationNumberPort on
plain dictionaries. Used by tests and by the CLI when ``RD_DB_TYPE=memory``.

Architecture:
    - Implements the store ports (Hexagonal Architecture)
    - Insertion order doubles as "store order" for ties on visit date
    - Registration numbers are sequential per visit type and year
"""

import logging
import uuid
from datetime import date
from typing import Callable, Optional

from registration_desk.domain.enums import VisitType
from registration_desk.domain.ports import (
    PatientStorePort,
    RegistrationNumberPort,
    StoredVisit,
    VisitNotFoundError,
    VisitStorePort,
)
from registration_desk.domain.visit_registration import Demographics

logger = logging.getLogger(__name__)


def format_registration_number(visit_type: VisitType, sequence: int, year: int) -> str:
    """Stationary ``"<seq>-<year>"``, ambulatory ``"a-<seq>-<year>"``."""
    number = f"{sequence}-{year}"
    if visit_type == VisitType.AMBULATORY:
        return f"a-{number}"
    return number


class InMemoryVisitStore(VisitStorePort, PatientStorePort, RegistrationNumberPort):
    """Dictionary-backed record store.

    Parameters:
        patients: Optional initial patient id -> demographics mapping
        today: Clock used for the registration number year
    """

    def __init__(
        self,
        patients: Optional[dict[str, Demographics]] = None,
        today: Callable[[], date] = date.today,
    ):
        self._visits: dict[str, StoredVisit] = {}
        self._patients: dict[str, Demographics] = dict(patients or {})
        self._sequences: dict[tuple[VisitType, int], int] = {}
        self._today = today

    # VisitStorePort

    async def search_most_recent(self, patient_id: str) -> Optional[StoredVisit]:
        visits = await self.list_visits(patient_id)
        if not visits:
            return None
        # Stable sort keeps store order; the latest inserted wins a tie
        return visits[-1]

    async def create(self, visit: StoredVisit) -> str:
        visit_id = str(uuid.uuid4())
        self._visits[visit_id] = visit.model_copy(update={"visit_id": visit_id})
        logger.debug(f"Stored visit {visit_id} for patient {visit.patient_id}")
        return visit_id

    async def update(self, visit_id: str, visit: StoredVisit) -> None:
        if visit_id not in self._visits:
            raise VisitNotFoundError(visit_id)
        self._visits[visit_id] = visit.model_copy(update={"visit_id": visit_id})

    async def list_visits(self, patient_id: str) -> list[StoredVisit]:
        visits = [v for v in self._visits.values() if v.patient_id == patient_id]
        return sorted(visits, key=lambda v: (v.visit_date is not None, v.visit_date or 0))

    # PatientStorePort

    async def get_demographics(self, patient_id: str) -> Optional[Demographics]:
        return self._patients.get(patient_id)

    async def update_demographics(self, patient_id: str, fields: Demographics) -> None:
        self._patients[patient_id] = fields

    # RegistrationNumberPort

    async def generate(self, visit_type: VisitType) -> str:
        year = self._today().year
        key = (VisitType(visit_type), year)
        self._sequences[key] = self._sequences.get(key, 0) + 1
        return format_registration_number(key[0], self._sequences[key], year)

    def add_patient(self, patient_id: str, demographics: Optional[Demographics] = None) -> None:
        """Register a patient (test and CLI seeding helper)."""
        self._patients[patient_id] = demographics or Demographics()

    def close(self) -> None:
        """Nothing to release; present for parity with the DuckDB store."""
