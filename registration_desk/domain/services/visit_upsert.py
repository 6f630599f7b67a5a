"""Visit Upsert Controller.

Loads the registration record of a patient and saves it back through the
record store ports.

Load:
    - read the patient's current demographics
    - decode the most recent prior visit, or start a fresh record
    - pre-fill demographics from the patient (one-way, outside the codec)

Save:
    1. validate (no store call happens on failure)
    2. mint a registration number for new visits only
    3. encode through the Visit Record Codec
    4. update the prior visit, or create a new one
    5. write demographics back when they changed since load

The visit write and the demographic write are independent. A failed
demographic write after a successful visit write surfaces as
PartialSaveError; nothing is rolled back and nothing is retried. The
controller remembers the visit it created, so saving the same record again
updates that visit and re-issues the demographic write instead of creating
a second visit.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Optional

from registration_desk.domain.enums import VisitType
from registration_desk.domain.ports import (
    PartialSaveError,
    PatientStorePort,
    RegistrationNumberPort,
    RegistrationValidationError,
    SaveInProgressError,
    StorageError,
    StoredVisit,
    VisitStorePort,
)
from registration_desk.domain.services.constraint_resolver import (
    resolve_dependents,
    resolve_districts,
)
from registration_desk.domain.services.visit_codec import decode, encode
from registration_desk.domain.visit_registration import Demographics, VisitRegistration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    """What a successful save wrote.

    Attributes:
        visit_id: Id of the created or updated visit
        registration_number: Number carried by the saved visit
        created: True when a new visit was created, False for an update
        demographics_updated: True when patient demographics were written
    """

    visit_id: str
    registration_number: str
    created: bool
    demographics_updated: bool


@dataclass(frozen=True)
class VisitSummary:
    """Visit counters of one patient, per visit type."""

    ambulatory_count: int
    stationary_count: int

    @property
    def total(self) -> int:
        return self.ambulatory_count + self.stationary_count


def validate(record: VisitRegistration, today: date) -> dict[str, str]:
    """Collect every validation problem of ``record``.

    Returns:
        dict: Field name -> message; empty when the record can be saved
    """
    errors: dict[str, str] = {}

    if record.visit_date is None:
        errors["visit_date"] = "Visit date is required"
    elif record.visit_date > today:
        errors["visit_date"] = "Visit date cannot be in the future"

    options = resolve_dependents(record.admission_classification)
    if not record.department:
        errors["department"] = "Department is required"
    elif record.department not in options.department_values:
        errors["department"] = f"Department {record.department} is not valid for this admission type"

    if record.referral_type not in options.referral_type_options:
        errors["referral_type"] = "Referral type is not valid for this admission type"

    for index, insurer in enumerate(record.insurer_entries, start=1):
        copay = insurer.copay_percent
        if copay is not None and not 0 <= copay <= 100:
            errors[f"insurer_{index}.copay_percent"] = "Co-payment must be between 0 and 100 percent"

    demographics = record.demographics
    if demographics.district and demographics.district not in resolve_districts(demographics.region).district_values:
        errors["district"] = "District does not belong to the selected region"

    return errors


def _visit_timestamp(record: VisitRegistration) -> Optional[datetime]:
    if record.visit_date is None:
        return None
    return datetime.combine(record.visit_date, record.visit_time or time())


class VisitUpsertController:
    """Load/save coordinator between the form record and the record store.

    One save runs at a time per controller instance; a second concurrent
    save is rejected rather than queued.

    Parameters:
        visit_store: Visit record store
        patient_store: Patient demographics store
        number_generator: Registration number source
        today: Clock used for the "not in the future" check
    """

    def __init__(
        self,
        visit_store: VisitStorePort,
        patient_store: PatientStorePort,
        number_generator: RegistrationNumberPort,
        today: Callable[[], date] = date.today,
    ):
        self.visit_store = visit_store
        self.patient_store = patient_store
        self.number_generator = number_generator
        self._today = today
        self._save_lock = asyncio.Lock()
        # patient id -> demographics as seen at load time, until the next full save
        self._loaded_demographics: dict[str, Demographics] = {}
        # patient id -> (visit id, registration number) of a created visit whose save did not complete
        self._unfinished_visits: dict[str, tuple[str, str]] = {}

    async def load(self, patient_id: str) -> VisitRegistration:
        """Build the record the form starts from for ``patient_id``.

        Raises:
            StorageError: If either store read fails
        """
        current = await self.patient_store.get_demographics(patient_id) or Demographics()
        prior = await self.visit_store.search_most_recent(patient_id)

        log_extra = {"patient_id": patient_id}
        if prior is None:
            logger.info(f"No prior visit for patient {patient_id}; starting a new registration", extra=log_extra)
            record = VisitRegistration(patient_id=patient_id)
        else:
            logger.info(f"Loaded visit {prior.visit_id} for patient {patient_id}", extra=log_extra)
            record = decode(prior.tree)
            record = record.model_copy(update={
                "patient_id": patient_id,
                "visit_id": prior.visit_id,
                "registration_number": prior.registration_number or record.registration_number,
            })

        self._loaded_demographics[patient_id] = current
        self._unfinished_visits.pop(patient_id, None)
        return record.model_copy(update={"demographics": current})

    async def refresh_demographics(self, record: VisitRegistration) -> VisitRegistration:
        """Copy the patient's current demographics into ``record`` again."""
        current = await self.patient_store.get_demographics(record.patient_id) or Demographics()
        self._loaded_demographics[record.patient_id] = current
        return record.model_copy(update={"demographics": current})

    async def save(self, record: VisitRegistration) -> SaveOutcome:
        """Validate and persist ``record``.

        Raises:
            RegistrationValidationError: Before any store call
            SaveInProgressError: If another save is running on this controller
            StorageError: If minting the number or the visit write fails
            PartialSaveError: If the visit was written but demographics were not
        """
        if self._save_lock.locked():
            raise SaveInProgressError(f"A save is already in progress (patient {record.patient_id})")

        async with self._save_lock:
            return await self._save(record)

    async def _save(self, record: VisitRegistration) -> SaveOutcome:
        patient_id = record.patient_id
        log_extra = {"patient_id": patient_id}

        errors = validate(record, self._today())
        if errors:
            logger.warning(f"Rejected registration for patient {patient_id}: {sorted(errors)}", extra=log_extra)
            raise RegistrationValidationError(errors)

        if record.is_new and patient_id in self._unfinished_visits:
            visit_id, registration_number = self._unfinished_visits[patient_id]
            logger.info(f"Retrying unfinished save of visit {visit_id}", extra=log_extra)
            record = record.model_copy(update={"visit_id": visit_id, "registration_number": registration_number})

        registration_number = record.registration_number
        if record.is_new and not registration_number:
            registration_number = await self.number_generator.generate(record.visit_type)
            record = record.model_copy(update={"registration_number": registration_number})

        stored = StoredVisit(
            visit_id=record.visit_id,
            patient_id=record.patient_id,
            visit_date=_visit_timestamp(record),
            visit_type=record.visit_type,
            registration_number=registration_number,
            tree=encode(record),
        )

        if record.is_new:
            visit_id = await self.visit_store.create(stored)
            created = True
            self._unfinished_visits[patient_id] = (visit_id, registration_number)
            logger.info(f"Created visit {visit_id} ({registration_number}) for patient {patient_id}", extra=log_extra)
        else:
            visit_id = record.visit_id
            await self.visit_store.update(visit_id, stored)
            created = self._unfinished_visits.get(patient_id, (None, None))[0] == visit_id
            logger.info(f"Updated visit {visit_id} for patient {patient_id}", extra=log_extra)

        demographics_updated = False
        if record.demographics != self._loaded_demographics.get(patient_id):
            try:
                await self.patient_store.update_demographics(patient_id, record.demographics)
            except StorageError as e:
                logger.error(f"Visit {visit_id} saved but demographics update failed: {e}", extra=log_extra)
                raise PartialSaveError(
                    f"Visit {visit_id} was saved but patient demographics were not updated: {e}",
                    visit_id=visit_id,
                    details={"patient_id": patient_id},
                ) from e
            demographics_updated = True

        self._loaded_demographics.pop(patient_id, None)
        self._unfinished_visits.pop(patient_id, None)

        return SaveOutcome(
            visit_id=visit_id,
            registration_number=registration_number,
            created=created,
            demographics_updated=demographics_updated,
        )

    async def visit_summary(self, patient_id: str) -> VisitSummary:
        """Count the patient's stored visits per visit type."""
        visits = await self.visit_store.list_visits(patient_id)
        ambulatory = sum(1 for visit in visits if visit.visit_type == VisitType.AMBULATORY)
        return VisitSummary(ambulatory_count=ambulatory, stationary_count=len(visits) - ambulatory)
