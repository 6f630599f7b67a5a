"""Visit Registration Schema Definitions.

This module defines the typed, in-memory registration record that the
visit-registration form edits, together with its repeating groups
(insurer entries, guarantee-letter entries) and the patient demographics
captured with each visit.

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Models are immutable (frozen); every edit produces a new instance
      through the reducers in ``registration_desk.domain.services``
    - Repeating groups keep three physical slots plus an active ``count``
"""

from datetime import date, time
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from registration_desk.domain.enums import (
    AdmissionClassification,
    GroupKind,
    ReferralType,
    VisitType,
    visit_type_for,
)

# Maximum number of entries in a repeating group
MAX_GROUP_SLOTS = 3


class InsurerEntry(BaseModel):
    """One insurer (coverage) entry of the registration form.

    Parameters:
        company: Insurer company id from the catalog ("" = none)
        insurance_type: Insurance type code
        policy_number: Policy number as printed on the insurance card
        referral_number: Referral number issued by the insurer
        copay_percent: Patient co-payment percentage (0-100)
        issue_date: Date the coverage was issued
        expiration_date: Date the coverage expires
    """

    model_config = ConfigDict(frozen=True)

    company: str = ""
    insurance_type: str = ""
    policy_number: str = ""
    referral_number: str = ""
    copay_percent: Optional[float] = None
    issue_date: Optional[date] = None
    expiration_date: Optional[date] = None

    def is_empty(self) -> bool:
        return self == InsurerEntry()


class GuaranteeEntry(BaseModel):
    """One guarantee letter covering part of the visit cost."""

    model_config = ConfigDict(frozen=True)

    donor: str = ""
    amount: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    letter_number: str = ""

    def is_empty(self) -> bool:
        return self == GuaranteeEntry()


class Demographics(BaseModel):
    """Patient demographics captured on the registration form.

    ``district`` is only meaningful under its owning ``region``; the
    Constraint Resolver keeps the pair consistent.
    """

    model_config = ConfigDict(frozen=True)

    region: str = ""
    district: str = ""
    city: str = ""
    other_address: str = ""
    education: str = ""
    family_status: str = ""
    employment: str = ""


class SlotGroup(BaseModel):
    """Bounded repeating group: three physical slots and an active count.

    Only slots with index < ``count`` are active. Slots at or above
    ``count`` may still hold stale values; they are inert until an ``add``
    re-activates them as a fresh, empty slot.
    """

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[GroupKind]
    entry_type: ClassVar[type]

    count: int = Field(default=1, ge=0, le=MAX_GROUP_SLOTS)

    @property
    def active(self) -> tuple:
        return self.slots[: self.count]

    def slot(self, index: int):
        """Return the entry stored at 1-based ``index``, active or not."""
        return self.slots[index - 1]


class InsurerGroup(SlotGroup):
    """Insurer entries: primary (slot 1) plus up to two additional insurers."""

    kind: ClassVar[GroupKind] = GroupKind.INSURER
    entry_type: ClassVar[type] = InsurerEntry

    slots: tuple[InsurerEntry, InsurerEntry, InsurerEntry] = (
        InsurerEntry(), InsurerEntry(), InsurerEntry()
    )


class GuaranteeGroup(SlotGroup):
    """Guarantee-letter entries."""

    kind: ClassVar[GroupKind] = GroupKind.GUARANTEE
    entry_type: ClassVar[type] = GuaranteeEntry

    slots: tuple[GuaranteeEntry, GuaranteeEntry, GuaranteeEntry] = (
        GuaranteeEntry(), GuaranteeEntry(), GuaranteeEntry()
    )


class VisitRegistration(BaseModel):
    """Registration record for one visit (root aggregate of the form).

    A record is either built fresh for a patient without prior visits or
    decoded from the patient's most recent visit. It is never mutated in
    place; the Constraint Resolver and Repeating Group Manager return new
    records.

    Parameters:
        patient_id: Identifier of the registered patient
        admission_classification: Ambulatory / planned / emergency inpatient
        visit_date: Date of the visit (required on save)
        visit_time: Time of day of the visit
        status_code: Free status code, independent of classification
        department: Department id valid for the classification ("" = unset)
        referral_type: Referral type valid for the classification
        insurance_enabled: Gate for the insurer group
        insurers: Insurer repeating group
        guarantees: Guarantee-letter repeating group
        demographics: Demographics snapshot
        registration_number: Human-readable registration number, "" until minted
        visit_id: Store id of the visit this record was decoded from
    """

    model_config = ConfigDict(frozen=True)

    patient_id: str = ""
    admission_classification: AdmissionClassification = AdmissionClassification.AMBULATORY
    visit_date: Optional[date] = None
    visit_time: Optional[time] = None
    status_code: str = ""
    department: str = ""
    referral_type: ReferralType = ReferralType.PLANNED_AMBULATORY
    insurance_enabled: bool = False
    insurers: InsurerGroup = Field(default_factory=InsurerGroup)
    guarantees: GuaranteeGroup = Field(default_factory=GuaranteeGroup)
    demographics: Demographics = Field(default_factory=Demographics)
    registration_number: str = ""
    visit_id: Optional[str] = None

    @property
    def insurer_entries(self) -> tuple[InsurerEntry, ...]:
        """Active insurer entries; empty whenever insurance is disabled."""
        if not self.insurance_enabled:
            return ()
        return self.insurers.active

    @property
    def guarantee_entries(self) -> tuple[GuaranteeEntry, ...]:
        return self.guarantees.active

    @property
    def visit_type(self) -> VisitType:
        return visit_type_for(self.admission_classification)

    @property
    def is_new(self) -> bool:
        """True when the record was not decoded from a stored visit."""
        return self.visit_id is None
