"""Constraint Resolver Service.

Derives the valid option sets of dependent fields from the field that gates
them, and decides whether an out-of-range dependent value must be reset:

    - admission classification -> departments, referral types
    - region -> districts

Department and referral type deliberately use different reset policies: an
invalid department is cleared (never auto-assigned) while an invalid
referral type falls back to the classification's default.

Architecture:
    - Pure and total: every classification and every region code (known,
      unknown or empty) maps to a defined option set; nothing raises
    - Reducers take a VisitRegistration and return a new one
"""

import logging
from dataclasses import dataclass

from registration_desk.domain.catalog import (
    ALL_DEPARTMENTS,
    AMBULATORY_DEPARTMENTS,
    PLACEHOLDER,
    REFERRAL_TYPES_BY_CLASSIFICATION,
    REGIONS,
    Option,
)
from registration_desk.domain.enums import AdmissionClassification, ReferralType
from registration_desk.domain.visit_registration import VisitRegistration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependentOptions:
    """Options available under one admission classification."""

    department_options: tuple[Option, ...]
    referral_type_options: tuple[ReferralType, ...]
    default_referral_type: ReferralType

    @property
    def department_values(self) -> frozenset[str]:
        return frozenset(option.value for option in self.department_options)


@dataclass(frozen=True)
class DistrictOptions:
    """Districts selectable under one region, placeholder first."""

    district_options: tuple[Option, ...]

    @property
    def district_values(self) -> frozenset[str]:
        return frozenset(o.value for o in self.district_options if o.value)


def resolve_dependents(classification: AdmissionClassification) -> DependentOptions:
    """Compute department and referral-type options for ``classification``.

    Ambulatory visits may only use the ambulatory departments; both inpatient
    classifications use the full department catalog.
    """
    classification = AdmissionClassification(classification)
    referral_types = REFERRAL_TYPES_BY_CLASSIFICATION[classification]
    if classification == AdmissionClassification.AMBULATORY:
        departments = AMBULATORY_DEPARTMENTS
    else:
        departments = ALL_DEPARTMENTS
    return DependentOptions(
        department_options=departments,
        referral_type_options=referral_types,
        default_referral_type=referral_types[0],
    )


def resolve_districts(region: str) -> DistrictOptions:
    """Return the district options owned by ``region``.

    An empty or unknown region yields only the placeholder option.
    """
    owner = REGIONS.get(region) if region else None
    if owner is None:
        return DistrictOptions(district_options=(PLACEHOLDER,))
    return DistrictOptions(district_options=(PLACEHOLDER,) + owner.districts)


def apply_classification(
    record: VisitRegistration,
    classification: AdmissionClassification,
) -> VisitRegistration:
    """Set the admission classification and re-validate its dependents.

    Parameters:
        record: Current registration record
        classification: Newly selected classification

    Returns:
        VisitRegistration: New record whose department and referral type are
        valid under ``classification``
    """
    options = resolve_dependents(classification)
    updates: dict = {"admission_classification": AdmissionClassification(classification)}

    if record.department and record.department not in options.department_values:
        logger.debug(
            f"Clearing department {record.department} not offered for classification {classification}"
        )
        updates["department"] = ""

    if record.referral_type not in options.referral_type_options:
        updates["referral_type"] = options.default_referral_type

    return record.model_copy(update=updates)


def apply_region(record: VisitRegistration, region: str) -> VisitRegistration:
    """Set the region and clear a district that the region does not own."""
    demographics = record.demographics
    district = demographics.district

    if not region:
        district = ""
    elif district and district not in resolve_districts(region).district_values:
        district = ""

    return record.model_copy(update={
        "demographics": demographics.model_copy(update={"region": region, "district": district})
    })


def apply_department(record: VisitRegistration, department: str) -> VisitRegistration:
    """Select a department, ignoring ids not offered for the classification."""
    if department and department not in resolve_dependents(record.admission_classification).department_values:
        logger.debug(f"Ignoring department {department} outside the current option set")
        return record
    return record.model_copy(update={"department": department})


def apply_referral_type(record: VisitRegistration, referral_type: ReferralType) -> VisitRegistration:
    """Select a referral type, ignoring types not offered for the classification."""
    referral_type = ReferralType(referral_type)
    if referral_type not in resolve_dependents(record.admission_classification).referral_type_options:
        return record
    return record.model_copy(update={"referral_type": referral_type})


def apply_district(record: VisitRegistration, district: str) -> VisitRegistration:
    """Select a district, ignoring codes not owned by the current region."""
    if district and district not in resolve_districts(record.demographics.region).district_values:
        return record
    return record.model_copy(update={
        "demographics": record.demographics.model_copy(update={"district": district})
    })


def get_dependent_options(classification: AdmissionClassification) -> dict[str, tuple]:
    """UI-facing view of :func:`resolve_dependents`."""
    options = resolve_dependents(classification)
    return {
        "departments": options.department_options,
        "referral_types": options.referral_type_options,
    }


def get_district_options(region: str) -> tuple[Option, ...]:
    """UI-facing view of :func:`resolve_districts`."""
    return resolve_districts(region).district_options
