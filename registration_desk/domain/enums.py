"""Domain enumerations for visit registration.

Codes match the identifiers used by the clinic record system, so they can be
written to and read back from persisted attribute trees unchanged.
"""

from enum import Enum


class AdmissionClassification(str, Enum):
    """Top-level visit type that gates every dependent field of the form."""

    AMBULATORY = "3"
    PLANNED_INPATIENT = "1"
    EMERGENCY_INPATIENT = "2"


class ReferralType(str, Enum):
    """Referral ("hospital type") options offered under each classification."""

    INPATIENT = "1"
    DAY_HOSPITAL = "2"
    PLANNED_AMBULATORY = "3"
    SELF_REFERRAL = "4"
    AMBULANCE = "5"
    DISASTER_TRANSFER = "6"


class VisitType(str, Enum):
    """Visit type used for registration numbering and visit counters."""

    AMBULATORY = "ambulatory"
    STATIONARY = "stationary"


class GroupKind(str, Enum):
    """Kinds of bounded repeating groups on the registration form."""

    INSURER = "insurer"
    GUARANTEE = "guarantee"


def visit_type_for(classification: AdmissionClassification) -> VisitType:
    """Map an admission classification to its visit type.

    Both inpatient classifications register as stationary visits.
    """
    if classification == AdmissionClassification.AMBULATORY:
        return VisitType.AMBULATORY
    return VisitType.STATIONARY
