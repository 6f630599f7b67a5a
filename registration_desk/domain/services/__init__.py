"""Domain Services.

This package contains the form services that implement business logic
without infrastructure dependencies: dependent-option resolution, repeating
group management, the visit record codec and the upsert controller.
"""

from registration_desk.domain.services.constraint_resolver import (
    apply_classification,
    apply_region,
    get_dependent_options,
    get_district_options,
)
from registration_desk.domain.services.repeating_groups import (
    add_guarantee,
    add_insurer,
    remove_guarantee,
    remove_insurer,
    set_insurance_enabled,
)
from registration_desk.domain.services.visit_codec import decode, encode, normalize
from registration_desk.domain.services.visit_upsert import (
    SaveOutcome,
    VisitSummary,
    VisitUpsertController,
)

__all__ = [
    'apply_classification',
    'apply_region',
    'get_dependent_options',
    'get_district_options',
    'add_guarantee',
    'add_insurer',
    'remove_guarantee',
    'remove_insurer',
    'set_insurance_enabled',
    'decode',
    'encode',
    'normalize',
    'SaveOutcome',
    'VisitSummary',
    'VisitUpsertController',
]
