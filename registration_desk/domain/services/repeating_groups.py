"""Repeating Group Manager.

Manages the bounded (three-slot) insurer and guarantee-letter groups of the
registration form. Slot indexes in this API are 1-based, as shown to users.

Rules:
    - ``add`` activates the next slot as a fresh, empty entry; no-op when
      all three slots are active
    - the primary insurer (slot 1) cannot be removed on its own; disabling
      insurance is the only way to clear it
    - removing a slot clears that slot only and sets ``count = index - 1``;
      higher slots are never shifted down (they become inert, and a later
      ``add`` overwrites them)

Architecture:
    - Pure functions over immutable groups / records
    - Group-level functions are generic over InsurerGroup and GuaranteeGroup
"""

import logging
from typing import TypeVar

from registration_desk.domain.enums import GroupKind
from registration_desk.domain.ports import InactiveSlotError, SlotRemovalError
from registration_desk.domain.visit_registration import (
    MAX_GROUP_SLOTS,
    GuaranteeGroup,
    InsurerGroup,
    VisitRegistration,
    SlotGroup,
)

logger = logging.getLogger(__name__)

G = TypeVar("G", bound=SlotGroup)

# Slots a user may remove per group kind
REMOVABLE_SLOTS = {
    GroupKind.INSURER: (2, 3),
    GroupKind.GUARANTEE: (1, 2, 3),
}


def add(group: G) -> G:
    """Activate the next slot of ``group`` as an empty entry."""
    if group.count >= MAX_GROUP_SLOTS:
        return group
    slots = list(group.slots)
    slots[group.count] = group.entry_type()
    return group.model_copy(update={"slots": tuple(slots), "count": group.count + 1})


def _clear_slot(group: G, index: int) -> G:
    if index > group.count:
        raise InactiveSlotError(
            f"{group.kind.value} slot {index} is not active (count={group.count})"
        )
    slots = list(group.slots)
    slots[index - 1] = group.entry_type()
    return group.model_copy(update={"slots": tuple(slots), "count": index - 1})


def remove_insurer_slot(group: InsurerGroup, index: int) -> InsurerGroup:
    """Clear insurer slot ``index`` (2 or 3) and shrink the group before it.

    Raises:
        SlotRemovalError: For the primary slot or an out-of-range index
        InactiveSlotError: If the slot is not active
    """
    if index == 1:
        raise SlotRemovalError("The primary insurer cannot be removed; disable insurance instead")
    if index not in REMOVABLE_SLOTS[GroupKind.INSURER]:
        raise SlotRemovalError(f"Insurer slot {index} does not exist")
    return _clear_slot(group, index)


def remove_guarantee_slot(group: GuaranteeGroup, index: int) -> GuaranteeGroup:
    """Clear guarantee slot ``index`` and set the count to ``index - 1``.

    Higher slots keep their stored values but become inactive; they are not
    compacted into the removed slot.
    """
    if index not in REMOVABLE_SLOTS[GroupKind.GUARANTEE]:
        raise SlotRemovalError(f"Guarantee slot {index} does not exist")
    return _clear_slot(group, index)


def update_slot(group: G, index: int, **fields) -> G:
    """Edit fields of the active slot ``index``.

    Field values go through model validation, so e.g. ISO date strings are
    accepted for date fields.
    """
    if index < 1 or index > group.count:
        raise InactiveSlotError(
            f"{group.kind.value} slot {index} is not active (count={group.count})"
        )
    current = group.slot(index)
    entry = group.entry_type.model_validate({**current.model_dump(), **fields})
    slots = list(group.slots)
    slots[index - 1] = entry
    return group.model_copy(update={"slots": tuple(slots)})


# ============================================================================
# Record-level reducers
# ============================================================================

def add_insurer(record: VisitRegistration) -> VisitRegistration:
    return record.model_copy(update={"insurers": add(record.insurers)})


def remove_insurer(record: VisitRegistration, index: int) -> VisitRegistration:
    return record.model_copy(update={"insurers": remove_insurer_slot(record.insurers, index)})


def update_insurer(record: VisitRegistration, index: int, **fields) -> VisitRegistration:
    return record.model_copy(update={"insurers": update_slot(record.insurers, index, **fields)})


def add_guarantee(record: VisitRegistration) -> VisitRegistration:
    return record.model_copy(update={"guarantees": add(record.guarantees)})


def remove_guarantee(record: VisitRegistration, index: int) -> VisitRegistration:
    return record.model_copy(update={"guarantees": remove_guarantee_slot(record.guarantees, index)})


def update_guarantee(record: VisitRegistration, index: int, **fields) -> VisitRegistration:
    return record.model_copy(update={"guarantees": update_slot(record.guarantees, index, **fields)})


def set_insurance_enabled(record: VisitRegistration, enabled: bool) -> VisitRegistration:
    """Toggle the insurance gate.

    Disabling discards every insurer entry, primary included, and leaves a
    single empty primary slot for when insurance is enabled again.
    """
    if enabled:
        return record.model_copy(update={"insurance_enabled": True})
    if record.insurance_enabled:
        logger.debug(f"Insurance disabled for patient {record.patient_id}; insurer entries cleared")
    return record.model_copy(update={"insurance_enabled": False, "insurers": InsurerGroup()})
