"""Visit Record Codec.

Bidirectional mapping between the typed VisitRegistration and the generic
AttributeTree persisted by the record store.

Encode is sparse: core scalars (patient, classification, department, visit
date and time) are always written, every other node only when it carries
data. Decode is total: every field of the result gets a value, unknown node
names are skipped and malformed nodes fall back to field defaults.

Node names are stable identifiers shared with already persisted visits and
must not be renamed without a migration.

Round-trip contract:
    ``decode(encode(record)) == normalize(record)``
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable, Optional, Union

from registration_desk.domain.attribute_tree import (
    AttributeTree,
    BranchNode,
    ScalarNode,
    branch,
    scalar,
)
from registration_desk.domain.catalog import REFERRAL_TYPES_BY_CLASSIFICATION
from registration_desk.domain.enums import AdmissionClassification, ReferralType
from registration_desk.domain.visit_registration import (
    MAX_GROUP_SLOTS,
    Demographics,
    GuaranteeEntry,
    GuaranteeGroup,
    InsurerEntry,
    InsurerGroup,
    VisitRegistration,
)

logger = logging.getLogger(__name__)

Node = Union[ScalarNode, BranchNode]


class NodeNames:
    """Stable node names of the persisted attribute tree."""

    PATIENT = "patient"
    ADMISSION_TYPE = "admission-type"
    DEPARTMENT = "department"
    VISIT_DATE = "visit-date"
    VISIT_TIME = "visit-time"
    REGISTRATION_NUMBER = "registration-number"
    STATUS_CODE = "status-code"
    HOSPITAL_TYPE = "hospital-type"
    GUARANTEE_LETTER = "guarantee-letter"
    INSURANCE_PREFIX = "insurance-"
    DEMOGRAPHICS = "demographics"


# Child node name -> entry field, in emission order
INSURER_CHILDREN = (
    ("company", "company"),
    ("type", "insurance_type"),
    ("policy-number", "policy_number"),
    ("referral-number", "referral_number"),
    ("copay-percent", "copay_percent"),
    ("issue-date", "issue_date"),
    ("expiration-date", "expiration_date"),
)

GUARANTEE_CHILDREN = (
    ("donor", "donor"),
    ("amount", "amount"),
    ("letter-number", "letter_number"),
    ("start-date", "start_date"),
    ("end-date", "end_date"),
)

DEMOGRAPHIC_CHILDREN = (
    ("region", "region"),
    ("district", "district"),
    ("city", "city"),
    ("address", "other_address"),
    ("education", "education"),
    ("family-status", "family_status"),
    ("employment", "employment"),
)


def insurance_node_name(index: int) -> str:
    return f"{NodeNames.INSURANCE_PREFIX}{index}"


def guarantee_node_name(index: int) -> str:
    """``guarantee-letter`` for the first letter, ``guarantee-letter-N`` after."""
    if index == 1:
        return NodeNames.GUARANTEE_LETTER
    return f"{NodeNames.GUARANTEE_LETTER}-{index}"


# ============================================================================
# Encode
# ============================================================================

def _to_scalar(value: Any) -> Union[str, int, float, None]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _format_time(value: Optional[time]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(tzinfo=None).isoformat(timespec="minutes")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _sparse_children(entry: Any, children: tuple[tuple[str, str], ...]) -> list[Node]:
    nodes = []
    for node_name, attr in children:
        value = getattr(entry, attr)
        if not _is_blank(value):
            nodes.append(scalar(node_name, _to_scalar(value)))
    return nodes


def encode(record: VisitRegistration) -> AttributeTree:
    """Serialize ``record`` into a sparse attribute tree.

    Insurer entries are emitted only while insurance is enabled, only for
    active slots and only when the company is set. Guarantee letters are
    emitted for active slots holding any data.
    """
    nodes: list[Node] = [
        scalar(NodeNames.PATIENT, record.patient_id),
        scalar(NodeNames.ADMISSION_TYPE, record.admission_classification.value),
        scalar(NodeNames.DEPARTMENT, record.department),
        scalar(NodeNames.VISIT_DATE, _to_scalar(record.visit_date)),
        scalar(NodeNames.VISIT_TIME, _format_time(record.visit_time)),
    ]

    if record.registration_number:
        nodes.append(scalar(NodeNames.REGISTRATION_NUMBER, record.registration_number))
    if record.status_code:
        nodes.append(scalar(NodeNames.STATUS_CODE, record.status_code))
    nodes.append(scalar(NodeNames.HOSPITAL_TYPE, record.referral_type.value))

    for index, letter in enumerate(record.guarantee_entries, start=1):
        if letter.is_empty():
            continue
        nodes.append(branch(guarantee_node_name(index), _sparse_children(letter, GUARANTEE_CHILDREN)))

    for index, insurer in enumerate(record.insurer_entries, start=1):
        if not insurer.company:
            continue
        nodes.append(branch(insurance_node_name(index), _sparse_children(insurer, INSURER_CHILDREN)))

    demographics = _sparse_children(record.demographics, DEMOGRAPHIC_CHILDREN)
    if demographics:
        nodes.append(branch(NodeNames.DEMOGRAPHICS, demographics))

    return AttributeTree(nodes=tuple(nodes))


# ============================================================================
# Decode
# ============================================================================

def _text(node: Node) -> Optional[str]:
    """String value of a scalar node; None for branches and null values."""
    if not isinstance(node, ScalarNode) or node.value is None:
        return None
    return str(node.value)


def _parse_date(node: Node) -> Optional[date]:
    raw = _text(node)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        logger.debug(f"Ignoring malformed date in node '{node.name}'")
        return None


def _parse_time(node: Node) -> Optional[time]:
    raw = _text(node)
    if not raw:
        return None
    try:
        return time.fromisoformat(raw)
    except ValueError:
        logger.debug(f"Ignoring malformed time in node '{node.name}'")
        return None


def _parse_number(node: Node) -> Optional[float]:
    if not isinstance(node, ScalarNode) or node.value is None:
        return None
    try:
        return float(node.value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric value in node '{node.name}'")
        return None


_DATE_FIELDS = {"issue_date", "expiration_date", "start_date", "end_date"}
_NUMBER_FIELDS = {"copay_percent"}


def _decode_children(node: BranchNode, children: tuple[tuple[str, str], ...]) -> dict[str, Any]:
    by_name = dict(children)
    values: dict[str, Any] = {}
    for child in node.children:
        attr = by_name.get(child.name)
        if attr is None or attr in values:
            continue
        if attr in _DATE_FIELDS:
            values[attr] = _parse_date(child)
        elif attr in _NUMBER_FIELDS:
            values[attr] = _parse_number(child)
        else:
            text = _text(child)
            if text is not None:
                values[attr] = text
    return values


@dataclass
class _DecodeState:
    """Mutable accumulator filled during the single pass over the tree."""

    fields: dict[str, Any] = field(default_factory=dict)
    insurers: list[InsurerEntry] = field(default_factory=lambda: [InsurerEntry()] * MAX_GROUP_SLOTS)
    guarantees: list[GuaranteeEntry] = field(default_factory=lambda: [GuaranteeEntry()] * MAX_GROUP_SLOTS)
    insurer_count: int = 0
    guarantee_count: int = 0
    demographics: Demographics = field(default_factory=Demographics)


def _text_field(attr: str) -> Callable[[Node, _DecodeState], None]:
    def handle(node: Node, state: _DecodeState) -> None:
        text = _text(node)
        if text is not None:
            state.fields[attr] = text
    return handle


def _handle_classification(node: Node, state: _DecodeState) -> None:
    try:
        state.fields["admission_classification"] = AdmissionClassification(_text(node))
    except ValueError:
        logger.debug(f"Ignoring unknown admission classification {_text(node)!r}")


def _handle_referral_type(node: Node, state: _DecodeState) -> None:
    try:
        state.fields["referral_type"] = ReferralType(_text(node))
    except ValueError:
        logger.debug(f"Ignoring unknown referral type {_text(node)!r}")


def _handle_visit_date(node: Node, state: _DecodeState) -> None:
    state.fields["visit_date"] = _parse_date(node)


def _handle_visit_time(node: Node, state: _DecodeState) -> None:
    state.fields["visit_time"] = _parse_time(node)


def _insurer_handler(index: int) -> Callable[[Node, _DecodeState], None]:
    def handle(node: Node, state: _DecodeState) -> None:
        if not isinstance(node, BranchNode):
            logger.debug(f"Ignoring scalar node '{node.name}' where an insurer entry was expected")
            return
        state.insurers[index - 1] = InsurerEntry(**_decode_children(node, INSURER_CHILDREN))
        state.insurer_count = max(state.insurer_count, index)
    return handle


def _guarantee_handler(index: int) -> Callable[[Node, _DecodeState], None]:
    def handle(node: Node, state: _DecodeState) -> None:
        if not isinstance(node, BranchNode):
            logger.debug(f"Ignoring scalar node '{node.name}' where a guarantee letter was expected")
            return
        state.guarantees[index - 1] = GuaranteeEntry(**_decode_children(node, GUARANTEE_CHILDREN))
        state.guarantee_count = max(state.guarantee_count, index)
    return handle


def _handle_demographics(node: Node, state: _DecodeState) -> None:
    if isinstance(node, BranchNode):
        state.demographics = Demographics(**_decode_children(node, DEMOGRAPHIC_CHILDREN))


_NODE_HANDLERS: dict[str, Callable[[Node, _DecodeState], None]] = {
    NodeNames.PATIENT: _text_field("patient_id"),
    NodeNames.ADMISSION_TYPE: _handle_classification,
    NodeNames.DEPARTMENT: _text_field("department"),
    NodeNames.VISIT_DATE: _handle_visit_date,
    NodeNames.VISIT_TIME: _handle_visit_time,
    NodeNames.REGISTRATION_NUMBER: _text_field("registration_number"),
    NodeNames.STATUS_CODE: _text_field("status_code"),
    NodeNames.HOSPITAL_TYPE: _handle_referral_type,
    NodeNames.DEMOGRAPHICS: _handle_demographics,
}
for _index in range(1, MAX_GROUP_SLOTS + 1):
    _NODE_HANDLERS[insurance_node_name(_index)] = _insurer_handler(_index)
    _NODE_HANDLERS[guarantee_node_name(_index)] = _guarantee_handler(_index)


def decode(tree: AttributeTree) -> VisitRegistration:
    """Reconstruct a VisitRegistration from ``tree``. Never raises.

    The group counts are not persisted; they are rebuilt from which insurer
    and guarantee sub-trees are present.
    """
    state = _DecodeState()
    for node in tree.nodes:
        handler = _NODE_HANDLERS.get(node.name)
        if handler is None:
            logger.debug(f"Skipping unknown attribute node '{node.name}'")
            continue
        handler(node, state)

    fields = state.fields
    classification = fields.get("admission_classification", AdmissionClassification.AMBULATORY)
    fields.setdefault("referral_type", REFERRAL_TYPES_BY_CLASSIFICATION[classification][0])

    return VisitRegistration(
        **fields,
        insurance_enabled=state.insurer_count > 0,
        insurers=InsurerGroup(slots=tuple(state.insurers), count=max(1, state.insurer_count)),
        guarantees=GuaranteeGroup(slots=tuple(state.guarantees), count=max(1, state.guarantee_count)),
        demographics=state.demographics,
    )


def decode_raw(data: Any) -> VisitRegistration:
    """Decode untrusted JSON-shaped data (see ``AttributeTree.from_raw``)."""
    return decode(AttributeTree.from_raw(data))


# ============================================================================
# Normalize
# ============================================================================

def normalize(record: VisitRegistration) -> VisitRegistration:
    """Return what survives an encode/decode round trip of ``record``.

    Drops inactive or unemitted group entries, rebuilds group counts from the
    highest emitted slot, truncates the visit time to minutes and forgets the
    store id (which lives outside the tree).
    """
    insurer_slots = [InsurerEntry()] * MAX_GROUP_SLOTS
    insurer_count = 0
    for index, insurer in enumerate(record.insurer_entries, start=1):
        if insurer.company:
            insurer_slots[index - 1] = insurer
            insurer_count = index

    guarantee_slots = [GuaranteeEntry()] * MAX_GROUP_SLOTS
    guarantee_count = 0
    for index, letter in enumerate(record.guarantee_entries, start=1):
        if not letter.is_empty():
            guarantee_slots[index - 1] = letter
            guarantee_count = index

    visit_time = record.visit_time
    if visit_time is not None:
        visit_time = visit_time.replace(second=0, microsecond=0, tzinfo=None)

    return record.model_copy(update={
        "visit_time": visit_time,
        "visit_id": None,
        "insurance_enabled": insurer_count > 0,
        "insurers": InsurerGroup(slots=tuple(insurer_slots), count=max(1, insurer_count)),
        "guarantees": GuaranteeGroup(slots=tuple(guarantee_slots), count=max(1, guarantee_count)),
    })
