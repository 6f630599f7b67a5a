"""Unit tests for the Visit Record Codec."""

from datetime import date, time

import pytest

from registration_desk.domain.attribute_tree import AttributeTree, branch, scalar
from registration_desk.domain.enums import AdmissionClassification, ReferralType
from registration_desk.domain.services.visit_codec import decode, decode_raw, encode, normalize
from registration_desk.domain.visit_registration import (
    Demographics,
    GuaranteeEntry,
    GuaranteeGroup,
    InsurerEntry,
    InsurerGroup,
    VisitRegistration,
)


@pytest.fixture
def full_record():
    """Planned inpatient record with two insurers and one guarantee letter."""
    return VisitRegistration(
        patient_id="P001",
        admission_classification=AdmissionClassification.PLANNED_INPATIENT,
        visit_date=date(2025, 3, 1),
        visit_time=time(9, 30, 45),
        status_code="2",
        department="18",
        referral_type=ReferralType.DAY_HOSPITAL,
        insurance_enabled=True,
        insurers=InsurerGroup(
            slots=(
                InsurerEntry(
                    company="628",
                    insurance_type="10",
                    policy_number="POL-1",
                    copay_percent=20,
                    issue_date=date(2024, 1, 1),
                    expiration_date=date(2025, 12, 31),
                ),
                InsurerEntry(company="6380", referral_number="R-7"),
                InsurerEntry(company="stale"),
            ),
            count=2,
        ),
        guarantees=GuaranteeGroup(
            slots=(
                GuaranteeEntry(donor="City Hall", amount="1500", letter_number="GL-9", start_date=date(2025, 2, 1)),
                GuaranteeEntry(),
                GuaranteeEntry(),
            ),
        ),
        demographics=Demographics(region="21", district="0408", city="Tbilisi"),
        registration_number="10357-2025",
        visit_id="visit-1",
    )


class TestEncode:
    """Test suite for encode."""

    def test_core_scalars_always_written(self):
        """Test an empty record still carries the core scalar nodes."""
        tree = encode(VisitRegistration())

        assert tree.names()[:5] == ["patient", "admission-type", "department", "visit-date", "visit-time"]
        assert tree.find("visit-date").value is None
        assert tree.find("registration-number") is None
        assert tree.find("demographics") is None

    def test_sparse_sub_trees(self, full_record):
        """Test only active insurers and non-empty guarantees are written."""
        tree = encode(full_record)

        assert tree.find("insurance-1") is not None
        assert tree.find("insurance-2") is not None
        assert tree.find("insurance-3") is None
        assert tree.find("guarantee-letter") is not None
        assert tree.find("guarantee-letter-2") is None

        second = tree.find("insurance-2")
        assert [child.name for child in second.children] == ["company", "referral-number"]

    def test_value_formats(self, full_record):
        """Test dates, time and numbers are written in their persisted form."""
        tree = encode(full_record)

        assert tree.find("visit-date").value == "2025-03-01"
        assert tree.find("visit-time").value == "09:30"
        assert tree.find("admission-type").value == "1"
        assert tree.find("hospital-type").value == "2"
        assert tree.find("insurance-1").child("copay-percent").value == 20.0
        assert tree.find("insurance-1").child("issue-date").value == "2024-01-01"

    def test_disabled_insurance_writes_no_insurers(self, full_record):
        """Test insurer entries are ignored while insurance is disabled."""
        tree = encode(full_record.model_copy(update={"insurance_enabled": False}))
        assert not [name for name in tree.names() if name.startswith("insurance-")]

    def test_insurer_without_company_is_skipped(self):
        """Test an insurer slot without company is not persisted."""
        record = VisitRegistration(
            insurance_enabled=True,
            insurers=InsurerGroup(slots=(InsurerEntry(policy_number="X"), InsurerEntry(), InsurerEntry())),
        )
        assert encode(record).find("insurance-1") is None


class TestDecode:
    """Test suite for decode."""

    def test_round_trip_equals_normalize(self, full_record):
        """Test decode(encode(r)) == normalize(r)."""
        assert decode(encode(full_record)) == normalize(full_record)

    def test_round_trip_of_default_record(self):
        """Test a default record survives a round trip unchanged."""
        record = VisitRegistration(patient_id="P001")
        assert decode(encode(record)) == normalize(record) == record

    def test_round_trip_preserves_primary_insurer(self, full_record):
        """Test the primary insurer's company survives a round trip."""
        decoded = decode(encode(full_record))
        assert decoded.insurance_enabled is True
        assert decoded.insurer_entries[0].company == "628"
        assert decoded.insurer_entries[0].copay_percent == 20.0

    def test_round_trip_with_insurance_disabled(self, full_record):
        """Test a disabled record decodes with no insurer entries."""
        decoded = decode(encode(full_record.model_copy(update={"insurance_enabled": False})))
        assert decoded.insurance_enabled is False
        assert decoded.insurer_entries == ()

    def test_decode_is_idempotent(self, full_record):
        """Test re-encoding a decoded record gives the same record."""
        once = decode(encode(full_record))
        assert decode(encode(once)) == once

    def test_counts_rebuilt_from_presence(self):
        """Test a lone insurance-3 node activates three insurer slots."""
        tree = AttributeTree(nodes=(
            scalar("admission-type", "3"),
            branch("insurance-3", [scalar("company", "6381")]),
            branch("guarantee-letter-2", [scalar("donor", "Fund")]),
        ))

        record = decode(tree)

        assert record.insurance_enabled is True
        assert record.insurers.count == 3
        assert record.insurers.slot(1) == InsurerEntry()
        assert record.insurers.slot(3).company == "6381"
        assert record.guarantees.count == 2
        assert record.guarantees.slot(2).donor == "Fund"

    def test_decode_empty_tree(self):
        """Test an empty tree decodes to defaults."""
        record = decode(AttributeTree())

        assert record.admission_classification == AdmissionClassification.AMBULATORY
        assert record.referral_type == ReferralType.PLANNED_AMBULATORY
        assert record.insurers.count == 1
        assert record.guarantees.count == 1

    def test_missing_referral_type_defaults_by_classification(self):
        """Test the referral type default follows the decoded classification."""
        record = decode(AttributeTree(nodes=(scalar("admission-type", "2"),)))
        assert record.referral_type == ReferralType.SELF_REFERRAL

    def test_malformed_nodes_fall_back_to_defaults(self):
        """Test bad dates, codes and shapes never raise."""
        tree = AttributeTree(nodes=(
            scalar("admission-type", "99"),
            scalar("hospital-type", "zz"),
            scalar("visit-date", "03/01/2025"),
            scalar("visit-time", "late"),
            branch("department", [scalar("id", "18")]),
            scalar("insurance-1", "628"),
            branch("insurance-2", [scalar("company", "628"), scalar("copay-percent", "ten")]),
            scalar("unknown-node", "ignored"),
        ))

        record = decode(tree)

        assert record.admission_classification == AdmissionClassification.AMBULATORY
        assert record.referral_type == ReferralType.PLANNED_AMBULATORY
        assert record.visit_date is None
        assert record.visit_time is None
        assert record.department == ""
        assert record.insurers.slot(1) == InsurerEntry()
        assert record.insurers.slot(2).company == "628"
        assert record.insurers.slot(2).copay_percent is None

    def test_decode_raw_json_payload(self):
        """Test decoding untrusted JSON-shaped data."""
        record = decode_raw([
            {"name": "patient", "value": 1001},
            {"name": "visit-date", "value": "2025-03-01T10:15:00"},
            {"name": "demographics", "children": [{"name": "city", "value": "Kutaisi"}]},
        ])

        assert record.patient_id == "1001"
        assert record.visit_date == date(2025, 3, 1)
        assert record.demographics.city == "Kutaisi"


class TestNormalize:
    """Test suite for normalize."""

    def test_normalize_drops_store_state_and_inactive_slots(self, full_record):
        """Test normalize forgets the visit id, stale slots and seconds."""
        result = normalize(full_record)

        assert result.visit_id is None
        assert result.visit_time == time(9, 30)
        assert result.insurers.slot(3) == InsurerEntry()
        assert result.insurers.count == 2
        assert result.registration_number == "10357-2025"
