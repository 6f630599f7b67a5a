"""Unit tests for the Repeating Group Manager."""

from datetime import date

import pytest

from registration_desk.domain.ports import InactiveSlotError, SlotRemovalError
from registration_desk.domain.services.repeating_groups import (
    add,
    add_guarantee,
    add_insurer,
    remove_guarantee,
    remove_insurer,
    set_insurance_enabled,
    update_guarantee,
    update_insurer,
)
from registration_desk.domain.visit_registration import (
    GuaranteeEntry,
    GuaranteeGroup,
    InsurerEntry,
    InsurerGroup,
    VisitRegistration,
)


@pytest.fixture
def three_insurers():
    """Record with insurance enabled and three populated insurer slots."""
    return VisitRegistration(
        insurance_enabled=True,
        insurers=InsurerGroup(
            slots=(
                InsurerEntry(company="628", policy_number="P-1"),
                InsurerEntry(company="6380", policy_number="P-2"),
                InsurerEntry(company="6381", policy_number="P-3"),
            ),
            count=3,
        ),
    )


class TestAdd:
    """Test suite for activating slots."""

    def test_add_activates_fresh_slot(self):
        """Test add bumps the count and clears the new slot."""
        group = InsurerGroup(slots=(InsurerEntry(company="628"), InsurerEntry(company="stale"), InsurerEntry()))

        result = add(group)

        assert result.count == 2
        assert result.slot(2) == InsurerEntry()
        assert result.slot(1).company == "628"

    def test_add_is_noop_when_full(self, three_insurers):
        """Test add returns the group unchanged at three active slots."""
        assert add(three_insurers.insurers) is three_insurers.insurers

    def test_add_guarantee_record_reducer(self):
        """Test the record-level guarantee reducer."""
        record = add_guarantee(VisitRegistration())
        assert record.guarantees.count == 2


class TestRemove:
    """Test suite for removing slots."""

    def test_remove_middle_insurer(self, three_insurers):
        """Test removing insurer 2 of 3 leaves only the primary active."""
        result = remove_insurer(three_insurers, 2)

        assert result.insurers.count == 1
        assert result.insurers.slot(2) == InsurerEntry()
        assert len(result.insurer_entries) == 1
        assert result.insurer_entries[0].company == "628"

    def test_removed_higher_slot_is_inert_until_added(self, three_insurers):
        """Test a later add reuses slot 2 as an empty entry."""
        result = add_insurer(remove_insurer(three_insurers, 2))

        assert result.insurers.count == 2
        assert result.insurers.slot(2) == InsurerEntry()

    def test_primary_insurer_cannot_be_removed(self, three_insurers):
        """Test index 1 is rejected for insurers."""
        with pytest.raises(SlotRemovalError):
            remove_insurer(three_insurers, 1)

    def test_out_of_range_index_rejected(self, three_insurers):
        """Test indexes outside 1..3 are rejected."""
        with pytest.raises(SlotRemovalError):
            remove_insurer(three_insurers, 4)
        with pytest.raises(SlotRemovalError):
            remove_guarantee(VisitRegistration(), 0)

    def test_inactive_slot_rejected(self):
        """Test removing a slot beyond the active count fails."""
        record = VisitRegistration(insurance_enabled=True)
        with pytest.raises(InactiveSlotError):
            remove_insurer(record, 3)

    def test_remove_first_guarantee(self):
        """Test the first guarantee letter may be removed, leaving count 0."""
        record = VisitRegistration(
            guarantees=GuaranteeGroup(slots=(GuaranteeEntry(donor="Fund"), GuaranteeEntry(), GuaranteeEntry()))
        )

        result = remove_guarantee(record, 1)

        assert result.guarantees.count == 0
        assert result.guarantee_entries == ()

    def test_guarantee_removal_does_not_compact(self):
        """Test higher guarantee slots are not shifted down."""
        record = VisitRegistration(
            guarantees=GuaranteeGroup(
                slots=(GuaranteeEntry(donor="A"), GuaranteeEntry(donor="B"), GuaranteeEntry(donor="C")),
                count=3,
            )
        )

        result = remove_guarantee(record, 2)

        assert result.guarantees.count == 1
        assert result.guarantees.slot(2) == GuaranteeEntry()
        assert result.guarantees.slot(3).donor == "C"
        assert [g.donor for g in result.guarantee_entries] == ["A"]


class TestUpdate:
    """Test suite for editing slot fields."""

    def test_update_insurer_validates_fields(self):
        """Test field values are validated (ISO strings become dates)."""
        record = update_insurer(VisitRegistration(insurance_enabled=True), 1, company="628", issue_date="2025-01-01")

        assert record.insurers.slot(1).company == "628"
        assert record.insurers.slot(1).issue_date == date(2025, 1, 1)

    def test_update_inactive_slot_rejected(self):
        """Test editing a slot beyond the active count fails."""
        with pytest.raises(InactiveSlotError):
            update_guarantee(VisitRegistration(), 2, donor="Fund")


class TestInsuranceToggle:
    """Test suite for the insurance gate."""

    def test_disable_clears_all_insurers(self, three_insurers):
        """Test disabling insurance discards every insurer, primary included."""
        result = set_insurance_enabled(three_insurers, False)

        assert result.insurance_enabled is False
        assert result.insurers == InsurerGroup()
        assert result.insurer_entries == ()

    def test_enable_keeps_entries(self):
        """Test enabling insurance exposes the active primary slot."""
        result = set_insurance_enabled(VisitRegistration(), True)
        assert result.insurance_enabled is True
        assert result.insurer_entries == (InsurerEntry(),)
