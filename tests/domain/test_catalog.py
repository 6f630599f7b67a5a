"""Unit tests for the option catalog."""

from registration_desk.domain.catalog import (
    ADMISSION_CLASSIFICATIONS,
    ALL_DEPARTMENTS,
    AMBULATORY_DEPARTMENTS,
    EDUCATION_OPTIONS,
    EMPLOYMENT_OPTIONS,
    FAMILY_STATUS_OPTIONS,
    INSURANCE_COMPANIES,
    INSURANCE_TYPES,
    REFERRAL_TYPE_LABELS,
    REFERRAL_TYPES_BY_CLASSIFICATION,
    REGION_OPTIONS,
    REGIONS,
    STATUS_CODES,
    department_label,
    label_for,
    region_of_district,
)
from registration_desk.domain.enums import AdmissionClassification, ReferralType


class TestOptionCatalog:
    """Test suite for the static option lists."""

    def test_region_district_hierarchy_size(self):
        """Test the catalog holds 13 regions and 94 districts."""
        assert len(REGIONS) == 13
        assert sum(len(region.districts) for region in REGIONS.values()) == 94
        assert len(REGION_OPTIONS) == 13

    def test_districts_are_disjoint_across_regions(self):
        """Test no district code is owned by two regions."""
        codes = [d.value for region in REGIONS.values() for d in region.districts]
        assert len(codes) == len(set(codes))

    def test_region_of_district(self):
        """Test the reverse district index."""
        assert region_of_district("0408") == "21"
        assert region_of_district("0508") == "39"
        assert region_of_district("9999") is None

    def test_ambulatory_departments_are_subset_of_full_catalog(self):
        """Test every ambulatory department is also in the full catalog."""
        full = {option.value for option in ALL_DEPARTMENTS}
        assert {option.value for option in AMBULATORY_DEPARTMENTS} <= full
        assert "18" in full
        assert "18" not in {option.value for option in AMBULATORY_DEPARTMENTS}

    def test_every_classification_has_referral_types(self):
        """Test each classification offers at least one labelled referral type."""
        for classification in AdmissionClassification:
            referral_types = REFERRAL_TYPES_BY_CLASSIFICATION[classification]
            assert referral_types
            assert all(rt in REFERRAL_TYPE_LABELS for rt in referral_types)

    def test_labels(self):
        """Test label lookups."""
        assert department_label("18") == "Cardiac surgery"
        assert department_label("") is None
        assert label_for(INSURANCE_COMPANIES, "628") == "National Health Agency"
        assert REFERRAL_TYPE_LABELS[ReferralType.AMBULANCE] == "Ambulance"

    def test_option_values_are_unique(self):
        """Test no option list repeats a value."""
        for options in (
            ADMISSION_CLASSIFICATIONS,
            STATUS_CODES,
            ALL_DEPARTMENTS,
            INSURANCE_COMPANIES,
            INSURANCE_TYPES,
            EDUCATION_OPTIONS,
            FAMILY_STATUS_OPTIONS,
            EMPLOYMENT_OPTIONS,
        ):
            values = [option.value for option in options]
            assert len(values) == len(set(values))

    def test_classification_options_cover_enum(self):
        """Test every classification code has a label."""
        assert {o.value for o in ADMISSION_CLASSIFICATIONS} == {c.value for c in AdmissionClassification}
