"""Shared fixtures for the registration-desk test suite."""

import logging
from datetime import date

import pytest

from registration_desk.adapters.storage.memory_adapter import InMemoryVisitStore
from registration_desk.domain.services.visit_upsert import VisitUpsertController
from registration_desk.domain.visit_registration import Demographics

TODAY = date(2025, 3, 10)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def patient_demographics():
    """Demographics as held on the patient record."""
    return Demographics(
        region="21",
        district="0408",
        city="Tbilisi",
        other_address="12 Rustaveli Ave",
        education="4",
        family_status="2",
        employment="1",
    )


@pytest.fixture
def store(patient_demographics):
    """In-memory record store seeded with patient P001."""
    return InMemoryVisitStore(patients={"P001": patient_demographics}, today=lambda: TODAY)


@pytest.fixture
def controller(store):
    return VisitUpsertController(store, store, store, today=lambda: TODAY)


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
