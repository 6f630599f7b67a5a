"""Domain layer for Registration-Desk.

This module contains the registration record, its repeating groups and the
option catalog. All domain models are pure Python with no external
dependencies beyond Pydantic.
"""

from .visit_registration import (
    Demographics,
    GuaranteeEntry,
    GuaranteeGroup,
    InsurerEntry,
    InsurerGroup,
    VisitRegistration,
)
from .attribute_tree import AttributeTree, BranchNode, ScalarNode

__all__ = [
    "Demographics",
    "GuaranteeEntry",
    "GuaranteeGroup",
    "InsurerEntry",
    "InsurerGroup",
    "VisitRegistration",
    "AttributeTree",
    "BranchNode",
    "ScalarNode",
]
