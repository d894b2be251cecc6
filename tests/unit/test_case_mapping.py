"""
Intake mapping table unit tests
"""
import pytest
from config.case_mapping import (
    CONFLICT_TYPE_MAPPING,
    FALLBACK_CASE_TYPE,
    FALLBACK_PRIORITY,
    URGENCY_PRIORITY_MAPPING,
    map_conflict_type,
    map_urgency_level,
)
from mediation.utils.constants import CasePriority, CaseType


@pytest.mark.parametrize("conflict_type, expected", [
    ("Marriage/Divorce", "marriage"),
    ("Land Dispute", "land"),
    ("Property Dispute", "property"),
    ("Family Dispute", "family"),
    ("  Land Dispute  ", "land"),
])
def test_map_conflict_type(conflict_type, expected):
    assert map_conflict_type(conflict_type) == expected


def test_unknown_conflict_type_falls_back_to_family():
    assert map_conflict_type("Noise complaint") == "family"
    assert map_conflict_type(None) == "family"


def test_map_urgency_level_is_case_insensitive():
    assert map_urgency_level("High") == "high"
    assert map_urgency_level("CRITICAL") == "urgent"


def test_unknown_urgency_falls_back_to_medium():
    assert map_urgency_level("whenever") == "medium"
    assert map_urgency_level("") == "medium"


def test_mapping_tables_only_yield_known_values():
    case_types = {t.value for t in CaseType}
    priorities = {p.value for p in CasePriority}
    assert set(CONFLICT_TYPE_MAPPING.values()) | {FALLBACK_CASE_TYPE} <= case_types
    assert set(URGENCY_PRIORITY_MAPPING.values()) | {FALLBACK_PRIORITY} <= priorities
