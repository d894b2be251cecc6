"""
Pytest configuration and fixtures
"""
import os
import tempfile
import threading

# Point the app at a throwaway SQLite database before anything imports settings
_TEST_DB_DIR = tempfile.mkdtemp(prefix="mediation-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["API_SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient
from mediation.db.connection import db_manager
from mediation.services.panel_assignment import PanelAssignmentEngine
from mediation.services.panelist_directory import PanelistDirectory
from mediation.services.party_registry import PartyRegistry


def _headers(role: str, caller_id: str):
    return {
        "Authorization": "Bearer test-secret-key",
        "X-Caller-Id": caller_id,
        "X-Caller-Role": role
    }


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema for every test"""
    db_manager.drop_tables()
    db_manager.create_tables()
    yield
    db_manager.SessionLocal.remove()


@pytest.fixture
def client():
    """Test client fixture"""
    from mediation.api.main import app
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return _headers("admin", "admin_1")


@pytest.fixture
def client_headers():
    return _headers("client", "user_a")


@pytest.fixture
def panelist_headers():
    """Headers factory for a given panelist id"""
    def build(panelist_id: str):
        return _headers("panelist", panelist_id)
    return build


@pytest.fixture
def step_payloads():
    """Valid payloads for steps 1..6"""
    return {
        1: {
            "conflict_type": "Land Dispute",
            "description": "Boundary disagreement with the neighbour over the fence line and shared driveway",
            "urgency_level": "High"
        },
        2: {
            "parties": [
                {"name": "Alice Moyo", "role": "Claimant", "email": "alice@example.com", "phone": "555-123-4567"},
                {"name": "Brian Moyo", "role": "Respondent", "email": "brian@example.com",
                 "relationship": "Neighbour"}
            ]
        },
        3: {
            "timeline": "Started in March when the new fence went up",
            "key_issues": ["fence position", "driveway access"]
        },
        4: {
            "primary_goals": ["agree on a boundary"],
            "success_metrics": "signed agreement"
        },
        5: {
            "availability": ["weekday evenings"],
            "preferred_location": "online",
            "time_zone": "Africa/Harare",
            "communication_preference": "email"
        },
        6: {
            "uploaded_files": [
                {
                    "file_name": "survey.pdf",
                    "file_size": 20480,
                    "file_type": "application/pdf",
                    "upload_url": "https://files.example.com/survey.pdf",
                    "storage_key": "cases/survey.pdf"
                }
            ]
        }
    }


@pytest.fixture
def complete_session(step_payloads):
    """Factory: save every step of a session (new Party A session by default)"""
    def build(session_id: str = None, user_id: str = "user_a"):
        if session_id is None:
            session_id = PartyRegistry.create_session(user_id=user_id)["session_id"]
        for step, payload in step_payloads.items():
            PartyRegistry.save_step_data(session_id, step, payload)
        return session_id
    return build


@pytest.fixture
def submitted_case(complete_session):
    """Factory: a finalised Party A submission, returns (session_id, case)"""
    def build(user_id: str = "user_a"):
        session_id = complete_session(user_id=user_id)
        result = PartyRegistry.finalize(session_id, submitter_user_id=user_id)
        return session_id, result["case"]
    return build


@pytest.fixture
def make_panelist():
    """Factory: register a panelist"""
    counter = {"n": 0}

    def build(max_cases: int = 5, specializations=None, **kwargs):
        counter["n"] += 1
        return PanelistDirectory.create_panelist(
            name=kwargs.pop("name", f"Panelist {counter['n']}"),
            email=kwargs.pop("email", f"panelist{counter['n']}@example.com"),
            specializations=specializations or ["land"],
            max_cases=max_cases,
            **kwargs
        )
    return build


@pytest.fixture
def paneled_case(submitted_case, make_panelist):
    """A case with two active panelists, returns (case_id, p1, p2)"""
    _, case = submitted_case()
    p1 = make_panelist()["panelist_id"]
    p2 = make_panelist()["panelist_id"]
    PanelAssignmentEngine.assign_panel(case["case_id"], [p1, p2])
    return case["case_id"], p1, p2


class Interleaved:
    """Outcome of an operation run from inside another one"""

    def __init__(self):
        self.fired = False
        self.result = None
        self.error = None


@pytest.fixture
def interleave(monkeypatch):
    """
    Run a competing operation in the middle of another

    Wraps `module.name`; the first call runs the wrapped function, then runs
    `competing` to completion on a separate thread (with its own session and
    transaction) before returning. The operation under test therefore acts
    on what it read before the competing write was committed.
    """
    def install(module, name: str, competing) -> Interleaved:
        original = getattr(module, name)
        outcome = Interleaved()

        def run_competing():
            try:
                outcome.result = competing()
            except Exception as e:
                outcome.error = e
            finally:
                db_manager.SessionLocal.remove()

        def wrapper(*args, **kwargs):
            value = original(*args, **kwargs)
            if not outcome.fired:
                outcome.fired = True
                worker = threading.Thread(target=run_competing)
                worker.start()
                worker.join(timeout=30)
            return value

        monkeypatch.setattr(module, name, wrapper)
        return outcome

    return install
