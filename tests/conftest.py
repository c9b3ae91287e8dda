"""
Shared pytest fixtures for the career path test suite.
All fixtures use mock mode — no OpenAI credentials required.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Force mock mode — never call OpenAI during tests
os.environ["FORCE_MOCK_MODE"] = "true"
os.environ.setdefault("AZURE_OPENAI_ENDPOINT", "<placeholder>")
os.environ.setdefault("AZURE_OPENAI_API_KEY",  "<placeholder>")


import pytest

from factories import make_agent_config, make_bank, make_brief, make_plan

from career_path.database import DocumentStore


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def agent_config():
    return make_agent_config()


@pytest.fixture
def brief():
    return make_brief()


@pytest.fixture
def plan():
    return make_plan()


@pytest.fixture
def bank():
    return make_bank()


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "career_test.db")
