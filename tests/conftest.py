"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def mcq_question():
    """Level 4 MCQ with one partial-credit distractor."""
    return {
        "id": "ca_s1_l4_mcq1",
        "type": "mcq",
        "level": 4,
        "points": 4,
        "question": "The critical angle is the angle of incidence at which:",
        "learningPath": "critical-angle",
        "strand": 1,
        "concept": "critical angle definition",
        "keywords": ["critical angle", "total internal reflection"],
        "options": [
            {"id": "a", "text": "Light is completely absorbed", "isCorrect": False},
            {"id": "b", "text": "The angle of refraction is 90°", "isCorrect": True},
            {"id": "c", "text": "Light travels parallel to the surface", "isCorrect": False, "level": 3},
            {"id": "d", "text": "Refraction stops completely", "isCorrect": False},
        ],
        "explanation": "At the critical angle the refracted ray travels along the boundary.",
    }


@pytest.fixture
def fill_blank_question():
    """Level 8 fill-in-the-blank with two blanks."""
    return {
        "id": "ca_s1_l8_fill1",
        "type": "fill-blank",
        "level": 8,
        "points": 8,
        "question": "Fill in the blanks:",
        "strand": 1,
        "concept": "refraction basics",
        "text": "Light bending is called {blank}. The perpendicular line is the {blank}.",
        "blanks": [
            {"id": "blank1", "correctAnswers": ["refraction"], "caseSensitive": False,
             "hints": ["Think about light bending", "It starts with 'r'"]},
            {"id": "blank2", "correctAnswers": ["normal"], "caseSensitive": False,
             "hints": ["Perpendicular line to surface"]},
        ],
    }


@pytest.fixture
def match_question():
    """Level 6 match-click with three pairs."""
    return {
        "id": "ca_s1_l6_match1",
        "type": "match-click",
        "level": 6,
        "question": "Match the scenarios with their outcomes:",
        "strand": 1,
        "leftItems": [
            {"id": "scenario1", "text": "Angle < Critical Angle"},
            {"id": "scenario2", "text": "Angle = Critical Angle"},
            {"id": "scenario3", "text": "Angle > Critical Angle"},
        ],
        "rightItems": [
            {"id": "result1", "text": "Light refracts into second medium"},
            {"id": "result2", "text": "Light refracts at 90° to normal"},
            {"id": "result3", "text": "Total internal reflection occurs"},
        ],
        "correctMatches": [
            {"leftId": "scenario1", "rightId": "result1"},
            {"leftId": "scenario2", "rightId": "result2"},
            {"leftId": "scenario3", "rightId": "result3"},
        ],
    }


@pytest.fixture
def short_answer_question():
    """Level 4 short answer with keyword and concept requirements."""
    return {
        "id": "ca_s1_l4_short1",
        "type": "short-answer",
        "level": 4,
        "question": "Explain in simple terms what total internal reflection is.",
        "strand": 1,
        "concept": "TIR basics",
        "keywords": ["total internal reflection", "critical angle"],
        "minWords": 15,
        "maxWords": 50,
        "evaluationCriteria": {
            "requiredKeywords": ["total internal reflection", "critical angle", "dense medium", "reflected"],
            "requiredConcepts": ["angle greater than critical", "all light reflected"],
        },
    }
