"""Shared test fixtures for task-resolver."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def sample_tasks():
    """Raw store document with a few tasks and one grocery list."""
    return {
        "work": [
            {"id": "w1", "text": "Review client portfolios", "completed": False},
            {"id": "w2", "text": "Complete CFA study session", "completed": False},
            {"id": "w3", "text": "Team meeting at 3pm", "completed": False},
        ],
        "personal": [
            {"id": "p1", "text": "Client meeting prep", "completed": False},
            {"id": "p2", "text": "Meeting notes review", "completed": True},
            {
                "id": "p3",
                "text": "Grocery List",
                "completed": False,
                "subItems": [
                    {"id": "i1", "text": "Greek yogurt", "completed": False},
                    {"id": "i2", "text": "Milk", "completed": False},
                    {"id": "i3", "text": "Bread", "completed": False},
                    {"id": "i4", "text": "Eggs", "completed": False},
                ],
            },
        ],
        "lastUpdated": "2024-01-01T00:00:00",
    }


@pytest.fixture
def tasks_file(tmp_path, sample_tasks):
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps(sample_tasks))
    return path


@pytest.fixture
def json_store(tasks_file):
    from store.json_store import JsonRecordStore

    return JsonRecordStore(tasks_file)


@pytest.fixture
def empty_store(tmp_path):
    from store.json_store import JsonRecordStore

    return JsonRecordStore(tmp_path / "empty" / "tasks.json")


@pytest.fixture
def engine(json_store):
    from operations.engine import ResolutionEngine

    return ResolutionEngine(json_store)


@pytest.fixture(autouse=True)
def reset_metrics():
    from observability import metrics

    metrics.reset()
    yield
    metrics.reset()
