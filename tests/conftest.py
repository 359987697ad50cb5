"""
Pytest configuration for agentation tests.

Every test gets a fresh AnnotationStore; the HTTP client and the tool
adapter fixtures are bound to that same store.
"""

import pytest
from fastapi.testclient import TestClient

from agentation.core.errors.registry import error_registry
from agentation.main import create_app
from agentation.services.annotation_store import AnnotationStore
from agentation.services.tool_adapter import AnnotationToolAdapter

# Load error registry so AgentationError maps to the right HTTP status codes
error_registry.load()


@pytest.fixture
def store():
    return AnnotationStore()


@pytest.fixture
def app(store):
    return create_app(store)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def adapter(store):
    return AnnotationToolAdapter(store)


@pytest.fixture
def session(store):
    """An active session on a sample page."""
    return store.create_session("http://localhost:3000/checkout")


@pytest.fixture
def annotation(store, session):
    """A pending annotation on the sample session."""
    return store.add_annotation(session.id, {
        "comment": "Button label is truncated",
        "element": "button",
        "elementPath": "main > form > button.submit",
        "intent": "fix",
        "severity": "important",
    })
