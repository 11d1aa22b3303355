"""
Test configuration and fixtures for catalog vision tests.
"""
import pytest
from fastapi.testclient import TestClient

from catalog_vision.services import orchestrator as orchestrator_module
from catalog_vision.services.orchestrator import AnalysisOrchestrator
from catalog_vision.utils.metrics import reset_metrics
from main import app


@pytest.fixture
def model_dir(tmp_path):
    """Empty model directory for a test."""
    path = tmp_path / "models"
    path.mkdir()
    return path


@pytest.fixture
def orchestrator(model_dir, monkeypatch):
    """Process-wide orchestrator reading models from the test model directory."""
    instance = AnalysisOrchestrator(model_dir=model_dir)
    monkeypatch.setattr(orchestrator_module, "_orchestrator", instance)
    return instance


@pytest.fixture
def test_client(orchestrator):
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def clean_metrics():
    """Reset metrics before each test."""
    reset_metrics()
