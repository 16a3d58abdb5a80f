# Copyright (c) Syntropy Systems
"""Tests for the evalboard dashboard and its JSON API."""

from pathlib import Path

import pytest
from conftest import RUNS
from fastapi.testclient import TestClient

from evalboard.assembler import ExperimentAssembler
from evalboard.config import EvalboardConfig
from evalboard.dashboard.server import create_app
from evalboard.loader import ExperimentLoadError, RemoteSource


@pytest.fixture
def client(results_dir: Path) -> TestClient:
    """Dashboard client over the test results directory."""
    return TestClient(create_app(data_dir=results_dir, config=EvalboardConfig()))


class TestApi:
    """Tests for the JSON endpoints."""

    def test_health(self, client: TestClient) -> None:
        """Test the health check."""
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_list_experiments(self, client: TestClient) -> None:
        """Test the index resolves description files."""
        response = client.get("/api/experiments")

        assert response.status_code == 200
        data = response.json()
        assert [e["version"] for e in data] == [1, 2, 3]
        assert data[1]["description"] == "Perfect prompts with references"

    def test_raw_experiment(self, client: TestClient) -> None:
        """Test that raw run data is served unchanged."""
        response = client.get("/api/experiments/results_basic_prompts")

        assert response.status_code == 200
        assert response.json() == RUNS["results_basic_prompts"]

    def test_raw_experiment_not_found(self, client: TestClient) -> None:
        """Test 404 for an unknown experiment."""
        response = client.get("/api/experiments/nope")

        assert response.status_code == 404
        assert response.json()["detail"] == "Experiment not found"

    def test_summary(self, client: TestClient) -> None:
        """Test the aggregated summary of an experiment."""
        response = client.get("/api/experiments/results_basic_prompts/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == 1
        assert data["previous_version"] is None
        assert data["metrics"]["correctness"] == pytest.approx(0.65)
        assert data["metrics"]["correctness_weighted"] == pytest.approx(0.7)
        assert data["is_valid"] is True

    def test_summary_invalid_experiment(self, client: TestClient) -> None:
        """Test the summary reports validation errors."""
        response = client.get("/api/experiments/results_perfect_prompts_4o/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["previous_version"] == "results_perfect_prompts"
        assert data["is_valid"] is False
        assert data["errors"] == [
            "Result 1: Missing response",
            "Result 2: Invalid correctness value",
        ]

    def test_summary_not_found(self, client: TestClient) -> None:
        """Test 404 for the summary of an unknown experiment."""
        response = client.get("/api/experiments/nope/summary")

        assert response.status_code == 404

    def test_no_data(self, tmp_path: Path) -> None:
        """Test 503 when no results directory is configured."""
        client = TestClient(create_app(data_dir=tmp_path / "missing", config=EvalboardConfig()))

        response = client.get("/api/experiments")

        assert response.status_code == 503


class TestPages:
    """Tests for the HTML pages."""

    def test_experiment_list(self, client: TestClient) -> None:
        """Test the experiment list page."""
        response = client.get("/")

        assert response.status_code == 200
        assert "Perfect prompts with references" in response.text
        assert "results_perfect_prompts_4o" in response.text

    def test_experiment_list_search(self, client: TestClient) -> None:
        """Test filtering the experiment list."""
        response = client.get("/", params={"q": "basic"})

        assert response.status_code == 200
        assert "results_basic_prompts" in response.text
        assert "results_perfect_prompts_4o" not in response.text

    def test_experiment_detail(self, client: TestClient) -> None:
        """Test the experiment detail page."""
        response = client.get("/experiments/results_perfect_prompts")

        assert response.status_code == 200
        assert "Who wrote Hamlet?" in response.text

    def test_experiment_detail_search(self, client: TestClient) -> None:
        """Test searching results within an experiment."""
        response = client.get("/experiments/results_basic_prompts", params={"q": "paris"})

        assert response.status_code == 200
        assert "capital of France" in response.text
        assert "Who wrote Hamlet?" not in response.text

    def test_experiment_detail_not_found(self, client: TestClient) -> None:
        """Test the error page for an unknown experiment."""
        response = client.get("/experiments/nope")

        assert response.status_code == 404
        assert "Failed to load experiment nope" in response.text

    def test_validation_page(self, client: TestClient) -> None:
        """Test the validation status page."""
        response = client.get("/experiments/results_perfect_prompts_4o/validation")

        assert response.status_code == 200
        assert "Result 1: Missing response" in response.text

    def test_compare_page(self, client: TestClient) -> None:
        """Test comparing with the previous version."""
        response = client.get("/compare", params={"current": "results_perfect_prompts"})

        assert response.status_code == 200
        assert "Biggest improvement" in response.text

    def test_compare_first_version(self, client: TestClient) -> None:
        """Test that version 1 has nothing to compare against."""
        response = client.get("/compare", params={"current": "results_basic_prompts"})

        assert response.status_code == 404

    def test_questions_page(self, client: TestClient) -> None:
        """Test the question history page."""
        response = client.get("/questions", params={"q": "hamlet"})

        assert response.status_code == 200
        assert "Shakespeare" in response.text
        assert "Paris" not in response.text


class TestRemoteSource:
    """Tests for reading experiments from a running dashboard."""

    def test_load_through_api(self, client: TestClient) -> None:
        """Test assembling experiments over HTTP."""
        source = RemoteSource("http://testserver", client=client)

        experiment = ExperimentAssembler(source).load_experiment("results_perfect_prompts")

        assert experiment is not None
        assert experiment.description == "Perfect prompts with references"
        assert experiment.previous_version is not None
        assert experiment.metrics.faithfulness == pytest.approx(0.9)

    def test_http_error(self, client: TestClient) -> None:
        """Test that HTTP errors become load errors."""
        source = RemoteSource("http://testserver", client=client)
        entries = source.load_index()
        missing = entries[0].model_copy(update={"name": "nope"})

        with pytest.raises(ExperimentLoadError):
            _ = source.load_raw_results(missing)
