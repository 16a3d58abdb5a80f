# Copyright (c) Syntropy Systems
"""Tests for evalboard CLI commands."""

from pathlib import Path

from typer.testing import CliRunner

from evalboard.cli.main import app

runner = CliRunner()


class TestListCommand:
    """Tests for evalboard list."""

    def test_list(self, results_dir: Path) -> None:
        """Test listing experiments."""
        result = runner.invoke(app, ["list", "--data-dir", str(results_dir)])

        assert result.exit_code == 0
        assert "No experiments found" not in result.stdout

    def test_list_search_no_match(self, results_dir: Path) -> None:
        """Test a search that matches nothing."""
        result = runner.invoke(
            app, ["list", "--data-dir", str(results_dir), "--search", "zzz"]
        )

        assert result.exit_code == 0
        assert "No experiments found" in result.stdout

    def test_list_without_data(self, tmp_path: Path) -> None:
        """Test list fails when no index exists."""
        result = runner.invoke(app, ["list", "--data-dir", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "No experiments.json found" in result.stdout

    def test_list_uses_env(self, results_dir: Path, monkeypatch) -> None:
        """Test that EVALBOARD_DATA_DIR locates the data."""
        monkeypatch.setenv("EVALBOARD_DATA_DIR", str(results_dir))

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0


class TestShowCommand:
    """Tests for evalboard show."""

    def test_show(self, results_dir: Path) -> None:
        """Test showing one experiment."""
        result = runner.invoke(
            app, ["show", "results_perfect_prompts", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 0
        assert "Perfect prompts with references" in result.stdout
        assert "Version: 2" in result.stdout

    def test_show_description_with_brackets(self, results_dir: Path) -> None:
        """Test that square brackets in a description are printed literally."""
        path = results_dir / "1. results_basic_prompts" / "description.txt"
        _ = path.write_text("Prompts [/bold] v[1]")

        result = runner.invoke(
            app, ["show", "results_basic_prompts", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 0
        assert "Prompts [/bold] v[1]" in result.stdout

    def test_list_description_with_brackets(self, results_dir: Path) -> None:
        """Test that list does not treat a description as markup."""
        path = results_dir / "1. results_basic_prompts" / "description.txt"
        _ = path.write_text("[/red]")

        result = runner.invoke(app, ["list", "--data-dir", str(results_dir)])

        assert result.exit_code == 0

    def test_show_not_found(self, results_dir: Path) -> None:
        """Test show with an unknown experiment."""
        result = runner.invoke(app, ["show", "nope", "--data-dir", str(results_dir)])

        assert result.exit_code == 1
        assert "Experiment not found: nope" in result.stdout

    def test_show_load_failure(self, results_dir: Path) -> None:
        """Test show when the run file is broken."""
        _ = (results_dir / "1. results_basic_prompts" / "run.json").write_text("oops")

        result = runner.invoke(
            app, ["show", "results_basic_prompts", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 1
        assert "Failed to load experiment" in result.stdout


class TestValidateCommand:
    """Tests for evalboard validate."""

    def test_validate_valid(self, results_dir: Path) -> None:
        """Test validating a clean experiment."""
        result = runner.invoke(
            app, ["validate", "results_basic_prompts", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 0

    def test_validate_all_reports_errors(self, results_dir: Path) -> None:
        """Test that invalid records fail validation and are listed."""
        result = runner.invoke(app, ["validate", "--data-dir", str(results_dir)])

        assert result.exit_code == 1
        assert "Result 1: Missing response" in result.stdout
        assert "Result 2: Invalid correctness value" in result.stdout

    def test_validate_no_errors_flag(self, results_dir: Path) -> None:
        """Test hiding the error list."""
        result = runner.invoke(
            app, ["validate", "--no-errors", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 1
        assert "Missing response" not in result.stdout


class TestCompareCommand:
    """Tests for evalboard compare."""

    def test_compare_with_previous(self, results_dir: Path) -> None:
        """Test comparing against the previous version."""
        result = runner.invoke(
            app, ["compare", "results_perfect_prompts", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 0
        assert "Comparing v2" in result.stdout
        assert "Biggest improvement" in result.stdout
        assert "Biggest decline" in result.stdout

    def test_compare_explicit_versions(self, results_dir: Path) -> None:
        """Test comparing two named versions with every question listed."""
        result = runner.invoke(
            app,
            [
                "compare",
                "results_perfect_prompts_4o",
                "results_basic_prompts",
                "--all",
                "--data-dir",
                str(results_dir),
            ],
        )

        assert result.exit_code == 0
        assert "Comparing v3" in result.stdout

    def test_compare_first_version(self, results_dir: Path) -> None:
        """Test that version 1 has nothing to compare against."""
        result = runner.invoke(
            app, ["compare", "results_basic_prompts", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 1
        assert "first version" in result.stdout


class TestQuestionsCommand:
    """Tests for evalboard questions."""

    def test_questions_search(self, results_dir: Path) -> None:
        """Test searching question history."""
        result = runner.invoke(
            app, ["questions", "--search", "hamlet", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 0
        assert "Who wrote Hamlet?" in result.stdout
        assert "capital of France" not in result.stdout

    def test_questions_no_match(self, results_dir: Path) -> None:
        """Test a search that matches no question."""
        result = runner.invoke(
            app, ["questions", "--search", "zzz", "--data-dir", str(results_dir)]
        )

        assert result.exit_code == 0
        assert "No questions found" in result.stdout


class TestBundleCommand:
    """Tests for evalboard bundle."""

    def test_bundle(self, results_dir: Path, tmp_path: Path) -> None:
        """Test writing the static report."""
        output_dir = tmp_path / "dist"

        result = runner.invoke(
            app,
            ["bundle", "--data-dir", str(results_dir), "--output-dir", str(output_dir)],
        )

        assert result.exit_code == 0
        assert (output_dir / "index.html").is_file()

    def test_bundle_missing_run(self, results_dir: Path, tmp_path: Path) -> None:
        """Test that a missing run file fails the build."""
        (results_dir / "2. results_perfect_prompts" / "run.json").unlink()

        result = runner.invoke(
            app,
            ["bundle", "--data-dir", str(results_dir), "--output-dir", str(tmp_path / "dist")],
        )

        assert result.exit_code == 1
        assert not (tmp_path / "dist" / "index.html").exists()
