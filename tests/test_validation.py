# Copyright (c) Syntropy Systems
"""Tests for result validation."""

from conftest import make_result

from evalboard.validation import build_validation_checks, validate_results


class TestValidateResults:
    """Tests for validate_results."""

    def test_empty_batch_is_valid(self) -> None:
        """Test that an empty batch is valid with zero totals."""
        report = validate_results([])

        assert report.is_valid is True
        assert report.summary.total_results == 0
        assert report.valid_results == []
        assert report.errors == []

    def test_valid_records(self) -> None:
        """Test that scored and unscored records both pass."""
        results = [
            make_result(correctness=0.0, correctness_weighted=1, faithfulness=0.5),
            make_result(correctness=-1, correctness_weighted=-1, faithfulness=-1),
        ]

        report = validate_results(results)

        assert report.is_valid is True
        assert len(report.valid_results) == 2
        assert report.summary.total_results == 2

    def test_missing_prompt_counts_once(self) -> None:
        """Test that a missing prompt increments missing data by exactly one."""
        report = validate_results([make_result(prompt="")])

        assert report.summary.results_with_missing_data == 1
        assert report.errors == ["Result 0: Missing prompt"]
        assert report.valid_results == []
        assert report.is_valid is False

    def test_missing_prompt_and_response_count_independently(self) -> None:
        """Test that both missing fields are counted."""
        report = validate_results([make_result(prompt=None, response="")])

        assert report.summary.results_with_missing_data == 2
        assert report.errors == [
            "Result 0: Missing prompt",
            "Result 0: Missing response",
        ]

    def test_invalid_metrics(self) -> None:
        """Test out-of-range and non-numeric scores."""
        results = [
            make_result(),
            make_result(correctness=1.5, correctness_weighted="0.5", faithfulness=-0.5),
        ]

        report = validate_results(results)

        assert report.summary.results_with_invalid_data == 3
        assert report.errors == [
            "Result 1: Invalid correctness value",
            "Result 1: Invalid weighted correctness value",
            "Result 1: Invalid faithfulness value",
        ]
        assert len(report.valid_results) == 1

    def test_boolean_and_missing_scores_are_invalid(self) -> None:
        """Test that booleans and absent scores are not numbers."""
        report = validate_results([make_result(correctness=True, faithfulness=None)])

        assert report.summary.results_with_invalid_data == 2

    def test_one_bad_record_invalidates_batch(self) -> None:
        """Test that is_valid is all-or-nothing while valid_results is partial."""
        results = [make_result(), make_result(), make_result(response="")]

        report = validate_results(results)

        assert report.is_valid is False
        assert len(report.valid_results) == 2

    def test_non_array_input(self) -> None:
        """Test that a non-array input is reported, not raised."""
        report = validate_results({"prompt": "x"})

        assert report.is_valid is False
        assert report.errors == ["Results must be an array"]

    def test_input_not_mutated(self) -> None:
        """Test that validation leaves the input list alone."""
        results = [make_result(), make_result(prompt="")]
        before = list(results)

        _ = validate_results(results)

        assert results == before


class TestValidationChecks:
    """Tests for build_validation_checks."""

    def test_checks_for_valid_batch(self) -> None:
        """Test all checks pass for a clean batch."""
        results = [make_result()]
        report = validate_results(results)

        checks = build_validation_checks(results, report)

        assert [c.passed for c in checks] == [True, True, True]
        assert checks[1].details == "Found 1 valid results out of 1"

    def test_checks_without_valid_results(self) -> None:
        """Test the result check fails when nothing is valid."""
        results = [make_result(prompt="")]
        report = validate_results(results)

        checks = build_validation_checks(results, report)

        assert checks[0].passed is True
        assert checks[1].passed is False
