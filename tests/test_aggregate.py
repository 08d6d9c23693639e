"""Tests for metric aggregation."""

import pytest


def _result(seed_id, matched_gt, explored_gt, matched_prop, explored_prop):
    from topometric.models import MatchResult

    return MatchResult(
        seed_id=seed_id,
        matched_ground_truth=matched_gt,
        explored_ground_truth=explored_gt,
        matched_proposal=matched_prop,
        explored_proposal=explored_prop,
    )


class TestAggregateResults:
    """Tests for aggregate_results."""

    def test_sums_before_dividing(self):
        """Lengths are summed over seeds before the ratios are taken."""
        from topometric.topo.aggregate import aggregate_results

        score = aggregate_results([
            _result(0, 10, 10, 5, 10),
            _result(1, 0, 30, 0, 0),
        ])

        assert score.recall == pytest.approx(10 / 40)
        assert score.precision == pytest.approx(0.5)
        assert score.f_score == pytest.approx(2 * 0.5 * 0.25 / 0.75)
        assert score.num_seeds == 2
        assert score.explored_ground_truth == 40

    def test_no_seeds_is_undefined(self):
        """Without seeds every ratio is undefined."""
        from topometric.topo.aggregate import aggregate_results

        score = aggregate_results([])

        assert score.precision is None
        assert score.recall is None
        assert score.f_score is None
        assert not score.precision_defined
        assert score.num_seeds == 0

    def test_empty_proposal_precision_undefined_recall_zero(self):
        """An empty proposal gives undefined precision and zero recall."""
        from topometric.topo.aggregate import aggregate_results

        score = aggregate_results([_result(0, 0, 30, 0, 0), _result(1, 0, 20, 0, 0)])

        assert score.precision is None
        assert score.recall == 0.0
        assert score.f_score is None
        assert score.recall_defined

    def test_all_zero_match_gives_undefined_f(self):
        """Zero precision and recall leave the F-score undefined."""
        from topometric.topo.aggregate import aggregate_results

        score = aggregate_results([_result(0, 0, 10, 0, 10)])

        assert score.precision == 0.0
        assert score.recall == 0.0
        assert score.f_score is None

    def test_perfect_match(self):
        """Fully matched lengths score one everywhere."""
        from topometric.topo.aggregate import aggregate_results

        score = aggregate_results([_result(0, 12.5, 12.5, 11.0, 11.0)])

        assert score.precision == 1.0
        assert score.recall == 1.0
        assert score.f_score == 1.0


class TestRatios:
    """Tests for safe_ratio and f_score."""

    def test_zero_denominator(self):
        """A zero denominator gives None."""
        from topometric.topo.aggregate import safe_ratio

        assert safe_ratio(0.0, 0.0) is None

    def test_clamped_to_unit_interval(self):
        """Rounding above one is clamped."""
        from topometric.topo.aggregate import safe_ratio

        assert safe_ratio(10.000000001, 10.0) == 1.0

    def test_f_score_harmonic_mean(self):
        """The F-score is the harmonic mean when defined."""
        from topometric.topo.aggregate import f_score

        assert f_score(1.0, 0.5) == pytest.approx(2 / 3)
        assert f_score(None, 0.5) is None
        assert f_score(0.0, 0.0) is None
