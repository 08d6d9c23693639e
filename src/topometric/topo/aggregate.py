"""
Aggregation of per-seed match results into precision, recall and F-score.
"""

from topometric.models import AggregateScore
from topometric.report import format_ratio
from topometric.tracer import get_tracer, trace


def safe_ratio(numerator, denominator):
    """numerator / denominator, or None when the denominator is zero."""
    if denominator <= 0:
        return None
    # Clamp float drift; matched length never exceeds explored length
    return min(1.0, max(0.0, numerator / denominator))


def f_score(precision, recall):
    """Harmonic mean of precision and recall; None if either is undefined or both are 0."""
    if precision is None or recall is None:
        return None
    if precision + recall == 0:
        return None
    return 2.0 * precision * recall / (precision + recall)


@trace(label="aggregate_results")
def aggregate_results(results):
    """
    Combine per-seed MatchResults into an AggregateScore.

    recall = sum(matched ground truth) / sum(explored ground truth)
    precision = sum(matched proposal) / sum(explored proposal)

    Zero denominators yield undefined (None) ratios, never zero.
    """
    tracer = get_tracer()

    matched_gt = 0.0
    matched_prop = 0.0
    explored_gt = 0.0
    explored_prop = 0.0
    num_seeds = 0

    for result in results:
        matched_gt += result.matched_ground_truth
        matched_prop += result.matched_proposal
        explored_gt += result.explored_ground_truth
        explored_prop += result.explored_proposal
        num_seeds += 1

    precision = safe_ratio(matched_prop, explored_prop)
    recall = safe_ratio(matched_gt, explored_gt)

    score = AggregateScore(
        precision=precision,
        recall=recall,
        f_score=f_score(precision, recall),
        matched_ground_truth=matched_gt,
        matched_proposal=matched_prop,
        explored_ground_truth=explored_gt,
        explored_proposal=explored_prop,
        num_seeds=num_seeds,
    )

    tracer.event(
        f"Aggregated {num_seeds} seeds: precision={format_ratio(precision)} "
        f"recall={format_ratio(recall)} f_score={format_ratio(score.f_score)}"
    )

    return score
