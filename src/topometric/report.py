"""
Report generation for topometric.

Creates JSON and text summaries of a TOPO result.
"""

from topometric.tracer import get_tracer, trace


def format_ratio(value):
    """Ratio as a fixed-precision string, or 'undefined'."""
    return "undefined" if value is None else f"{value:.4f}"


def format_score(score):
    """Format an AggregateScore for display."""
    return "\n".join([
        f"Precision: {format_ratio(score.precision)}",
        f"Recall:    {format_ratio(score.recall)}",
        f"F-score:   {format_ratio(score.f_score)}",
    ])


@trace(label="generate_report")
def generate_report(result, params, writer, run_info=None):
    """
    Generate report files.

    Creates:
    - topo_result.json: score, parameters, run info and per-seed results
    - topo_summary.txt: human-readable summary

    Returns:
        (result_path, summary_path); both None when the writer is disabled
    """
    tracer = get_tracer()

    score = result.score
    run_info = run_info or {}

    report = {
        "run": run_info,
        "parameters": params,
        "score": score.model_dump(mode="json"),
        "seeds": [r.model_dump(mode="json") for r in result.seed_results],
    }
    result_path = writer.save_json(report, "topo_result.json")

    summary_lines = ["TOPO Metric Report", "=" * 40, ""]
    if run_info.get("run_id"):
        summary_lines.append(f"Run: {run_info['run_id']}")
    if run_info.get("crs"):
        summary_lines.append(f"CRS: {run_info['crs']}")
    summary_lines.append(f"Seeds: {score.num_seeds}")
    summary_lines.append("")

    summary_lines.append(format_score(score))
    summary_lines.append("")

    summary_lines.append("LENGTHS:")
    summary_lines.append("-" * 40)
    summary_lines.append(f"Ground truth matched/explored: "
                         f"{score.matched_ground_truth:.2f} / {score.explored_ground_truth:.2f}")
    summary_lines.append(f"Proposal matched/explored:     "
                         f"{score.matched_proposal:.2f} / {score.explored_proposal:.2f}")
    summary_lines.append("")

    summary_lines.append("PARAMETERS:")
    summary_lines.append("-" * 40)
    for key, value in params.items():
        summary_lines.append(f"{key}: {value}")

    if not score.precision_defined:
        summary_lines.append("")
        summary_lines.append("[WARN] Precision undefined: no proposal length was explored")
    if not score.recall_defined:
        summary_lines.append("")
        summary_lines.append("[WARN] Recall undefined: no ground truth length was explored")

    summary_path = writer.save_text("\n".join(summary_lines) + "\n", "topo_summary.txt")

    tracer.event(f"Report generated for {score.num_seeds} seeds")

    return result_path, summary_path
