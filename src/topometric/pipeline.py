"""
Main pipeline orchestrator for topometric.

Loads both networks, brings them into one projected CRS, computes the TOPO
metric and writes artifacts to the data directory.
"""

from topometric.config import load_config
from topometric.io.projection import ensure_same_projected_crs
from topometric.io.providers import provider_from_config
from topometric.io.save_artifacts import ArtifactWriter, ensure_dir
from topometric.models import compute_bbox, fingerprint_lines, generate_run_id
from topometric.report import generate_report
from topometric.topo.runner import calculate_topo
from topometric.tracer import get_tracer, trace


@trace(label="run_topo")
def run_topo(config=None, config_path=None):
    """
    Run the full TOPO evaluation described by a configuration.

    Args:
        config: TopoConfig object (optional)
        config_path: path to YAML config file (optional)

    Returns:
        TopoResult
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    ground_truth_provider, proposal_provider = provider_from_config(config.input)

    if config.output.write_artifacts:
        ensure_dir(config.input.data_dir)
    writer = ArtifactWriter(config.input.data_dir, enabled=config.output.write_artifacts)

    with tracer.span("load_inputs", module="pipeline"):
        ground_truth = ground_truth_provider.load()
        writer.save_lines(ground_truth.lines, "ground_truth.geojson", crs=ground_truth.crs)
        proposal = proposal_provider.load()
        tracer.event(
            f"Ground truth: {len(ground_truth.lines)} lines ({ground_truth.crs}), "
            f"proposal: {len(proposal.lines)} lines ({proposal.crs})"
        )

    ground_truth, proposal = ensure_same_projected_crs(ground_truth, proposal)
    writer.crs = ground_truth.crs

    params = config.matching_params()
    proposal_fp = fingerprint_lines(proposal.lines)
    ground_truth_fp = fingerprint_lines(ground_truth.lines)
    run_info = {
        "run_id": generate_run_id(proposal_fp, ground_truth_fp, params),
        "proposal_fingerprint": proposal_fp,
        "ground_truth_fingerprint": ground_truth_fp,
        "crs": ground_truth.crs,
        "ground_truth_bbox": compute_bbox([p for line in ground_truth.lines for p in line]),
    }
    tracer.event(f"Run ID: {run_info['run_id']}")

    result = calculate_topo(proposal.lines, ground_truth.lines, config)

    with tracer.span("save_outputs", module="pipeline"):
        writer.save_points(result.ground_truth_nodes, "ground_truth_nodes.gpkg")
        writer.save_points(result.proposal_nodes, "proposal_nodes.gpkg")
        generate_report(result, params, writer, run_info=run_info)

    return result
