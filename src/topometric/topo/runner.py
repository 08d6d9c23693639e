"""
End-to-end TOPO computation over two in-memory line collections.

Builds both graphs, resamples them, places seeds on the ground truth, matches
every seed (optionally in a worker pool) and aggregates the results.
"""

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from topometric.errors import InvalidGeometryError, SeedEvaluationError
from topometric.graph.builder import build_graph
from topometric.graph.resample import resample_graph
from topometric.graph.stations import build_station_graph
from topometric.models import NodeMatch, TopoResult
from topometric.topo.aggregate import aggregate_results
from topometric.topo.matcher import HolePunchingMatcher
from topometric.topo.seeds import sample_seeds
from topometric.tracer import get_tracer, trace


EXECUTORS = ("thread", "process")

# Per-process matcher, set by the pool initializer
_worker_matcher = None


def _init_worker(ground_truth, proposal, params):
    global _worker_matcher
    _worker_matcher = HolePunchingMatcher(ground_truth, proposal, **params)


def _match_in_worker(seed):
    return _worker_matcher.match(seed)


def matcher_params(config):
    """Keyword arguments for HolePunchingMatcher from a TopoConfig."""
    return {
        "hole_radius": config.matching.hole_radius,
        "hole_bridge_distance": config.matching.hole_bridge_distance,
        "exploration_radius": config.matching.exploration_radius,
        "snap_tolerance": config.matching.snap_tolerance,
    }


@trace(label="prepare_network")
def prepare_network(lines, config):
    """Build, resample and index one network. Returns (SpatialGraph, StationGraph)."""
    graph = build_graph(lines, config.graph.coincidence_tolerance)
    resampled, points = resample_graph(graph, config.resample.resampling_distance)
    return resampled, build_station_graph(resampled, points)


@trace(label="evaluate_seeds")
def evaluate_seeds(ground_truth, proposal, seeds, params, workers=1, executor="thread",
                   seed_timeout=None):
    """
    Match every seed and return MatchResults in seed order.

    With workers <= 1 seeds are evaluated sequentially in the calling thread
    and seed_timeout does not apply. A failing seed raises SeedEvaluationError
    naming that seed; no partial results are returned.

    seed_timeout bounds how long the caller waits for each seed, not the seed
    itself. On a timeout the pool is shut down without waiting and queued seeds
    are cancelled, but a seed already running is not interrupted: a thread
    keeps running until it finishes and is joined at interpreter exit, and a
    worker process finishes its current seed before exiting.
    """
    tracer = get_tracer()

    if executor not in EXECUTORS:
        raise ValueError(f"Unknown executor {executor!r}, expected one of {EXECUTORS}")

    matcher = HolePunchingMatcher(ground_truth, proposal, **params)
    results = [None] * len(seeds)

    if workers <= 1 or len(seeds) <= 1:
        for i, seed in enumerate(seeds):
            try:
                results[i] = matcher.match(seed)
            except Exception as e:
                raise SeedEvaluationError(seed.seed_id, f"{type(e).__name__}: {e}") from e
        return results

    if executor == "process":
        pool = ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(ground_truth, proposal, params),
        )
        match = _match_in_worker
    else:
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="topo-seed")
        match = matcher.match

    tracer.event(f"Evaluating {len(seeds)} seeds with {workers} {executor} workers")

    failed = False
    try:
        futures = [pool.submit(match, seed) for seed in seeds]
        for i, (seed, future) in enumerate(zip(seeds, futures)):
            try:
                results[i] = future.result(timeout=seed_timeout)
            except FutureTimeoutError as e:
                failed = True
                raise SeedEvaluationError(seed.seed_id, f"timed out after {seed_timeout}s") from e
            except Exception as e:
                failed = True
                raise SeedEvaluationError(seed.seed_id, f"{type(e).__name__}: {e}") from e
    finally:
        pool.shutdown(wait=not failed, cancel_futures=failed)

    return results


def node_matches(seeds, results):
    """Point records for seeds and their proposal counterparts."""
    ground_truth_nodes = []
    proposal_nodes = []

    for seed, result in zip(seeds, results):
        ground_truth_nodes.append(NodeMatch(
            seed_id=seed.seed_id,
            x=seed.x,
            y=seed.y,
            matched_length=result.matched_ground_truth,
            explored_length=result.explored_ground_truth,
        ))
        if result.proposal_anchor is not None:
            proposal_nodes.append(NodeMatch(
                seed_id=seed.seed_id,
                x=result.proposal_anchor[0],
                y=result.proposal_anchor[1],
                matched_length=result.matched_proposal,
                explored_length=result.explored_proposal,
            ))

    return ground_truth_nodes, proposal_nodes


@trace(label="calculate_topo")
def calculate_topo(proposal_lines, ground_truth_lines, config):
    """
    Compute the TOPO metric of a proposal network against a ground truth.

    Args:
        proposal_lines: list of coordinate sequences, projected coordinates
        ground_truth_lines: list of coordinate sequences, same CRS
        config: TopoConfig

    Returns:
        TopoResult with the aggregate score, per-seed results and point records
    """
    tracer = get_tracer()

    if config.seeds.seed_spacing <= 0:
        raise InvalidGeometryError(f"Seed spacing must be positive, got {config.seeds.seed_spacing}")

    with tracer.span("prepare_ground_truth", module="runner"):
        _, gt_stations = prepare_network(ground_truth_lines, config)

    with tracer.span("prepare_proposal", module="runner"):
        _, prop_stations = prepare_network(proposal_lines, config)

    seeds = sample_seeds(gt_stations, config.seeds.seed_spacing)

    results = evaluate_seeds(
        gt_stations, prop_stations, seeds,
        matcher_params(config),
        workers=config.workers.count,
        executor=config.workers.executor,
        seed_timeout=config.workers.seed_timeout,
    )

    score = aggregate_results(results)
    ground_truth_nodes, proposal_nodes = node_matches(seeds, results)

    snapped = sum(1 for r in results if r.snapped)
    tracer.event(f"Seeds snapped to proposal: {snapped}/{len(seeds)}")

    return TopoResult(
        score=score,
        seed_results=results,
        ground_truth_nodes=ground_truth_nodes,
        proposal_nodes=proposal_nodes,
    )
