"""
Command-line interface for topometric.

Provides commands for scoring a proposal network and creating a config file.
"""

import argparse
import sys

from topometric.config import load_config, save_default_config
from topometric.report import format_ratio
from topometric.tracer import configure_tracer, get_tracer


def build_parser():
    """Argument parser with the run and init-config subcommands."""
    parser = argparse.ArgumentParser(
        prog="topometric",
        description="topometric: score an inferred road network against a ground truth (TOPO metric)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Compute the TOPO metric")
    run_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    run_parser.add_argument(
        "--proposal", "-p",
        default=None,
        help="Proposal vector file (overrides input.proposal_path)",
    )
    ground_truth = run_parser.add_mutually_exclusive_group()
    ground_truth.add_argument(
        "--ground-truth", "-g",
        default=None,
        help="Ground truth vector file (overrides input.ground_truth_path)",
    )
    ground_truth.add_argument(
        "--osm-bbox",
        nargs=4,
        type=float,
        metavar=("WEST", "SOUTH", "EAST", "NORTH"),
        default=None,
        help="Download the ground truth from OpenStreetMap for this WGS84 box",
    )
    run_parser.add_argument(
        "--data-dir", "-d",
        default=None,
        help="Directory for cached downloads and artifacts",
    )
    run_parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of parallel seed workers",
    )
    run_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    run_parser.add_argument(
        "--trace-level",
        default=None,
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    run_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    run_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="topometric_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "run":
        return handle_run(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def apply_overrides(config, args):
    """Apply command-line overrides on top of a loaded TopoConfig."""
    if args.proposal:
        config.input.proposal_path = args.proposal
    if args.ground_truth:
        config.input.ground_truth_path = args.ground_truth
        config.input.osm_bbox = None
    if args.osm_bbox:
        config.input.osm_bbox = list(args.osm_bbox)
        config.input.ground_truth_path = None
    if args.data_dir:
        config.input.data_dir = args.data_dir
    if args.workers is not None:
        config.workers.count = args.workers

    if args.trace:
        config.tracing.enabled = True
    if args.trace_level:
        config.tracing.level = args.trace_level
    if args.trace_file:
        config.tracing.file_path = args.trace_file
    if args.trace_json:
        config.tracing.json_output = True

    return config


def handle_run(args):
    """Handle the run command."""
    tracer = get_tracer()

    try:
        config = apply_overrides(load_config(args.config), args)

        configure_tracer(
            enabled=config.tracing.enabled,
            level=config.tracing.level,
            file_path=config.tracing.file_path,
            json_output=config.tracing.json_output,
        )

        from topometric.pipeline import run_topo

        with tracer.span("cli_run", module="cli"):
            result = run_topo(config=config)

        score = result.score
        print(f"\nTOPO evaluation completed.")
        print(f"  Seeds: {score.num_seeds}")
        print(f"  Precision: {format_ratio(score.precision)}")
        print(f"  Recall: {format_ratio(score.recall)}")
        print(f"  F-score: {format_ratio(score.f_score)}")
        if config.output.write_artifacts:
            print(f"\nOutputs saved to: {config.input.data_dir}/")
            print(f"  - topo_result.json")
            print(f"  - topo_summary.txt")

        return 0

    except Exception as e:
        tracer.event(f"Run failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
