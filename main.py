#!/usr/bin/env python3
"""
Shared metrics command-line tool.

Environment Variables:
    SHM_METRICS_DIR: Shared directory holding the records (default: /run/fty-shm-1)
    SHM_METRICS_LOG_LEVEL: Logging level (default: INFO)
    SHM_METRICS_LOG_FILE: Optional rotating log file
    SHM_METRICS_SWEEP_INTERVAL: Seconds between sweeps in periodic mode (default: 60)

Examples:

    python main.py write ups-1 load.input 42.5 --unit % --ttl 300
    python main.py read ups-1 load.input --unit
    python main.py assets
    python main.py metrics ups-1
    python main.py dump
    python main.py delete-asset ups-1
    python main.py sweep
    python main.py sweep --periodic
    python main.py sweep --interval 30 --count 10
"""

from __future__ import annotations

import argparse
import sys
import threading

from shm_metrics.core.config import settings
from shm_metrics.core.errors import PartialFailure, ShmMetricsError
from shm_metrics.core.logging_config import configure_logging, get_logger
from shm_metrics.models import AssetMetricsModel, MetricModel, SweepResultModel
from shm_metrics.services import SharedMetrics, run_periodic_sweeps

logger = get_logger("shm_metrics.cli")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def cmd_write(shm: SharedMetrics, args: argparse.Namespace) -> int:
    shm.write(args.asset, args.metric, args.value, args.unit, args.ttl)
    return 0


def cmd_read(shm: SharedMetrics, args: argparse.Namespace) -> int:
    if args.unit:
        value, unit = shm.read_with_unit(args.asset, args.metric)
        print(f"{value} {unit}".rstrip())
    else:
        print(shm.read(args.asset, args.metric))
    return 0


def cmd_assets(shm: SharedMetrics, args: argparse.Namespace) -> int:
    for asset in shm.list_assets():
        print(asset)
    return 0


def cmd_metrics(shm: SharedMetrics, args: argparse.Namespace) -> int:
    records = shm.list_asset_metrics(args.asset)
    model = AssetMetricsModel(
        asset=args.asset,
        metrics={metric: MetricModel.model_validate(record) for metric, record in records.items()},
    )
    print(model.model_dump_json(indent=2))
    return 0


def cmd_dump(shm: SharedMetrics, args: argparse.Namespace) -> int:
    print(shm.snapshot().model_dump_json(indent=2))
    return 0


def cmd_delete_asset(shm: SharedMetrics, args: argparse.Namespace) -> int:
    deleted = shm.delete_asset(args.asset)
    print(f"deleted {deleted} metric(s)")
    return 0


def cmd_sweep(shm: SharedMetrics, args: argparse.Namespace) -> int:
    if not args.periodic and args.interval is None:
        try:
            result = shm.run_gc_sweep()
        except PartialFailure as e:
            print(SweepResultModel(**e.details).model_dump_json())
            raise
        print(SweepResultModel.model_validate(result).model_dump_json())
        return 0

    interval = settings.SWEEP_INTERVAL if args.interval is None else args.interval
    stop_event = threading.Event()
    try:
        run_periodic_sweeps(shm.reaper, interval, stop_event, max_sweeps=args.count)
    except KeyboardInterrupt:
        stop_event.set()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Shared-directory metric store tool")
    parser.add_argument("--root", default=settings.SHM_DIR, help="Shared metrics directory")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, type=str.upper, choices=LOG_LEVELS,
                        help="Logging level")
    parser.add_argument("--log-file", default=settings.LOG_FILE, help="Optional rotating log file")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("write", help="Publish a metric value")
    p.add_argument("asset")
    p.add_argument("metric")
    p.add_argument("value")
    p.add_argument("--unit", default="")
    p.add_argument("--ttl", type=int, default=0, help="Seconds until stale, 0 = never")
    p.set_defaults(func=cmd_write)

    p = sub.add_parser("read", help="Print a metric value")
    p.add_argument("asset")
    p.add_argument("metric")
    p.add_argument("--unit", action="store_true", help="Also print the unit")
    p.set_defaults(func=cmd_read)

    p = sub.add_parser("assets", help="List assets")
    p.set_defaults(func=cmd_assets)

    p = sub.add_parser("metrics", help="Print the live metrics of an asset as JSON")
    p.add_argument("asset")
    p.set_defaults(func=cmd_metrics)

    p = sub.add_parser("dump", help="Print every asset and metric as JSON")
    p.set_defaults(func=cmd_dump)

    p = sub.add_parser("delete-asset", help="Delete all metrics of an asset")
    p.add_argument("asset")
    p.set_defaults(func=cmd_delete_asset)

    p = sub.add_parser("sweep", help="Evict records stale for more than twice their ttl")
    p.add_argument("--periodic", action="store_true",
                   help="Keep sweeping every SHM_METRICS_SWEEP_INTERVAL seconds")
    p.add_argument("--interval", type=float, default=None,
                   help=f"Seconds between periodic sweeps, implies --periodic (default: {settings.SWEEP_INTERVAL:g})")
    p.add_argument("--count", type=int, default=None, help="Stop after N periodic sweeps")
    p.set_defaults(func=cmd_sweep)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        shm = SharedMetrics.from_directory(args.root)
        return args.func(shm, args)
    except ShmMetricsError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
