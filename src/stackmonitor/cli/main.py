"""
Command-line interface for the stackmonitor sampling profiler.

Runs a Python script in-process while its threads are sampled, then prints
the hottest methods and exports the hot-spot, call-tree and thread tables.

    stackmonitor myscript.py --arg 1 -p "myapp.*" --period 20 --top 15
"""

import argparse
import logging
import runpy
import sys
import time
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..config.validators import validate_sampling_period
from ..introspection import LocalIntrospectionService
from ..models.snapshot import ProfileSnapshot
from ..monitoring import ThreadMonitor
from ..profiler import SamplingProfiler
from ..storage import DataStorageManager, hot_spots_frame
from ..validation import (
    ValidationError,
    handle_cli_error,
    parse_package_list,
    validate_positive_integer,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackmonitor",
        description="Profile a Python script by periodically sampling its thread stacks.",
    )
    parser.add_argument("script", type=Path, help="Python script to run and profile.")
    parser.add_argument(
        "script_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to the script.",
    )
    parser.add_argument(
        "-p",
        "--package",
        action="append",
        dest="packages",
        metavar="PKG_SPEC",
        help="Profiled package spec, e.g. 'myapp' or 'myapp.*'. Repeatable and "
        "comma separated. Defaults to profiler.profiled_packages from the config.",
    )
    parser.add_argument(
        "--period",
        type=int,
        help="Sampling period in milliseconds. Defaults to profiler.sampling_period_ms.",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=20,
        help="Number of hot spots to print (default: 20).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the exported tables. Defaults to a run_<timestamp> "
        "directory under monitor.log_root_dir.",
    )
    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Only print the hot spots, do not write any table.",
    )
    parser.add_argument("--config", type=Path, help="Path to an alternative config.toml.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def format_hot_spots(snapshot: ProfileSnapshot, top: int) -> str:
    """Render the ``top`` methods with the most sampled time, across threads."""
    df = hot_spots_frame(snapshot)
    if df.is_empty():
        return "No profiled frame was sampled."

    df = df.sort("total_time_ms", descending=True).head(top)
    method_width = max(len("Method"), *(len(m) for m in df["method"]))
    thread_width = max(len("Thread"), *(len(t) for t in df["thread"]))

    lines = [
        f"{'Method':<{method_width}}  {'Thread':<{thread_width}}  {'Time (ms)':>10}  {'Calls':>8}",
        "-" * (method_width + thread_width + 24),
    ]
    for row in df.iter_rows(named=True):
        lines.append(
            f"{row['method']:<{method_width}}  {row['thread']:<{thread_width}}  "
            f"{row['total_time_ms']:>10}  {row['invocation_count']:>8}"
        )
    return "\n".join(lines)


def run_script(script: Path, script_args: List[str]) -> int:
    """Run ``script`` as __main__ and return its exit code."""
    saved_argv = sys.argv
    sys.argv = [str(script), *script_args]
    try:
        runpy.run_path(str(script), run_name="__main__")
        return 0
    except SystemExit as e:
        if e.code is None:
            return 0
        return e.code if isinstance(e.code, int) else 1
    except KeyboardInterrupt:
        logger.warning("Interrupted, stopping the profiled script")
        return 130
    except Exception as e:
        logger.error(f"Profiled script failed: {e}", exc_info=True)
        return 1
    finally:
        sys.argv = saved_argv


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line entry point.

    Raises:
        SystemExit: On configuration or argument errors, and with the exit
            code of the profiled script when it is not 0
    """
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    profiler_config = app_config.profiler

    try:
        if args.packages:
            packages: List[str] = []
            for value in args.packages:
                packages.extend(parse_package_list(value, field_name="--package argument"))
        else:
            packages = list(profiler_config.profiled_packages)
        period_ms = validate_sampling_period(
            args.period if args.period is not None else profiler_config.sampling_period_ms,
            field_name="--period argument",
        )
        top = validate_positive_integer(args.top, field_name="--top argument")
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="argument validation",
            exit_code=2,
            include_traceback=False,
            logger=logger,
        )

    if not args.script.is_file():
        logger.error(f"Script not found: {args.script}")
        sys.exit(2)

    service = LocalIntrospectionService()
    profiler = SamplingProfiler(
        service,
        profiled_packages=packages,
        sampling_period_ms=period_ms,
        excluded_thread_prefixes=profiler_config.excluded_thread_prefixes,
    )
    thread_monitor = ThreadMonitor.from_config(
        service,
        app_config.monitor,
        excluded_thread_prefixes=profiler_config.excluded_thread_prefixes,
        sinks=[profiler.model],
    )

    logger.info(
        f"Profiling {args.script} every {period_ms}ms, packages: {', '.join(sorted(packages)) or '(none)'}"
    )
    start_time = time.monotonic()
    profiler.resume_sampling()
    thread_monitor.start()
    try:
        exit_code = run_script(args.script, args.script_args)
    finally:
        profiler.suspend_sampling()
        thread_monitor.stop()
    duration = time.monotonic() - start_time

    if profiler.last_error is not None:
        logger.warning(f"Sampling stopped early: {profiler.last_error}")

    snapshot = profiler.model.snapshot()
    logger.info(f"Script finished in {duration:.2f}s after {snapshot.version} samples")
    print(format_hot_spots(snapshot, top))

    if not args.no_export:
        output_dir = args.output_dir or (
            app_config.monitor.log_root_dir / f"run_{time.strftime('%Y%m%d_%H%M%S')}"
        )
        storage_manager = DataStorageManager(output_dir, app_config.storage)
        storage_manager.save_profile(
            snapshot,
            metadata={
                "script": str(args.script),
                "script_args": list(args.script_args),
                "sampling_period_ms": period_ms,
                "profiled_packages": sorted(packages),
                "duration_s": round(duration, 3),
                "exit_code": exit_code,
            },
        )
        storage_manager.save_threads(profiler.model.threads())

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main_cli()
