#!/usr/bin/env python3
# run_pipeline.py
# Simple launcher for the newsroom pipeline
# =========================================

"""
Friendly launcher for cron entries and manual runs.

Usage:
    python run_pipeline.py --run run1              # Collect and process run1
    python run_pipeline.py --run run1 --dry-run    # Collect and report, no rewrite calls
    python run_pipeline.py --run run2 --quiet      # Warnings only, short summary
    python run_pipeline.py --list-runs             # Show the run catalogue
"""

import argparse
import sys
import time
from importlib import util as importlib_util
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config import ALL_SOURCES, DISPLAY_TIMEZONE, LOGGING_CONFIG, list_runs  # noqa: E402
from config.runs import describe_run  # noqa: E402
from main import RunNotAvailableError, create_system  # noqa: E402
from src.utils.datetime_utils import format_display, utc_now  # noqa: E402

REQUIRED_MODULES = ["requests", "bs4", "loguru", "pydantic", "dotenv", "dateutil"]


def print_banner(run_id: str, dry_run: bool):
    print("=" * 70)
    print("📰 NEWSROOM PIPELINE - collect, rewrite, illustrate")
    print("=" * 70)
    print(f"📅 Date: {format_display(utc_now(), DISPLAY_TIMEZONE, '%Y-%m-%d %H:%M:%S %Z')}")
    print(f"🎯 Run: {run_id}{'  (dry run: no rewrite calls)' if dry_run else ''}")
    print(f"🌐 Sources in catalogue: {len(ALL_SOURCES)}")
    print("=" * 70)


def print_runs():
    print("\n📚 CONFIGURED RUNS:")
    print("-" * 50)
    for run in list_runs():
        print(f"  • {describe_run(run)}")


def print_results(report, duration: float):
    collection = report["collection"]
    processing = report["processing"]

    print("\n📊 RESULTS:")
    print("-" * 40)
    print(f"⏱️  Duration: {duration:.1f} seconds")
    print(f"🌐 Sources processed: {collection['sources_processed']}")
    print(f"📰 Articles collected: {collection['articles']}")
    for failed in collection["failed_sources"]:
        print(f"⚠️  {failed['source_id']}: {failed['error_message']}")
    for recommendation in collection["recommendations"]:
        print(f"💡 {recommendation}")

    if processing is None:
        print("🧪 Processing skipped")
        return
    print(f"✍️  Rewritten: {processing['processed']}/{processing['total']}")
    print(f"❌ Failed: {processing['failed']}")
    if processing["output_path"]:
        print(f"💾 Output: {processing['output_path']}")


def check_dependencies() -> bool:
    missing = [name for name in REQUIRED_MODULES if importlib_util.find_spec(name) is None]
    if missing:
        print(f"❌ Missing dependencies: {', '.join(missing)}")
        print("Install them with: python -m pip install -e .")
        return False
    return True


def run_simple_pipeline(args) -> bool:
    overrides = {}
    if args.quiet:
        overrides["logging"] = {**LOGGING_CONFIG, "level": "WARNING"}
    else:
        print_banner(args.run, args.dry_run)

    system = create_system(overrides)
    if not system.initialize():
        print("❌ Initialization failed")
        return False

    started = time.perf_counter()
    try:
        if args.dry_run:
            collection = system.collect(args.run, force=args.force)
            summary = None
        else:
            collection, summary = system.run(args.run, force=args.force)
    except RunNotAvailableError as e:
        print(f"❌ {e}")
        return False
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        return False
    except Exception as e:
        system.logger.log_error_with_context(e, {"run_id": args.run})
        print(f"\n❌ Error during execution: {e}")
        return False

    report = system.build_report(collection, summary)
    duration = time.perf_counter() - started
    if args.quiet:
        processed = report["processing"]["processed"] if report["processing"] else 0
        print(
            f"{args.run}: collected {collection.total}, processed {processed} "
            f"in {duration:.1f}s"
        )
    else:
        print_results(report, duration)
        print("🎉 Done!")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Newsroom pipeline launcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_pipeline.py --run run1
  python run_pipeline.py --run run1 --dry-run
  python run_pipeline.py --run run3 --quiet
  python run_pipeline.py --list-runs
        """,
    )
    parser.add_argument("--run", metavar="RUN_ID", help="Run to execute (run1..run4)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Collect and report without calling the rewrite API",
    )
    parser.add_argument("--quiet", action="store_true", help="Warnings only, one-line summary")
    parser.add_argument("--force", action="store_true", help="Execute a disabled run")
    parser.add_argument("--list-runs", action="store_true", help="List runs and exit")
    parser.add_argument("--check-deps", action="store_true", help="Check dependencies and exit")

    args = parser.parse_args()

    if args.check_deps:
        sys.exit(0 if check_dependencies() else 1)

    if args.list_runs:
        print_runs()
        sys.exit(0)

    if not args.run:
        parser.error("--run is required unless --list-runs or --check-deps is given")

    if not check_dependencies():
        sys.exit(1)

    sys.exit(0 if run_simple_pipeline(args) else 1)


if __name__ == "__main__":
    main()
