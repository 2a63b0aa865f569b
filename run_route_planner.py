"""
Route planner parallel runner
Plans several matrix files at once, one process per file.

Usage: python run_route_planner.py [tour50.csv tour250.csv ...]
"""

import json
import multiprocessing
import os
import sys
import traceback
from datetime import datetime

from audit_logger import AuditLogger
from route_planner import RoutePlanner


# ==============================================================================
# Problem configuration
# ==============================================================================
DEFAULT_CONFIG = {
    "depot": False,
    "return_to_depot": False,
    "strategy": "first",
    "max_passes": None,
    "time_budget": None,
}

PLANNER_CONFIGS = {
    "tour50.csv": {
        "depot": True,
        "return_to_depot": True,
        "strategy": "first",
        "max_passes": None,
        "time_budget": None,
    },
    "tour250.csv": {
        "depot": True,
        "return_to_depot": True,
        "strategy": "first",
        "max_passes": None,
        "time_budget": 60.0,
    },
    "tour1000.csv": {
        "depot": True,
        "return_to_depot": False,
        "strategy": "first",
        "max_passes": 200,
        "time_budget": 240.0,
    },
}

TARGET_FILES = [
    "tour50.csv",
    "tour250.csv",
    "tour1000.csv",
]

JOIN_TIMEOUT = 310  # seconds per process


def worker(csv_file, config, log_folder):
    """Worker process: plan a single matrix file."""
    print(f"[{csv_file}] planning...")
    print(f"[{csv_file}] config: {config}")

    with AuditLogger(csv_file, log_dir=log_folder) as audit:
        planner = RoutePlanner(audit=audit, **config)
        try:
            plan = planner.plan_file(csv_file)
        except Exception as e:
            print(f"[{csv_file}] error: {e}")
            traceback.print_exc()
            return
        if log_folder is not None:
            out = os.path.join(log_folder, f"plan_{os.path.splitext(os.path.basename(csv_file))[0]}.json")
            with open(out, "w", encoding="utf-8") as f:
                json.dump(plan.to_dict(), f, indent=2)

    print(f"[{csv_file}] done: total={plan.total_cost:.2f} stops={len(plan.order)}")


def main(argv=None):
    """Plan every target file in parallel."""
    targets = list(argv) if argv else TARGET_FILES
    enable_log = True

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_folder = f"route_logs_{timestamp}" if enable_log else None
    if log_folder is not None:
        os.makedirs(log_folder, exist_ok=True)
        print(f"[Log] log folder: {log_folder}")

    print("=" * 60)
    print("Route planner runner")
    print(f"files: {targets}")
    print("=" * 60)

    processes = []
    for csv_file in targets:
        if not os.path.exists(csv_file):
            print(f"[warning] {csv_file} not found, skipped")
            continue
        config = PLANNER_CONFIGS.get(os.path.basename(csv_file), DEFAULT_CONFIG)
        p = multiprocessing.Process(
            target=worker,
            args=(csv_file, dict(config), log_folder),
            name=csv_file,
        )
        p.daemon = True
        processes.append(p)

    print(f"\nstarting {len(processes)} processes...")
    for p in processes:
        p.start()

    try:
        for p in processes:
            p.join(timeout=JOIN_TIMEOUT)
            if p.is_alive():
                print(f"[warning] {p.name} timed out, terminating...")
                p.terminate()
                p.join(timeout=5)
    except KeyboardInterrupt:
        print("\n[interrupt] stopping all processes...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.join(timeout=5)

    print("\n" + "=" * 60)
    print("all plans finished")
    print("=" * 60)
    return len(processes)


if __name__ == "__main__":
    multiprocessing.freeze_support()
    main(sys.argv[1:])
