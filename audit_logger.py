"""
Audit logging: event driven diagnostics for route planning.

Unified line format: [TAG] event_name | field1=value1 | field2=value2 | ...

Tags:
    [INFO]  - audit start / end
    [MAT]   - cost matrix report
    [NN]    - nearest-neighbour construction
    [DEGEN] - construction placed fewer points than the matrix holds
    [DEPOT] - depot rotation / closing visit
    [2OPT]  - per-pass 2-opt progress and summary
    [TIME]  - refinement stopped by a pass or time budget
    [PLAN]  - final route and total cost
"""

import os
from datetime import datetime


class AuditLogger:
    """Event driven audit logger (stdout and, optionally, a log file)."""

    def __init__(self, name: str = "route", log_dir=None, echo: bool = True):
        """
        Args:
            name: label for this run, e.g. the matrix file name ('tour50.csv').
            log_dir: folder for the log file; None writes to stdout only.
            echo: print each line to stdout.
        """
        self.name = os.path.splitext(os.path.basename(name))[0]
        self.echo = echo
        self.start_time = datetime.now()
        self.lines = 0
        self.file = None
        self.log_filename = None
        self.closed = False

        if log_dir is not None:
            os.makedirs(log_dir, exist_ok=True)
            timestamp = self.start_time.strftime("%Y%m%d_%H%M%S")
            self.log_filename = os.path.join(log_dir, f"audit_{timestamp}_{self.name}.txt")
            self.file = open(self.log_filename, "w", encoding="utf-8")

        self._log(f"[INFO] audit_start | name={self.name} | time={self.start_time.isoformat()}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _log(self, msg: str):
        self.lines += 1
        if self.echo:
            print(msg, flush=True)
        if self.file is not None:
            self.file.write(msg + "\n")
            self.file.flush()

    def event(self, tag: str, name: str, **fields):
        """Write one `[TAG] name | k=v | ...` line."""
        parts = [f"[{tag}] {name}"]
        for key, value in fields.items():
            if isinstance(value, float):
                value = f"{value:.2f}"
            parts.append(f"{key}={value}")
        self._log(" | ".join(parts))

    def close(self):
        if self.closed:
            return
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self._log(f"[INFO] audit_end | elapsed={elapsed:.3f}s")
        if self.file is not None:
            self.file.close()
            self.file = None
        self.closed = True

    # =========================================================================
    # Planning events
    # =========================================================================

    def matrix_report(self, report: dict):
        self.event("MAT", "report", n=report["n"], symmetric=report["symmetric"],
                   sparsity=f"{report['sparsity']:.2%}", min=report["min_cost"],
                   max=report["max_cost"], mean=report["mean_cost"])

    def construction(self, start: int, placed: int, n: int, cost: float):
        self.event("NN", "build_done", start=start, placed=placed, n=n, cost=cost)
        if placed < n:
            self.event("DEGEN", "short_route", placed=placed, n=n, missing=n - placed)

    def depot_rotate(self, before_first: int, depot: int):
        self.event("DEPOT", "rotate", first_before=before_first, depot=depot)

    def depot_close(self, depot: int):
        self.event("DEPOT", "close", depot=depot)

    def two_opt_pass(self, pass_no: int, moves: int, cost: float):
        self.event("2OPT", "pass", n_pass=pass_no, moves=moves, cost=cost)

    def two_opt_summary(self, stats: dict, before: float, after: float):
        self.event("2OPT", "done", passes=stats.get("passes", 0), moves=stats.get("moves", 0),
                   before=before, after=after, gain=before - after)
        if stats.get("budget_exhausted"):
            self.event("TIME", "budget_exhausted", passes=stats.get("passes", 0))

    def plan_result(self, plan):
        self.event("PLAN", "result", method=plan.method, stops=len(plan.order),
                   complete=plan.complete, total=plan.total_cost)
