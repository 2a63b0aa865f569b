"""
Route planner: cost matrix -> NN route -> depot rotation -> 2-opt -> closing visit -> total cost.
"""

import math
from typing import List

import numpy as np

from cost_matrix import (InvalidInput, as_cost_matrix, check_start_index,
                         haversine_matrix, load_cost_matrix, matrix_report)
from route_engine import (EPSILON, STRATEGIES, build_initial_tour, close_route,
                          refine_tour, rotate_to_depot, tour_cost)

DEPOT = 0


class RoutePlan:
    """Result of one planning request."""

    def __init__(self, order: List[int], total_cost: float, method: str,
                 passes: int = 0, moves: int = 0, complete: bool = True,
                 budget_exhausted: bool = False):
        self.order = order
        self.total_cost = total_cost
        self.method = method
        self.passes = passes
        self.moves = moves
        self.complete = complete
        self.budget_exhausted = budget_exhausted
        self.stops = None
        self.total_meters = None

    def to_dict(self) -> dict:
        d = {
            "order": list(self.order),
            "total_cost": self.total_cost,
            "method": self.method,
            "passes": self.passes,
            "moves": self.moves,
            "complete": self.complete,
            "budget_exhausted": self.budget_exhausted,
        }
        if self.stops is not None:
            d["stops"] = self.stops
            d["total_meters"] = self.total_meters
        return d

    def __repr__(self):
        return (f"RoutePlan(order={self.order}, total_cost={self.total_cost:.2f}, "
                f"method={self.method!r}, complete={self.complete})")


class RoutePlanner:
    """Nearest-neighbour + 2-opt planner for a single cost matrix."""

    def __init__(self,
                 start: int = 0,                # first stop when no depot is used
                 depot: bool = False,           # index 0 is the depot, route starts there
                 return_to_depot: bool = False, # append a closing visit to the depot
                 strategy: str = "first",       # 2-opt move acceptance: "first" | "best"
                 epsilon: float = EPSILON,      # minimum gain for a 2-opt move
                 max_passes=None,               # 2-opt pass budget
                 time_budget=None,              # 2-opt wall-clock budget (s)
                 audit=None):                   # AuditLogger or None
        if strategy not in STRATEGIES:
            raise InvalidInput(f"unknown 2-opt strategy {strategy!r}, expected one of {STRATEGIES}")
        self.start = DEPOT if depot else start
        self.depot = bool(depot)
        self.return_to_depot = bool(return_to_depot)
        self.strategy = strategy
        self.epsilon = float(epsilon)
        self.max_passes = max_passes
        self.time_budget = time_budget
        self.audit = audit

    @property
    def method(self) -> str:
        return "NN + 2-opt" if self.strategy == "first" else "NN + 2-opt (best improvement)"

    def plan(self, cost) -> RoutePlan:
        """Plan one route over `cost` (N x N)."""
        D = as_cost_matrix(cost)
        n = D.shape[0]
        start = check_start_index(self.start, n)
        audit = self.audit

        if audit is not None:
            audit.matrix_report(matrix_report(D))

        # 1. construction
        route = build_initial_tour(D, start)
        complete = len(route) == n
        if audit is not None:
            audit.construction(start, len(route), n, tour_cost(route, D))

        # 2. depot goes first before refinement, so 2-opt pins it
        if self.depot and route[0] != DEPOT:
            if audit is not None:
                audit.depot_rotate(route[0], DEPOT)
            route = rotate_to_depot(route, DEPOT)

        # 3. refinement (a short route is not a permutation, leave it as built)
        stats = {"passes": 0, "moves": 0, "budget_exhausted": False}
        if complete:
            before = tour_cost(route, D)
            refine_tour(route, D, strategy=self.strategy, epsilon=self.epsilon,
                        max_passes=self.max_passes, time_budget=self.time_budget,
                        stats=stats, audit=audit)
            if audit is not None:
                audit.two_opt_summary(stats, before, tour_cost(route, D))

        # 4. closing visit
        if self.depot and self.return_to_depot:
            route = close_route(route, DEPOT)
            if audit is not None:
                audit.depot_close(DEPOT)

        plan = RoutePlan(order=route,
                         total_cost=tour_cost(route, D),
                         method=self.method,
                         passes=stats["passes"],
                         moves=stats["moves"],
                         complete=complete,
                         budget_exhausted=stats["budget_exhausted"])
        if audit is not None:
            audit.plan_result(plan)
        return plan

    def plan_file(self, filename: str) -> RoutePlan:
        """Plan over a comma separated matrix file."""
        return self.plan(load_cost_matrix(filename))

    def plan_points(self, coords) -> RoutePlan:
        """
        Plan over straight-line distances (metres) between (lat, lon) points.

        The plan also carries `stops` (one entry per visit, in route order,
        with the input coordinates and a depot flag) and `total_meters`
        (total cost rounded half up to whole metres).
        """
        D = haversine_matrix(coords)
        plan = self.plan(D)
        P = np.asarray(coords, dtype=np.float64)
        plan.stops = [
            {
                "idx": pos,
                "point": point,
                "lat": float(P[point, 0]),
                "lon": float(P[point, 1]),
                "is_depot": self.depot and point == DEPOT,
            }
            for pos, point in enumerate(plan.order)
        ]
        plan.total_meters = int(math.floor(plan.total_cost + 0.5))
        return plan
