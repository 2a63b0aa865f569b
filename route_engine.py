"""
Route engine: nearest-neighbour construction + 2-opt refinement over a cost matrix.

Core algorithms:
- Nearest Neighbour construction (strict-less scan, lowest index wins ties)
- 2-Opt local search, first-improvement by default, best-improvement optional
- First and last stop of the route are pinned by the 2-opt neighbourhood
- Depot helpers: rotate to depot, close the loop back to the depot
"""

import time

import numpy as np
from numba import njit

from cost_matrix import (InvalidInput, as_cost_matrix, as_tour, check_start_index,
                         is_symmetric)

EPSILON = 1e-6
STRATEGIES = ("first", "best")


# ==============================================================================
# Part 1: JIT kernels
# ==============================================================================
# No fastmath here: inf / nan legs must compare as plain IEEE values.

@njit(cache=True)
def _nearest_neighbor_jit(D, start):
    """Greedy NN route from `start`. May return fewer than n points."""
    n = D.shape[0]
    visited = np.zeros(n, np.bool_)
    route = np.empty(n, np.int64)
    route[0] = start
    visited[start] = True
    count = 1
    for _ in range(1, n):
        last = route[count - 1]
        best = -1
        best_d = np.inf
        for j in range(n):
            if not visited[j] and D[last, j] < best_d:
                best_d = D[last, j]
                best = j
        if best == -1:
            break  # nothing reachable left
        visited[best] = True
        route[count] = best
        count += 1
    return route[:count]


@njit(cache=True)
def _reverse_segment_jit(route, i, k):
    while i < k:
        tmp = route[i]; route[i] = route[k]; route[k] = tmp
        i += 1; k -= 1


@njit(cache=True)
def _two_opt_first_pass_jit(route, D, eps):
    """One first-improvement pass. Returns the number of accepted moves."""
    n = route.shape[0]
    moves = 0
    for i in range(1, n - 2):
        for k in range(i + 1, n - 1):
            a = route[i - 1]; b = route[i]
            c = route[k]; d = route[k + 1]
            delta = (D[a, c] + D[b, d]) - (D[a, b] + D[c, d])
            if delta < -eps:
                # reverse route[i..k]; scanning continues on the new route
                _reverse_segment_jit(route, i, k)
                moves += 1
    return moves


@njit(cache=True)
def _two_opt_best_pass_jit(route, D, eps):
    """One best-improvement pass: apply only the most negative move. Returns 0 or 1."""
    n = route.shape[0]
    best_delta = -eps
    bi = -1; bk = -1
    for i in range(1, n - 2):
        for k in range(i + 1, n - 1):
            a = route[i - 1]; b = route[i]
            c = route[k]; d = route[k + 1]
            delta = (D[a, c] + D[b, d]) - (D[a, b] + D[c, d])
            if delta < best_delta:
                best_delta = delta
                bi = i; bk = k
    if bi == -1:
        return 0
    _reverse_segment_jit(route, bi, bk)
    return 1


@njit(cache=True)
def path_cost_jit(route, D):
    """Sum of consecutive legs, no wrap-around."""
    s = 0.0
    for i in range(route.shape[0] - 1):
        s += D[route[i], route[i + 1]]
    return s


# ==============================================================================
# Part 2: Public operations
# ==============================================================================

def build_initial_tour(cost, start: int = 0) -> list:
    """
    Nearest-neighbour route starting at `start`.

    Returns a permutation of [0, N). A shorter list means construction could
    not place every point (every remaining leg was inf or nan); callers must
    check the length before trusting the route.
    """
    D = as_cost_matrix(cost)
    start = check_start_index(start, D.shape[0])
    return _nearest_neighbor_jit(D, np.int64(start)).tolist()


def default_pass_cap(n: int) -> int:
    """Pass budget applied to asymmetric matrices when the caller sets none."""
    return n * n


def refine_tour(route, cost, strategy: str = "first", epsilon: float = EPSILON,
                max_passes=None, time_budget=None, stats=None, audit=None):
    """
    2-Opt local search until a full pass makes no change.

    `route` (list or integer ndarray) is improved in place and returned.
    route[0] and route[-1] never move.

    Args:
        strategy: "first" applies every improving reversal immediately,
            "best" applies the single best reversal per pass.
        epsilon: a move is accepted only when delta < -epsilon.
        max_passes: stop after this many passes. None is unbounded on a
            symmetric matrix; an asymmetric matrix without any budget
            gets `default_pass_cap(n)`.
        time_budget: wall-clock seconds, checked between passes.
        stats: optional dict, filled with passes / moves / budget_exhausted.
        audit: optional AuditLogger, receives one [2OPT] line per pass.
    """
    if strategy not in STRATEGIES:
        raise InvalidInput(f"unknown 2-opt strategy {strategy!r}, expected one of {STRATEGIES}")
    D = as_cost_matrix(cost)
    n = D.shape[0]
    tour = as_tour(route, n)
    kernel = _two_opt_first_pass_jit if strategy == "first" else _two_opt_best_pass_jit
    if max_passes is None and time_budget is None and not is_symmetric(D):
        # the delta ignores the reversed segment's own legs, passes can cycle
        max_passes = default_pass_cap(n)

    passes = 0
    moves = 0
    exhausted = False
    t0 = time.perf_counter()
    improved = n >= 4  # smaller routes have no (i, k) pair
    while improved:
        if max_passes is not None and passes >= max_passes:
            exhausted = True
            break
        if time_budget is not None and time.perf_counter() - t0 >= time_budget:
            exhausted = True
            break
        m = kernel(tour, D, float(epsilon))
        passes += 1
        moves += m
        improved = m > 0
        if audit is not None:
            audit.two_opt_pass(passes, m, path_cost_jit(tour, D))

    if stats is not None:
        stats["passes"] = passes
        stats["moves"] = moves
        stats["budget_exhausted"] = exhausted

    if isinstance(route, np.ndarray):
        if moves:
            route[:] = tour
        return route
    if isinstance(route, list):
        if moves:
            route[:] = tour.tolist()
        return route
    return tour.tolist()


def tour_cost(route, cost) -> float:
    """Total cost of the sequence as given (open path; repeats allowed)."""
    D = as_cost_matrix(cost)
    n = D.shape[0]
    idx = np.asarray(route).reshape(-1)
    if idx.size and not np.issubdtype(idx.dtype, np.integer):
        raise InvalidInput(f"route must hold integer indices, got dtype={idx.dtype}")
    idx = idx.astype(np.int64)
    if idx.size and (idx.min() < 0 or idx.max() >= n):
        raise InvalidInput(f"route holds indices outside [0, {n})")
    if idx.size < 2:
        return 0.0
    return float(path_cost_jit(idx, D))


def rotate_to_depot(route, depot: int = 0) -> list:
    """Rotate `route` so `depot` comes first; insert it at the front if absent."""
    tour = list(route)
    if tour and tour[0] == depot:
        return tour
    if depot in tour:
        pos = tour.index(depot)
        return tour[pos:] + tour[:pos]
    return [depot] + tour


def close_route(route, depot: int = 0) -> list:
    """Append the closing visit to the depot (result is not a permutation)."""
    return list(route) + [depot]
