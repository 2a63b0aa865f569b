"""
Cost matrix input layer.

Everything the route engine reads goes through here first: conversion of
caller data into contiguous float64 / int64 arrays, fail-fast validation,
CSV loading and a small diagnostic report on the matrix.
"""

import numpy as np

R_EARTH_M = 6371008.8  # mean Earth radius in metres


class InvalidInput(ValueError):
    """Malformed cost matrix, route or index."""


# ==============================================================================
# Validation
# ==============================================================================

def as_cost_matrix(cost) -> np.ndarray:
    """Return `cost` as a contiguous (N, N) float64 array, N >= 1."""
    try:
        D = np.asarray(cost, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"cost matrix is not numeric or is ragged: {e}") from e
    if D.ndim != 2:
        raise InvalidInput(f"cost matrix must be 2-D, got ndim={D.ndim}")
    n, m = D.shape
    if n == 0:
        raise InvalidInput("cost matrix is empty")
    if n != m:
        raise InvalidInput(f"cost matrix must be square, got {n}x{m}")
    return np.ascontiguousarray(D)


def check_start_index(start, n: int) -> int:
    if isinstance(start, (bool, np.bool_)) or not isinstance(start, (int, np.integer)):
        raise InvalidInput(f"start index must be an integer, got {start!r}")
    start = int(start)
    if not 0 <= start < n:
        raise InvalidInput(f"start index {start} out of range [0, {n})")
    return start


def as_tour(route, n: int) -> np.ndarray:
    """Return `route` as an int64 array, checking it is a permutation of [0, n)."""
    tour = np.asarray(route)
    if tour.ndim != 1:
        raise InvalidInput(f"route must be 1-D, got ndim={tour.ndim}")
    if tour.shape[0] != n:
        raise InvalidInput(f"route length {tour.shape[0]} does not match matrix size {n}")
    if n and not np.issubdtype(tour.dtype, np.integer):
        raise InvalidInput(f"route must hold integer indices, got dtype={tour.dtype}")
    tour = tour.astype(np.int64)
    if tour.size and (tour.min() < 0 or tour.max() >= n):
        raise InvalidInput(f"route holds indices outside [0, {n})")
    seen = np.zeros(n, dtype=np.bool_)
    seen[tour] = True
    if not seen.all():
        raise InvalidInput("route is not a permutation (repeated or missing points)")
    return tour


# ==============================================================================
# Sources
# ==============================================================================

def load_cost_matrix(filename: str) -> np.ndarray:
    """Read a comma separated N x N matrix file."""
    with open(filename) as f:
        D = np.loadtxt(f, delimiter=",", dtype=np.float64, ndmin=2)
    return as_cost_matrix(D)


def haversine_matrix(coords) -> np.ndarray:
    """
    Great-circle distance matrix in metres.

    Args:
        coords: sequence of (lat, lon) pairs in decimal degrees.
    """
    P = np.asarray(coords, dtype=np.float64)
    if P.ndim != 2 or P.shape[0] == 0 or P.shape[1] != 2:
        raise InvalidInput(f"coords must be a non-empty (N, 2) array, got shape {P.shape}")
    lat = np.radians(P[:, 0])
    lon = np.radians(P[:, 1])
    dlat = lat[None, :] - lat[:, None]
    dlon = lon[None, :] - lon[:, None]
    hav = np.sin(dlat / 2) ** 2 + np.cos(lat)[:, None] * np.cos(lat)[None, :] * np.sin(dlon / 2) ** 2
    D = 2 * R_EARTH_M * np.arcsin(np.sqrt(np.clip(hav, 0.0, 1.0)))
    np.fill_diagonal(D, 0.0)
    return np.ascontiguousarray(D)


# ==============================================================================
# Diagnostics
# ==============================================================================

def is_symmetric(D: np.ndarray) -> bool:
    """Exact symmetry; any nan entry makes the matrix count as asymmetric."""
    return bool(np.array_equal(D, D.T))


def matrix_report(D: np.ndarray) -> dict:
    """Symmetry, sparsity (inf share) and cost range of a matrix. Never rejects."""
    D = as_cost_matrix(D)
    n = D.shape[0]

    # symmetry over finite entries only
    finite_mask = np.isfinite(D) & np.isfinite(D.T)
    if np.any(finite_mask):
        symmetric = bool(np.allclose(D[finite_mask], D.T[finite_mask], rtol=1e-5, atol=1e-8))
    else:
        symmetric = True

    sparsity = 1.0 - float(np.sum(np.isfinite(D))) / D.size

    off_diag = ~np.eye(n, dtype=np.bool_)
    finite_D = D[np.isfinite(D) & off_diag]
    if finite_D.size:
        min_cost = float(finite_D.min())
        max_cost = float(finite_D.max())
        mean_cost = float(finite_D.mean())
    else:
        min_cost = max_cost = mean_cost = 0.0

    return {
        "n": n,
        "symmetric": symmetric,
        "sparsity": sparsity,
        "min_cost": min_cost,
        "max_cost": max_cost,
        "mean_cost": mean_cost,
    }
