"""
This module implements the softened Newtonian gravity evaluator used by every RK4 stage.

gravitational_acceleration walks the unordered body pairs once, computes the Plummer
softened coupling G / (r^2 + eps^2)^1.5 for each, and applies it with opposite signs to
both members of the pair, so the pairwise work is halved by Newton's third law. The
result is written into a caller-supplied (N, 3) array which is overwritten on every call.
pair_indices caches the upper-triangle index pairs per body count so steady-state
stepping does not rebuild them. Softening keeps coincident bodies finite, and zero
gravity or a single body yields zero acceleration. All functions assume 3D position
arrays and positive masses.
"""

from __future__ import annotations
import numpy as np
from typing import Dict, Tuple
from numpy.typing import NDArray


_PAIR_CACHE: Dict[int, Tuple[np.ndarray, np.ndarray]] = {}


def pair_indices(n: int) -> Tuple[np.ndarray, np.ndarray]:
    n = int(n)
    pairs = _PAIR_CACHE.get(n)
    if pairs is None:
        pairs = np.triu_indices(n, 1)
        _PAIR_CACHE[n] = pairs
    return pairs


def gravitational_acceleration(
    pos: NDArray[np.floating],
    mass: NDArray[np.floating],
    G: float,
    softening: float,
    out: NDArray[np.floating],
    pairs: Tuple[np.ndarray, np.ndarray] | None = None,
) -> NDArray[np.floating]:
    out[...] = 0.0

    n = pos.shape[0]
    if n < 2 or float(G) == 0.0:
        return out

    if pairs is None:
        pairs = pair_indices(n)
    ii, jj = pairs

    dr = pos[jj] - pos[ii]
    r2_soft = np.einsum("ij,ij->i", dr, dr) + float(softening) * float(softening)
    f = float(G) * np.power(r2_soft, -1.5)

    np.add.at(out, ii, (f * mass[jj])[:, None] * dr)
    np.subtract.at(out, jj, (f * mass[ii])[:, None] * dr)
    return out


def pairwise_acceleration(
    pos: NDArray[np.floating],
    mass: NDArray[np.floating],
    G: float = 1.0,
    softening: float = 0.0,
) -> NDArray[np.floating]:
    pos = np.asarray(pos, dtype=float)
    mass = np.asarray(mass, dtype=float)
    out = np.zeros_like(pos)
    return gravitational_acceleration(pos, mass, G, softening, out)
