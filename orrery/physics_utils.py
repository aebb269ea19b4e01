import numpy as np
from typing import Sequence, Tuple

"""
This module provides the small vector helpers shared by the integrator and the controllers. add_scaled writes a + s * b into a caller-owned target without allocating, position_of accepts either a body-like object or a raw vector, and state_arrays stacks any sequence of body-like objects into position, velocity and mass arrays for vectorized analysis. All helpers assume 3-component vectors.


"""

def add_scaled(target: np.ndarray, a: np.ndarray, b: np.ndarray, s: float) -> np.ndarray:
	np.multiply(b, s, out=target)
	target += a
	return target


def position_of(obj) -> np.ndarray:
	pos = getattr(obj, "position", None)
	if pos is None:
		pos = obj
	return np.asarray(pos, dtype=np.float64)


def state_arrays(bodies: Sequence) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
	n = len(bodies)
	pos = np.empty((n, 3), dtype=np.float64)
	vel = np.empty((n, 3), dtype=np.float64)
	mass = np.empty(n, dtype=np.float64)
	for i, b in enumerate(bodies):
		pos[i] = b.position
		vel[i] = b.velocity
		mass[i] = b.mass
	return pos, vel, mass
