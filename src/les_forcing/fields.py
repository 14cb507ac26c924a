"""
Field containers shared by the forcing and projection stages.

All arrays have the local shape (nx, ny, nz + 1):
    k = 0        ghost plane received from the slab below
    k = 1..nz-1  planes owned by this slab
    k = nz       top plane (plane 1 of the slab above, or the physical top)
"""

from dataclasses import dataclass

import numpy as np

from les_forcing.config import GridParams


def _zeros(grid: GridParams) -> np.ndarray:
    return np.zeros(grid.shape, dtype=float)


@dataclass
class VelocityField:
    """Velocity components, mutated in place by the step."""

    u: np.ndarray
    v: np.ndarray
    w: np.ndarray

    @classmethod
    def zeros(cls, grid: GridParams) -> "VelocityField":
        return cls(_zeros(grid), _zeros(grid), _zeros(grid))

    @classmethod
    def uniform(cls, grid: GridParams, u0: float) -> "VelocityField":
        vel = cls.zeros(grid)
        vel.u[:] = u0
        return vel

    def components(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.u, self.v, self.w


@dataclass
class PressureGradient:
    """Pressure gradient from the Poisson solve (read only here)."""

    dpdx: np.ndarray
    dpdy: np.ndarray
    dpdz: np.ndarray

    @classmethod
    def zeros(cls, grid: GridParams) -> "PressureGradient":
        return cls(_zeros(grid), _zeros(grid), _zeros(grid))


@dataclass
class ForceAccumulator:
    """
    Body-force triple filled by providers during one step.

    reset() must run exactly once per step before any provider writes,
    so nothing carries over between steps.
    """

    fx: np.ndarray
    fy: np.ndarray
    fz: np.ndarray

    @classmethod
    def zeros(cls, grid: GridParams) -> "ForceAccumulator":
        return cls(_zeros(grid), _zeros(grid), _zeros(grid))

    def reset(self) -> None:
        self.fx.fill(0.0)
        self.fy.fill(0.0)
        self.fz.fill(0.0)

    def components(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.fx, self.fy, self.fz
