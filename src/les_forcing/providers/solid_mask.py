"""
Direct-forcing immersed boundary for a box-shaped solid, and a
relaxation correction that runs after it.

The solid is a box given in domain fractions (x, y) and a height in
global vertical planes counted from the bottom of the domain, so the
same config yields a consistent mask on every slab.
"""

import numpy as np

from les_forcing.config import GridParams
from les_forcing.decomposition import SlabDecomposition
from les_forcing.fields import ForceAccumulator
from les_forcing.providers.base import FlowState, ForceProvider


def box_mask(
    grid: GridParams,
    decomp: SlabDecomposition,
    x_range: tuple[float, float],
    y_range: tuple[float, float],
    height: int,
) -> np.ndarray:
    """Boolean mask of shape grid.shape marking cells inside the box."""
    x0, x1 = x_range
    y0, y1 = y_range
    if not (0.0 <= x0 < x1 <= 1.0 and 0.0 <= y0 < y1 <= 1.0):
        raise ValueError(f"Box ranges must satisfy 0 <= lo < hi <= 1, got x={x_range}, y={y_range}")
    if height < 1:
        raise ValueError(f"Box height must be >= 1 plane, got {height}")

    xi = (np.arange(grid.nx) + 0.5) / grid.nx
    yj = (np.arange(grid.ny) + 0.5) / grid.ny
    k_global = decomp.global_k_offset(grid.nz) + np.arange(grid.nz + 1)

    in_x = (xi >= x0) & (xi < x1)
    in_y = (yj >= y0) & (yj < y1)
    in_z = (k_global >= 1) & (k_global <= height)
    return in_x[:, None, None] & in_y[None, :, None] & in_z[None, None, :]


class SolidMaskForce(ForceProvider):
    """Force that brings the velocity inside the solid to rest in one step."""

    def __init__(self, x_range=(0.4, 0.6), y_range=(0.0, 1.0), height: int = 1):
        self.x_range = tuple(float(x) for x in x_range)
        self.y_range = tuple(float(y) for y in y_range)
        self.height = int(height)
        self.mask: np.ndarray | None = None

    @property
    def name(self) -> str:
        return "solid_mask"

    def setup(self, grid, decomp, registered):
        self.mask = box_mask(grid, decomp, self.x_range, self.y_range, self.height)

    def apply(self, forces: ForceAccumulator, state: FlowState) -> None:
        if self.mask is None:
            raise RuntimeError("SolidMaskForce.apply() called before setup()")
        inv_dt = 1.0 / state.time.dt
        for f, vel in zip(forces.components(), state.velocity.components()):
            f[self.mask] = -inv_dt * vel[self.mask]


class MaskRelaxation(ForceProvider):
    """
    Under-relaxes the solid-mask force inside its own mask.

    Must run after solid_mask: it rescales the forces already written.
    """

    requires = "solid_mask"

    def __init__(self, alpha: float = 0.5):
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"mask_relaxation alpha must lie in [0, 1], got {alpha}")
        self.alpha = float(alpha)
        self._primary: SolidMaskForce | None = None

    @property
    def name(self) -> str:
        return "mask_relaxation"

    def setup(self, grid, decomp, registered):
        self._primary = registered[self.requires]

    def apply(self, forces: ForceAccumulator, state: FlowState) -> None:
        mask = self._primary.mask
        for f in forces.components():
            f[mask] *= self.alpha
