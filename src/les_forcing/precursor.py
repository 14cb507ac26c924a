"""
Precursor inflow records.

A record is a .npy array of shape (nrec, 3, ny, nz_tot) holding u, v, w
on one streamwise plane for nrec consecutive steps of a precursor run.
nz_tot = (nz - 1) * nprocs + 1 global planes, indexed 1..nz_tot in the
solver's vertical numbering (record column 0 is global plane 1).
"""

from pathlib import Path

import numpy as np

from les_forcing.config import GridParams
from les_forcing.decomposition import SlabDecomposition


def global_nz(grid: GridParams, nprocs: int) -> int:
    return (grid.nz - 1) * nprocs + 1


def write_precursor_record(path: str | Path, planes: np.ndarray) -> Path:
    """Save a (nrec, 3, ny, nz_tot) record. Call from one rank only."""
    planes = np.asarray(planes, dtype=float)
    if planes.ndim != 4 or planes.shape[1] != 3:
        raise ValueError(f"Expected planes of shape (nrec, 3, ny, nz_tot), got {planes.shape}")
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    np.save(p, planes)
    return p


class PrecursorInflowReader:
    """
    Cycles through the planes of a precursor record.

    Every rank memory-maps the same file and slices its own slab. Local
    plane k maps to global plane offset + k; the ghost plane 0 of the
    bottom slab (global plane 0) repeats global plane 1.
    """

    def __init__(self, path: str | Path, grid: GridParams, decomp: SlabDecomposition | None = None):
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Inflow record not found: {p}")
        decomp = SlabDecomposition() if decomp is None else decomp

        self.path = p
        self.data = np.load(p, mmap_mode="r")
        nz_tot = global_nz(grid, decomp.nprocs)
        expected = (3, grid.ny, nz_tot)
        if self.data.ndim != 4 or self.data.shape[1:] != expected:
            raise ValueError(
                f"Inflow record {p} has shape {self.data.shape}, expected (nrec, {expected[0]}, "
                f"{expected[1]}, {expected[2]}) for ny={grid.ny}, nz={grid.nz}, nprocs={decomp.nprocs}"
            )
        if self.data.shape[0] == 0:
            raise ValueError(f"Inflow record {p} is empty")

        # Record column of each local plane (global plane g sits in column g - 1)
        k_global = decomp.global_k_offset(grid.nz) + np.arange(grid.nz + 1)
        self._cols = np.maximum(k_global, 1) - 1
        self.nrec = self.data.shape[0]
        self.irec = 0

    def read_plane(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return local (u, v, w) planes of shape (ny, nz + 1) and advance."""
        rec = np.asarray(self.data[self.irec][:, :, self._cols], dtype=float)
        self.irec = (self.irec + 1) % self.nrec
        return rec[0], rec[1], rec[2]
