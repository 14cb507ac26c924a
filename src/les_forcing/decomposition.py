"""
Vertical slab decomposition and ghost-plane exchange.

Each rank owns a slab of nz planes stacked along z in rank order.
Neighbouring slabs overlap by one plane: plane nz of a slab is plane 1
of the slab above, and plane 0 of a slab is plane nz-1 of the slab below.
"""

from enum import Enum

import numpy as np
from mpi4py import MPI


class SyncDirection(str, Enum):
    DOWN = "down"  # plane 1 -> plane nz of the slab below
    UP = "up"  # plane nz-1 -> plane 0 of the slab above
    DOWNUP = "downup"


_TAG_DOWN = 11
_TAG_UP = 12


class SlabDecomposition:
    """Position of this rank in the 1D vertical decomposition."""

    def __init__(self, comm=None):
        self.comm = MPI.COMM_WORLD if comm is None else comm
        self.rank = self.comm.rank
        self.nprocs = self.comm.size
        # Slabs are stacked in rank order
        self.coord = self.rank
        self.below = self.coord - 1 if self.coord > 0 else MPI.PROC_NULL
        self.above = self.coord + 1 if self.coord < self.nprocs - 1 else MPI.PROC_NULL

    @property
    def owns_bottom(self) -> bool:
        return self.coord == 0

    @property
    def owns_top(self) -> bool:
        return self.coord == self.nprocs - 1

    def global_k_offset(self, nz: int) -> int:
        """Global index of local plane 0 (global planes run 0..(nz-1)*nprocs)."""
        return self.coord * (nz - 1)

    def sync(self, field: np.ndarray, direction: SyncDirection = SyncDirection.DOWNUP) -> None:
        """
        Blocking exchange of boundary planes with the slabs above and below.

        At the global edges the missing neighbour is MPI.PROC_NULL and the
        corresponding ghost plane is left untouched.
        """
        nz = field.shape[2] - 1
        direction = SyncDirection(direction)
        if direction in (SyncDirection.DOWN, SyncDirection.DOWNUP):
            self._shift(field, send_k=1, recv_k=nz, dest=self.below, source=self.above, tag=_TAG_DOWN)
        if direction in (SyncDirection.UP, SyncDirection.DOWNUP):
            self._shift(field, send_k=nz - 1, recv_k=0, dest=self.above, source=self.below, tag=_TAG_UP)

    def _shift(self, field, *, send_k, recv_k, dest, source, tag):
        sendbuf = np.ascontiguousarray(field[:, :, send_k])
        recvbuf = np.empty_like(sendbuf)
        self.comm.Sendrecv(
            sendbuf, dest=dest, sendtag=tag,
            recvbuf=recvbuf, source=source, recvtag=tag,
        )
        if source != MPI.PROC_NULL:
            field[:, :, recv_k] = recvbuf

    def __repr__(self) -> str:
        return (
            f"SlabDecomposition(coord={self.coord}, nprocs={self.nprocs}, "
            f"owns_bottom={self.owns_bottom}, owns_top={self.owns_top})"
        )
