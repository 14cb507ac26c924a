"""
Abstract base class for body-force providers.

Each provider writes into one force triple by side effect:
- applied providers (actuators, mean pressure drive) fill fxa, fya, fza
- induced providers (immersed boundary) fill fx, fy, fz

The step orchestrator resets the triple and calls providers in
registration order; a provider never sees forces from a previous step.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from les_forcing.config import GridParams, TimeParams
from les_forcing.decomposition import SlabDecomposition
from les_forcing.fields import ForceAccumulator, VelocityField


@dataclass
class FlowState:
    """Read-only view of the solver state handed to providers."""

    velocity: VelocityField
    grid: GridParams
    time: TimeParams
    decomp: SlabDecomposition
    step: int = 0


class ForceProvider(ABC):
    """Abstract interface for a body-force contribution."""

    # Name of a provider that must be registered, and run, before this one
    requires: str | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry identifier, e.g. 'body_force'."""

    def setup(
        self,
        grid: GridParams,
        decomp: SlabDecomposition,
        registered: dict[str, "ForceProvider"],
    ) -> None:
        """One-time initialization once the grid and decomposition exist.

        registered holds the providers registered earlier on the same
        triple, keyed by name. Default: no-op.
        """

    @abstractmethod
    def apply(self, forces: ForceAccumulator, state: FlowState) -> None:
        """Write this provider's contribution into forces."""
