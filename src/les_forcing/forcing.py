"""
Forcing and projection stage of the fractional-step integrator.

Per time step, in order:
    forcing_applied()  reset fxa/fya/fza, run applied providers
    forcing_induced()  reset fx/fy/fz, run induced providers, fringe forcing
    project()          velocity update, fringe blend, halo exchange, edge BCs

The step owns both force triples; providers and the inflow enforcement
write into them by side effect. The inflow enforcement runs in exactly
one of forcing_induced() or project(), fixed by its strategy's stage.
"""

from typing import Callable, Sequence

from les_forcing.config import GridParams, InflowParams, TimeParams
from les_forcing.decomposition import SlabDecomposition, SyncDirection
from les_forcing.fields import ForceAccumulator, PressureGradient, VelocityField
from les_forcing.inflow import ForcingStage, InflowEnforcement
from les_forcing.projection import advance_velocity, enforce_bottom_bc, enforce_top_bc
from les_forcing.providers import FlowState, ForceProvider


def zero_pressure_gradient(grid: GridParams) -> Callable[[], PressureGradient]:
    """Pressure-gradient source for runs without a Poisson solve."""
    dp = PressureGradient.zeros(grid)
    return lambda: dp


def _register(
    providers: Sequence[ForceProvider],
    grid: GridParams,
    decomp: SlabDecomposition,
    kind: str,
) -> list[ForceProvider]:
    registered: dict[str, ForceProvider] = {}
    for provider in providers:
        dep = provider.requires
        if dep is not None and dep not in registered:
            raise ValueError(
                f"{kind} provider '{provider.name}' requires '{dep}' to be registered before it"
            )
        provider.setup(grid, decomp, registered)
        registered[provider.name] = provider
    return list(providers)


class ForcingStep:
    """Force accumulation and projection for one slab."""

    def __init__(
        self,
        grid: GridParams,
        time: TimeParams,
        inflow_params: InflowParams,
        decomp: SlabDecomposition,
        velocity: VelocityField,
        pressure_gradient: Callable[[], PressureGradient] | None = None,
        applied_providers: Sequence[ForceProvider] = (),
        induced_providers: Sequence[ForceProvider] = (),
        inflow: InflowEnforcement | None = None,
    ):
        if inflow_params.enabled and inflow is None:
            raise ValueError("inflow.enabled is true but no inflow enforcement was built")
        if inflow is not None and not inflow_params.enabled:
            raise ValueError("inflow enforcement supplied while inflow.enabled is false")

        self.grid = grid
        self.time = time
        self.inflow_params = inflow_params
        self.decomp = decomp
        self.velocity = velocity
        self.pressure_gradient = pressure_gradient or zero_pressure_gradient(grid)
        self.inflow = inflow

        self.applied = ForceAccumulator.zeros(grid)
        self.induced = ForceAccumulator.zeros(grid)
        self.applied_providers = _register(applied_providers, grid, decomp, "applied")
        self.induced_providers = _register(induced_providers, grid, decomp, "induced")

        self.fixed_top = inflow_params.force_top_bot and inflow_params.enabled
        self.state = FlowState(velocity=velocity, grid=grid, time=time, decomp=decomp)

    @property
    def step(self) -> int:
        return self.state.step

    def forcing_applied(self) -> None:
        """Explicitly applied forces (actuators, mean drive)."""
        self.applied.reset()
        for provider in self.applied_providers:
            provider.apply(self.applied, self.state)

    def forcing_induced(self) -> None:
        """Forces chosen to reach a target velocity at the next step."""
        self.induced.reset()
        # Registration order: a correction always follows its primary
        for provider in self.induced_providers:
            provider.apply(self.induced, self.state)
        self._enforce_inflow(ForcingStage.INDUCED)

    def project(self) -> None:
        dp = self.pressure_gradient()
        advance_velocity(
            self.velocity, dp, self.applied, self.induced,
            self.time.dt, self.time.tadv1, self.decomp.owns_bottom,
        )
        self._enforce_inflow(ForcingStage.PROJECTION)

        # Ghost planes before BCs, so BCs win whatever the inflow did
        for field in self.velocity.components():
            self.decomp.sync(field, SyncDirection.DOWNUP)

        if self.decomp.owns_top:
            enforce_top_bc(self.velocity, self.fixed_top, self.inflow_params.face_avg)
        if self.decomp.owns_bottom:
            enforce_bottom_bc(self.velocity)

    def advance(self) -> None:
        """One full forcing + projection step."""
        self.forcing_applied()
        self.forcing_induced()
        self.project()
        self.state.step += 1

    def _enforce_inflow(self, stage: ForcingStage) -> None:
        if self.inflow is not None and self.inflow.stage is stage:
            self.inflow.apply(self.velocity, self.induced)
