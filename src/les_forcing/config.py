"""
Configuration dataclasses and validation for les-forcing.

Contains:
- Mode selectors (InflowMode, FringeTreatment)
- Grid/time/inflow/fringe/run parameter dataclasses
- validate_config: cross-section consistency checks run before any step
"""

import math
from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Scheme constants
# =============================================================================

TADV1_AB2 = 1.5  # Adams-Bashforth 2 weight on the current pressure gradient
RISE_FRACTION = 0.5  # Fringe rise half-width, fraction of fringe length
FALL_FRACTION = 0.125  # Fringe fall half-width, fraction of fringe length
PLATEAU_FRACTION = 0.25  # Blend plateau before the exit plane, fraction of fringe length


class InflowMode(str, Enum):
    """Source of the prescribed exit-plane velocity."""

    FILE = "file"  # Replay planes recorded by a precursor simulation
    SAMPLE = "sample"  # Copy a sampling plane inside the domain
    UNIFORM = "uniform"  # u = face_avg, v = w = 0


class FringeTreatment(str, Enum):
    """How the fringe zone drives the flow toward the exit plane."""

    FORCING = "forcing"  # Induced body force, applied during projection
    BLEND = "blend"  # Overwrite velocity after the projection update


# =============================================================================
# Configuration dataclasses
# =============================================================================


@dataclass(frozen=True)
class GridParams:
    """Local grid extents and domain size."""

    nx: int  # Streamwise points (periodic)
    ny: int  # Spanwise points
    nz: int  # Vertical planes per slab, including the top overlap plane
    L_x: float  # Streamwise domain length
    L_y: float = 1.0  # Spanwise domain length
    L_z: float = 1.0  # Vertical domain length

    @property
    def dx(self) -> float:
        return self.L_x / self.nx

    @property
    def dy(self) -> float:
        return self.L_y / self.ny

    @property
    def shape(self) -> tuple[int, int, int]:
        """Local array shape: plane 0 is the ghost below, plane nz the top."""
        return (self.nx, self.ny, self.nz + 1)


@dataclass(frozen=True)
class TimeParams:
    """
    Time stepping parameters.

    dt: Time step
    tadv1: Weight on the pressure gradient in the velocity update
    """

    dt: float
    tadv1: float = TADV1_AB2


@dataclass(frozen=True)
class InflowParams:
    """
    Inflow enforcement parameters.

    enabled: Enforce an inflow condition through the fringe zone
    mode: "file", "sample" or "uniform" (required when enabled)
    face_avg: Face-averaged inflow speed (uniform mode, fixed top BC)
    sample_location: Sampling plane, fraction of L_x (sample mode)
    inflow_file: Precursor record (.npy) for file mode
    force_top_bot: Fix u = face_avg, v = 0 at the top instead of stress free
    """

    enabled: bool = False
    mode: str | None = None
    face_avg: float = 1.0
    sample_location: float = 0.0
    inflow_file: str | None = None
    force_top_bot: bool = False


@dataclass(frozen=True)
class FringeParams:
    """
    Fringe (buffer) zone, positions as fractions of L_x.

    buff_end: Exit plane position (1.0 = end of domain, wraps to the inlet)
    buff_len: Fringe length
    treatment: "forcing" or "blend"
    """

    buff_end: float = 1.0
    buff_len: float = 0.1
    treatment: str = FringeTreatment.FORCING.value


@dataclass(frozen=True)
class RunParams:
    """
    Driver parameters for the command-line runner.

    nsteps: Number of time steps
    log_interval: Print/CSV every N steps
    out_dir: Output directory for results
    u_init: Uniform initial streamwise velocity
    plot_interval: Save fringe profile PNG every N steps (0 = final only)
    """

    nsteps: int
    log_interval: int
    out_dir: str
    u_init: float = 0.0
    plot_interval: int = 0


# =============================================================================
# Validation
# =============================================================================


def parse_inflow_mode(inflow: InflowParams) -> InflowMode:
    if inflow.mode is None:
        raise ValueError("inflow.mode is required when inflow.enabled is true")
    try:
        return InflowMode(str(inflow.mode).lower())
    except ValueError:
        supported = ", ".join(m.value for m in InflowMode)
        raise ValueError(f"Unknown inflow.mode '{inflow.mode}'. Supported: {supported}") from None


def parse_fringe_treatment(fringe: FringeParams) -> FringeTreatment:
    try:
        return FringeTreatment(str(fringe.treatment).lower())
    except ValueError:
        supported = ", ".join(t.value for t in FringeTreatment)
        raise ValueError(
            f"Unknown fringe.treatment '{fringe.treatment}'. Supported: {supported}"
        ) from None


def validate_config(
    grid: GridParams,
    time: TimeParams,
    inflow: InflowParams,
    fringe: FringeParams,
    *,
    has_reader: bool = False,
) -> None:
    """
    Reject inconsistent configurations before any step executes.

    has_reader: an inflow reader object is supplied directly, so file mode
    does not need inflow.inflow_file.
    """
    if grid.nx < 1 or grid.ny < 1:
        raise ValueError(f"grid.nx and grid.ny must be >= 1, got nx={grid.nx}, ny={grid.ny}")
    if grid.nz < 2:
        raise ValueError(f"grid.nz must be >= 2 (one owned plane plus the top plane), got {grid.nz}")
    if not grid.L_x > 0.0:
        raise ValueError(f"grid.L_x must be positive, got {grid.L_x}")
    if not (time.dt > 0.0 and math.isfinite(time.dt)):
        raise ValueError(f"time.dt must be positive and finite, got {time.dt}")

    if not inflow.enabled:
        return

    mode = parse_inflow_mode(inflow)
    parse_fringe_treatment(fringe)

    if mode is InflowMode.FILE and not inflow.inflow_file and not has_reader:
        raise ValueError("inflow.mode='file' requires inflow.inflow_file")
    if mode is InflowMode.SAMPLE and not 0.0 <= inflow.sample_location < 1.0:
        raise ValueError(
            f"inflow.sample_location must lie in [0, 1), got {inflow.sample_location}"
        )
    if not fringe.buff_len > 0.0:
        raise ValueError(f"fringe.buff_len must be positive, got {fringe.buff_len}")

    # Collapsed windows are caught by the index derivation itself
    from les_forcing.inflow import FringeIndices

    FringeIndices.from_params(fringe, grid.nx)
