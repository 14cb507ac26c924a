"""
Inflow enforcement through a fringe (buffer) zone.

The exit plane of the fringe receives a prescribed velocity (precursor
file, sampled plane or uniform), and the planes between the fringe start
and the exit plane are driven toward it, either with an induced body
force or by blending the velocity directly.

Plane indices are 1-based and derived from fractions of L_x as
floor(fraction * nx + 1). They may fall outside 1..nx (the fringe can
wrap through the periodic boundary) and are wrapped before use.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np

from les_forcing.blend import fringe_blend
from les_forcing.config import (
    FALL_FRACTION,
    PLATEAU_FRACTION,
    RISE_FRACTION,
    FringeParams,
    FringeTreatment,
    GridParams,
    InflowMode,
    InflowParams,
    TimeParams,
    parse_fringe_treatment,
    parse_inflow_mode,
)
from les_forcing.fields import ForceAccumulator, VelocityField


def plane_index(fraction: float, nx: int) -> int:
    """Unwrapped 1-based plane index of a position given as a fraction of L_x."""
    return int(math.floor(fraction * nx + 1.0))


def wrap_index(i: int, nx: int) -> int:
    """Wrap a 1-based plane index into 1..nx."""
    return (i - 1) % nx + 1


@dataclass(frozen=True)
class FringeIndices:
    """Unwrapped fringe start, blend plateau start and exit plane."""

    istart: int
    imid: int
    iend: int
    nx: int

    @classmethod
    def from_params(cls, fringe: FringeParams, nx: int) -> "FringeIndices":
        iend = plane_index(fringe.buff_end, nx)
        imid = plane_index(fringe.buff_end - PLATEAU_FRACTION * fringe.buff_len, nx)
        istart = plane_index(fringe.buff_end - fringe.buff_len, nx)

        if iend <= istart:
            raise ValueError(
                f"Fringe collapses on nx={nx}: istart={istart}, iend={iend} "
                f"(buff_end={fringe.buff_end}, buff_len={fringe.buff_len})"
            )
        if imid <= istart:
            raise ValueError(
                f"Fringe blend ramp collapses on nx={nx}: istart={istart}, imid={imid}; "
                f"increase fringe.buff_len or grid.nx"
            )
        if iend - istart > nx:
            raise ValueError(f"Fringe longer than the domain: buff_len={fringe.buff_len}")
        return cls(istart=istart, imid=imid, iend=iend, nx=nx)

    @property
    def istart_w(self) -> int:
        return wrap_index(self.istart, self.nx)

    @property
    def iend_w(self) -> int:
        return wrap_index(self.iend, self.nx)

    def interior(self) -> range:
        """Unwrapped planes strictly between fringe start and exit plane."""
        return range(self.istart + 1, self.iend)


# =============================================================================
# Exit-plane sources
# =============================================================================


class InflowSource(ABC):
    """Provides the velocity at the fringe exit plane."""

    @abstractmethod
    def fill_exit_plane(self, velocity: VelocityField, i_exit: int) -> None:
        """Write u, v, w on the whole plane at array index i_exit."""


class UniformSource(InflowSource):
    def __init__(self, face_avg: float):
        self.face_avg = float(face_avg)

    def fill_exit_plane(self, velocity, i_exit):
        velocity.u[i_exit, :, :] = self.face_avg
        velocity.v[i_exit, :, :] = 0.0
        velocity.w[i_exit, :, :] = 0.0


class SampledPlaneSource(InflowSource):
    """Copies the velocity of a sampling plane inside the domain."""

    def __init__(self, sample_location: float, nx: int):
        self.isample_w = wrap_index(plane_index(sample_location, nx), nx)

    def fill_exit_plane(self, velocity, i_exit):
        i_s = self.isample_w - 1
        for vel in velocity.components():
            vel[i_exit, :, :] = vel[i_s, :, :]


class FileReplaySource(InflowSource):
    """
    Replays planes from a precursor record.

    reader: any object with read_plane() -> (u, v, w), each broadcastable
    to the local (ny, nz + 1) plane. One plane is consumed per call.
    """

    def __init__(self, reader):
        self.reader = reader

    def fill_exit_plane(self, velocity, i_exit):
        u_in, v_in, w_in = self.reader.read_plane()
        velocity.u[i_exit, :, :] = u_in
        velocity.v[i_exit, :, :] = v_in
        velocity.w[i_exit, :, :] = w_in


# =============================================================================
# Fringe strategies
# =============================================================================


class ForcingStage(str, Enum):
    """Sub-stage of the step that invokes the inflow enforcement."""

    INDUCED = "induced"  # forcing_induced(), before projection
    PROJECTION = "projection"  # project(), after the interior update


class FringeStrategy(ABC):
    """Drives the fringe interior toward the exit plane."""

    stage: ForcingStage

    def __init__(self, indices: FringeIndices):
        self.indices = indices
        self.weights = [
            (wrap_index(i, indices.nx) - 1, self.factor(i)) for i in indices.interior()
        ]

    @abstractmethod
    def factor(self, i: int) -> float:
        """Weight for unwrapped plane i of the fringe interior."""

    @abstractmethod
    def apply(self, velocity: VelocityField, induced: ForceAccumulator) -> None:
        ...


class ForcingFringe(FringeStrategy):
    """
    Induced force relaxing the fringe toward the exit-plane velocity.

    The force ramps up over a rise window starting at the fringe start and
    back down over a shorter fall window ending at the exit plane:
        f = (blend(x1) - blend(x2)) / dt * (vel_exit - vel)
    """

    stage = ForcingStage.INDUCED

    def __init__(self, indices: FringeIndices, grid: GridParams, fringe: FringeParams, time: TimeParams):
        self.dx = grid.dx
        self.dt = time.dt
        self.delta_r = RISE_FRACTION * fringe.buff_len * grid.L_x
        self.delta_f = FALL_FRACTION * fringe.buff_len * grid.L_x
        super().__init__(indices)

    def factor(self, i: int) -> float:
        x1 = (i - self.indices.istart) * self.dx / self.delta_r
        x2 = (i - self.indices.iend) * self.dx / self.delta_f + 1.0
        return (fringe_blend(x1) - fringe_blend(x2)) / self.dt

    def apply(self, velocity, induced):
        i_end = self.indices.iend_w - 1
        for i, factor in self.weights:
            # Overwrites: other induced providers' forces at these planes are replaced
            for f, vel in zip(induced.components(), velocity.components()):
                f[i, :, 1:] = factor * (vel[i_end, :, 1:] - vel[i, :, 1:])


class BlendFringe(FringeStrategy):
    """
    Direct velocity blend between fringe start and exit plane.

    Raised-cosine ramp from istart to imid, then a plateau at the exit value.
    """

    stage = ForcingStage.PROJECTION

    def factor(self, i: int) -> float:
        if i > self.indices.imid:
            return 1.0
        ramp = (i - self.indices.istart) / (self.indices.imid - self.indices.istart)
        return 0.5 * (1.0 - math.cos(math.pi * ramp))

    def apply(self, velocity, induced):
        i_start = self.indices.istart_w - 1
        i_end = self.indices.iend_w - 1
        for i, factor in self.weights:
            for vel in velocity.components():
                v0 = vel[i_start, :, 1:]
                vel[i, :, 1:] = v0 + factor * (vel[i_end, :, 1:] - v0)


# =============================================================================
# Enforcement
# =============================================================================


class InflowEnforcement:
    """Exit-plane source plus fringe strategy, invoked once per step."""

    def __init__(self, source: InflowSource, strategy: FringeStrategy):
        self.source = source
        self.strategy = strategy
        self.indices = strategy.indices

    @property
    def stage(self) -> ForcingStage:
        return self.strategy.stage

    def apply(self, velocity: VelocityField, induced: ForceAccumulator) -> None:
        self.source.fill_exit_plane(velocity, self.indices.iend_w - 1)
        self.strategy.apply(velocity, induced)

    def blend_profile(self) -> np.ndarray:
        """Fringe weights along x (array index -> factor), zero outside the interior."""
        profile = np.zeros(self.indices.nx)
        for i, factor in self.strategy.weights:
            profile[i] = factor
        return profile


def build_inflow(
    grid: GridParams,
    time: TimeParams,
    inflow: InflowParams,
    fringe: FringeParams,
    *,
    decomp=None,
    reader=None,
) -> InflowEnforcement | None:
    """Build the inflow enforcement from config, or None when disabled."""
    if not inflow.enabled:
        return None

    mode = parse_inflow_mode(inflow)
    treatment = parse_fringe_treatment(fringe)
    indices = FringeIndices.from_params(fringe, grid.nx)

    if mode is InflowMode.FILE:
        if reader is None:
            from les_forcing.precursor import PrecursorInflowReader

            if not inflow.inflow_file:
                raise ValueError("inflow.mode='file' requires inflow.inflow_file")
            reader = PrecursorInflowReader(inflow.inflow_file, grid, decomp)
        source: InflowSource = FileReplaySource(reader)
    elif mode is InflowMode.SAMPLE:
        source = SampledPlaneSource(inflow.sample_location, grid.nx)
    else:
        source = UniformSource(inflow.face_avg)

    if treatment is FringeTreatment.FORCING:
        strategy: FringeStrategy = ForcingFringe(indices, grid, fringe, time)
    else:
        strategy = BlendFringe(indices)

    return InflowEnforcement(source, strategy)
