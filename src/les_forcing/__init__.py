"""
les-forcing: fringe inflow forcing and velocity projection for LES.

The forcing/projection stage of a fractional-step incompressible
Navier-Stokes integrator on a periodic, vertically slab-decomposed
structured grid: body-force accumulation from pluggable providers,
inflow enforcement through a fringe zone, and the velocity update with
ghost-plane exchange and top/bottom boundary conditions.

Requirements:
    - numpy, mpi4py, matplotlib

Example:
    from les_forcing import ForcingStep, SlabDecomposition, build_inflow
    inflow = build_inflow(grid, time, inflow_params, fringe, decomp=decomp)
    step = ForcingStep(grid, time, inflow_params, decomp, velocity, inflow=inflow)
    step.advance()
"""

__version__ = "0.1.0"

from les_forcing.blend import fringe_blend
from les_forcing.config import (
    FringeParams,
    FringeTreatment,
    GridParams,
    InflowMode,
    InflowParams,
    RunParams,
    TimeParams,
    validate_config,
)
from les_forcing.decomposition import SlabDecomposition, SyncDirection
from les_forcing.fields import ForceAccumulator, PressureGradient, VelocityField
from les_forcing.forcing import ForcingStep, zero_pressure_gradient
from les_forcing.inflow import FringeIndices, InflowEnforcement, build_inflow, wrap_index

__all__ = [
    "__version__",
    "fringe_blend",
    "FringeParams",
    "FringeTreatment",
    "GridParams",
    "InflowMode",
    "InflowParams",
    "RunParams",
    "TimeParams",
    "validate_config",
    "SlabDecomposition",
    "SyncDirection",
    "ForceAccumulator",
    "PressureGradient",
    "VelocityField",
    "ForcingStep",
    "zero_pressure_gradient",
    "FringeIndices",
    "InflowEnforcement",
    "build_inflow",
    "wrap_index",
]
