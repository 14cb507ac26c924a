"""
Tests for exit-plane sources, fringe strategies and precursor records.
"""

import numpy as np
import pytest
from mpi4py import MPI

from les_forcing.config import FringeParams, GridParams, InflowParams, TimeParams
from les_forcing.decomposition import SlabDecomposition
from les_forcing.fields import ForceAccumulator, VelocityField
from les_forcing.inflow import (
    BlendFringe,
    FileReplaySource,
    ForcingFringe,
    ForcingStage,
    FringeIndices,
    SampledPlaneSource,
    UniformSource,
    build_inflow,
)
from les_forcing.precursor import PrecursorInflowReader, write_precursor_record

GRID = GridParams(nx=64, ny=3, nz=5, L_x=2.0)
TIME = TimeParams(dt=0.01)
FRINGE = FringeParams(buff_end=1.0, buff_len=0.25)


class ConstantReader:
    def __init__(self, u, v, w):
        self.planes = (u, v, w)
        self.calls = 0

    def read_plane(self):
        self.calls += 1
        return self.planes


def test_uniform_source_fills_whole_plane():
    vel = VelocityField.uniform(GRID, 0.3)
    vel.v[:] = 0.2
    UniformSource(1.5).fill_exit_plane(vel, 0)
    assert np.all(vel.u[0] == 1.5)
    assert np.all(vel.v[0] == 0.0)
    assert np.all(vel.w[0] == 0.0)
    assert np.all(vel.u[1] == 0.3)


def test_sampled_plane_source_copies_wrapped_sample():
    vel = VelocityField.zeros(GRID)
    vel.u[:] = np.arange(GRID.nx)[:, None, None]
    src = SampledPlaneSource(0.5, GRID.nx)
    assert src.isample_w == 33
    src.fill_exit_plane(vel, 0)
    assert np.all(vel.u[0] == 32.0)


def test_file_replay_source_uses_reader():
    vel = VelocityField.zeros(GRID)
    reader = ConstantReader(0.9, 0.1, -0.05)
    FileReplaySource(reader).fill_exit_plane(vel, 5)
    assert reader.calls == 1
    assert np.all(vel.u[5] == 0.9)
    assert np.all(vel.v[5] == 0.1)
    assert np.all(vel.w[5] == -0.05)


def test_build_inflow_selects_stage():
    forcing = build_inflow(GRID, TIME, InflowParams(enabled=True, mode="uniform"), FRINGE)
    blend = build_inflow(
        GRID, TIME, InflowParams(enabled=True, mode="uniform"),
        FringeParams(buff_end=1.0, buff_len=0.25, treatment="blend"),
    )
    assert isinstance(forcing.strategy, ForcingFringe)
    assert forcing.stage is ForcingStage.INDUCED
    assert isinstance(blend.strategy, BlendFringe)
    assert blend.stage is ForcingStage.PROJECTION
    assert build_inflow(GRID, TIME, InflowParams(enabled=False), FRINGE) is None


def test_forcing_fringe_overwrites_and_decays_toward_start():
    idx = FringeIndices.from_params(FRINGE, GRID.nx)
    strategy = ForcingFringe(idx, GRID, FRINGE, TIME)
    vel = VelocityField.zeros(GRID)
    vel.u[idx.iend_w - 1] = 1.0
    induced = ForceAccumulator.zeros(GRID)
    induced.fx[:] = 5.0

    strategy.apply(vel, induced)

    interior = [i for i, _ in strategy.weights]
    fx = induced.fx[:, 0, 1]
    for i, factor in strategy.weights:
        assert fx[i] == pytest.approx(factor * 1.0)
    # Ghost plane 0 is not part of the fringe update
    assert np.all(induced.fx[interior, :, 0] == 5.0)
    # Outside the interior nothing is touched
    assert fx[idx.istart_w - 1] == 5.0

    peak = np.max(np.abs(fx[interior]))
    assert peak == pytest.approx(1.0 / TIME.dt)
    assert abs(fx[interior[0]]) < 0.01 * peak
    assert np.all(induced.fy[interior, :, 1:] == 0.0)


def test_blend_fringe_ramps_monotonically_to_exit_value():
    fringe = FringeParams(buff_end=1.0, buff_len=0.25, treatment="blend")
    idx = FringeIndices.from_params(fringe, GRID.nx)
    strategy = BlendFringe(idx)
    u0, u1 = 0.2, 1.0
    vel = VelocityField.uniform(GRID, u0)
    vel.u[idx.iend_w - 1] = u1

    strategy.apply(vel, ForceAccumulator.zeros(GRID))

    profile = [vel.u[i, 0, 1] for i, _ in strategy.weights]
    assert all(u0 <= p <= u1 for p in profile)
    assert np.all(np.diff(profile) >= 0.0)
    assert profile[0] > u0
    assert profile[-1] == pytest.approx(u1)
    for (i, factor), unw in zip(strategy.weights, idx.interior()):
        if unw > idx.imid:
            assert factor == 1.0


def test_precursor_reader_cycles_records(tmp_path):
    grid = GridParams(nx=8, ny=2, nz=4, L_x=1.0)
    decomp = SlabDecomposition(MPI.COMM_SELF)
    nz_tot = grid.nz  # one slab
    planes = np.zeros((2, 3, grid.ny, nz_tot))
    planes[0, 0] = np.arange(1, nz_tot + 1)
    planes[1, 0] = 10.0
    planes[:, 2] = -1.0
    path = write_precursor_record(tmp_path / "inflow.npy", planes)

    reader = PrecursorInflowReader(path, grid, decomp)
    u, v, w = reader.read_plane()
    assert u.shape == (grid.ny, grid.nz + 1)
    # Local plane k holds global plane k; plane 0 repeats plane 1
    np.testing.assert_allclose(u[0], [1.0, 1.0, 2.0, 3.0, 4.0])
    assert np.all(w == -1.0)
    u2, _, _ = reader.read_plane()
    assert np.all(u2 == 10.0)
    u3, _, _ = reader.read_plane()
    np.testing.assert_allclose(u3, u)


def test_precursor_reader_rejects_bad_records(tmp_path):
    grid = GridParams(nx=8, ny=2, nz=4, L_x=1.0)
    decomp = SlabDecomposition(MPI.COMM_SELF)
    with pytest.raises(FileNotFoundError):
        PrecursorInflowReader(tmp_path / "missing.npy", grid, decomp)
    path = write_precursor_record(tmp_path / "wrong.npy", np.zeros((1, 3, 2, 7)))
    with pytest.raises(ValueError, match="expected"):
        PrecursorInflowReader(path, grid, decomp)


def test_file_mode_builds_precursor_reader(tmp_path):
    grid = GridParams(nx=16, ny=2, nz=3, L_x=1.0)
    planes = np.full((1, 3, grid.ny, grid.nz), 0.7)
    path = write_precursor_record(tmp_path / "inflow.npy", planes)
    inflow = build_inflow(
        grid, TIME, InflowParams(enabled=True, mode="file", inflow_file=str(path)), FRINGE,
        decomp=SlabDecomposition(MPI.COMM_SELF),
    )
    vel = VelocityField.zeros(grid)
    inflow.apply(vel, ForceAccumulator.zeros(grid))
    assert np.all(vel.u[inflow.indices.iend_w - 1] == pytest.approx(0.7))
