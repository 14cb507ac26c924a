"""
Tests for fringe plane indices and periodic wraparound.
"""

import pytest

from les_forcing.config import FringeParams
from les_forcing.inflow import FringeIndices, plane_index, wrap_index


@pytest.mark.parametrize("nx", [1, 7, 8, 64])
def test_wrap_stays_in_range(nx):
    for i in range(-3 * nx, 3 * nx + 1):
        assert 1 <= wrap_index(i, nx) <= nx


@pytest.mark.parametrize("nx", [5, 8])
def test_wrap_is_compatible_with_offsets(nx):
    for i in range(-2 * nx, 2 * nx):
        for d in range(-nx - 2, nx + 3):
            assert wrap_index(i + d, nx) == wrap_index(wrap_index(i, nx) + d, nx)


def test_wrap_identity_inside_domain():
    assert [wrap_index(i, 8) for i in range(1, 9)] == list(range(1, 9))
    assert wrap_index(9, 8) == 1
    assert wrap_index(0, 8) == 8
    assert wrap_index(-1, 8) == 7


def test_plane_index_from_fraction():
    assert plane_index(0.0, 8) == 1
    assert plane_index(0.5, 8) == 5
    assert plane_index(1.0, 8) == 9
    assert plane_index(-0.25, 8) == -1


def test_fringe_at_domain_end_wraps_exit_to_inlet():
    idx = FringeIndices.from_params(FringeParams(buff_end=1.0, buff_len=0.25), 8)
    assert (idx.istart, idx.imid, idx.iend) == (7, 8, 9)
    assert idx.istart_w == 7
    assert idx.iend_w == 1
    assert list(idx.interior()) == [8]


def test_fringe_wrapping_through_periodic_boundary():
    idx = FringeIndices.from_params(FringeParams(buff_end=0.25, buff_len=0.5), 8)
    assert (idx.istart, idx.imid, idx.iend) == (-1, 2, 3)
    assert idx.istart_w == 7
    assert idx.iend_w == 3
    assert [wrap_index(i, 8) for i in idx.interior()] == [8, 1, 2]


def test_collapsed_ramp_is_rejected():
    with pytest.raises(ValueError, match="collapses"):
        FringeIndices.from_params(FringeParams(buff_end=1.0, buff_len=0.01), 8)


def test_fringe_longer_than_domain_is_rejected():
    with pytest.raises(ValueError, match="longer than the domain"):
        FringeIndices.from_params(FringeParams(buff_end=1.0, buff_len=1.5), 8)
