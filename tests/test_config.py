"""
Tests for config parsing and validation.
"""

import pytest

from les_forcing.config import (
    FringeParams,
    GridParams,
    InflowMode,
    InflowParams,
    TimeParams,
    parse_inflow_mode,
    validate_config,
)
from les_forcing.utils import dc_from_dict

GRID = GridParams(nx=32, ny=4, nz=5, L_x=2.0)
TIME = TimeParams(dt=0.01)
FRINGE = FringeParams(buff_end=1.0, buff_len=0.25, treatment="forcing")


def test_valid_config_passes():
    inflow = InflowParams(enabled=True, mode="uniform", face_avg=1.0)
    validate_config(GRID, TIME, inflow, FRINGE)


def test_disabled_inflow_skips_mode_checks():
    validate_config(GRID, TIME, InflowParams(enabled=False, mode="bogus"), FringeParams(treatment="bogus"))


def test_mode_is_case_insensitive():
    assert parse_inflow_mode(InflowParams(enabled=True, mode="Sample")) is InflowMode.SAMPLE


def test_inflow_without_mode_is_rejected():
    with pytest.raises(ValueError, match="inflow.mode is required"):
        validate_config(GRID, TIME, InflowParams(enabled=True), FRINGE)


def test_unknown_selectors_are_rejected():
    with pytest.raises(ValueError, match="Unknown inflow.mode"):
        validate_config(GRID, TIME, InflowParams(enabled=True, mode="precursor"), FRINGE)
    with pytest.raises(ValueError, match="Unknown fringe.treatment"):
        validate_config(
            GRID, TIME, InflowParams(enabled=True, mode="uniform"),
            FringeParams(treatment="forcing+blend"),
        )


def test_file_mode_needs_a_source():
    inflow = InflowParams(enabled=True, mode="file")
    with pytest.raises(ValueError, match="inflow_file"):
        validate_config(GRID, TIME, inflow, FRINGE)
    validate_config(GRID, TIME, inflow, FRINGE, has_reader=True)


def test_sample_location_range():
    with pytest.raises(ValueError, match="sample_location"):
        validate_config(GRID, TIME, InflowParams(enabled=True, mode="sample", sample_location=1.0), FRINGE)


def test_degenerate_fringe_is_rejected():
    inflow = InflowParams(enabled=True, mode="uniform")
    with pytest.raises(ValueError, match="buff_len must be positive"):
        validate_config(GRID, TIME, inflow, FringeParams(buff_len=0.0))
    with pytest.raises(ValueError, match="collapses"):
        validate_config(GridParams(nx=8, ny=1, nz=3, L_x=1.0), TIME, inflow, FringeParams(buff_len=0.01))


def test_grid_and_time_checks():
    inflow = InflowParams()
    with pytest.raises(ValueError, match="nz"):
        validate_config(GridParams(nx=8, ny=1, nz=1, L_x=1.0), TIME, inflow, FRINGE)
    with pytest.raises(ValueError, match="dt"):
        validate_config(GRID, TimeParams(dt=0.0), inflow, FRINGE)


def test_dataclass_from_dict():
    grid = dc_from_dict(GridParams, {"nx": 8, "ny": 2, "nz": 3, "L_x": 1.0, "_note": "ignored"}, name="grid")
    assert grid.dx == pytest.approx(0.125)
    assert grid.shape == (8, 2, 4)

    with pytest.raises(ValueError, match="Missing keys"):
        dc_from_dict(GridParams, {"nx": 8}, name="grid")
    with pytest.raises(ValueError, match="Unknown keys"):
        dc_from_dict(GridParams, {"nx": 8, "ny": 2, "nz": 3, "L_x": 1.0, "nw": 1}, name="grid")
