"""
Utility functions for les-forcing.

Provides config loading, case-directory metadata, MPI-safe field
diagnostics and step logging helpers.
"""

from __future__ import annotations

import csv
import dataclasses
import json
import math
import os
import platform
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, TypeVar

import numpy as np
from mpi4py import MPI

T = TypeVar("T")


# =============================================================================
# Config
# =============================================================================


def load_json_config(config_path: str | Path) -> dict[str, Any]:
    """Load JSON configuration file."""
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    return json.loads(p.read_text())


def dc_from_dict(cls: type[T], data: Mapping[str, Any] | None, *, name: str = "config") -> T:
    """
    Build a frozen params dataclass from a config section.

    Unknown and missing required keys raise ValueError. Keys starting
    with "_" are dropped first, so JSON files can carry comments.
    """
    data = {} if data is None else dict(data)
    data = {k: v for k, v in data.items() if not str(k).startswith("_")}

    fields = dataclasses.fields(cls)
    unknown = sorted(set(data) - {f.name for f in fields})
    if unknown:
        raise ValueError(f"Unknown keys in {name}: {unknown}")

    missing = sorted(
        f.name
        for f in fields
        if f.default is dataclasses.MISSING
        and f.default_factory is dataclasses.MISSING
        and f.name not in data
    )
    if missing:
        raise ValueError(f"Missing keys in {name}: {missing}")

    return cls(**data)


def print_dc_json(obj: Any) -> None:
    """Print a dataclass (or dict) as stable, sorted JSON."""
    payload = dataclasses.asdict(obj) if dataclasses.is_dataclass(obj) else obj
    print(json.dumps(payload, indent=2, sort_keys=True))


# =============================================================================
# Case directory
# =============================================================================


@dataclasses.dataclass(frozen=True)
class CasePaths:
    case_dir: Path
    plots_dir: Path
    history_csv: Path
    run_info_json: Path
    config_used_json: Path


def _git_revision(start_dir: Path) -> dict[str, str] | None:
    def run(*args, cwd):
        return subprocess.check_output(
            ["git", *args], cwd=str(cwd), stderr=subprocess.DEVNULL
        ).decode().strip()

    try:
        top = run("rev-parse", "--show-toplevel", cwd=start_dir)
        sha = run("rev-parse", "HEAD", cwd=top)
        dirty = run("status", "--porcelain", cwd=top)
    except (OSError, subprocess.CalledProcessError):
        return None
    return {"root": top, "sha": sha, "dirty": "1" if dirty else "0"}


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True))


def prepare_case_dir(
    out_dir: str | Path,
    *,
    config_path: Path | None,
    cfg: Mapping[str, Any],
    plots_subdir: str = "plots",
) -> CasePaths:
    """
    Create the results folder and write reproducibility metadata.

    Creates:
      - <out_dir>/config_used.json
      - <out_dir>/run_info.json
      - <out_dir>/<plots_subdir>/
    """
    from les_forcing import __version__

    case_dir = Path(out_dir)
    plots_dir = case_dir / plots_subdir
    plots_dir.mkdir(parents=True, exist_ok=True)

    paths = CasePaths(
        case_dir=case_dir,
        plots_dir=plots_dir,
        history_csv=case_dir / "history.csv",
        run_info_json=case_dir / "run_info.json",
        config_used_json=case_dir / "config_used.json",
    )
    write_json(paths.config_used_json, dict(cfg))

    info: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "cwd": os.getcwd(),
        "config_path": str(config_path) if config_path else None,
        "python": {"executable": sys.executable, "version": sys.version},
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "mpi": {"nprocs": MPI.COMM_WORLD.size, "library": MPI.Get_library_version().strip()},
        "les_forcing_version": __version__,
    }
    git = _git_revision(Path(__file__).parent)
    if git:
        info["git"] = git
    write_json(paths.run_info_json, info)

    return paths


# =============================================================================
# Diagnostics (MPI-safe)
# =============================================================================


def owned_planes(arr: np.ndarray) -> np.ndarray:
    """Planes 1..nz-1; plane nz repeats plane 1 of the slab above."""
    return arr[:, :, 1:-1]


def field_stats(arr: np.ndarray, comm, *, include_top: bool = False) -> dict[str, float | bool]:
    """Global min/max/abs-max of a field over the owned planes."""
    a = arr[:, :, 1:] if include_top else owned_planes(arr)
    finite_local = bool(np.isfinite(a).all())
    if a.size:
        local_min = float(np.nanmin(a))
        local_max = float(np.nanmax(a))
    else:
        local_min = float("inf")
        local_max = float("-inf")

    vmin = float(comm.allreduce(local_min, op=MPI.MIN))
    vmax = float(comm.allreduce(local_max, op=MPI.MAX))
    return {
        "min": vmin,
        "max": vmax,
        "absmax": max(abs(vmin), abs(vmax)),
        "finite": bool(comm.allreduce(finite_local, op=MPI.LAND)),
    }


def bulk_velocity(u: np.ndarray, comm) -> float:
    """Volume-averaged u over the owned planes of all slabs (uniform grid)."""
    a = owned_planes(u)
    total = float(comm.allreduce(float(np.sum(a)), op=MPI.SUM))
    count = int(comm.allreduce(int(a.size), op=MPI.SUM))
    return total / max(count, 1)


def streamwise_profile(field: np.ndarray, comm) -> np.ndarray:
    """Average over y and the owned planes of all slabs, as a function of x."""
    a = owned_planes(field)
    local = np.sum(a, axis=(1, 2))
    total = np.zeros_like(local)
    comm.Allreduce(local, total, op=MPI.SUM)
    count = comm.allreduce(a.shape[1] * a.shape[2], op=MPI.SUM)
    return total / max(count, 1)


# =============================================================================
# Step logging
# =============================================================================


def fmt_sci(x: float, *, prec: int = 1, sign: bool = False) -> str:
    """Scientific notation with NaN/Inf handling."""
    if not math.isfinite(float(x)):
        return "nan"
    s = "+" if sign else ""
    return f"{float(x):{s}.{prec}e}"


def fmt_pair_sci(a: float, b: float, *, prec: int = 1, sign: bool = True) -> str:
    """Format a min,max pair as 'a,b' in scientific notation."""
    return f"{fmt_sci(a, prec=prec, sign=sign)},{fmt_sci(b, prec=prec, sign=sign)}"


class StepTablePrinter:
    """
    Fixed-width step log.

    Example:
        table = StepTablePrinter([("step", 6), ("u_bulk", 9)])
        table.row(["10", "0.998"])
    """

    def __init__(self, columns: list[tuple[str, int]], *, gap: str = " ") -> None:
        self.columns = list(columns)
        self.gap = gap
        self._printed_header = False

    def header(self) -> None:
        if self._printed_header:
            return
        self._printed_header = True
        print(self.gap.join(label.rjust(width) for label, width in self.columns), flush=True)

    def row(self, values: list[object]) -> None:
        self.header()
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} columns, got {len(values)} values")
        cells = [str(v).rjust(width) for (_, width), v in zip(self.columns, values)]
        print(self.gap.join(cells), flush=True)


class HistoryWriterCSV:
    """Append-only CSV writer for per-step scalar diagnostics."""

    def __init__(self, path: Path, fieldnames: list[str], *, enabled: bool = True) -> None:
        self.enabled = enabled
        self.path = path
        self.fieldnames = list(fieldnames)
        self._fh = None
        self._writer = None
        if not self.enabled:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        new_file = not self.path.exists()
        self._fh = open(self.path, "a", newline="")
        self._writer = csv.DictWriter(self._fh, fieldnames=self.fieldnames)
        if new_file:
            self._writer.writeheader()
            self._fh.flush()

    def write(self, row: Mapping[str, object]) -> None:
        if self._writer is None:
            return
        cleaned = {
            k: (f"{row[k]:.16e}" if isinstance(row[k], float) else row[k])
            for k in self.fieldnames
            if k in row
        }
        self._writer.writerow(cleaned)
        self._fh.flush()

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            finally:
                self._fh = None
                self._writer = None
