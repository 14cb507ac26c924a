"""
Plotting utilities for les-forcing.

Streamwise fringe profiles and run history.
"""

import csv
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from les_forcing.utils import streamwise_profile


def plot_fringe_profile(
    velocity,
    induced,
    grid,
    inflow,
    comm,
    *,
    step: int,
    save_path: Path,
):
    """Plane-averaged u and fx along x, fringe interior shaded.

    MPI-safe: all ranks reduce the profiles, only rank 0 plots.
    """
    u_x = streamwise_profile(velocity.u, comm)
    fx_x = streamwise_profile(induced.fx, comm)
    if comm.rank != 0:
        return

    x = (np.arange(grid.nx) + 0.5) * grid.dx
    fig, (ax_u, ax_f) = plt.subplots(2, 1, figsize=(9, 6), sharex=True)
    ax_u.plot(x, u_x, "k-", lw=1.5)
    ax_u.set_ylabel(r"$\langle u \rangle_{yz}$")
    ax_f.plot(x, fx_x, "C3-", lw=1.5)
    ax_f.set_ylabel(r"$\langle f_x \rangle_{yz}$")
    ax_f.set_xlabel("x")

    if inflow is not None:
        profile = inflow.blend_profile()
        inside = np.nonzero(profile)[0]
        for ax in (ax_u, ax_f):
            for i in inside:
                ax.axvspan(i * grid.dx, (i + 1) * grid.dx, color="C0", alpha=0.12, lw=0)
            i_exit = inflow.indices.iend_w - 1
            ax.axvline(x[i_exit], color="C0", ls="--", lw=1.0)

    ax_u.set_title(f"Fringe profile, step {step}")
    for ax in (ax_u, ax_f):
        ax.grid(True, alpha=0.3)
    fig.tight_layout()
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=150)
    plt.close(fig)
    print(f"  Saved fringe profile: {save_path}")


def plot_history(history_file: Path, save_path: Path):
    """Bulk velocity and max induced force against step."""
    with history_file.open() as f:
        rows = list(csv.DictReader(f))
    if not rows:
        return

    step = np.array([int(r["step"]) for r in rows])
    u_bulk = np.array([float(r["u_bulk"]) for r in rows])
    fx_max = np.array([float(r["fx_absmax"]) for r in rows])

    fig, ax1 = plt.subplots(figsize=(8, 4))
    ax1.plot(step, u_bulk, "k-", lw=1.5, label="U_bulk")
    ax1.set_xlabel("step")
    ax1.set_ylabel("U_bulk")
    ax1.grid(True, alpha=0.3)

    ax2 = ax1.twinx()
    ax2.semilogy(step, np.maximum(fx_max, 1e-300), "C3--", lw=1.2, label="|fx|_max")
    ax2.set_ylabel("|fx|_max")

    lines = ax1.get_lines() + ax2.get_lines()
    ax1.legend(lines, [ln.get_label() for ln in lines], loc="best")
    fig.tight_layout()
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=150)
    plt.close(fig)
