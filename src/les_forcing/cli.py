"""
Command-line interface for les-forcing.

Runs the forcing + projection stage on a periodic slab-decomposed box
with zero pressure gradient, e.g. to check a fringe configuration.

Usage:
    les-forcing config.json
    mpirun -n 4 les-forcing config.json
"""

import argparse
import sys
from pathlib import Path

from mpi4py import MPI

from les_forcing.config import (
    FringeParams,
    GridParams,
    InflowParams,
    RunParams,
    TimeParams,
    validate_config,
)
from les_forcing.decomposition import SlabDecomposition
from les_forcing.fields import VelocityField
from les_forcing.forcing import ForcingStep, zero_pressure_gradient
from les_forcing.inflow import build_inflow, wrap_index
from les_forcing.plotting import plot_fringe_profile, plot_history
from les_forcing.providers import providers_from_config
from les_forcing.utils import (
    HistoryWriterCSV,
    StepTablePrinter,
    bulk_velocity,
    dc_from_dict,
    field_stats,
    fmt_pair_sci,
    load_json_config,
    prepare_case_dir,
    print_dc_json,
)

HISTORY_FIELDS = ["step", "t", "u_bulk", "u_min", "u_max", "w_absmax", "fx_absmax"]


def _parse_sections(cfg: dict):
    grid = dc_from_dict(GridParams, cfg["grid"], name="grid")
    time = dc_from_dict(TimeParams, cfg["time"], name="time")
    inflow = dc_from_dict(InflowParams, cfg.get("inflow"), name="inflow")
    fringe = dc_from_dict(FringeParams, cfg.get("fringe"), name="fringe")
    run = dc_from_dict(RunParams, cfg["run"], name="run")
    return grid, time, inflow, fringe, run


def build_step(cfg: dict, decomp: SlabDecomposition) -> tuple[ForcingStep, RunParams]:
    """Validate config and assemble the step for this rank."""
    grid, time, inflow, fringe, run = _parse_sections(cfg)
    validate_config(grid, time, inflow, fringe)

    prov = dict(cfg.get("providers", {}))
    unknown = sorted(set(prov) - {"applied", "induced"})
    if unknown:
        raise ValueError(f"Unknown keys in providers: {unknown}")

    velocity = VelocityField.uniform(grid, run.u_init)
    step = ForcingStep(
        grid, time, inflow, decomp, velocity,
        pressure_gradient=zero_pressure_gradient(grid),
        applied_providers=providers_from_config(prov.get("applied")),
        induced_providers=providers_from_config(prov.get("induced")),
        inflow=build_inflow(grid, time, inflow, fringe, decomp=decomp),
    )
    return step, run


def run_case(step: ForcingStep, run: RunParams, results_dir: Path) -> int:
    """Advance run.nsteps steps with rank-0 logging. Returns the final step."""
    comm = step.decomp.comm
    table = None
    hist = None
    if comm.rank == 0:
        table = StepTablePrinter([
            ("step", 6), ("t", 9), ("U_bulk", 9), ("u[min,max]", 17), ("|w|max", 9), ("|fx|max", 9),
        ])
        hist = HistoryWriterCSV(results_dir / "history.csv", HISTORY_FIELDS)

    plots_dir = results_dir / "plots"
    try:
        for _ in range(run.nsteps):
            step.advance()
            n = step.step
            do_log = n % run.log_interval == 0 or n == run.nsteps
            do_plot = run.plot_interval > 0 and n % run.plot_interval == 0

            if do_log:
                ud = field_stats(step.velocity.u, comm)
                wd = field_stats(step.velocity.w, comm)
                fd = field_stats(step.induced.fx, comm)
                u_bulk = bulk_velocity(step.velocity.u, comm)
                t = n * step.time.dt
                if not (ud["finite"] and wd["finite"]):
                    raise FloatingPointError(f"Non-finite velocity at step {n}")
                if comm.rank == 0:
                    table.row([
                        f"{n:6d}",
                        f"{t:9.3e}",
                        f"{u_bulk:9.4f}",
                        fmt_pair_sci(ud["min"], ud["max"], prec=2),
                        f"{wd['absmax']:9.2e}",
                        f"{fd['absmax']:9.2e}",
                    ])
                    hist.write({
                        "step": n,
                        "t": t,
                        "u_bulk": u_bulk,
                        "u_min": ud["min"],
                        "u_max": ud["max"],
                        "w_absmax": wd["absmax"],
                        "fx_absmax": fd["absmax"],
                    })

            if do_plot:
                plot_fringe_profile(
                    step.velocity, step.induced, step.grid, step.inflow, comm,
                    step=n, save_path=plots_dir / f"fringe{n:07d}.png",
                )
    finally:
        if hist is not None:
            hist.close()

    plot_fringe_profile(
        step.velocity, step.induced, step.grid, step.inflow, comm,
        step=step.step, save_path=results_dir / "fringe_final.png",
    )
    if comm.rank == 0 and (results_dir / "history.csv").exists():
        plot_history(results_dir / "history.csv", results_dir / "history.png")
    return step.step


def main():
    """Run the forcing/projection stage from the command line."""
    p = argparse.ArgumentParser(
        description="Fringe inflow forcing and velocity projection on a slab-decomposed box",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    les-forcing configs/fringe_uniform.json
    les-forcing --print-only configs/fringe_uniform.json
    mpirun -n 2 les-forcing configs/fringe_uniform.json
        """,
    )
    p.add_argument("config", type=str, help="JSON config file")
    p.add_argument("--print-only", action="store_true", help="Print config and exit")
    args = p.parse_args()

    cfg_path = Path(args.config)
    cfg = load_json_config(cfg_path)
    comm = MPI.COMM_WORLD

    if args.print_only:
        if comm.rank == 0:
            for section in _parse_sections(cfg):
                print_dc_json(section)
        return 0

    decomp = SlabDecomposition(comm)
    step, run = build_step(cfg, decomp)

    results_dir = Path(run.out_dir)
    if comm.rank == 0:
        prepare_case_dir(results_dir, config_path=cfg_path, cfg=cfg)
    comm.barrier()

    if comm.rank == 0:
        grid = step.grid
        print("=" * 60)
        print("FRINGE FORCING / PROJECTION - les-forcing")
        print("=" * 60)
        print(f"Grid: {grid.nx}×{grid.ny}×{grid.nz} per slab, {decomp.nprocs} slab(s)")
        print(f"Domain: L_x = {grid.L_x:.3f}, dx = {grid.dx:.4e}, dt = {step.time.dt:.3e}")
        if step.inflow is not None:
            idx = step.inflow.indices
            print(f"Inflow: {step.inflow_params.mode}, fringe {type(step.inflow.strategy).__name__}")
            print(f"Fringe planes: start={idx.istart_w}, mid={wrap_index(idx.imid, idx.nx)}, exit={idx.iend_w} (nx={idx.nx})")
        else:
            print("Inflow: disabled")
        names = [pr.name for pr in step.applied_providers + step.induced_providers]
        print(f"Providers: {', '.join(names) if names else 'none'}")
        print()

    n = run_case(step, run, results_dir)
    if comm.rank == 0:
        print(f"Done after {n} steps. Results saved to {results_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
