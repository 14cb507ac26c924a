"""
Velocity projection: pressure-gradient and force update, then edge BCs.

    u^{m+1} = u* + dt * (-tadv1 * dp/dx + fxa + fx)

on the owned planes 1..nz-1. Plane nz is filled afterwards by the halo
exchange or, on the top slab, by the top boundary condition.
"""

from les_forcing.fields import ForceAccumulator, PressureGradient, VelocityField


def advance_velocity(
    velocity: VelocityField,
    dp: PressureGradient,
    applied: ForceAccumulator,
    induced: ForceAccumulator,
    dt: float,
    tadv1: float,
    owns_bottom: bool,
) -> None:
    """In-place interior update of u, v, w."""
    nz = velocity.u.shape[2] - 1
    kk = slice(1, nz)
    velocity.u[:, :, kk] += dt * (-tadv1 * dp.dpdx[:, :, kk] + applied.fx[:, :, kk] + induced.fx[:, :, kk])
    velocity.v[:, :, kk] += dt * (-tadv1 * dp.dpdy[:, :, kk] + applied.fy[:, :, kk] + induced.fy[:, :, kk])

    # w = 0 on the bottom wall is enforced separately
    kw = slice(2, nz) if owns_bottom else kk
    velocity.w[:, :, kw] += dt * (-tadv1 * dp.dpdz[:, :, kw] + applied.fz[:, :, kw] + induced.fz[:, :, kw])


def enforce_top_bc(velocity: VelocityField, fixed: bool, face_avg: float) -> None:
    """Top plane: fixed (u = face_avg, v = 0) or stress free; w = 0."""
    nz = velocity.u.shape[2] - 1
    if fixed:
        velocity.u[:, :, nz] = face_avg
        velocity.v[:, :, nz] = 0.0
    else:
        velocity.u[:, :, nz] = velocity.u[:, :, nz - 1]
        velocity.v[:, :, nz] = velocity.v[:, :, nz - 1]
    velocity.w[:, :, nz] = 0.0


def enforce_bottom_bc(velocity: VelocityField) -> None:
    velocity.w[:, :, 1] = 0.0
