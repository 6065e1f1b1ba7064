"""
Tendencies of the fields due to the closure.

This module assembles the divergence of the turbulent fluxes (cf. :mod:`fluxes`) and of the fluxes
prescribed by the boundary conditions, and for the turbulent kinetic energy (TKE) its sources. It
also contains the implicit vertical solver used with
:class:`~closure.VerticallyImplicitTimeDiscretization`. These functions can be obtained by the
prefix :code:`tkevd.tendencies.` or directly by :code:`tkevd.`.

"""

from __future__ import annotations
from typing import TYPE_CHECKING

import jax.numpy as jnp
from jaxtyping import Float, Array

from tkevd.space import Grid, Clock, ArrCenter, ArrZFace
from tkevd.fields import Field
from tkevd.operators import dz_centers, interp_z_faces, interp_x_faces, interp_y_faces
from tkevd.boundary_conditions import boundary_flux
from tkevd.closure import TurbulentKineticEnergyTracer, tracer_kind, closure_members
from tkevd.closures.tke_based_vertical_diffusivity import (
    shear_production, buoyancy_flux, dissipation
)
from tkevd.fluxes import (
    viscous_flux_uz, viscous_flux_vz, diffusive_flux_z, z_viscosity, z_diffusivity
)
from tkevd.functions import tridiag_solve_columns, _format_to_single_line

if TYPE_CHECKING:
    from tkevd.model import OceanModel


def add_boundary_fluxes(
        flux: ArrZFace,
        field: Field,
        grid: Grid,
        clock: Clock,
        fields: dict
    ) -> ArrZFace:
    """
    Add the fluxes prescribed by the top and bottom conditions of :code:`field` on the boundary
    faces, nothing for a vertically periodic grid.
    """
    if not grid.is_vertically_bounded:
        return flux
    bcs = field.boundary_conditions
    flux = flux.at[..., 0].add(boundary_flux(bcs.bottom, grid, clock, fields))
    flux = flux.at[..., -1].add(boundary_flux(bcs.top, grid, clock, fields))
    return flux


def tracer_tendency(model: OceanModel, name: str) -> ArrCenter:
    r"""
    Tendency of a tracer due to the closure and to its boundary fluxes.

    For the TKE the shear production, the buoyancy flux and the dissipation are added when the first
    closure owns the terms of the TKE equation (cf. :mod:`closures.tke_based_vertical_diffusivity`),
    otherwise the TKE is diffused like any other tracer.

    Parameters
    ----------
    model : OceanModel
        The model with its current fields and diffusivities.
    name : str
        Name of the tracer.

    Returns
    -------
    tendency : float :class:`~jax.Array` of shape (nx, ny, nz)
        Tendency of the tracer :math:`\left[[c] \cdot \text s^{-1}\right]`.
    """
    grid, clock, fields = model.grid, model.clock, model.fields
    c = model.tracers[name]
    kind = tracer_kind(name)
    flux = diffusive_flux_z(model.closure, model.diffusivities, kind, c, grid, clock, fields)
    flux = add_boundary_fluxes(flux, c, grid, clock, fields)
    tendency = - dz_centers(flux, grid)
    owns_tke_terms = closure_members(model.closure)[0].owns_tke_terms
    if isinstance(kind, TurbulentKineticEnergyTracer) and owns_tke_terms:
        tendency = tendency \
            + shear_production(model.closure, model.diffusivities, grid, clock, fields) \
            + buoyancy_flux(model.closure, model.diffusivities, grid, clock, fields,
                            model.buoyancy) \
            - dissipation(model.closure, grid, clock, fields, model.buoyancy)
    return tendency


def velocity_tendency(model: OceanModel, name: str) -> ArrCenter:
    r"""
    Tendency of a horizontal velocity due to the closure and to its boundary fluxes.

    Parameters
    ----------
    model : OceanModel
        The model with its current fields and diffusivities.
    name : str
        :code:`'u'` or :code:`'v'`.

    Returns
    -------
    tendency : float :class:`~jax.Array` of shape (nx, ny, nz)
        Tendency of the velocity :math:`\left[\text m \cdot \text s^{-2}\right]`.

    Raises
    ------
    ValueError
        If :code:`name` is not a horizontal velocity.
    """
    grid, clock, fields = model.grid, model.clock, model.fields
    if name == 'u':
        flux = viscous_flux_uz(model.closure, model.diffusivities, grid, clock, fields)
    elif name == 'v':
        flux = viscous_flux_vz(model.closure, model.diffusivities, grid, clock, fields)
    else:
        raise ValueError(_format_to_single_line(f"""
            `name` should be 'u' or 'v', got {name!r}.
        """))
    flux = add_boundary_fluxes(flux, model.velocities[name], grid, clock, fields)
    return - dz_centers(flux, grid)


def diffusion_solver(
        ak: Float[Array, '... nz+1'],
        hz: Float[Array, 'nz'],
        f: Float[Array, '... nz'],
        dt: float
    ) -> Float[Array, '... nz']:
    r"""
    Solve a diffusion problem with finite volumes on every column.

    The diffusion problems can be written

    :math:`\partial _z (K \partial _z X) + \dfrac f {\Delta t \Delta z} = 0`

    where we are searching for :math:`X` and where :math:`f` represents the temporal derivative and
    forcings. This function transforms this problem in a tridiagonal system on each column and
    then solve them. There is no diffusive flux through the top and bottom faces.

    Parameters
    ----------
    ak : float :class:`~jax.Array` of shape (..., nz+1)
        Diffusion at the cell interfaces :math:`K` in
        :math:`\left[\text m ^2 \cdot \text s ^{-1}\right]`.
    hz : float :class:`~jax.Array` of shape (nz)
        Thickness of cells from deepest to shallowest :math:`\left[\text m\right]`.
    f : float :class:`~jax.Array` of shape (..., nz)
        Right-hand flux of the equation :math:`f` in :math:`[[X] \cdot \text m ]`.
    dt : float
        Time-step of discretisation :math:`[\text s]`.

    Returns
    -------
    x : float :class:`~jax.Array` of shape (..., nz)
        Solution of the diffusion problem :math:`X` in :math:`\left[[X]\right]`.
    """
    # coefficients of the interior interfaces
    cff = -2.0 * dt * ak[..., 1:-1] / (hz[:-1] + hz[1:])
    no_flux = jnp.zeros_like(ak[..., :1])

    a = jnp.concatenate([no_flux, cff], axis=-1)
    c = jnp.concatenate([cff, no_flux], axis=-1)
    b = hz - a - c

    return tridiag_solve_columns(a, b, c, f)


def implicit_vertical_step(
        model: OceanModel,
        name: str,
        field_star: ArrCenter,
        dt: float
    ) -> ArrCenter:
    r"""
    Integrate implicitly the interior vertical turbulent fluxes of a field over one time-step.

    The viscosity (for :code:`'u'` and :code:`'v'`) or the diffusivity of the tracer given by the
    closure (cf. :func:`~fluxes.z_viscosity` and :func:`~fluxes.z_diffusivity`) is interpolated on
    the vertical faces of the field and :func:`diffusion_solver` is called. This is the part of the
    vertical fluxes that the tendencies do not contain with
    :class:`~closure.VerticallyImplicitTimeDiscretization`.

    Parameters
    ----------
    model : OceanModel
        The model with its current diffusivities.
    name : str
        Name of the field, :code:`'u'`, :code:`'v'` or a tracer.
    field_star : float :class:`~jax.Array` of shape (nx, ny, nz)
        The field after the explicit part of the time-step.
    dt : float
        Time-step :math:`[\text s]`.

    Returns
    -------
    field : float :class:`~jax.Array` of shape (nx, ny, nz)
        The field at the end of the time-step.
    """
    grid = model.grid
    shape = (grid.nx, grid.ny, grid.nz)
    if name in ('u', 'v'):
        k = jnp.broadcast_to(z_viscosity(model.closure, model.diffusivities), shape)
        k = interp_x_faces(k) if name == 'u' else interp_y_faces(k)
    else:
        k = jnp.broadcast_to(z_diffusivity(model.closure, name, model.diffusivities), shape)
    ak = interp_z_faces(k, grid)
    return diffusion_solver(ak, grid.hz, grid.hz*field_star, dt)
