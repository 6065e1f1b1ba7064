"""
Surface flux of turbulent kinetic energy for :class:`TKEBasedVerticalDiffusivity`.

The wind stress and the convection at the surface inject turbulent kinetic energy (TKE) in the
ocean. This module contains the parameters of this injection, the boundary condition of the TKE
tracer which computes it at each call, and the function that installs this condition in the
boundary conditions of a model. The TKE flux is positive upward, so it is negative when energy
enters the ocean.

"""

from __future__ import annotations
import warnings
from typing import Any, Dict, Mapping, Optional, Sequence

import equinox as eqx
import jax.numpy as jnp

from tkevd.space import Grid, Clock, ArrXY
from tkevd.fields import Field
from tkevd.boundary_conditions import (
    BoundaryCondition, FluxBoundaryCondition, FieldBoundaryConditions, DefaultBoundaryCondition,
    boundary_flux
)
from tkevd.closure import TKE_NAME, tke_closure
from tkevd.functions import _format_to_single_line


class TKESurfaceFlux(eqx.Module):
    r"""
    Coefficients of the surface flux of turbulent kinetic energy.

    The surface flux is

    :math:`Q^e = - C^D \left( C^W_{u\star} u_\star^3 + C^W_{w\Delta} w_\Delta^3 \right)`

    where :math:`u_\star` is the friction velocity and :math:`w_\Delta^3` the convective turbulent
    velocity cubed (cf. :func:`friction_velocity` and
    :func:`top_convective_turbulent_velocity_cubed`). The constructor takes all the attributes as
    parameters.

    Attributes
    ----------
    c_wu_star : float, default=3.62
        Weight of the wind stress :math:`C^W_{u\star}` [dimensionless].
    c_wdelta : float, default=1.31
        Weight of the convection :math:`C^W_{w\Delta}` [dimensionless].

    """

    c_wu_star: float = 3.62
    c_wdelta: float = 1.31


class TKESurfaceFluxParameters(eqx.Module):
    """
    What the surface TKE flux needs to be evaluated from the state of the model.

    The constructor takes all the attributes as parameters.

    Attributes
    ----------
    closure : TKEBasedVerticalDiffusivity or ClosureSequence
        The closure of the model, the coefficients are read on its first member.
    buoyancy : BuoyancyTracer or SeawaterBuoyancy
        Buoyancy model.
    top_tracer_bcs : Dict[str, BoundaryCondition]
        Top boundary conditions of the tracers, by name of tracer.
    top_velocity_bcs : Dict[str, BoundaryCondition]
        Top boundary conditions of :code:`'u'` and :code:`'v'`.

    """

    closure: Any
    buoyancy: Any
    top_tracer_bcs: Dict[str, Optional[BoundaryCondition]]
    top_velocity_bcs: Dict[str, Optional[BoundaryCondition]]


def friction_velocity(
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        top_velocity_bcs: Mapping[str, Optional[BoundaryCondition]]
    ) -> ArrXY:
    r"""
    Friction velocity from the momentum fluxes at the surface.

    :math:`u_\star = \left( {Q^u}^2 + {Q^v}^2 \right)^{1/4}`

    Parameters
    ----------
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model.
    top_velocity_bcs : Mapping[str, BoundaryCondition]
        Top boundary conditions of :code:`'u'` and :code:`'v'`.

    Returns
    -------
    u_star : float :class:`~jax.Array` of shape (nx, ny)
        Friction velocity :math:`[\text m \cdot \text s^{-1}]`.
    """
    qu = boundary_flux(top_velocity_bcs['u'], grid, clock, fields)
    qv = boundary_flux(top_velocity_bcs['v'], grid, clock, fields)
    return jnp.sqrt(jnp.sqrt(qu**2 + qv**2))


def top_convective_turbulent_velocity_cubed(
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        buoyancy: Any,
        top_tracer_bcs: Mapping[str, Optional[BoundaryCondition]]
    ) -> ArrXY:
    r"""
    Cube of the convective turbulent velocity of the surface cell.

    :math:`w_\Delta^3 = \max(0, Q^b) \Delta z_{N}` where :math:`Q^b` is the buoyancy flux at the
    surface and :math:`\Delta z_N` the thickness of the surface cell.
    """
    qb = buoyancy.top_buoyancy_flux(grid, top_tracer_bcs, clock, fields)
    return jnp.maximum(0., qb) * grid.hz[-1]


def top_tke_flux(
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field],
        parameters: TKESurfaceFluxParameters
    ) -> ArrXY:
    r"""
    Surface flux of turbulent kinetic energy, discrete form of the top condition of :code:`'e'`.

    Parameters
    ----------
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model.
    parameters : TKESurfaceFluxParameters
        Closure, buoyancy model and top boundary conditions used for the flux.

    Returns
    -------
    qe : float :class:`~jax.Array` of shape (nx, ny)
        TKE flux through the surface, positive upward :math:`[\text m^3 \cdot \text s^{-3}]`.
    """
    closure, _ = tke_closure(parameters.closure)
    u_star = friction_velocity(grid, clock, fields, parameters.top_velocity_bcs)
    w_delta3 = top_convective_turbulent_velocity_cubed(
        grid, clock, fields, parameters.buoyancy, parameters.top_tracer_bcs
    )
    surface = closure.surface_model
    return - closure.dissipation_parameter * (
        surface.c_wu_star * u_star**3 + surface.c_wdelta * w_delta3
    )


def _default_top_bc(grid: Grid) -> Optional[BoundaryCondition]:
    if grid.is_vertically_bounded:
        return DefaultBoundaryCondition()
    return None


def top_tracer_boundary_conditions(
        grid: Grid,
        tracer_names: Sequence[str],
        user_bcs: Mapping[str, FieldBoundaryConditions]
    ) -> Dict[str, Optional[BoundaryCondition]]:
    """
    Top boundary conditions of the tracers, the default one for the tracers the user did not set.
    """
    return {
        name: user_bcs[name].top if name in user_bcs else _default_top_bc(grid)
        for name in tracer_names
    }


def top_velocity_boundary_conditions(
        grid: Grid,
        user_bcs: Mapping[str, FieldBoundaryConditions]
    ) -> Dict[str, Optional[BoundaryCondition]]:
    """
    Top boundary conditions of the horizontal velocities, the default one if the user did not
    set it.
    """
    return {
        name: user_bcs[name].top if name in user_bcs else _default_top_bc(grid)
        for name in ('u', 'v')
    }


def add_tke_boundary_conditions(
        closure: Any,
        user_bcs: Mapping[str, FieldBoundaryConditions],
        grid: Grid,
        tracer_names: Sequence[str],
        buoyancy: Any
    ) -> Dict[str, FieldBoundaryConditions]:
    """
    Install the surface TKE flux as the top boundary condition of :code:`'e'`.

    If the user gave boundary conditions for :code:`'e'`, their top condition is replaced with a
    warning and the others are kept.

    Parameters
    ----------
    closure : TKEBasedVerticalDiffusivity or ClosureSequence
        The closure of the model.
    user_bcs : Mapping[str, FieldBoundaryConditions]
        Boundary conditions given by the user, by name of field.
    grid : Grid
        Geometry of the domain.
    tracer_names : Sequence[str]
        Names of the tracers of the model.
    buoyancy : BuoyancyTracer or SeawaterBuoyancy
        Buoyancy model.

    Returns
    -------
    bcs : Dict[str, FieldBoundaryConditions]
        :code:`user_bcs` with the new boundary conditions of :code:`'e'`.
    """
    parameters = TKESurfaceFluxParameters(
        closure,
        buoyancy,
        top_tracer_boundary_conditions(grid, tracer_names, user_bcs),
        top_velocity_boundary_conditions(grid, user_bcs)
    )
    top_tke_bc = FluxBoundaryCondition(top_tke_flux, parameters=parameters, discrete_form=True)
    if TKE_NAME in user_bcs:
        warnings.warn(_format_to_single_line(f"""
            Replacing top boundary conditions for tracer `{TKE_NAME}` with boundary condition
            specific to TKEBasedVerticalDiffusivity.
        """))
        tke_bcs = user_bcs[TKE_NAME].with_top(top_tke_bc)
    else:
        tke_bcs = FieldBoundaryConditions(top=top_tke_bc)
    return {**user_bcs, TKE_NAME: tke_bcs}
