"""
Turbulent fluxes of the closures.

These functions dispatch the computation of the fluxes of momentum and tracers over a closure or a
sequence of closures, and over the time discretization of each closure : with
:class:`~closure.ExplicitTimeDiscretization` the explicit fluxes of the closure are returned, with
:class:`~closure.VerticallyImplicitTimeDiscretization` the fluxes on the interior vertical faces are
0 (they are integrated by :func:`~tendencies.implicit_vertical_step` from :func:`z_viscosity` and
:func:`z_diffusivity`) and only the fluxes on the top and bottom faces of a vertically bounded
domain remain. All the fluxes are positive upward. These functions can be obtained by the prefix
:code:`tkevd.fluxes.` or directly by :code:`tkevd.`.

"""

from typing import Any, Mapping, Union

import jax.numpy as jnp
from jaxtyping import Float, Array

from tkevd.space import Grid, Clock, ArrCenter, ArrZFace
from tkevd.fields import Field
from tkevd.closure import (
    AbstractTurbulenceClosure, Closure, ExplicitTimeDiscretization, TracerKind, closure_members,
    closure_diffusivities, tracer_kind
)


def _time_discretized(
        closure: AbstractTurbulenceClosure,
        grid: Grid,
        explicit_flux: Float[Array, 'nx ny nzl']
    ) -> Float[Array, 'nx ny nzl']:
    """
    The flux of a closure for its time discretization from its explicit value.

    The vertical index of :code:`explicit_flux` is the one of the faces (0 and :code:`grid.nz` are
    the bottom and top faces), whatever the location of the flux.
    """
    if isinstance(closure.time_discretization, ExplicitTimeDiscretization):
        return explicit_flux
    if not grid.is_vertically_bounded:
        return jnp.zeros_like(explicit_flux)
    k = jnp.arange(explicit_flux.shape[-1])
    on_boundary = (k == 0) | (k == grid.nz)
    return jnp.where(on_boundary, explicit_flux, 0.)


def viscous_flux_uz(
        closure: Closure,
        diffusivities: Any,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrZFace:
    r"""
    Vertical turbulent flux of zonal momentum on the faces (face, center, face).

    Parameters
    ----------
    closure : AbstractTurbulenceClosure or ClosureSequence
        The closure of the model.
    diffusivities : Any
        The diffusivities of :code:`closure`.
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model.

    Returns
    -------
    flux : float :class:`~jax.Array` of shape (nx, ny, nz+1)
        Flux of zonal momentum :math:`\left[\text m^2 \cdot \text s^{-2}\right]`.
    """
    return sum(
        _time_discretized(c, grid, c.explicit_viscous_flux_uz(d, grid, clock, fields))
        for c, d in zip(closure_members(closure), closure_diffusivities(closure, diffusivities))
    )


def viscous_flux_vz(
        closure: Closure,
        diffusivities: Any,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrZFace:
    """
    Vertical turbulent flux of meridional momentum on the faces (center, face, face), cf.
    :func:`viscous_flux_uz`.
    """
    return sum(
        _time_discretized(c, grid, c.explicit_viscous_flux_vz(d, grid, clock, fields))
        for c, d in zip(closure_members(closure), closure_diffusivities(closure, diffusivities))
    )


def viscous_flux_wz(
        closure: Closure,
        diffusivities: Any,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrCenter:
    """
    Vertical turbulent flux of vertical momentum on the centers of the cells.

    With a vertically implicit discretization, only the values of the vertical indices 0 and
    :code:`grid.nz` are kept, the last one not existing on the centers.
    """
    return sum(
        _time_discretized(c, grid, c.explicit_viscous_flux_wz(d, grid, clock, fields))
        for c, d in zip(closure_members(closure), closure_diffusivities(closure, diffusivities))
    )


def diffusive_flux_z(
        closure: Closure,
        diffusivities: Any,
        kind: TracerKind,
        c: Field,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrZFace:
    r"""
    Vertical turbulent flux of a tracer on the vertical faces.

    Parameters
    ----------
    closure : AbstractTurbulenceClosure or ClosureSequence
        The closure of the model.
    diffusivities : Any
        The diffusivities of :code:`closure`.
    kind : OrdinaryTracer or TurbulentKineticEnergyTracer
        Tag of the tracer, the TKE is transported with its own diffusivity.
    c : Field
        The tracer.
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model.

    Returns
    -------
    flux : float :class:`~jax.Array` of shape (nx, ny, nz+1)
        Flux of the tracer :math:`\left[[c] \cdot \text m \cdot \text s^{-1}\right]`.
    """
    return sum(
        _time_discretized(
            closure_i, grid, closure_i.explicit_diffusive_flux_z(d, kind, c, grid, clock, fields)
        )
        for closure_i, d in zip(
            closure_members(closure), closure_diffusivities(closure, diffusivities)
        )
    )


def diffusive_flux_x(
        closure: Closure,
        diffusivities: Any,
        kind: TracerKind,
        c: Field,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrCenter:
    """Zonal turbulent flux of a tracer, 0 for the vertical closures."""
    return sum(
        closure_i.diffusive_flux_x(d, kind, c, grid, clock, fields)
        for closure_i, d in zip(
            closure_members(closure), closure_diffusivities(closure, diffusivities)
        )
    )


def diffusive_flux_y(
        closure: Closure,
        diffusivities: Any,
        kind: TracerKind,
        c: Field,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Field]
    ) -> ArrCenter:
    """Meridional turbulent flux of a tracer, 0 for the vertical closures."""
    return sum(
        closure_i.diffusive_flux_y(d, kind, c, grid, clock, fields)
        for closure_i, d in zip(
            closure_members(closure), closure_diffusivities(closure, diffusivities)
        )
    )


def z_viscosity(closure: Closure, diffusivities: Any) -> Union[float, ArrCenter]:
    r"""
    Vertical viscosity on the centers of the cells given to the implicit vertical solver
    :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.
    """
    return sum(
        c.z_viscosity(d)
        for c, d in zip(closure_members(closure), closure_diffusivities(closure, diffusivities))
    )


def z_diffusivity(
        closure: Closure,
        tracer: Union[str, TracerKind],
        diffusivities: Any
    ) -> Union[float, ArrCenter]:
    r"""
    Vertical diffusivity of a tracer on the centers of the cells given to the implicit vertical
    solver :math:`\left[\text m^2 \cdot \text s^{-1}\right]`.

    Parameters
    ----------
    closure : AbstractTurbulenceClosure or ClosureSequence
        The closure of the model.
    tracer : str or OrdinaryTracer or TurbulentKineticEnergyTracer
        Name or tag of the tracer.
    diffusivities : Any
        The diffusivities of :code:`closure`.

    Returns
    -------
    k : float or float :class:`~jax.Array` of shape (nx, ny, nz)
        The diffusivity.
    """
    kind = tracer_kind(tracer) if isinstance(tracer, str) else tracer
    return sum(
        c.z_diffusivity(kind, d)
        for c, d in zip(closure_members(closure), closure_diffusivities(closure, diffusivities))
    )
