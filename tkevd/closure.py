"""
Abstractions for defining closures.

A closure is a set of physical equations which determines the sub-mesh turbulent transport from the
resolved state of the ocean, in the form of eddy-viscosity and eddy-diffusivities. This module
contains the abstract class of the closures, the tags of the time discretization of the vertical
fluxes, the tags distinguishing the turbulent kinetic energy (TKE) tracer from the other tracers,
and the sequences of closures. The concrete closures are defined in the folder :code:`closures/`.
These classes and functions can be obtained by the prefix :code:`tkevd.closure.` or directly by
:code:`tkevd.`.

"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional, Sequence, Tuple, Union

import equinox as eqx
import jax.numpy as jnp

from tkevd.space import Grid, Clock, ArrCenter, ArrZFace
from tkevd.fields import Field
from tkevd.boundary_conditions import FieldBoundaryConditions
from tkevd.functions import _format_to_single_line

TKE_NAME: str = 'e'
"""Name of the tracer of turbulent kinetic energy."""


class OrdinaryTracer(eqx.Module):
    """
    Tag of a tracer transported like a passive scalar by the closures.

    Attributes
    ----------
    name : str
        Name of the tracer.

    """

    name: str = eqx.field(static=True)


class TurbulentKineticEnergyTracer(eqx.Module):
    """
    Tag of the tracer of turbulent kinetic energy.

    Attributes
    ----------
    name : str, default=:data:`TKE_NAME`
        Name of the tracer.

    """

    name: str = eqx.field(default=TKE_NAME, static=True)


TracerKind = Union[OrdinaryTracer, TurbulentKineticEnergyTracer]


def tracer_kind(name: str) -> TracerKind:
    """
    Tag of a tracer from its name.

    Parameters
    ----------
    name : str
        Name of the tracer.

    Returns
    -------
    kind : OrdinaryTracer or TurbulentKineticEnergyTracer
        :class:`TurbulentKineticEnergyTracer` if :code:`name` is :data:`TKE_NAME`.
    """
    if name == TKE_NAME:
        return TurbulentKineticEnergyTracer()
    return OrdinaryTracer(name)


class ExplicitTimeDiscretization(eqx.Module):
    """
    The vertical fluxes are computed explicitly by the closure.
    """


class VerticallyImplicitTimeDiscretization(eqx.Module):
    """
    The vertical fluxes inside the domain are integrated by an implicit vertical solver.

    The closure then returns zero for the fluxes on the interior vertical faces, its viscosity and
    diffusivities being given to the solver by :func:`~fluxes.z_viscosity` and
    :func:`~fluxes.z_diffusivity`. The fluxes on the top and bottom faces of a vertically bounded
    domain remain explicit.
    """


TimeDiscretization = Union[ExplicitTimeDiscretization, VerticallyImplicitTimeDiscretization]


class AbstractTurbulenceClosure(eqx.Module, ABC):
    r"""
    Abstraction for a closure of the vertical turbulent transport.

    A child class describes the parameters of the closure as attributes and implements the
    computation of its eddy-viscosity and eddy-diffusivities, and of the explicit vertical fluxes
    of momentum and tracers on the vertical faces. The dispatch between explicit and vertically
    implicit discretization is done by :mod:`fluxes` from :attr:`time_discretization`.

    Attributes
    ----------
    time_discretization : ExplicitTimeDiscretization or VerticallyImplicitTimeDiscretization
        Time discretization of the vertical fluxes.
    owns_tke_terms : bool
        Class attribute, true if the closure computes the source terms of the TKE equation and its
        surface flux.

    """

    time_discretization: TimeDiscretization = eqx.field(static=True)
    owns_tke_terms: ClassVar[bool] = False

    def with_tracers(self, tracer_names: Sequence[str]) -> AbstractTurbulenceClosure:
        """Check the tracers of the model, return the closure adapted to them."""
        return self

    def diffusivity_fields(
            self,
            grid: Grid,
            tracer_names: Sequence[str],
            bcs: Mapping[str, FieldBoundaryConditions]
        ) -> Any:
        """Allocate the fields written by :meth:`calculate_diffusivities`, :code:`None` if any."""
        return None

    def calculate_diffusivities(self, diffusivities: Any, model: Any) -> Any:
        """Compute the diffusivity fields from the current state of the model."""
        return diffusivities

    def add_closure_specific_boundary_conditions(
            self,
            user_bcs: Dict[str, FieldBoundaryConditions],
            grid: Grid,
            tracer_names: Sequence[str],
            buoyancy: Any,
            enclosing: Optional[Closure]=None
        ) -> Dict[str, FieldBoundaryConditions]:
        """Add to the user boundary conditions the ones the closure requires."""
        return user_bcs

    @abstractmethod
    def explicit_viscous_flux_uz(
            self,
            diffusivities: Any,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        """Vertical flux of zonal momentum, on the faces (face, center, face)."""

    @abstractmethod
    def explicit_viscous_flux_vz(
            self,
            diffusivities: Any,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        """Vertical flux of meridional momentum, on the faces (center, face, face)."""

    @abstractmethod
    def explicit_viscous_flux_wz(
            self,
            diffusivities: Any,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrCenter:
        """Vertical flux of vertical momentum, on the centers of the cells."""

    @abstractmethod
    def explicit_diffusive_flux_z(
            self,
            diffusivities: Any,
            kind: TracerKind,
            c: Field,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrZFace:
        """Vertical diffusive flux of the tracer :code:`c`, on the vertical faces."""

    def diffusive_flux_x(
            self,
            diffusivities: Any,
            kind: TracerKind,
            c: Field,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrCenter:
        """Zonal diffusive flux of the tracer :code:`c`, 0 for a vertical closure."""
        return jnp.zeros_like(c.data)

    def diffusive_flux_y(
            self,
            diffusivities: Any,
            kind: TracerKind,
            c: Field,
            grid: Grid,
            clock: Clock,
            fields: Mapping[str, Field]
        ) -> ArrCenter:
        """Meridional diffusive flux of the tracer :code:`c`, 0 for a vertical closure."""
        return jnp.zeros_like(c.data)

    @abstractmethod
    def z_viscosity(self, diffusivities: Any) -> Union[float, ArrCenter]:
        """Vertical viscosity on the centers of the cells, for the implicit solver."""

    @abstractmethod
    def z_diffusivity(self, kind: TracerKind, diffusivities: Any) -> Union[float, ArrCenter]:
        """Vertical diffusivity of a tracer on the centers of the cells, for the implicit solver."""


class ClosureSequence(eqx.Module):
    """
    Several closures applied together.

    The fluxes of the sequence are the sums of the fluxes of its members. Only the :attr:`first`
    closure may own the terms specific to the TKE equation (its surface flux, shear production,
    buoyancy flux and dissipation), the following ones only contribute diffusivities.

    Parameters
    ----------
    first : AbstractTurbulenceClosure
        cf. :attr:`first`.
    *rest : AbstractTurbulenceClosure
        cf. :attr:`rest`.

    Attributes
    ----------
    first : AbstractTurbulenceClosure
        First closure of the sequence.
    rest : Tuple[AbstractTurbulenceClosure, ...]
        The other closures of the sequence.

    Raises
    ------
    TypeError
        If a closure owning the TKE terms is not the first of the sequence.

    """

    first: AbstractTurbulenceClosure
    rest: Tuple[AbstractTurbulenceClosure, ...]

    def __init__(self, first: AbstractTurbulenceClosure, *rest: AbstractTurbulenceClosure):
        if any(closure.owns_tke_terms for closure in rest):
            raise TypeError(_format_to_single_line("""
                The closure owning the terms of the TKE equation must be the first of the
                sequence.
            """))
        self.first = first
        self.rest = tuple(rest)

    @property
    def members(self) -> Tuple[AbstractTurbulenceClosure, ...]:
        """All the closures of the sequence in order."""
        return (self.first,) + self.rest


Closure = Union[AbstractTurbulenceClosure, ClosureSequence]


def closure_members(closure: Closure) -> Tuple[AbstractTurbulenceClosure, ...]:
    """The closures composing :code:`closure`, in order."""
    if isinstance(closure, ClosureSequence):
        return closure.members
    return (closure,)


def closure_diffusivities(closure: Closure, diffusivities: Any) -> Tuple[Any, ...]:
    """The diffusivities of each closure composing :code:`closure`, in order."""
    if isinstance(closure, ClosureSequence):
        return tuple(diffusivities)
    return (diffusivities,)


def tke_closure(
        closure: Closure,
        diffusivities: Any=None
    ) -> Tuple[AbstractTurbulenceClosure, Any]:
    """
    The closure owning the terms of the TKE equation and its diffusivities.

    Parameters
    ----------
    closure : AbstractTurbulenceClosure or ClosureSequence
        A closure or a sequence of closures.
    diffusivities : Any, default=None
        The diffusivities of :code:`closure`.

    Returns
    -------
    closure : AbstractTurbulenceClosure
        :code:`closure` or the first closure of the sequence.
    diffusivities : Any
        The diffusivities of the returned closure.

    Raises
    ------
    TypeError
        If the returned closure does not compute the terms of the TKE equation.
    """
    if isinstance(closure, ClosureSequence):
        closure = closure.first
        diffusivities = None if diffusivities is None else diffusivities[0]
    if not closure.owns_tke_terms:
        raise TypeError(_format_to_single_line(f"""
            {type(closure).__name__} does not compute the terms of the TKE equation.
        """))
    return closure, diffusivities


def with_tracers(tracer_names: Sequence[str], closure: Closure) -> Closure:
    """
    Check the tracers of the model against a closure.

    Parameters
    ----------
    tracer_names : Sequence[str]
        Names of the tracers of the model.
    closure : AbstractTurbulenceClosure or ClosureSequence
        The closure of the model.

    Returns
    -------
    closure : AbstractTurbulenceClosure or ClosureSequence
        The closure adapted to the tracers.
    """
    if isinstance(closure, ClosureSequence):
        return ClosureSequence(*(with_tracers(tracer_names, c) for c in closure.members))
    return closure.with_tracers(tracer_names)


def diffusivity_fields(
        closure: Closure,
        grid: Grid,
        tracer_names: Sequence[str],
        bcs: Mapping[str, FieldBoundaryConditions]
    ) -> Any:
    """Allocate the diffusivity fields of a closure, a tuple of them for a sequence."""
    if isinstance(closure, ClosureSequence):
        return tuple(c.diffusivity_fields(grid, tracer_names, bcs) for c in closure.members)
    return closure.diffusivity_fields(grid, tracer_names, bcs)


def calculate_diffusivities(diffusivities: Any, closure: Closure, model: Any) -> Any:
    """Compute the diffusivity fields of a closure, a tuple of them for a sequence."""
    if isinstance(closure, ClosureSequence):
        return tuple(
            c.calculate_diffusivities(d, model) for c, d in zip(closure.members, diffusivities)
        )
    return closure.calculate_diffusivities(diffusivities, model)


def add_closure_specific_boundary_conditions(
        closure: Closure,
        user_bcs: Mapping[str, FieldBoundaryConditions],
        grid: Grid,
        tracer_names: Sequence[str],
        buoyancy: Any
    ) -> Dict[str, FieldBoundaryConditions]:
    """
    Add to the user boundary conditions the ones required by a closure.

    Parameters
    ----------
    closure : AbstractTurbulenceClosure or ClosureSequence
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
        The new set of boundary conditions.
    """
    bcs = dict(user_bcs)
    for member in closure_members(closure):
        bcs = member.add_closure_specific_boundary_conditions(
            bcs, grid, tracer_names, buoyancy, enclosing=closure
        )
    return bcs
