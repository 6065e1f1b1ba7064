"""
Ocean model carrying the closure.

This module contains the class :class:`OceanModel` which gathers the grid, the clock, the buoyancy
model, the closure, the velocities, the tracers with their boundary conditions and the
diffusivities of the closure. It is the container from which the closure computes its
diffusivities and the tendencies of the fields are computed (cf. :mod:`tendencies`). This class
can be obtained by the prefix :code:`tkevd.model.` or directly by :code:`tkevd.`.

"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import equinox as eqx
from jaxtyping import Float, Array

from tkevd.space import Grid, Clock
from tkevd.fields import Field, CENTER, X_FACE, Y_FACE, Z_FACE
from tkevd.boundary_conditions import FieldBoundaryConditions
from tkevd.buoyancy import BuoyancyTracer
from tkevd.closure import (
    Closure, with_tracers, diffusivity_fields, calculate_diffusivities,
    add_closure_specific_boundary_conditions
)
from tkevd.closures_registry import CLOSURES_REGISTRY
from tkevd.functions import _format_to_single_line

VELOCITY_NAMES: Tuple[str, ...] = ('u', 'v', 'w')
"""Names of the velocities of the model."""


class OceanModel(eqx.Module):
    r"""
    Ocean model with a turbulence closure.

    At the construction, the closure checks the tracers, its specific boundary conditions are added
    to the ones of the user (eg. the surface flux of turbulent kinetic energy) and all the fields
    are allocated with zeros. The fields are then filled with :meth:`set` and the diffusivities
    are computed with :meth:`update_diffusivities`. The model is immutable : these methods return
    a new model.

    Parameters
    ----------
    grid : Grid
        cf. :attr:`grid`.
    closure : AbstractTurbulenceClosure or ClosureSequence or str, default='tke-based'
        cf. :attr:`closure`. A string must be a key of
        :data:`~closures_registry.CLOSURES_REGISTRY`, the closure is then built with its default
        parameters.
    buoyancy : BuoyancyTracer or SeawaterBuoyancy, optional, default=None
        cf. :attr:`buoyancy`, :class:`~buoyancy.BuoyancyTracer` if :code:`None`.
    tracers : Sequence[str], default=('b', 'e')
        Names of the tracers.
    boundary_conditions : Mapping[str, FieldBoundaryConditions], optional, default=None
        Boundary conditions of the user by name of field, no flux for the others.
    clock : Clock, optional, default=None
        cf. :attr:`clock`, time 0 if :code:`None`.

    Attributes
    ----------
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    buoyancy : BuoyancyTracer or SeawaterBuoyancy
        Buoyancy model.
    closure : AbstractTurbulenceClosure or ClosureSequence
        Turbulence closure.
    velocities : Dict[str, Field]
        The velocities :code:`'u'` on the zonal faces, :code:`'v'` on the meridional faces and
        :code:`'w'` on the vertical faces :math:`\left[\text m \cdot \text s^{-1}\right]`.
    tracers : Dict[str, Field]
        The tracers on the centers of the cells by name.
    diffusivities : Any
        Diffusivity fields of the closure, a tuple of them for a sequence of closures.

    Raises
    ------
    ValueError
        If :code:`closure` is a string not registered in
        :data:`~closures_registry.CLOSURES_REGISTRY`.
    ValueError
        If a tracer required by the buoyancy model or by the closure is missing.

    """

    grid: Grid
    clock: Clock
    buoyancy: Any
    closure: Closure
    velocities: Dict[str, Field]
    tracers: Dict[str, Field]
    diffusivities: Any

    def __init__(
            self,
            grid: Grid,
            closure: Union[Closure, str]='tke-based',
            buoyancy: Any=None,
            tracers: Sequence[str]=('b', 'e'),
            boundary_conditions: Optional[Mapping[str, FieldBoundaryConditions]]=None,
            clock: Optional[Clock]=None
        ) -> None:
        if isinstance(closure, str):
            if closure not in CLOSURES_REGISTRY:
                raise ValueError(_format_to_single_line(f"""
                    Closure {closure!r} not registered in CLOSURES_REGISTRY.
                """))
            closure = CLOSURES_REGISTRY[closure]()
        if buoyancy is None:
            buoyancy = BuoyancyTracer()
        tracer_names = tuple(tracers)
        missing = [name for name in buoyancy.required_tracers if name not in tracer_names]
        if missing:
            raise ValueError(_format_to_single_line(f"""
                Tracers must contain {missing} for the buoyancy model
                `{type(buoyancy).__name__}`.
            """))
        closure = with_tracers(tracer_names, closure)

        user_bcs = {} if boundary_conditions is None else dict(boundary_conditions)
        bcs = add_closure_specific_boundary_conditions(
            closure, user_bcs, grid, tracer_names, buoyancy
        )

        locations = dict(zip(VELOCITY_NAMES, (X_FACE, Y_FACE, Z_FACE)))
        self.grid = grid
        self.clock = Clock() if clock is None else clock
        self.buoyancy = buoyancy
        self.closure = closure
        self.velocities = {
            name: Field.zeros(grid, location, bcs.get(name))
            for name, location in locations.items()
        }
        self.tracers = {name: Field.zeros(grid, CENTER, bcs.get(name)) for name in tracer_names}
        self.diffusivities = diffusivity_fields(closure, grid, tracer_names, bcs)

    @property
    def fields(self) -> Dict[str, Field]:
        """All the fields of the model by name, velocities and tracers."""
        return {**self.velocities, **self.tracers}

    @property
    def tracer_names(self) -> Tuple[str, ...]:
        """Names of the tracers of the model."""
        return tuple(self.tracers)

    def set(self, **values: Float[Array, 'nx ny nzl']) -> OceanModel:
        """
        Set the values of some fields.

        Parameters
        ----------
        **values : float or float :class:`~jax.Array`
            The new values by name of field, broadcasted on the shape of the field.

        Returns
        -------
        model : OceanModel
            The model with the new values.

        Raises
        ------
        ValueError
            If a name is not one of a velocity or of a tracer.
        """
        velocities = dict(self.velocities)
        tracers = dict(self.tracers)
        for name, value in values.items():
            if name in velocities:
                velocities[name] = velocities[name].set(value)
            elif name in tracers:
                tracers[name] = tracers[name].set(value)
            else:
                raise ValueError(_format_to_single_line(f"""
                    {name!r} is not a field of the model, the fields are
                    {list(self.fields)}.
                """))
        return eqx.tree_at(lambda t: (t.velocities, t.tracers), self, (velocities, tracers))

    def update_diffusivities(self) -> OceanModel:
        """
        Compute the diffusivities of the closure from the current state of the model.

        Returns
        -------
        model : OceanModel
            The model with the new diffusivities.
        """
        diffusivities = calculate_diffusivities(self.diffusivities, self.closure, self)
        return eqx.tree_at(
            lambda t: t.diffusivities, self, diffusivities, is_leaf=lambda x: x is None
        )

    def with_clock(self, clock: Clock) -> OceanModel:
        """The model at another time of the simulation."""
        return eqx.tree_at(lambda t: t.clock, self, clock)
