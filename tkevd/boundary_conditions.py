"""
Boundary conditions of the fields.

A boundary condition describes what happens on one boundary of a field : a prescribed flux through
the boundary, a prescribed vertical gradient or a prescribed value. The condition itself can be a
constant, an array with one value per column, a function of the horizontal coordinates and of the
time, or a function of the full discrete state of the model. These classes and functions can be
obtained by the prefix :code:`tkevd.boundary_conditions.` or directly by :code:`tkevd.`.

"""

from __future__ import annotations
from typing import Any, Mapping, Optional
from dataclasses import replace

import equinox as eqx
import jax.numpy as jnp

from tkevd.space import Grid, Clock, ArrXY, ArrCenter


class BoundaryCondition(eqx.Module):
    r"""
    Abstraction for the condition applied on one boundary of a field.

    The constructor takes all the attributes as parameters.

    Attributes
    ----------
    condition : float, :class:`~jax.Array` of shape (nx, ny) or callable
        The prescribed quantity. A callable is evaluated at each call of :func:`getbc` :

        - if :attr:`discrete_form` is false, its signature is :code:`f(x, y, t)` where :code:`x`
          and :code:`y` are the horizontal coordinates of the columns as arrays of shape
          (nx, ny) and :code:`t` the time of the clock;
        - if :attr:`discrete_form` is true, its signature is :code:`f(grid, clock, fields)` where
          :code:`fields` is the mapping of the fields of the model.

        In both cases :attr:`parameters` is given as a last argument when it is not :code:`None`.
    parameters : Any, default=None
        Parameters given to the callable :attr:`condition`.
    discrete_form : bool, default=False
        Signature of the callable :attr:`condition`.

    """

    condition: Any
    parameters: Any = None
    discrete_form: bool = eqx.field(default=False, static=True)


class FluxBoundaryCondition(BoundaryCondition):
    """
    Prescribed flux through a boundary, positive upward (cf. :class:`BoundaryCondition`).
    """


class GradientBoundaryCondition(BoundaryCondition):
    """
    Prescribed vertical gradient on a boundary (cf. :class:`BoundaryCondition`).
    """


class ValueBoundaryCondition(BoundaryCondition):
    """
    Prescribed value on a boundary (cf. :class:`BoundaryCondition`).
    """


def DefaultBoundaryCondition() -> FluxBoundaryCondition:
    """No flux through the boundary."""
    return FluxBoundaryCondition(0.)


class FieldBoundaryConditions(eqx.Module):
    """
    Set of the boundary conditions of one field.

    The horizontal directions of :class:`~space.Grid` are periodic, the lateral conditions are only
    carried along with the field. The constructor takes all the attributes as parameters.

    Attributes
    ----------
    top : BoundaryCondition, default=no flux
        Condition at the top of the domain.
    bottom : BoundaryCondition, default=no flux
        Condition at the bottom of the domain.
    north : BoundaryCondition, optional, default=None
        Condition on the northern side of the domain.
    south : BoundaryCondition, optional, default=None
        Condition on the southern side of the domain.
    east : BoundaryCondition, optional, default=None
        Condition on the eastern side of the domain.
    west : BoundaryCondition, optional, default=None
        Condition on the western side of the domain.

    """

    top: BoundaryCondition = eqx.field(default_factory=DefaultBoundaryCondition)
    bottom: BoundaryCondition = eqx.field(default_factory=DefaultBoundaryCondition)
    north: Optional[BoundaryCondition] = None
    south: Optional[BoundaryCondition] = None
    east: Optional[BoundaryCondition] = None
    west: Optional[BoundaryCondition] = None

    def with_top(self, top: BoundaryCondition) -> FieldBoundaryConditions:
        """
        Replace the top condition and keep all the others.

        Parameters
        ----------
        top : BoundaryCondition
            The new condition at the top of the domain.

        Returns
        -------
        bcs : FieldBoundaryConditions
            The :code:`self` object with the new top condition.
        """
        return replace(self, top=top)


def getbc(
        bc: Optional[BoundaryCondition],
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Any]
    ) -> ArrXY:
    r"""
    Evaluate a boundary condition on every column of the grid.

    Parameters
    ----------
    bc : BoundaryCondition, optional
        The condition to evaluate, :code:`None` is evaluated as 0.
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model.

    Returns
    -------
    value : float :class:`~jax.Array` of shape (nx, ny)
        Value of the condition on each column.
    """
    if bc is None:
        return jnp.zeros((grid.nx, grid.ny), dtype=grid.zr.dtype)
    condition = bc.condition
    if callable(condition):
        if bc.discrete_form:
            args = (grid, clock, fields)
        else:
            x, y = jnp.meshgrid(grid.xc, grid.yc, indexing='ij')
            args = (x, y, clock.time)
        if bc.parameters is not None:
            args = args + (bc.parameters,)
        value = condition(*args)
    else:
        value = condition
    return jnp.broadcast_to(jnp.asarray(value, dtype=grid.zr.dtype), (grid.nx, grid.ny))


def boundary_flux(
        bc: Optional[BoundaryCondition],
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Any]
    ) -> ArrXY:
    """
    Flux through a boundary due to its condition, 0 if it is not a :class:`FluxBoundaryCondition`.
    """
    if isinstance(bc, FluxBoundaryCondition):
        return getbc(bc, grid, clock, fields)
    return jnp.zeros((grid.nx, grid.ny), dtype=grid.zr.dtype)


def boundary_gradient(
        bc: Optional[BoundaryCondition],
        side: str,
        data: ArrCenter,
        grid: Grid,
        clock: Clock,
        fields: Mapping[str, Any]
    ) -> ArrXY:
    r"""
    Vertical gradient of a field on a boundary face.

    The gradient is 0 for flux conditions (the flux is applied separately by the tendencies), it is
    the prescribed one for :class:`GradientBoundaryCondition` and it is computed between the value
    on the boundary and the center of the boundary cell for :class:`ValueBoundaryCondition`.

    Parameters
    ----------
    bc : BoundaryCondition, optional
        Condition on the boundary.
    side : str
        :code:`'top'` or :code:`'bottom'`.
    data : float :class:`~jax.Array` of shape (nx, ny, nz)
        Values of the field on the cells.
    grid : Grid
        Geometry of the domain.
    clock : Clock
        Current time of the simulation.
    fields : Mapping[str, Field]
        Current fields of the model.

    Returns
    -------
    gradient : float :class:`~jax.Array` of shape (nx, ny)
        Vertical gradient on the boundary face of each column :math:`[[X] \cdot \text m^{-1}]`.
    """
    if isinstance(bc, GradientBoundaryCondition):
        return getbc(bc, grid, clock, fields)
    if isinstance(bc, ValueBoundaryCondition):
        value = getbc(bc, grid, clock, fields)
        if side == 'top':
            return (value - data[..., -1]) / (0.5*grid.hz[-1])
        return (data[..., 0] - value) / (0.5*grid.hz[0])
    return jnp.zeros((grid.nx, grid.ny), dtype=data.dtype)
