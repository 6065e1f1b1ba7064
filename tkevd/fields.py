"""
Fields of the model.

A :class:`Field` is an array of values on the staggered grid together with its location and its
boundary conditions. This class can be obtained by the prefix :code:`tkevd.fields.` or directly by
:code:`tkevd.`.

"""

from __future__ import annotations
from typing import Any, Mapping, Optional, Tuple

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Float, Array

from tkevd.space import Grid, Clock, ArrZFace
from tkevd.operators import dz_faces
from tkevd.boundary_conditions import FieldBoundaryConditions, boundary_gradient

Location = Tuple[str, str, str]

CENTER: Location = ('center', 'center', 'center')
"""Location of the tracers and of the diffusivities."""
X_FACE: Location = ('face', 'center', 'center')
"""Location of the zonal velocity."""
Y_FACE: Location = ('center', 'face', 'center')
"""Location of the meridional velocity."""
Z_FACE: Location = ('center', 'center', 'face')
"""Location of the vertical velocity."""


class Field(eqx.Module):
    r"""
    Values of one variable on the grid.

    Parameters
    ----------
    data : float :class:`~jax.Array` of shape (nx, ny, nz) or (nx, ny, nz+1)
        cf. :attr:`data`.
    location : Tuple[str, str, str], default=:data:`CENTER`
        cf. :attr:`location`.
    boundary_conditions : FieldBoundaryConditions, optional, default=None
        cf. :attr:`boundary_conditions`, no flux on every boundary if :code:`None`.

    Attributes
    ----------
    data : float :class:`~jax.Array`
        Values of the field, of shape (nx, ny, nz+1) if the field is located on the vertical faces
        and (nx, ny, nz) else.
    location : Tuple[str, str, str]
        Position of the values in the cells in each direction, :code:`'center'` or :code:`'face'`.
    boundary_conditions : FieldBoundaryConditions
        Conditions on the boundaries of the domain.

    """

    data: Float[Array, 'nx ny nzl']
    location: Location = eqx.field(static=True)
    boundary_conditions: FieldBoundaryConditions

    def __init__(
            self,
            data: Float[Array, 'nx ny nzl'],
            location: Location=CENTER,
            boundary_conditions: Optional[FieldBoundaryConditions]=None
        ) -> None:
        if boundary_conditions is None:
            boundary_conditions = FieldBoundaryConditions()
        self.data = data
        self.location = location
        self.boundary_conditions = boundary_conditions

    @classmethod
    def zeros(
            cls,
            grid: Grid,
            location: Location=CENTER,
            boundary_conditions: Optional[FieldBoundaryConditions]=None
        ) -> Field:
        """
        Initialize a field with all values equals to zero on a grid.

        Parameters
        ----------
        grid : Grid
            Geometry of the domain.
        location : Tuple[str, str, str], default=:data:`CENTER`
            Position of the values in the cells.
        boundary_conditions : FieldBoundaryConditions, optional, default=None
            Conditions on the boundaries of the domain.

        Returns
        -------
        field : Field
            The field of zeros.
        """
        nz = grid.nz + 1 if location[2] == 'face' else grid.nz
        data = jnp.zeros((grid.nx, grid.ny, nz), dtype=grid.zr.dtype)
        return cls(data, location, boundary_conditions)

    def set(self, data: Float[Array, 'nx ny nzl']) -> Field:
        """
        Replace the values of the field, broadcasting them on the shape of the field.
        """
        new_data = jnp.broadcast_to(jnp.asarray(data, dtype=self.data.dtype), self.data.shape)
        return eqx.tree_at(lambda t: t.data, self, new_data)

    def dz(self, grid: Grid, clock: Clock, fields: Mapping[str, Any]) -> ArrZFace:
        r"""
        Vertical derivative of a field located on the vertical centers, on the vertical faces.

        The derivatives on the boundary faces are given by the boundary conditions of the field
        (cf. :func:`~boundary_conditions.boundary_gradient`).

        Parameters
        ----------
        grid : Grid
            Geometry of the domain.
        clock : Clock
            Current time of the simulation.
        fields : Mapping[str, Field]
            Current fields of the model.

        Returns
        -------
        dz_field : float :class:`~jax.Array` of shape (nx, ny, nz+1)
            Vertical derivative on the faces :math:`[[X] \cdot \text m^{-1}]`.
        """
        bcs = self.boundary_conditions
        bottom = boundary_gradient(bcs.bottom, 'bottom', self.data, grid, clock, fields)
        top = boundary_gradient(bcs.top, 'top', self.data, grid, clock, fields)
        return dz_faces(self.data, grid, bottom, top)
