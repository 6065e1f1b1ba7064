"""
Finite volume operators on the staggered grid.

The fields live either on the cell centers or on the faces of the cells. The horizontal directions
of :class:`~space.Grid` are periodic, the horizontal faces of index :code:`i` being on the western
(or southern) side of the cell :code:`i`. The vertical faces are numbered from the bottom boundary
(index 0) to the top boundary (index nz). On a bounded vertical direction, the values of a center
field are extended with a zero gradient beyond the boundaries for the interpolations.

"""

from typing import Union

import jax.numpy as jnp
from jaxtyping import Float, Array

from tkevd.functions import add_boundaries
from tkevd.space import Grid, ArrXY, ArrCenter, ArrZFace


def dz_faces(
        c: ArrCenter,
        grid: Grid,
        bottom: Union[float, ArrXY]=0.,
        top: Union[float, ArrXY]=0.
    ) -> ArrZFace:
    r"""
    Vertical derivative of a center field on the vertical faces.

    Parameters
    ----------
    c : float :class:`~jax.Array` of shape (nx, ny, nz)
        Field on the centers of the cells.
    grid : Grid
        Geometry of the domain.
    bottom : float or float :class:`~jax.Array` of shape (nx, ny), default=0.
        Derivative on the bottom face, ignored on a periodic vertical direction.
    top : float or float :class:`~jax.Array` of shape (nx, ny), default=0.
        Derivative on the top face, ignored on a periodic vertical direction.

    Returns
    -------
    dz_c : float :class:`~jax.Array` of shape (nx, ny, nz+1)
        Vertical derivative on the faces :math:`[[c] \cdot \text m^{-1}]`.
    """
    interior = (c[..., 1:] - c[..., :-1]) / grid.dzf[1:-1]
    if not grid.is_vertically_bounded:
        wrap = (c[..., 0] - c[..., -1]) / (0.5*(grid.hz[0] + grid.hz[-1]))
        return add_boundaries(wrap, interior, wrap)
    return add_boundaries(bottom, interior, top)


def dz_centers(w: ArrZFace, grid: Grid) -> ArrCenter:
    """Vertical derivative of a face field on the centers of the cells."""
    return (w[..., 1:] - w[..., :-1]) / grid.hz


def interp_z_centers(f: ArrZFace) -> ArrCenter:
    """Interpolation of a face field on the centers of the cells."""
    return 0.5*(f[..., 1:] + f[..., :-1])


def interp_z_faces(c: ArrCenter, grid: Grid) -> ArrZFace:
    """Interpolation of a center field on the vertical faces."""
    interior = 0.5*(c[..., 1:] + c[..., :-1])
    if not grid.is_vertically_bounded:
        wrap = 0.5*(c[..., 0] + c[..., -1])
        return add_boundaries(wrap, interior, wrap)
    return add_boundaries(c[..., 0], interior, c[..., -1])


def interp_x_centers(f: Float[Array, 'nx ...']) -> Float[Array, 'nx ...']:
    """Interpolation of a field from the zonal faces to the centers of the cells."""
    return 0.5*(f + jnp.roll(f, -1, axis=0))


def interp_x_faces(c: Float[Array, 'nx ...']) -> Float[Array, 'nx ...']:
    """Interpolation of a field from the centers of the cells to the zonal faces."""
    return 0.5*(c + jnp.roll(c, 1, axis=0))


def interp_y_centers(f: Float[Array, 'nx ny ...']) -> Float[Array, 'nx ny ...']:
    """Interpolation of a field from the meridional faces to the centers of the cells."""
    return 0.5*(f + jnp.roll(f, -1, axis=1))


def interp_y_faces(c: Float[Array, 'nx ny ...']) -> Float[Array, 'nx ny ...']:
    """Interpolation of a field from the centers of the cells to the meridional faces."""
    return 0.5*(c + jnp.roll(c, 1, axis=1))
