"""
Geometry of the model.

This module contains the objects used to describe the three dimensional geometry on which the
closure is computed in :class:`Grid`, and the time of the simulation in :class:`Clock`. These classes
can be obtained by the prefix :code:`tkevd.space.` or directly by :code:`tkevd.`.

"""

from __future__ import annotations
from typing import List, TypeAlias

import equinox as eqx
import xarray as xr
import jax.numpy as jnp
from jaxtyping import Float, Int, Array

from tkevd.functions import add_boundaries, _format_to_single_line

ArrNz: TypeAlias = Float[Array, 'nz']
"""Type that describes a float :class:`~jax.Array` of shape (nz)."""
ArrNzp1: TypeAlias = Float[Array, 'nz+1']
"""Type that describes a float :class:`~jax.Array` of shape (nz+1)."""
ArrXY: TypeAlias = Float[Array, 'nx ny']
"""Type that describes a float :class:`~jax.Array` of one value per column (nx, ny)."""
ArrCenter: TypeAlias = Float[Array, 'nx ny nz']
"""Type that describes a float :class:`~jax.Array` defined on the cell centers (nx, ny, nz)."""
ArrZFace: TypeAlias = Float[Array, 'nx ny nz+1']
"""Type that describes a float :class:`~jax.Array` defined on the vertical faces (nx, ny, nz+1)."""

Z_TOPOLOGIES: List[str] = ['Bounded', 'Periodic']
"""Available topologies for the vertical direction."""


class Grid(eqx.Module):
    r"""
    Rectilinear three dimensional geometry of a portion of ocean.

    The horizontal directions are periodic with :attr:`nx` by :attr:`ny` cells of constant size. On
    the vertical the mesh is made up of :attr:`nz` cells (:attr:`zr`) of potentially varying
    thickness (:attr:`hz`), separated by interface points (:attr:`zw`) and extending from the bottom
    of the domain at :code:`zw[0]` to the top at :code:`zw[-1]`.

    Parameters
    ----------
    zr : float :class:`~jax.Array` of shape (nz)
        cf. :attr:`zr`.
    zw : float :class:`~jax.Array` of shape (nz+1)
        cf. :attr:`zw`.
    nx : int, default=1
        cf. :attr:`nx`.
    ny : int, default=1
        cf. :attr:`ny`.
    lx : float, default=1.
        cf. :attr:`lx`.
    ly : float, default=1.
        cf. :attr:`ly`.
    z_topology : str, default='Bounded'
        cf. :attr:`z_topology`.

    Attributes
    ----------
    nx : int
        Number of cells in the zonal direction.
    ny : int
        Number of cells in the meridional direction.
    nz : int
        Number of cells on the vertical.
    lx : float
        Zonal length of the domain :math:`[\text m]`.
    ly : float
        Meridional length of the domain :math:`[\text m]`.
    hbot : float
        Height of the domain :math:`[\text m]`.
    zr : float :class:`~jax.Array` of shape (nz)
        Heights of cell centers from deepest to shallowest :math:`[\text m]`.
    zw : float :class:`~jax.Array` of shape (nz+1)
        Heights of cell interfaces from deepest to shallowest :math:`[\text m]`.
    hz : float :class:`~jax.Array` of shape (nz)
        Thickness of cells from deepest to shallowest :math:`[\text m]`.
    dzf : float :class:`~jax.Array` of shape (nz+1)
        Distance between the centers of the two cells around each interface, the boundary
        interfaces take the thickness of their only cell :math:`[\text m]`.
    z_topology : str
        Topology of the vertical direction, one of :data:`Z_TOPOLOGIES`.

    Raises
    ------
    ValueError
        If :code:`z_topology` is not one of :data:`Z_TOPOLOGIES`.

    """

    nx: int = eqx.field(static=True)
    ny: int = eqx.field(static=True)
    nz: int = eqx.field(static=True)
    lx: float
    ly: float
    hbot: float
    zr: ArrNz
    zw: ArrNzp1
    hz: ArrNz
    dzf: ArrNzp1
    z_topology: str = eqx.field(static=True)

    def __init__(
            self,
            zr: ArrNz,
            zw: ArrNzp1,
            nx: int=1,
            ny: int=1,
            lx: float=1.,
            ly: float=1.,
            z_topology: str='Bounded'
        ) -> None:
        if z_topology not in Z_TOPOLOGIES:
            raise ValueError(_format_to_single_line(f"""
                `z_topology` should be one of {Z_TOPOLOGIES}, got {z_topology!r}.
            """))
        self.nx = nx
        self.ny = ny
        self.nz = zr.shape[0]
        self.lx = lx
        self.ly = ly
        self.hbot = float(zw[-1] - zw[0])
        self.zr = zr
        self.zw = zw
        self.hz = zw[1:] - zw[:-1]
        self.dzf = add_boundaries(self.hz[0], zr[1:] - zr[:-1], self.hz[-1])
        self.z_topology = z_topology

    @property
    def dx(self) -> float:
        """Zonal size of the cells :math:`[\\text m]`."""
        return self.lx / self.nx

    @property
    def dy(self) -> float:
        """Meridional size of the cells :math:`[\\text m]`."""
        return self.ly / self.ny

    @property
    def xc(self) -> Float[Array, 'nx']:
        """Zonal coordinates of the cell centers :math:`[\\text m]`."""
        return (jnp.arange(self.nx) + 0.5) * self.dx

    @property
    def yc(self) -> Float[Array, 'ny']:
        """Meridional coordinates of the cell centers :math:`[\\text m]`."""
        return (jnp.arange(self.ny) + 0.5) * self.dy

    @property
    def is_vertically_bounded(self) -> bool:
        """True if the vertical direction has a top and a bottom boundary."""
        return self.z_topology == 'Bounded'

    @classmethod
    def regular(
            cls,
            nx: int,
            ny: int,
            nz: int,
            lx: float,
            ly: float,
            hbot: float,
            z_topology: str='Bounded'
        ) -> Grid:
        r"""
        Creates a grid with equal thickness cells.

        The grid instance will have :attr:`nz` cells of equal thickness for a depth of :attr:`hbot`,
        the top of the domain being at :math:`z=0`.

        Parameters
        ----------
        nx : int
            Number of cells in the zonal direction.
        ny : int
            Number of cells in the meridional direction.
        nz : int
            Number of cells on the vertical.
        lx : float
            Zonal length of the domain :math:`[\text m]`.
        ly : float
            Meridional length of the domain :math:`[\text m]`.
        hbot : float, positive
            Depth of the domain :math:`[\text m]`.
        z_topology : str, default='Bounded'
            Topology of the vertical direction.

        Returns
        -------
        grid : Grid
            The regular grid.
        """
        zw = jnp.linspace(-hbot, 0, nz+1)
        zr = 0.5*(zw[:-1]+zw[1:])
        return cls(zr, zw, nx, ny, lx, ly, z_topology)

    @classmethod
    def column(cls, nz: int, hbot: float) -> Grid:
        r"""
        Creates a single water column of equal thickness cells.

        Parameters
        ----------
        nz : int
            Number of cells.
        hbot : float, positive
            Depth of the water column :math:`[\text m]`.

        Returns
        -------
        grid : Grid
            The one column grid.
        """
        return cls.regular(1, 1, nz, 1., 1., hbot)

    @classmethod
    def analytic(
            cls,
            nz: int,
            hbot: float,
            hc: float,
            theta: float=6.5,
            nx: int=1,
            ny: int=1,
            lx: float=1.,
            ly: float=1.
        ) -> Grid:
        r"""
        Creates a grid with stretched levels.

        The grid instance will have a depth of :attr:`hbot` and :attr:`nz` cells of thickness almost
        equals above :code:`hc` and wider under, the strecht parameter being defined by
        :code:`theta`.

        Parameters
        ----------
        nz : int
            Number of cells on the vertical.
        hbot : float, positive
            Depth of the domain :math:`[\text m]`.
        hc : float, positive
            Reference depth :math:`[\text m]`.
        theta : float, default=6.5
            Stretching parameter toward the surface :math:`[\text{dimensionless}]`.
        nx, ny : int, default=1
            Number of cells in the horizontal directions.
        lx, ly : float, default=1.
            Horizontal lengths of the domain :math:`[\text m]`.

        Returns
        -------
        grid : Grid
            The analytic grid.
        """
        sc_w = jnp.linspace(-1, 0, nz+1)
        sc_r = (sc_w[:-1] + sc_w[1:])/2
        cs_r = (1-jnp.cosh(theta*sc_r))/(jnp.cosh(theta)-1)
        cs_w = (1-jnp.cosh(theta*sc_w))/(jnp.cosh(theta)-1)
        zw = (hc*sc_w + hbot*cs_w) * hbot/(hbot+hc)
        zr = (hc*sc_r + hbot*cs_r) * hbot/(hbot+hc)
        return cls(zr, zw, nx, ny, lx, ly)

    @classmethod
    def load(cls, ds: xr.Dataset, nx: int=1, ny: int=1, lx: float=1., ly: float=1.) -> Grid:
        """
        Creates the grid defined by the vertical levels of a dataset :code:`ds`.

        The dataset must be formated to have the variables corresponding to :attr:`zr` and
        :attr:`zw`.

        Parameters
        ----------
        ds : xarray.Dataset
            Dataset from which to extract the grid.
        nx, ny : int, default=1
            Number of cells in the horizontal directions.
        lx, ly : float, default=1.
            Horizontal lengths of the domain :math:`[\\text m]`.

        Returns
        -------
        grid : Grid
            The loaded grid.
        """
        zw = jnp.array(ds['zw'].values)
        zr = jnp.array(ds['zr'].values)
        return cls(zr, zw, nx, ny, lx, ly)


class Clock(eqx.Module):
    r"""
    Time of the simulation.

    The time and the iteration are stored as 0-d arrays so that compiled functions taking a clock
    as argument are traced once for all the steps of a simulation.

    Parameters
    ----------
    time : float, default=0.
        cf. attribute.
    iteration : int, default=0
        cf. attribute.

    Attributes
    ----------
    time : float :class:`~jax.Array` of shape ()
        Time since the begining of the simulation :math:`[\text s]`.
    iteration : int :class:`~jax.Array` of shape ()
        Number of time-steps done since the begining of the simulation.

    """

    time: Float[Array, '']
    iteration: Int[Array, '']

    def __init__(self, time: float = 0., iteration: int = 0) -> None:
        self.time = jnp.asarray(time, dtype=float)
        self.iteration = jnp.asarray(iteration, dtype=int)
