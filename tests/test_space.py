"""
Unit tests of the module tkevd.space.

"""

import pytest
import numpy as np
import xarray as xr
import jax.numpy as jnp

from tkevd import Grid, Clock


def test_regular():
    """
    Unit test of the constructor Grid.regular.
    """
    grid = Grid.regular(4, 3, 10, 400., 300., 50.)
    assert (grid.nx, grid.ny, grid.nz) == (4, 3, 10)
    assert grid.zw.shape == (11,)
    assert grid.hbot == pytest.approx(50.)
    assert jnp.allclose(grid.hz, 5.)
    assert jnp.allclose(grid.dzf, 5.)
    assert grid.dx == pytest.approx(100.)
    assert jnp.allclose(grid.xc, jnp.array([50., 150., 250., 350.]))
    assert grid.is_vertically_bounded


def test_analytic():
    """
    Unit test of the constructor Grid.analytic : the cells are thinner toward the surface.
    """
    grid = Grid.analytic(30, 1000., 50.)
    assert jnp.allclose(grid.zw[0], -1000.)
    assert jnp.allclose(grid.zw[-1], 0.)
    assert jnp.all(grid.hz > 0)
    assert grid.hz[-1] < grid.hz[0]
    assert jnp.allclose(grid.dzf[1:-1], grid.zr[1:] - grid.zr[:-1])


def test_load():
    """
    Unit test of the constructor Grid.load.
    """
    ref = Grid.column(8, 40.)
    ds = xr.Dataset({'zw': ('zw', np.asarray(ref.zw)), 'zr': ('zr', np.asarray(ref.zr))})
    grid = Grid.load(ds)
    assert grid.nz == 8
    assert jnp.allclose(grid.hz, ref.hz)


def test_topology():
    """
    Unit test of the vertical topology of the grid.
    """
    grid = Grid.regular(1, 1, 4, 1., 1., 4., z_topology='Periodic')
    assert not grid.is_vertically_bounded
    with pytest.raises(ValueError):
        Grid.regular(1, 1, 4, 1., 1., 4., z_topology='Flat')


def test_clock():
    """
    Unit test of the default clock.
    """
    clock = Clock()
    assert clock.time == 0.
    assert clock.iteration == 0
