"""
Unit tests of the module tkevd.buoyancy.

"""

import pytest
import jax.numpy as jnp

from tkevd import (
    Grid, Clock, Field, BuoyancyTracer, SeawaterBuoyancy, FluxBoundaryCondition,
    GradientBoundaryCondition, FieldBoundaryConditions
)


def test_buoyancy_tracer():
    """
    Unit test of the class BuoyancyTracer.
    """
    grid = Grid.column(4, 4.)
    bcs = FieldBoundaryConditions(
        top=GradientBoundaryCondition(1e-4), bottom=GradientBoundaryCondition(1e-4)
    )
    b = Field.zeros(grid, boundary_conditions=bcs).set(1e-4*grid.zr)
    buoyancy = BuoyancyTracer()
    assert buoyancy.required_tracers == ('b',)
    assert jnp.allclose(buoyancy.dz_b(grid, Clock(), {'b': b}), 1e-4)
    qb = buoyancy.top_buoyancy_flux(grid, {'b': FluxBoundaryCondition(2e-8)}, Clock(), {'b': b})
    assert jnp.allclose(qb, 2e-8)


def test_seawater_buoyancy():
    """
    Unit test of the class SeawaterBuoyancy with a linear equation of state.
    """
    grid = Grid.column(4, 4.)
    buoyancy = SeawaterBuoyancy(eos_tracers='ts')
    assert buoyancy.required_tracers == ('t', 's')
    t = Field.zeros(grid).set(10.)
    s = Field.zeros(grid).set(35.)
    b = buoyancy.buoyancy({'t': t, 's': s})
    assert jnp.allclose(b, 9.81*2e-4*10.)

    top_bcs = {'t': FluxBoundaryCondition(1e-5), 's': FluxBoundaryCondition(2e-6)}
    qb = buoyancy.top_buoyancy_flux(grid, top_bcs, Clock(), {'t': t, 's': s})
    assert jnp.allclose(qb, 9.81*(2e-4*1e-5 - 8e-4*2e-6))

    temperature_only = SeawaterBuoyancy()
    assert temperature_only.required_tracers == ('t',)
    qb = temperature_only.top_buoyancy_flux(grid, {'t': FluxBoundaryCondition(1e-5)}, Clock(), {})
    assert jnp.allclose(qb, 9.81*2e-4*1e-5)


def test_seawater_buoyancy_eos_tracers():
    """
    Unit test of the check of the tracers of the equation of state.
    """
    with pytest.raises(ValueError):
        SeawaterBuoyancy(eos_tracers='b')
