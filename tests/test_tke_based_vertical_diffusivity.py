"""
Unit tests of the module tkevd.closures.tke_based_vertical_diffusivity.

"""

import pytest
import jax
import jax.numpy as jnp

from tkevd import (
    Grid, Clock, Field, OceanModel, BuoyancyTracer, TKEBasedVerticalDiffusivity,
    ConvectiveAdjustmentParameters, FluxBoundaryCondition, GradientBoundaryCondition,
    FieldBoundaryConditions, shear_production, buoyancy_flux, dissipation
)
from tkevd.closures.tke_based_vertical_diffusivity import (
    wall_vertical_distance, buoyancy_mixing_length, dissipation_mixing_length, richardson_number,
    scale, step, momentum_diffusivity_scale, tracer_diffusivity_scale, tke_diffusivity_scale,
    convective_diffusivity
)

pytestmark = pytest.mark.filterwarnings('ignore:TKEBasedVerticalDiffusivity is an experimental')


def stratified_model(n2, nz=40, hbot=100., closure=None, b_top_flux=None):
    """Column model with a uniform vertical buoyancy gradient :code:`n2`."""
    grid = Grid.column(nz, hbot)
    if closure is None:
        closure = TKEBasedVerticalDiffusivity(convective_adjustment=None)
    top = GradientBoundaryCondition(n2) if b_top_flux is None else FluxBoundaryCondition(b_top_flux)
    b_bcs = FieldBoundaryConditions(top=top, bottom=GradientBoundaryCondition(n2))
    model = OceanModel(grid, closure, boundary_conditions={'b': b_bcs})
    return model.set(b=n2*grid.zr)


def test_construction():
    """
    Unit test of the constructor of TKEBasedVerticalDiffusivity : experimental warning, default
    coefficients and conversion of the precision.
    """
    with pytest.warns(UserWarning, match='experimental and unvalidated'):
        closure = TKEBasedVerticalDiffusivity()
    assert float(closure.dissipation_parameter) == pytest.approx(2.91)
    assert float(closure.mixing_length_parameter) == pytest.approx(1.16)
    assert float(closure.diffusivity_scaling.c_kc_plus) == pytest.approx(1.77)
    assert float(closure.surface_model.c_wu_star) == pytest.approx(3.62)
    assert float(closure.convective_adjustment.c_ac) == pytest.approx(100.)
    assert TKEBasedVerticalDiffusivity(convective_adjustment=None).convective_adjustment is None

    closure = TKEBasedVerticalDiffusivity(jnp.float32)
    leaves = jax.tree_util.tree_leaves(closure)
    assert all(leaf.dtype == jnp.float32 for leaf in leaves)


def test_with_tracers():
    """
    Unit test of the check of the TKE tracer.
    """
    closure = TKEBasedVerticalDiffusivity()
    assert closure.with_tracers(('b', 'e')) is closure
    with pytest.raises(ValueError, match='turbulent kinetic energy'):
        closure.with_tracers(('b',))


def test_mixing_lengths():
    """
    Unit test of the mixing lengths : infinite buoyancy length without stratification and floor
    at half the cell thickness.
    """
    closure = TKEBasedVerticalDiffusivity()
    grid = Grid.analytic(20, 500., 20.)
    lz = wall_vertical_distance(grid)
    assert jnp.allclose(lz[0], grid.zr[0] - grid.zw[0])
    assert jnp.allclose(lz[-1], grid.zw[-1] - grid.zr[-1])

    e = jnp.full((1, 1, 20), 1e-3)
    lb = buoyancy_mixing_length(closure, e, jnp.zeros((1, 1, 20)))
    assert jnp.all(jnp.isinf(lb))
    lb = buoyancy_mixing_length(closure, e, jnp.full((1, 1, 20), -1e-5))
    assert jnp.all(jnp.isinf(lb))
    lb = buoyancy_mixing_length(closure, e, jnp.full((1, 1, 20), 1e-4))
    assert jnp.allclose(lb, 1.16*jnp.sqrt(1e-3)/1e-2)

    key_e, key_n2 = jax.random.split(jax.random.PRNGKey(0))
    e = jax.random.uniform(key_e, (3, 2, 20), minval=-1e-3, maxval=1e-2)
    n2 = jax.random.uniform(key_n2, (3, 2, 20), minval=-1e-4, maxval=1e-3)
    ell = dissipation_mixing_length(closure, grid, e, n2)
    assert jnp.all(ell >= grid.hz/2)
    assert jnp.all(jnp.isfinite(ell))


def test_richardson_number():
    """
    Unit test of the function richardson_number : 0 when there is no stratification.
    """
    shear2 = jnp.array([0., 1e-4, 1.])
    ri = richardson_number(jnp.zeros(3), shear2)
    assert jnp.all(ri == 0.)
    ri = richardson_number(jnp.full(3, 1e-4), jnp.array([1e-4, 1e-3, 1e-2]))
    assert jnp.allclose(ri, jnp.array([1., 0.1, 0.01]))


def test_scale():
    """
    Unit test of the functions step and scale.
    """
    assert float(step(0.76, 0.76, 0.72)) == pytest.approx(0.5)
    assert float(scale(jnp.inf, 0.15, 0.73, 0.76, 0.72)) == pytest.approx(0.73)
    assert float(scale(-jnp.inf, 0.15, 0.73, 0.76, 0.72)) == pytest.approx(0.15)


def test_convective_adjustment_scales():
    """
    Unit test of the stability functions with and without convective adjustment.
    """
    ri = jnp.array([-1., 0., 0.5, 10.])
    unstable = jnp.full(4, -1e-5)
    stable = jnp.full(4, 1e-5)

    closure = TKEBasedVerticalDiffusivity(convective_adjustment=None)
    expected = scale(ri, 0.15, 0.73, 0.76, 0.72)
    assert jnp.allclose(momentum_diffusivity_scale(closure, ri, unstable), expected)
    assert jnp.allclose(momentum_diffusivity_scale(closure, ri, stable), expected)

    closure = TKEBasedVerticalDiffusivity()
    assert jnp.allclose(momentum_diffusivity_scale(closure, ri, unstable), 1.)
    assert jnp.allclose(tracer_diffusivity_scale(closure, ri, unstable), 100.)
    assert jnp.allclose(tke_diffusivity_scale(closure, ri, unstable), 100.)
    assert jnp.allclose(tracer_diffusivity_scale(closure, ri, stable),
                        scale(ri, 0.40, 1.77, 0.76, 0.72))


def test_convective_diffusivity():
    """
    Unit test of the function convective_diffusivity.
    """
    e = jnp.array([[[0.1, -0.2, 0.]]])
    k = convective_diffusivity(e, jnp.array([[1e-3]]))
    assert jnp.allclose(k, jnp.array([[[10., 0., 0.]]]))
    assert jnp.allclose(convective_diffusivity(e, jnp.array([[0.]])), 0.)
    assert jnp.allclose(convective_diffusivity(e, jnp.array([[-1e-3]])), 0.)


def test_unstratified_diffusivities():
    """
    Unit test of the diffusivities without shear nor stratification.
    """
    e0 = 1e-3
    model = stratified_model(0.).set(e=e0).update_diffusivities()
    grid = model.grid
    ell = jnp.maximum(grid.hz/2, wall_vertical_distance(grid))
    k = ell*jnp.sqrt(e0)
    diffusivities = model.diffusivities
    assert jnp.allclose(diffusivities.ku.data, scale(0., 0.15, 0.73, 0.76, 0.72)*k)
    assert jnp.allclose(diffusivities.kc.data, scale(0., 0.40, 1.77, 0.76, 0.72)*k)
    assert jnp.allclose(diffusivities.ke.data, scale(0., 0.13, 1.22, 0.76, 0.72)*k)


def test_stratified_column():
    """
    Test of a stratified column at rest : the diffusivities decrease with depth toward the bottom
    and are uniform where the buoyancy length is the shortest.
    """
    n2, e0 = 1e-4, 1e-2
    model = stratified_model(n2).set(e=e0).update_diffusivities()
    grid = model.grid
    ku = model.diffusivities.ku.data[0, 0]

    lb = 1.16*jnp.sqrt(e0)/jnp.sqrt(n2)
    buoyancy_limited = wall_vertical_distance(grid) > lb
    assert jnp.any(buoyancy_limited)
    assert jnp.allclose(ku[buoyancy_limited], 0.73*lb*jnp.sqrt(e0))

    lower_half = ku[:grid.nz//2]
    assert jnp.all(jnp.diff(lower_half) >= 0.)
    assert ku[0] < ku[grid.nz//2]

    again = stratified_model(n2).set(e=e0).update_diffusivities()
    assert jnp.array_equal(again.diffusivities.ku.data, model.diffusivities.ku.data)


def test_convective_diffusivities():
    """
    Unit test of the diffusivities in an unstable column with convective adjustment.
    """
    closure = TKEBasedVerticalDiffusivity(convective_adjustment=ConvectiveAdjustmentParameters())
    e0, qb = 1e-3, 1e-7
    model = stratified_model(-1e-5, closure=closure, b_top_flux=qb).set(e=e0)
    model = model.update_diffusivities()
    assert jnp.allclose(model.diffusivities.ku.data, e0**2/qb)
    assert jnp.allclose(model.diffusivities.kc.data, 100.*e0**2/qb)
    assert jnp.allclose(model.diffusivities.ke.data, 100.*e0**2/qb)


def test_tke_sources():
    """
    Unit test of the shear production, of the buoyancy flux and of the dissipation.
    """
    n2, shear = 1e-5, 1e-2
    model = stratified_model(n2).set(e=1e-3)
    grid = model.grid
    model = model.set(u=shear*grid.zr).update_diffusivities()
    args = (model.grid, model.clock, model.fields)

    production = shear_production(model.closure, model.diffusivities, *args)
    assert jnp.all(production >= 0.)
    assert jnp.allclose(production[..., 1:-1], model.diffusivities.ku.data[..., 1:-1]*shear**2)

    flux = buoyancy_flux(model.closure, model.diffusivities, *args, model.buoyancy)
    assert jnp.allclose(flux, -model.diffusivities.kc.data*n2)


def test_dissipation_symmetry():
    """
    Unit test of the dissipation : it is the same for opposite values of the TKE.
    """
    model = stratified_model(0.)
    args = (model.grid, model.clock)
    positive = dissipation(model.closure, *args, model.set(e=2e-3).fields, model.buoyancy)
    negative = dissipation(model.closure, *args, model.set(e=-2e-3).fields, model.buoyancy)
    assert jnp.all(positive > 0.)
    assert jnp.allclose(positive, negative)


def test_diffusivities_export(tmp_path):
    """
    Unit test of the export of the diffusivities in a dataset and in a netcdf file.
    """
    import xarray as xr

    model = stratified_model(1e-5, nz=10, hbot=20.).set(e=1e-3).update_diffusivities()
    ds = model.diffusivities.to_ds(model.grid)
    assert set(ds.data_vars) == {'ku', 'kc', 'ke'}
    assert ds['kc'].dims == ('x', 'y', 'zr')
    nc_path = tmp_path / 'diffusivities.nc'
    model.diffusivities.to_nc(str(nc_path), model.grid)
    with xr.open_dataset(nc_path) as loaded:
        assert jnp.allclose(jnp.asarray(loaded['ku'].values), model.diffusivities.ku.data)


_traced_gradients = []


class TracedBuoyancy(BuoyancyTracer):
    """Buoyancy tracer recording each evaluation of its vertical gradient."""

    def dz_b(self, grid, clock, fields):
        _traced_gradients.append(clock.time)
        return super().dz_b(grid, clock, fields)


def test_diffusivities_compiled_once():
    """
    Unit test of the diffusivity kernel : it is traced once for the successive times of a
    simulation.
    """
    _traced_gradients.clear()
    grid = Grid.column(8, 40.)
    model = OceanModel(grid, TKEBasedVerticalDiffusivity(), buoyancy=TracedBuoyancy())
    model = model.set(b=1e-5*grid.zr, e=1e-3)
    model.update_diffusivities()
    n_traces = len(_traced_gradients)
    assert n_traces > 0
    for step in range(1, 5):
        clock = Clock(time=600.*step, iteration=step)
        model.with_clock(clock).update_diffusivities()
    assert len(_traced_gradients) == n_traces
    assert Clock(time=600.).time.shape == ()
