"""
Unit tests of the modules tkevd.fluxes and tkevd.tendencies.

"""

import pytest
import jax.numpy as jnp

from tkevd import (
    Grid, OceanModel, TKEBasedVerticalDiffusivity, VerticalScalarDiffusivity, ClosureSequence,
    ExplicitTimeDiscretization, OrdinaryTracer, TurbulentKineticEnergyTracer,
    GradientBoundaryCondition, FluxBoundaryCondition, FieldBoundaryConditions, viscous_flux_uz,
    viscous_flux_vz, viscous_flux_wz, diffusive_flux_x, diffusive_flux_y, diffusive_flux_z,
    z_viscosity, z_diffusivity, tracer_tendency, velocity_tendency, implicit_vertical_step
)

pytestmark = pytest.mark.filterwarnings('ignore:TKEBasedVerticalDiffusivity is an experimental')


def sheared_model(closure, z_topology='Bounded'):
    """Stratified and sheared model with gradient conditions on the boundaries."""
    grid = Grid.regular(2, 2, 12, 2., 2., 60., z_topology=z_topology)
    gradient_bcs = FieldBoundaryConditions(
        top=GradientBoundaryCondition(1e-2), bottom=GradientBoundaryCondition(1e-2)
    )
    b_bcs = FieldBoundaryConditions(
        top=GradientBoundaryCondition(1e-5), bottom=GradientBoundaryCondition(1e-5)
    )
    model = OceanModel(
        grid, closure, boundary_conditions={'u': gradient_bcs, 'v': gradient_bcs, 'b': b_bcs}
    )
    z = grid.zr
    model = model.set(u=1e-2*z, v=-5e-3*z, w=1e-4*grid.zw, b=1e-5*z, e=1e-3 + 1e-5*z)
    return model.update_diffusivities()


def test_vertically_implicit_fluxes():
    """
    Unit test of the fluxes with the vertically implicit discretization : 0 on the interior faces
    and explicit on the boundary faces.
    """
    model = sheared_model(TKEBasedVerticalDiffusivity())
    explicit = TKEBasedVerticalDiffusivity(time_discretization=ExplicitTimeDiscretization())
    args = (model.diffusivities, model.grid, model.clock, model.fields)

    for flux_fun in (viscous_flux_uz, viscous_flux_vz):
        implicit_flux = flux_fun(model.closure, *args)
        explicit_flux = flux_fun(explicit, *args)
        assert jnp.all(implicit_flux[..., 1:-1] == 0.)
        assert jnp.all(explicit_flux[..., 0] != 0.)
        assert jnp.array_equal(implicit_flux[..., 0], explicit_flux[..., 0])
        assert jnp.array_equal(implicit_flux[..., -1], explicit_flux[..., -1])

    for name, kind in (('b', OrdinaryTracer('b')), ('e', TurbulentKineticEnergyTracer())):
        c = model.tracers[name]
        implicit_flux = diffusive_flux_z(model.closure, model.diffusivities, kind, c, *args[1:])
        explicit_flux = diffusive_flux_z(explicit, model.diffusivities, kind, c, *args[1:])
        assert jnp.all(implicit_flux[..., 1:-1] == 0.)
        assert jnp.array_equal(implicit_flux[..., 0], explicit_flux[..., 0])
        assert jnp.array_equal(implicit_flux[..., -1], explicit_flux[..., -1])

    implicit_flux = viscous_flux_wz(model.closure, *args)
    explicit_flux = viscous_flux_wz(explicit, *args)
    assert jnp.all(implicit_flux[..., 1:] == 0.)
    assert jnp.array_equal(implicit_flux[..., 0], explicit_flux[..., 0])


def test_periodic_implicit_fluxes():
    """
    Unit test of the fluxes with the vertically implicit discretization on a periodic vertical.
    """
    model = sheared_model(TKEBasedVerticalDiffusivity(), z_topology='Periodic')
    flux = viscous_flux_uz(model.closure, model.diffusivities, model.grid, model.clock,
                           model.fields)
    assert jnp.all(flux == 0.)


def test_explicit_fluxes():
    """
    Unit test of the explicit fluxes : the TKE is transported with its own diffusivity.
    """
    closure = TKEBasedVerticalDiffusivity(time_discretization=ExplicitTimeDiscretization())
    model = sheared_model(closure)
    grid, clock, fields = model.grid, model.clock, model.fields
    diffusivities = model.diffusivities
    flux_b = diffusive_flux_z(closure, diffusivities, OrdinaryTracer('b'), fields['b'], grid,
                              clock, fields)
    kc_face = 0.5*(diffusivities.kc.data[..., 1:] + diffusivities.kc.data[..., :-1])
    assert jnp.allclose(flux_b[..., 1:-1], -kc_face*1e-5)

    flux_e = diffusive_flux_z(closure, diffusivities, TurbulentKineticEnergyTracer(),
                              fields['e'], grid, clock, fields)
    ke_face = 0.5*(diffusivities.ke.data[..., 1:] + diffusivities.ke.data[..., :-1])
    assert jnp.allclose(flux_e[..., 1:-1], -ke_face*1e-5)


def test_horizontal_fluxes():
    """
    Unit test of the horizontal diffusive fluxes : they are 0.
    """
    model = sheared_model(TKEBasedVerticalDiffusivity())
    for flux_fun in (diffusive_flux_x, diffusive_flux_y):
        for name in ('b', 'e'):
            flux = flux_fun(model.closure, model.diffusivities,
                            TurbulentKineticEnergyTracer() if name == 'e' else OrdinaryTracer(name),
                            model.tracers[name], model.grid, model.clock, model.fields)
            assert jnp.all(flux == 0.)


def test_implicit_coefficients():
    """
    Unit test of the functions z_viscosity and z_diffusivity, also for a sequence of closures.
    """
    model = sheared_model(TKEBasedVerticalDiffusivity())
    diffusivities = model.diffusivities
    assert jnp.array_equal(z_viscosity(model.closure, diffusivities), diffusivities.ku.data)
    assert jnp.array_equal(z_diffusivity(model.closure, 'b', diffusivities),
                           diffusivities.kc.data)
    assert jnp.array_equal(z_diffusivity(model.closure, 'e', diffusivities),
                           diffusivities.ke.data)

    sequence = ClosureSequence(TKEBasedVerticalDiffusivity(), VerticalScalarDiffusivity())
    model = sheared_model(sequence)
    tke_diffusivities, background = model.diffusivities
    assert background is None
    assert jnp.allclose(z_viscosity(sequence, model.diffusivities),
                        tke_diffusivities.ku.data + 1e-4)
    assert jnp.allclose(z_diffusivity(sequence, 'e', model.diffusivities),
                        tke_diffusivities.ke.data + 1e-5)


def test_tendencies_conservation():
    """
    Unit test of the tendencies : without boundary fluxes the content of the tracer is conserved,
    a boundary flux is added on the boundary face.
    """
    closure = TKEBasedVerticalDiffusivity(time_discretization=ExplicitTimeDiscretization())
    grid = Grid.regular(2, 2, 12, 2., 2., 60.)
    c_bcs = FieldBoundaryConditions(top=FluxBoundaryCondition(1e-6))
    model = OceanModel(grid, closure, tracers=('b', 'c', 'e'), boundary_conditions={'c': c_bcs})
    model = model.set(b=1e-5*grid.zr, c=jnp.sin(grid.zr/10.), e=1e-3).update_diffusivities()

    g_b = tracer_tendency(model, 'b')
    assert g_b.shape == (2, 2, 12)
    assert jnp.allclose(jnp.sum(g_b*grid.hz, axis=-1), 0., atol=1e-15)

    g_c = tracer_tendency(model, 'c')
    assert jnp.allclose(jnp.sum(g_c*grid.hz, axis=-1), -1e-6)

    g_u = velocity_tendency(model, 'u')
    assert jnp.allclose(g_u, 0.)
    with pytest.raises(ValueError):
        velocity_tendency(model, 'w')


def test_implicit_vertical_step():
    """
    Unit test of the function implicit_vertical_step : the content of the field is conserved and
    its extrema are smoothed.
    """
    model = sheared_model(TKEBasedVerticalDiffusivity())
    grid = model.grid
    for name in ('u', 'b', 'e'):
        field = model.fields[name].data
        new = implicit_vertical_step(model, name, field, 600.)
        assert new.shape == field.shape
        assert jnp.allclose(jnp.sum(new*grid.hz, axis=-1), jnp.sum(field*grid.hz, axis=-1))
        assert jnp.all(jnp.max(new, axis=-1) <= jnp.max(field, axis=-1) + 1e-12)


def test_tke_tendency_without_tke_closure():
    """
    Unit test of the TKE tendency with a closure that does not compute the terms of the TKE
    equation : the TKE is diffused like an ordinary tracer.
    """
    grid = Grid.column(6, 30.)
    closure = VerticalScalarDiffusivity(time_discretization=ExplicitTimeDiscretization())
    model = OceanModel(grid, closure, tracers=('b', 'c', 'e'))
    profile = 1e-3 + 1e-4*jnp.cos(grid.zr/5.)
    model = model.set(b=1e-5*grid.zr, c=profile, e=profile).update_diffusivities()

    g_e = tracer_tendency(model, 'e')
    assert g_e.shape == (1, 1, 6)
    assert jnp.allclose(g_e, tracer_tendency(model, 'c'))
    assert jnp.allclose(jnp.sum(g_e*grid.hz, axis=-1), 0., atol=1e-15)

    model = OceanModel(grid, 'vertical-scalar').set(e=profile).update_diffusivities()
    assert jnp.allclose(tracer_tendency(model, 'e'), 0.)
