"""
Unit tests of the modules tkevd.model, tkevd.closure and tkevd.closures_registry.

"""

import pytest
import jax.numpy as jnp

from tkevd import (
    Grid, OceanModel, SeawaterBuoyancy, TKEBasedVerticalDiffusivity, VerticalScalarDiffusivity,
    ClosureSequence, DiffusivityFields, FieldBoundaryConditions, GradientBoundaryCondition,
    ValueBoundaryCondition, FluxBoundaryCondition, CLOSURES_REGISTRY, X_FACE, Z_FACE,
    OrdinaryTracer, TurbulentKineticEnergyTracer, tracer_kind, shear_production
)

pytestmark = pytest.mark.filterwarnings('ignore:TKEBasedVerticalDiffusivity is an experimental')


def test_allocation():
    """
    Unit test of the constructor of OceanModel : fields, diffusivities and boundary conditions.
    """
    grid = Grid.regular(3, 2, 6, 3., 2., 30.)
    model = OceanModel(grid)
    assert isinstance(model.closure, TKEBasedVerticalDiffusivity)
    assert set(model.fields) == {'u', 'v', 'w', 'b', 'e'}
    assert model.tracer_names == ('b', 'e')
    assert model.velocities['u'].location == X_FACE
    assert model.velocities['w'].location == Z_FACE
    assert model.velocities['w'].data.shape == (3, 2, 7)
    assert model.tracers['b'].data.shape == (3, 2, 6)
    assert isinstance(model.diffusivities, DiffusivityFields)
    assert model.diffusivities.ku.data.shape == (3, 2, 6)
    assert model.tracers['e'].boundary_conditions.top.discrete_form


def test_missing_tke():
    """
    Unit test of the check of the TKE tracer at the construction of the model.
    """
    grid = Grid.column(6, 30.)
    with pytest.raises(ValueError, match="Tracers must contain 'e'"):
        OceanModel(grid, TKEBasedVerticalDiffusivity(), tracers=('b',))
    model = OceanModel(grid, VerticalScalarDiffusivity(), tracers=('b',))
    assert model.diffusivities is None


def test_missing_buoyancy_tracers():
    """
    Unit test of the check of the tracers of the buoyancy model.
    """
    grid = Grid.column(6, 30.)
    with pytest.raises(ValueError):
        OceanModel(grid, buoyancy=SeawaterBuoyancy(eos_tracers='ts'), tracers=('t', 'e'))
    model = OceanModel(grid, buoyancy=SeawaterBuoyancy(eos_tracers='ts'), tracers=('t', 's', 'e'))
    model = model.set(t=20. + 1e-2*grid.zr, s=35., e=1e-4).update_diffusivities()
    assert jnp.all(model.diffusivities.ku.data > 0.)


def test_tke_boundary_conditions_replacement():
    """
    Unit test of the replacement of the top condition of the TKE given by the user.
    """
    grid = Grid.column(6, 30.)
    bottom = GradientBoundaryCondition(0.)
    user_bcs = {'e': FieldBoundaryConditions(top=ValueBoundaryCondition(0.), bottom=bottom)}
    with pytest.warns(UserWarning, match='Replacing top boundary conditions'):
        model = OceanModel(grid, TKEBasedVerticalDiffusivity(), boundary_conditions=user_bcs)
    bcs = model.tracers['e'].boundary_conditions
    assert isinstance(bcs.top, FluxBoundaryCondition)
    assert bcs.bottom is bottom


def test_registry():
    """
    Unit test of the choice of the closure by its name.
    """
    assert set(CLOSURES_REGISTRY) == {'tke-based', 'vertical-scalar'}
    grid = Grid.column(6, 30.)
    model = OceanModel(grid, 'vertical-scalar')
    assert isinstance(model.closure, VerticalScalarDiffusivity)
    with pytest.raises(ValueError, match='not registered in CLOSURES_REGISTRY'):
        OceanModel(grid, 'k-epsilon')


def test_set():
    """
    Unit test of the method OceanModel.set.
    """
    grid = Grid.column(6, 30.)
    model = OceanModel(grid)
    new = model.set(u=0.1, b=grid.zr)
    assert jnp.allclose(new.velocities['u'].data, 0.1)
    assert jnp.allclose(new.tracers['b'].data[0, 0], grid.zr)
    assert jnp.allclose(model.velocities['u'].data, 0.)
    assert new.tracers['b'].boundary_conditions == model.tracers['b'].boundary_conditions
    with pytest.raises(ValueError):
        model.set(c=1.)


def test_closure_sequence():
    """
    Unit test of the sequences of closures : only the first one may own the TKE terms.
    """
    sequence = ClosureSequence(TKEBasedVerticalDiffusivity(), VerticalScalarDiffusivity())
    assert len(sequence.members) == 2
    with pytest.raises(TypeError):
        ClosureSequence(VerticalScalarDiffusivity(), TKEBasedVerticalDiffusivity())

    grid = Grid.column(6, 30.)
    model = OceanModel(grid, sequence).set(e=1e-4).update_diffusivities()
    tke_diffusivities, background = model.diffusivities
    assert jnp.all(tke_diffusivities.ku.data > 0.)
    assert background is None

    background_only = ClosureSequence(VerticalScalarDiffusivity())
    model = OceanModel(grid, background_only)
    with pytest.raises(TypeError):
        shear_production(model.closure, model.diffusivities, grid, model.clock, model.fields)


def test_tracer_kind():
    """
    Unit test of the function tracer_kind.
    """
    assert tracer_kind('e') == TurbulentKineticEnergyTracer()
    assert tracer_kind('b') == OrdinaryTracer('b')
