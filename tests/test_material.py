"""Unit tests for the material arena and scatter dispatch."""

import numpy as np
import pytest
import taichi as ti


def _run_scatter(material_id, incident, normal, front_face=1, seed=0):
    """Dispatch one scatter through the arena and read the result back."""
    from spheretrace.core.sampler import seed_state
    from spheretrace.core.vec3 import vec3
    from spheretrace.geometry.sphere import HitRecord
    from spheretrace.materials.material import scatter

    direction = ti.Vector.field(3, dtype=ti.f32, shape=())
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
    scattered = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(mat_id: ti.i32, d: ti.math.vec3, n: ti.math.vec3, ff: ti.i32, s: ti.i32):
        for _ in range(1):
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=ti.math.vec3(0.0, 0.0, 0.0),
                normal=n,
                front_face=ff,
                material_id=mat_id,
            )
            state = seed_state(ti.cast(s, ti.u32), ti.u32(0), ti.u32(0))
            out_dir, att, did_scatter, state = scatter(d, rec, state)
            direction[None] = out_dir
            attenuation[None] = att
            scattered[None] = did_scatter

    test_kernel(material_id, vec3(*incident), vec3(*normal), front_face, seed)
    return direction[None].to_numpy(), attenuation[None].to_numpy(), scattered[None]


class TestRegistration:
    """Tests for the unified material id space."""

    def test_ids_are_sequential_across_types(self):
        """Test that ids are assigned in registration order regardless of type."""
        from spheretrace.materials.dielectric import add_dielectric_material
        from spheretrace.materials.lambertian import add_lambertian_material
        from spheretrace.materials.material import (
            MaterialType,
            get_material_count,
            register_material,
        )
        from spheretrace.materials.metal import add_metal_material

        ids = [
            register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5))),
            register_material(MaterialType.METAL, add_metal_material((0.5, 0.5, 0.5))),
            register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.5)),
            register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.1, 0.1, 0.1))),
        ]
        assert ids == [0, 1, 2, 3]
        assert get_material_count() == 4

    def test_type_lookup(self):
        """Test the type and type-local index lookups, including invalid ids."""
        from spheretrace.materials.lambertian import add_lambertian_material
        from spheretrace.materials.material import (
            MaterialType,
            get_material_type,
            get_material_type_index,
            register_material,
        )
        from spheretrace.materials.metal import add_metal_material

        register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5)))
        register_material(MaterialType.METAL, add_metal_material((0.5, 0.5, 0.5)))
        register_material(MaterialType.METAL, add_metal_material((0.9, 0.9, 0.9)))

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for k in range(4):
                types[k] = get_material_type(k)
                indices[k] = get_material_type_index(k)

        test_kernel()
        assert types.to_numpy().tolist() == [0, 1, 1, -1]
        assert indices.to_numpy().tolist() == [0, 0, 1, -1]

    def test_clear_materials_resets_every_registry(self):
        """Test that clearing empties the arena and the per-type registries."""
        from spheretrace.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
        )
        from spheretrace.materials.material import (
            MaterialType,
            clear_materials,
            get_material_count,
            register_material,
        )

        register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5)))
        clear_materials()
        assert get_material_count() == 0
        assert get_lambertian_material_count() == 0

    def test_capacity_exceeded(self):
        """Test that registering past MAX_MATERIALS raises RuntimeError."""
        from spheretrace.materials.material import (
            MAX_MATERIALS,
            MaterialType,
            num_materials,
            register_material,
        )

        num_materials[None] = MAX_MATERIALS - 1
        assert register_material(MaterialType.LAMBERTIAN, 0) == MAX_MATERIALS - 1
        with pytest.raises(RuntimeError, match="Maximum number of materials"):
            register_material(MaterialType.LAMBERTIAN, 0)


class TestScatterDispatch:
    """Tests for scatter dispatching on the material type."""

    def test_dispatch_lambertian(self):
        """Test that a diffuse material scatters into the normal hemisphere."""
        from spheretrace.materials.lambertian import add_lambertian_material
        from spheretrace.materials.material import MaterialType, register_material

        mat_id = register_material(
            MaterialType.LAMBERTIAN, add_lambertian_material((0.2, 0.4, 0.6))
        )
        direction, attenuation, scattered = _run_scatter(
            mat_id, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        assert scattered == 1
        assert direction[1] >= 0.0
        np.testing.assert_allclose(attenuation, [0.2, 0.4, 0.6], atol=1e-6)

    def test_dispatch_metal(self):
        """Test that a polished metal mirrors the incident ray."""
        from spheretrace.materials.material import MaterialType, register_material
        from spheretrace.materials.metal import add_metal_material

        mat_id = register_material(MaterialType.METAL, add_metal_material((0.9, 0.8, 0.7), 0.0))
        direction, attenuation, scattered = _run_scatter(
            mat_id, (1.0, -1.0, 0.0), (0.0, 1.0, 0.0)
        )
        assert scattered == 1
        inv_sqrt2 = 1.0 / np.sqrt(2.0)
        np.testing.assert_allclose(direction, [inv_sqrt2, inv_sqrt2, 0.0], atol=1e-6)
        np.testing.assert_allclose(attenuation, [0.9, 0.8, 0.7], atol=1e-6)

    def test_dispatch_dielectric(self):
        """Test that glass scatters with white attenuation."""
        from spheretrace.materials.dielectric import add_dielectric_material
        from spheretrace.materials.material import MaterialType, register_material

        mat_id = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.0))
        direction, attenuation, scattered = _run_scatter(
            mat_id, (0.6, -0.8, 0.0), (0.0, 1.0, 0.0)
        )
        assert scattered == 1
        np.testing.assert_allclose(direction, [0.6, -0.8, 0.0], atol=1e-5)
        np.testing.assert_allclose(attenuation, [1.0, 1.0, 1.0], atol=1e-7)

    @pytest.mark.parametrize("material_id", [-1, 0, 7])
    def test_unknown_material_absorbs(self, material_id):
        """Test that an id outside the arena absorbs the ray."""
        _, attenuation, scattered = _run_scatter(material_id, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0))
        assert scattered == 0
        np.testing.assert_allclose(attenuation, [0.0, 0.0, 0.0])
