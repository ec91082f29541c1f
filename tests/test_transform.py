"""Tests for Transform3D and AABB."""

import math

import numpy as np
import pytest
import trimesh
from pydantic import ValidationError

from roomviewer.scene.bounds import AABB
from roomviewer.scene.transform import Transform3D


class TestTransform3D:
    """Test Transform3D functionality."""

    def test_default_transform(self):
        """Test default transform is identity-like."""
        t = Transform3D()
        assert t.position == (0.0, 0.0, 0.0)
        assert t.rotation == (0.0, 0.0, 0.0)
        assert t.scale == (1.0, 1.0, 1.0)

    def test_to_matrix_identity(self):
        """Test identity transform produces identity matrix."""
        np.testing.assert_array_almost_equal(Transform3D.identity().to_matrix(), np.eye(4))

    def test_to_matrix_translation(self):
        """Test translation-only transform."""
        t = Transform3D(position=(10.0, 20.0, 30.0))
        np.testing.assert_array_almost_equal(t.to_matrix()[:3, 3], [10.0, 20.0, 30.0])

    def test_to_matrix_per_axis_scale(self):
        """Test non-uniform scale lands on the diagonal."""
        t = Transform3D(scale=(2.0, 3.0, 4.0))
        np.testing.assert_array_almost_equal(np.diag(t.to_matrix()), [2.0, 3.0, 4.0, 1.0])

    def test_rotation_is_in_radians(self):
        """Test a quarter turn about Z maps X onto Y."""
        t = Transform3D(rotation=(0.0, 0.0, math.pi / 2))
        result = t.apply_to_points(np.array([[1.0, 0.0, 0.0]]))
        np.testing.assert_array_almost_equal(result[0], [0.0, 1.0, 0.0])

    def test_apply_to_points(self):
        """Test scale is applied before translation."""
        t = Transform3D(position=(10.0, 0.0, 0.0), scale=(2.0, 2.0, 2.0))
        result = t.apply_to_points(np.array([
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
        ]))

        np.testing.assert_array_almost_equal(result[0], [10.0, 0.0, 0.0])
        np.testing.assert_array_almost_equal(result[1], [12.0, 0.0, 0.0])

    def test_translated_returns_copy(self):
        """Test translated leaves the original untouched."""
        t = Transform3D(position=(1.0, 2.0, 3.0))
        moved = t.translated((1.0, -2.0, 0.5))

        assert moved.position == (2.0, 0.0, 3.5)
        assert t.position == (1.0, 2.0, 3.0)

    def test_rotated_adds_angles(self):
        """Test rotated accumulates Euler angles."""
        t = Transform3D(rotation=(0.1, 0.2, 0.3)).rotated((0.1, 0.0, -0.3))
        assert t.rotation == pytest.approx((0.2, 0.2, 0.0))

    def test_is_close(self):
        """Test tolerance-based comparison."""
        a = Transform3D(position=(1.0, 0.0, 0.0))
        assert a.is_close(Transform3D(position=(1.0 + 1e-9, 0.0, 0.0)))
        assert not a.is_close(Transform3D(position=(1.1, 0.0, 0.0)))

    @pytest.mark.parametrize("field", ["position", "rotation", "scale"])
    def test_non_finite_rejected(self, field):
        """Test NaN and infinity fail validation."""
        with pytest.raises(ValidationError):
            Transform3D(**{field: (0.0, math.inf, 1.0)})
        with pytest.raises(ValidationError):
            Transform3D(**{field: (math.nan, 0.0, 1.0)})

    def test_is_finite(self):
        """Test finiteness check on unvalidated copies."""
        assert Transform3D().is_finite()
        assert not Transform3D().translated((math.inf, 0.0, 0.0)).is_finite()
        assert not Transform3D().rotated((0.0, math.nan, 0.0)).is_finite()


class TestAABB:
    """Test AABB functionality."""

    def test_size_and_center(self):
        box = AABB(min=(-1.0, 0.0, -2.0), max=(1.0, 4.0, 2.0))
        assert box.size == (2.0, 4.0, 4.0)
        assert box.center == (0.0, 2.0, 0.0)

    def test_inverted_box_rejected(self):
        with pytest.raises(ValueError):
            AABB(min=(1.0, 0.0, 0.0), max=(0.0, 1.0, 1.0))

    def test_from_extents(self):
        box = AABB.from_extents([2.0, 2.0, 2.0])
        assert box.min == (-1.0, -1.0, -1.0)
        assert box.max == (1.0, 1.0, 1.0)

    def test_from_mesh(self):
        mesh = trimesh.creation.box(extents=[2.0, 4.0, 6.0])
        box = AABB.from_mesh(mesh)
        assert box.size == pytest.approx((2.0, 4.0, 6.0))

    def test_corners(self):
        corners = AABB.from_extents([2.0, 2.0, 2.0]).corners()
        assert corners.shape == (8, 3)
        assert len({tuple(c) for c in corners.tolist()}) == 8

    def test_transformed_translation(self):
        box = AABB.from_extents([2.0, 2.0, 2.0])
        world = box.transformed(Transform3D(position=(15.0, 1.0, 0.0)))

        assert world.min == pytest.approx((14.0, 0.0, -1.0))
        assert world.max == pytest.approx((16.0, 2.0, 1.0))

    def test_transformed_rotation_grows_box(self):
        """Test a 45 degree turn widens the axis-aligned footprint."""
        box = AABB.from_extents([2.0, 2.0, 2.0])
        world = box.transformed(Transform3D(rotation=(0.0, math.pi / 4, 0.0)))

        assert world.size[0] == pytest.approx(2.0 * math.sqrt(2.0))
        assert world.size[1] == pytest.approx(2.0)

    def test_from_points_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            AABB.from_points(np.empty((0, 3)))
