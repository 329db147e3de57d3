import logging
import math

import numpy as np
import pytest
from omegaconf import OmegaConf
from pydantic import ValidationError

from xformpy import matrix4
from xformpy import quaternion as quat
from xformpy import vector as vec
from xformpy.quaternion import Euler, Quaternion
from xformpy.transform import Transform3D, TransformOrder
from xformpy.vector import Vector3, Vector4


def rotation(**angles) -> Quaternion:
    return quat.from_euler(Euler(**angles))


def test_new_and_constants():
    np.testing.assert_array_equal(matrix4.new(), np.eye(4).ravel())
    assert matrix4.new().dtype == matrix4.DTYPE
    assert not matrix4.IDENTITY.flags.writeable
    with pytest.raises(ValueError):
        matrix4.IDENTITY[0] = 2.0
    with pytest.raises(ValueError):
        matrix4.new([1.0, 2.0])


def test_layout_is_column_major():
    m = matrix4.from_translation([1.0, 2.0, 3.0])
    assert m[12:15].tolist() == [1.0, 2.0, 3.0]


def test_copy_assign_identity():
    m = matrix4.from_translation([1.0, 2.0, 3.0])
    c = matrix4.copy(m)
    c[12] = 5.0
    assert m[12] == 1.0
    matrix4.assign(c, m)
    assert matrix4.equals(c, m)
    matrix4.identity(c)
    np.testing.assert_array_equal(c, matrix4.IDENTITY)


def test_ref_views_into_a_buffer():
    buffer = np.zeros(40, dtype=np.float32)
    m = matrix4.ref(buffer, 16)
    matrix4.from_translation([7.0, 8.0, 9.0], m)
    assert buffer[28:31].tolist() == [7.0, 8.0, 9.0]
    assert buffer[:16].tolist() == [0.0] * 16

    view = matrix4.ref_const(buffer, 16)
    assert view[12] == 7.0
    with pytest.raises(ValueError):
        view[12] = 0.0

    with pytest.raises(ValueError):
        matrix4.ref(buffer, 30)


def test_into_array():
    target = [0.0] * 20
    matrix4.into_array(matrix4.IDENTITY, target, 4)
    assert target[4] == 1.0
    assert target[9] == 1.0
    assert target[:4] == [0.0] * 4


def test_mul_invert_transpose():
    m = matrix4.compose({"translation": [1.0, 2.0, 3.0], "rotation": rotation(yaw=30.0), "scale": [2.0, 2.0, 2.0]})
    assert matrix4.equals(matrix4.mul(m, matrix4.invert(m)), matrix4.IDENTITY)
    t = matrix4.transpose(m)
    assert t[3] == m[12]
    assert matrix4.equals(matrix4.transpose(t), m)


def test_invert_singular_raises():
    with pytest.raises(ValueError):
        matrix4.invert(matrix4.ZERO)


def test_translate_post_multiplies():
    m = matrix4.from_scale([2.0, 2.0, 2.0])
    matrix4.translate(m, [1.0, 0.0, 0.0], m)
    # the translation is scaled because it is applied first
    assert vec.equals(matrix4.get_translation(m), Vector3(2.0, 0.0, 0.0))


def test_set_and_get_translation():
    m = matrix4.from_rotation(rotation(yaw=45.0))
    matrix4.set_translation(m, Vector3(4.0, 5.0, 6.0), m)
    assert matrix4.get_translation(m) == Vector3(4.0, 5.0, 6.0)
    assert quat.equals(matrix4.get_rotation(m), rotation(yaw=45.0))


def test_get_rotation_ignores_scale():
    q = rotation(yaw=30.0, pitch=20.0)
    m = matrix4.compose({"rotation": q, "scale": [2.0, 3.0, 4.0]})
    assert quat.equals(matrix4.get_rotation(m), q, 0.001)
    assert quat.is_valid(matrix4.get_rotation_with_scale(m))


def test_get_rotation_zero_scale_warns(caplog):
    m = matrix4.from_scale([0.0, 1.0, 1.0])
    with caplog.at_level(logging.WARNING):
        q = matrix4.get_rotation(m)
    assert quat.is_valid(q)
    assert any("zero scale" in record.getMessage() for record in caplog.records)


def test_get_rotation_rebuilds_a_single_collapsed_axis():
    q = rotation(yaw=30.0)
    m = matrix4.compose({"rotation": q, "scale": [0.0, 1.0, 1.0]})
    assert quat.equals(matrix4.get_rotation(m), q, 0.001)


def test_get_rotation_of_two_collapsed_axes_is_identity():
    assert matrix4.get_rotation(matrix4.from_scale([0.0, 0.0, 1.0])) == Quaternion.IDENTITY


def test_set_rotation_keeps_translation_and_scale():
    m = matrix4.compose({"translation": [1.0, 2.0, 3.0], "rotation": rotation(yaw=30.0), "scale": [2.0, 3.0, 4.0]})
    matrix4.set_rotation(m, rotation(pitch=45.0), m)
    t = matrix4.decompose(m)
    assert vec.equals(t.translation, Vector3(1.0, 2.0, 3.0), 0.001)
    assert vec.equals(t.scale, Vector3(2.0, 3.0, 4.0), 0.001)
    assert quat.equals(t.rotation, rotation(pitch=45.0), 0.001)


def test_set_and_get_scale():
    q = rotation(roll=60.0)
    m = matrix4.compose({"rotation": q, "scale": [2.0, 3.0, 4.0]})
    assert vec.equals(matrix4.get_scale(m), Vector3(2.0, 3.0, 4.0), 0.001)
    matrix4.set_scale(m, [1.0, 1.0, 1.0], m)
    assert vec.equals(matrix4.get_scale(m), Vector3(1.0, 1.0, 1.0), 0.001)
    assert quat.equals(matrix4.get_rotation(m), q, 0.001)


def test_compose_of_nothing_is_identity():
    np.testing.assert_array_equal(matrix4.compose({}), matrix4.IDENTITY)
    np.testing.assert_array_equal(matrix4.compose(), matrix4.IDENTITY)
    np.testing.assert_array_equal(matrix4.compose(Transform3D()), matrix4.IDENTITY)


def test_compose_trs_is_t_r_s_product():
    t = [1.0, -2.0, 0.5]
    q = rotation(yaw=30.0, roll=10.0)
    s = [2.0, 0.5, 3.0]
    expected = matrix4.mul(matrix4.mul(matrix4.from_translation(t), matrix4.from_rotation(q)), matrix4.from_scale(s))
    assert matrix4.equals(matrix4.compose({"translation": t, "rotation": q, "scale": s}), expected)


def test_compose_accepts_an_omegaconf_mapping():
    cfg = OmegaConf.create({"translation": [1.0, 2.0, 3.0], "order": "SRT"})
    m = matrix4.compose(cfg)
    assert vec.equals(matrix4.get_translation(m), Vector3(1.0, 2.0, 3.0))


def test_compose_rejects_other_types():
    with pytest.raises(TypeError):
        matrix4.compose([1.0, 2.0, 3.0])


def test_unknown_order_is_rejected():
    with pytest.raises(ValidationError):
        Transform3D(order="XYZ")
    with pytest.raises(ValueError):
        matrix4.compose({"order": "XYZ"})

    transform = Transform3D()
    with pytest.raises(ValidationError):
        transform.order = "bogus"


@pytest.mark.parametrize("order", list(TransformOrder))
def test_decompose_recompose_for_every_order(order):
    q = rotation(yaw=30.0, pitch=20.0, roll=10.0)
    m = matrix4.compose(Transform3D(translation=[1.0, -2.0, 3.0], rotation=q, scale=[2.0, 2.0, 2.0], order=order))
    t = matrix4.decompose(m)
    assert t.order is TransformOrder.TRS
    assert quat.equals(t.rotation, q, 0.001)
    assert vec.equals(t.scale, Vector3(2.0, 2.0, 2.0), 0.001)
    assert matrix4.equals(matrix4.compose(t), m)


def test_decompose_trs_recovers_the_fields():
    q = rotation(yaw=-40.0, pitch=15.0)
    m = matrix4.compose(Transform3D(translation=[1.0, -2.0, 3.0], rotation=q, scale=[2.0, 0.5, 3.0]))
    t = matrix4.decompose(m)
    assert vec.equals(t.translation, Vector3(1.0, -2.0, 3.0), 0.001)
    assert quat.equals(t.rotation, q, 0.001)
    assert vec.equals(t.scale, Vector3(2.0, 0.5, 3.0), 0.001)


def test_decompose_rts_recomposes():
    m = matrix4.compose(Transform3D(
        translation=[1.0, -2.0, 3.0], rotation=rotation(roll=50.0), scale=[2.0, 0.5, 3.0], order="RTS"
    ))
    assert matrix4.equals(matrix4.compose(matrix4.decompose(m)), m)


def test_decompose_fills_out_in_place():
    out = Transform3D(order="SRT")
    translation = out.translation
    result = matrix4.decompose(matrix4.from_translation([3.0, 2.0, 1.0]), out)
    assert result is out
    assert out.translation is translation
    assert translation == Vector3(3.0, 2.0, 1.0)
    assert out.order is TransformOrder.TRS


def test_order_changes_the_matrix():
    fields = {"translation": [1.0, 0.0, 0.0], "rotation": rotation(yaw=90.0), "scale": [2.0, 1.0, 1.0]}
    trs = matrix4.compose(Transform3D(order="TRS", **fields))
    srt = matrix4.compose(Transform3D(order="SRT", **fields))
    assert not matrix4.equals(trs, srt)
    assert not matrix4.transform_equals(trs, srt)
    assert vec.equals(matrix4.get_translation(trs), Vector3(1.0, 0.0, 0.0))
    assert vec.equals(matrix4.get_translation(srt), Vector3(0.0, 0.0, -1.0))


def test_orders_agree_without_rotation():
    fields = {"translation": [1.0, 2.0, 3.0], "scale": [2.0, 1.0, 4.0]}
    trs = matrix4.compose(Transform3D(order="TRS", **fields))
    rts = matrix4.compose(Transform3D(order="RTS", **fields))
    assert matrix4.equals(trs, rts)
    assert matrix4.transform_equals(trs, rts)


def test_lerp_endpoints():
    a = matrix4.compose({"translation": [1.0, 2.0, 3.0], "rotation": rotation(pitch=30.0), "scale": [1.0, 2.0, 1.0]})
    b = matrix4.compose({"translation": [-4.0, 0.0, 2.0], "rotation": rotation(yaw=120.0, roll=45.0), "scale": [3.0, 1.0, 2.0]})
    assert matrix4.transform_equals(matrix4.lerp(a, b, 0.0), a)
    assert matrix4.transform_equals(matrix4.lerp(a, b, 1.0), b)


def test_lerp_midpoint():
    b = matrix4.compose({"translation": [10.0, 0.0, 0.0], "rotation": rotation(yaw=90.0), "scale": [2.0, 2.0, 2.0]})
    mid = matrix4.decompose(matrix4.lerp(matrix4.IDENTITY, b, 0.5))
    assert vec.equals(mid.translation, Vector3(5.0, 0.0, 0.0), 0.001)
    assert quat.equals(mid.rotation, Quaternion(0.0, math.sin(math.pi / 8.0), 0.0, math.cos(math.pi / 8.0)), 0.001)
    assert vec.equals(mid.scale, Vector3(1.5, 1.5, 1.5), 0.001)


def test_lerp_rotation_moves_at_constant_speed():
    b = matrix4.from_rotation(rotation(yaw=90.0))
    quarter = matrix4.decompose(matrix4.lerp(matrix4.IDENTITY, b, 0.25))
    assert quat.equals(quarter.rotation, rotation(yaw=22.5), 0.001)


def test_lerp_extrapolates():
    b = matrix4.compose({"translation": [1.0, 2.0, 3.0], "rotation": rotation(yaw=30.0), "scale": [2.0, 2.0, 2.0]})
    t = matrix4.decompose(matrix4.lerp(matrix4.IDENTITY, b, 2.0))
    assert vec.equals(t.translation, Vector3(2.0, 4.0, 6.0), 0.001)
    assert quat.equals(t.rotation, rotation(yaw=60.0), 0.001)
    assert vec.equals(t.scale, Vector3(3.0, 3.0, 3.0), 0.001)


def test_transform_fields_need_exact_sizes():
    with pytest.raises(ValidationError):
        Transform3D(translation=Quaternion())
    with pytest.raises(ValidationError):
        Transform3D(translation=[1.0, 2.0, 3.0, 4.0])
    with pytest.raises(ValidationError):
        Transform3D(rotation=[0.0, 0.0, 1.0])
    t = Transform3D(rotation=Vector4(0.0, 0.0, 0.0, 1.0))
    assert isinstance(t.rotation, Quaternion)
    assert t.rotation == Quaternion.IDENTITY


def test_lerp_into_an_input():
    a = matrix4.from_translation([0.0, 0.0, 0.0])
    b = matrix4.from_translation([2.0, 4.0, 6.0])
    result = matrix4.lerp(a, b, 0.5, a)
    assert result is a
    assert vec.equals(matrix4.get_translation(a), Vector3(1.0, 2.0, 3.0))


def test_operations_may_write_into_their_input():
    q = rotation(yaw=30.0)
    m = matrix4.from_translation([1.0, 2.0, 3.0])
    expected = matrix4.rotate(matrix4.copy(m), q)
    matrix4.rotate(m, q, m)
    np.testing.assert_array_equal(m, expected)

    expected = matrix4.mul(m, m)
    matrix4.mul(m, m, m)
    np.testing.assert_array_equal(m, expected)


def test_equals_and_transform_equals_tolerance():
    a = matrix4.from_translation([1.0, 0.0, 0.0])
    b = matrix4.from_translation([1.005, 0.0, 0.0])
    assert not matrix4.equals(a, b)
    assert matrix4.equals(a, b, 0.01)
    assert not matrix4.transform_equals(a, b)
    assert matrix4.transform_equals(a, b, 0.01)


def test_perspective_projection():
    m = matrix4.perspective_projection(90.0, 2.0, 1.0, 11.0)
    assert m[5] == pytest.approx(1.0)
    assert m[0] == pytest.approx(0.5)
    assert m[11] == -1.0
    assert m[10] == pytest.approx(-1.2)
    assert m[14] == pytest.approx(-2.2)


def test_perspective_projection_with_infinite_far_plane():
    m = matrix4.perspective_projection(90.0, 1.0, 1.0, math.inf)
    assert m[10] == -1.0
    assert m[14] == -2.0


def test_orthographic_projection_maps_the_box_to_clip_space():
    m = matrix4.orthographic_projection(-2.0, 2.0, -1.0, 1.0, 0.0, 10.0)
    corner = vec.transform(Vector4(2.0, 1.0, -10.0, 1.0), m)
    assert vec.equals(corner, Vector4(1.0, 1.0, 1.0, 1.0))


def test_look_at():
    view = matrix4.look_at([0.0, 0.0, 5.0], [0.0, 0.0, 0.0], [0.0, 1.0, 0.0])
    assert vec.equals(vec.transform(Vector3(0.0, 0.0, 0.0), view), Vector3(0.0, 0.0, -5.0))
    np.testing.assert_array_equal(matrix4.look_at([1.0, 1.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 0.0]), matrix4.IDENTITY)
