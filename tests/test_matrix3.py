import numpy as np
import pytest

from xformpy import matrix3, matrix4
from xformpy import quaternion as quat
from xformpy.quaternion import Euler


def test_identity():
    np.testing.assert_array_equal(matrix3.new(), np.eye(3).ravel())
    assert not matrix3.IDENTITY.flags.writeable
    m = matrix3.new(np.arange(9.0))
    matrix3.identity(m)
    np.testing.assert_array_equal(m, matrix3.IDENTITY)


def test_from_mat4_drops_translation():
    m4 = matrix4.compose({
        "translation": [5.0, 6.0, 7.0],
        "rotation": quat.from_euler(Euler(yaw=30.0)),
        "scale": [2.0, 2.0, 2.0],
    })
    m3 = matrix3.from_mat4(m4)
    assert m3.shape == (9,)
    np.testing.assert_allclose(m3[:3], m4[:3], atol=1e-6)
    np.testing.assert_allclose(m3[3:6], m4[4:7], atol=1e-6)
    np.testing.assert_allclose(m3[6:9], m4[8:11], atol=1e-6)


def test_to_mat4_round_trip():
    m4 = matrix4.compose({"rotation": quat.from_euler(Euler(pitch=40.0, roll=-15.0)), "scale": [1.0, 2.0, 3.0]})
    assert matrix4.equals(matrix3.to_mat4(matrix3.from_mat4(m4)), m4)


def test_mul_invert_transpose():
    m = matrix3.from_mat4(matrix4.compose({"rotation": quat.from_euler(Euler(yaw=60.0)), "scale": [2.0, 1.0, 0.5]}))
    product = matrix3.mul(m, matrix3.invert(m))
    np.testing.assert_allclose(product, matrix3.IDENTITY, atol=1e-5)

    t = matrix3.transpose(m)
    assert t[1] == m[3]
    np.testing.assert_array_equal(matrix3.transpose(t), m)

    with pytest.raises(ValueError):
        matrix3.invert(matrix3.ZERO)


def test_ref_and_into_array():
    buffer = np.zeros(12)
    m = matrix3.ref(buffer, 3)
    matrix3.identity(m)
    assert buffer[3] == 1.0
    assert buffer[7] == 1.0
    assert buffer[11] == 1.0

    target = [0.0] * 9
    matrix3.into_array(matrix3.IDENTITY, target)
    assert target == np.eye(3).ravel().tolist()

    with pytest.raises(TypeError):
        matrix3.ref_const(buffer.reshape(3, 4))
