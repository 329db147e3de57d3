import math
import random
import sys


TO_RAD = math.pi / 180.0
TO_DEG = 180.0 / math.pi


def round_to(value: float, digits: int) -> float:
    """Round `value` half up to `digits` decimals."""
    factor = 10 ** digits
    return math.floor((value + sys.float_info.epsilon) * factor + 0.5) / factor


def lerp(a: float, b: float, alpha: float) -> float:
    return a + (b - a) * alpha


def wrap_angle(a: float) -> float:
    """`a` in radians brought into [-pi, pi]."""
    return math.atan2(math.sin(a), math.cos(a))


def radian_lerp(a: float, b: float, alpha: float) -> float:
    """Interpolate between two angles in radians along the shorter arc.

    The angle moves at constant speed and `alpha` outside [0, 1]
    extrapolates. The result is wrapped into [-pi, pi].
    """
    return wrap_angle(a + wrap_angle(b - a) * alpha)


def degree_lerp(a: float, b: float, alpha: float) -> float:
    return radian_lerp(a * TO_RAD, b * TO_RAD, alpha) * TO_DEG


def random_in_range(low: float, high: float) -> float:
    return random.random() * (high - low) + low


def is_nearly_equal(a: float, b: float, tolerance: float = 0.0001) -> bool:
    return abs(a - b) < tolerance


def is_nearly_zero(a: float, tolerance: float = 0.0001) -> bool:
    return abs(a) < tolerance


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def smooth_step(a: float, b: float, alpha: float) -> float:
    """Hermite step of `alpha` between edges `a` and `b`."""
    alpha = clamp((alpha - a) / (b - a), 0.0, 1.0)
    return alpha * alpha * (3.0 - 2.0 * alpha)


def modulo(n: float, m: float) -> float:
    # Python's % already follows the sign of the divisor
    return n % m


def frame_lerp(a: float, b: float, alpha: float) -> float:
    """Frame-rate independent approach from `a` to `b`.

    `alpha` is usually `speed * dt`; the step is `1 - exp(-alpha)`.
    """
    if alpha <= 0:
        return a
    if alpha >= 1:
        return b
    return a + (b - a) * (1.0 - math.exp(-alpha))
