"""Rate limiters that keep commanded signals within velocity, acceleration and jerk bounds."""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable, Sequence

import numpy as np

__all__ = [
    "DELTA_T",
    "NORM_EPS",
    "FACTOR_CARTESIAN_ROTATION_POSE_INTERFACE",
    "limit_rate_derivatives",
    "limit_rate_velocity",
    "limit_rate_position",
    "limit_rate_joint_velocities",
    "limit_rate_joint_positions",
    "limit_rate_cartesian_velocity",
    "limit_rate_cartesian_pose",
]

DELTA_T = 1e-3
"""Sample time of the control loop in seconds."""

NORM_EPS = sys.float_info.epsilon
"""Norms below this value are treated as zero."""

FACTOR_CARTESIAN_ROTATION_POSE_INTERFACE = 0.99
"""Scaling of the rotational limits used by the Cartesian pose limiter."""

_ORTHONORMAL_THRESHOLD = 1e-5


def _vector(values: Iterable[float], length: int, name: str) -> np.ndarray:
    result = np.asarray([float(value) for value in values], dtype=float)
    if result.shape != (length,):
        raise ValueError(f"{name} requires {length} values, got {result.size}")
    return result


def _require_finite(values: np.ndarray, message: str) -> None:
    if not np.all(np.isfinite(values)):
        raise ValueError(message)


def _sqrt(value: float) -> float:
    return math.sqrt(value) if value >= 0.0 else math.nan


def _is_homogeneous_transformation(transform: Sequence[float]) -> bool:
    if (
        transform[3] != 0.0
        or transform[7] != 0.0
        or transform[11] != 0.0
        or transform[15] != 1.0
    ):
        return False
    matrix = np.asarray(transform, dtype=float).reshape(4, 4).T[:3, :3]
    column_norms = np.linalg.norm(matrix, axis=0)
    row_norms = np.linalg.norm(matrix, axis=1)
    return bool(
        np.all(np.abs(column_norms - 1.0) <= _ORTHONORMAL_THRESHOLD)
        and np.all(np.abs(row_norms - 1.0) <= _ORTHONORMAL_THRESHOLD)
    )


def _rotation_part(linear: np.ndarray) -> np.ndarray:
    """Return the rotation factor of the polar decomposition of *linear*."""
    u, _, vt = np.linalg.svd(linear)
    sign = 1.0 if np.linalg.det(u @ vt) >= 0.0 else -1.0
    return u @ np.diag([1.0, 1.0, sign]) @ vt


def _rotation_vector(rotation: np.ndarray) -> np.ndarray:
    """Return axis times angle of a rotation matrix, angle in [0, pi]."""
    m = rotation
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    quat = np.zeros(3)
    if trace > 0.0:
        t = math.sqrt(trace + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        quat[0] = (m[2, 1] - m[1, 2]) * t
        quat[1] = (m[0, 2] - m[2, 0]) * t
        quat[2] = (m[1, 0] - m[0, 1]) * t
    else:
        i = 0
        if m[1, 1] > m[0, 0]:
            i = 1
        if m[2, 2] > m[i, i]:
            i = 2
        j = (i + 1) % 3
        k = (j + 1) % 3
        t = math.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
        quat[i] = 0.5 * t
        t = 0.5 / t
        w = (m[k, j] - m[j, k]) * t
        quat[j] = (m[j, i] + m[i, j]) * t
        quat[k] = (m[k, i] + m[i, k]) * t
    norm = float(np.linalg.norm(quat))
    if norm == 0.0:
        return np.zeros(3)
    angle = 2.0 * math.atan2(norm, abs(w))
    axis = -quat / norm if w < 0.0 else quat / norm
    return axis * angle


def _limit_rate_3d(
    max_velocity: float,
    max_acceleration: float,
    max_jerk: float,
    commanded_velocity: np.ndarray,
    last_commanded_velocity: np.ndarray,
    last_commanded_acceleration: np.ndarray,
) -> np.ndarray:
    commanded_jerk = (
        ((commanded_velocity - last_commanded_velocity) / DELTA_T) - last_commanded_acceleration
    ) / DELTA_T

    commanded_acceleration = last_commanded_acceleration.copy()
    jerk_norm = float(np.linalg.norm(commanded_jerk))
    if jerk_norm > NORM_EPS:
        commanded_acceleration = commanded_acceleration + (
            (commanded_jerk / jerk_norm) * max(min(jerk_norm, max_jerk), -max_jerk) * DELTA_T
        )

    limited_velocity = last_commanded_velocity.copy()
    acceleration_norm = float(np.linalg.norm(commanded_acceleration))
    if acceleration_norm > NORM_EPS:
        unit_acceleration = commanded_acceleration / acceleration_norm
        dot_product = float(unit_acceleration @ last_commanded_velocity)
        distance_to_max_velocity = -dot_product + _sqrt(
            dot_product**2
            - float(last_commanded_velocity @ last_commanded_velocity)
            + max_velocity**2
        )
        safe_max_acceleration = min(
            (max_jerk / max_acceleration) * distance_to_max_velocity, max_acceleration
        )
        limited_velocity = limited_velocity + (
            unit_acceleration * min(acceleration_norm, safe_max_acceleration) * DELTA_T
        )
    return limited_velocity


def limit_rate_derivatives(
    max_derivatives: Sequence[float],
    commanded_values: Sequence[float],
    last_commanded_values: Sequence[float],
) -> tuple[float, ...]:
    """Limit the first derivative of seven signals to +/- *max_derivatives*."""
    limits = _vector(max_derivatives, 7, "max_derivatives")
    commanded = _vector(commanded_values, 7, "commanded_values")
    last = _vector(last_commanded_values, 7, "last_commanded_values")
    _require_finite(commanded, "Commanding value is infinite or NaN.")
    result = []
    for limit, value, previous in zip(limits, commanded, last):
        derivative = (value - previous) / DELTA_T
        result.append(float(previous + max(min(derivative, limit), -limit) * DELTA_T))
    return tuple(result)


def limit_rate_velocity(
    max_velocity: float,
    max_acceleration: float,
    max_jerk: float,
    commanded_velocity: float,
    last_commanded_velocity: float,
    last_commanded_acceleration: float,
) -> float:
    """Limit a single commanded velocity by velocity, acceleration and jerk bounds."""
    if not math.isfinite(commanded_velocity):
        raise ValueError("commanded_velocity is infinite or NaN.")
    commanded_jerk = (
        ((commanded_velocity - last_commanded_velocity) / DELTA_T) - last_commanded_acceleration
    ) / DELTA_T
    commanded_acceleration = (
        last_commanded_acceleration + max(min(commanded_jerk, max_jerk), -max_jerk) * DELTA_T
    )
    ratio = max_jerk / max_acceleration
    safe_max_acceleration = min(
        ratio * (max_velocity - last_commanded_velocity), max_acceleration
    )
    safe_min_acceleration = max(
        ratio * (-max_velocity - last_commanded_velocity), -max_acceleration
    )
    return last_commanded_velocity + (
        max(min(commanded_acceleration, safe_max_acceleration), safe_min_acceleration) * DELTA_T
    )


def limit_rate_position(
    max_velocity: float,
    max_acceleration: float,
    max_jerk: float,
    commanded_position: float,
    last_commanded_position: float,
    last_commanded_velocity: float,
    last_commanded_acceleration: float,
) -> float:
    """Limit a single commanded position by velocity, acceleration and jerk bounds."""
    if not math.isfinite(commanded_position):
        raise ValueError("commanded_position is infinite or NaN.")
    velocity = limit_rate_velocity(
        max_velocity,
        max_acceleration,
        max_jerk,
        (commanded_position - last_commanded_position) / DELTA_T,
        last_commanded_velocity,
        last_commanded_acceleration,
    )
    return last_commanded_position + velocity * DELTA_T


def limit_rate_joint_velocities(
    max_velocity: Sequence[float],
    max_acceleration: Sequence[float],
    max_jerk: Sequence[float],
    commanded_velocities: Sequence[float],
    last_commanded_velocities: Sequence[float],
    last_commanded_accelerations: Sequence[float],
) -> tuple[float, ...]:
    """Limit seven commanded joint velocities joint by joint."""
    commanded = _vector(commanded_velocities, 7, "commanded_velocities")
    _require_finite(commanded, "commanded_velocities is infinite or NaN.")
    columns = zip(
        _vector(max_velocity, 7, "max_velocity"),
        _vector(max_acceleration, 7, "max_acceleration"),
        _vector(max_jerk, 7, "max_jerk"),
        commanded,
        _vector(last_commanded_velocities, 7, "last_commanded_velocities"),
        _vector(last_commanded_accelerations, 7, "last_commanded_accelerations"),
    )
    return tuple(float(limit_rate_velocity(*map(float, column))) for column in columns)


def limit_rate_joint_positions(
    max_velocity: Sequence[float],
    max_acceleration: Sequence[float],
    max_jerk: Sequence[float],
    commanded_positions: Sequence[float],
    last_commanded_positions: Sequence[float],
    last_commanded_velocities: Sequence[float],
    last_commanded_accelerations: Sequence[float],
) -> tuple[float, ...]:
    """Limit seven commanded joint positions joint by joint."""
    commanded = _vector(commanded_positions, 7, "commanded_positions")
    _require_finite(commanded, "commanded_positions is infinite or NaN.")
    columns = zip(
        _vector(max_velocity, 7, "max_velocity"),
        _vector(max_acceleration, 7, "max_acceleration"),
        _vector(max_jerk, 7, "max_jerk"),
        commanded,
        _vector(last_commanded_positions, 7, "last_commanded_positions"),
        _vector(last_commanded_velocities, 7, "last_commanded_velocities"),
        _vector(last_commanded_accelerations, 7, "last_commanded_accelerations"),
    )
    return tuple(float(limit_rate_position(*map(float, column))) for column in columns)


def limit_rate_cartesian_velocity(
    max_translational_velocity: float,
    max_translational_acceleration: float,
    max_translational_jerk: float,
    max_rotational_velocity: float,
    max_rotational_acceleration: float,
    max_rotational_jerk: float,
    O_dP_EE_c: Sequence[float],
    last_O_dP_EE_c: Sequence[float],
    last_O_ddP_EE_c: Sequence[float],
) -> tuple[float, ...]:
    """Limit a commanded twist; translation and rotation are limited as 3D vectors."""
    dx = _vector(O_dP_EE_c, 6, "O_dP_EE_c")
    _require_finite(dx, "O_dP_EE_c is infinite or NaN.")
    last_dx = _vector(last_O_dP_EE_c, 6, "last_O_dP_EE_c")
    last_ddx = _vector(last_O_ddP_EE_c, 6, "last_O_ddP_EE_c")
    translational = _limit_rate_3d(
        max_translational_velocity,
        max_translational_acceleration,
        max_translational_jerk,
        dx[:3],
        last_dx[:3],
        last_ddx[:3],
    )
    rotational = _limit_rate_3d(
        max_rotational_velocity,
        max_rotational_acceleration,
        max_rotational_jerk,
        dx[3:],
        last_dx[3:],
        last_ddx[3:],
    )
    return tuple(float(value) for value in np.concatenate([translational, rotational]))


def limit_rate_cartesian_pose(
    max_translational_velocity: float,
    max_translational_acceleration: float,
    max_translational_jerk: float,
    max_rotational_velocity: float,
    max_rotational_acceleration: float,
    max_rotational_jerk: float,
    O_T_EE_c: Sequence[float],
    last_O_T_EE_c: Sequence[float],
    last_O_dP_EE_c: Sequence[float],
    last_O_ddP_EE_c: Sequence[float],
) -> tuple[float, ...]:
    """Limit a commanded column-major pose by limiting the twist that reaches it."""
    commanded_values = _vector(O_T_EE_c, 16, "O_T_EE_c")
    _require_finite(commanded_values, "O_T_EE_c is infinite or NaN.")
    if not _is_homogeneous_transformation(commanded_values):
        raise ValueError("O_T_EE_c is invalid transformation matrix. Has to be column major!")
    last_values = _vector(last_O_T_EE_c, 16, "last_O_T_EE_c")

    commanded = commanded_values.reshape(4, 4).T
    last = last_values.reshape(4, 4).T
    commanded_rotation = _rotation_part(commanded[:3, :3])
    last_rotation = _rotation_part(last[:3, :3])

    translational_velocity = (commanded[:3, 3] - last[:3, 3]) / DELTA_T
    rotational_velocity = _rotation_vector(commanded_rotation @ last_rotation.T) / DELTA_T
    twist = limit_rate_cartesian_velocity(
        max_translational_velocity,
        max_translational_acceleration,
        max_translational_jerk,
        FACTOR_CARTESIAN_ROTATION_POSE_INTERFACE * max_rotational_velocity,
        FACTOR_CARTESIAN_ROTATION_POSE_INTERFACE * max_rotational_acceleration,
        FACTOR_CARTESIAN_ROTATION_POSE_INTERFACE * max_rotational_jerk,
        np.concatenate([translational_velocity, rotational_velocity]),
        last_O_dP_EE_c,
        last_O_ddP_EE_c,
    )
    dx = np.asarray(twist)

    limited = np.eye(4)
    limited[:3, 3] = last[:3, 3] + dx[:3] * DELTA_T
    limited[:3, :3] = last_rotation
    omega_norm = float(np.linalg.norm(dx[3:]))
    if omega_norm > NORM_EPS:
        w = dx[3:] / omega_norm
        theta = DELTA_T * omega_norm
        skew = np.array(
            [
                [0.0, -w[2], w[1]],
                [w[2], 0.0, -w[0]],
                [-w[1], w[0], 0.0],
            ]
        )
        rotation = np.eye(3) + math.sin(theta) * skew + (1.0 - math.cos(theta)) * (skew @ skew)
        limited[:3, :3] = rotation @ last_rotation
    return tuple(float(value) for value in limited.flatten(order="F"))