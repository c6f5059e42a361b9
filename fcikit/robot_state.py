"""Robot state snapshot as reported by the robot at each control cycle."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

__all__ = ["RobotMode", "RobotState"]


class RobotMode(enum.Enum):
    """The robot's current mode."""

    OTHER = "Other"
    IDLE = "Idle"
    MOVE = "Move"
    GUIDING = "Guiding"
    REFLEX = "Reflex"
    USER_STOPPED = "User stopped"
    AUTOMATIC_ERROR_RECOVERY = "Automatic error recovery"

    def __str__(self) -> str:
        return self.value


def _zeros(length: int) -> Any:
    return field(default_factory=lambda: (0.0,) * length, metadata={"length": length})


@dataclass
class RobotState:
    """Measured, desired and commanded quantities of the robot.

    Poses are column-major 4x4 homogeneous transformations stored as 16
    values. ``current_errors`` and ``last_motion_errors`` hold the names of
    active error flags. ``time`` is the monotonically increasing timestamp
    since robot start, in milliseconds.
    """

    O_T_EE: tuple[float, ...] = _zeros(16)
    O_T_EE_d: tuple[float, ...] = _zeros(16)
    F_T_EE: tuple[float, ...] = _zeros(16)
    F_T_NE: tuple[float, ...] = _zeros(16)
    NE_T_EE: tuple[float, ...] = _zeros(16)
    EE_T_K: tuple[float, ...] = _zeros(16)
    m_ee: float = 0.0
    I_ee: tuple[float, ...] = _zeros(9)
    F_x_Cee: tuple[float, ...] = _zeros(3)
    m_load: float = 0.0
    I_load: tuple[float, ...] = _zeros(9)
    F_x_Cload: tuple[float, ...] = _zeros(3)
    m_total: float = 0.0
    I_total: tuple[float, ...] = _zeros(9)
    F_x_Ctotal: tuple[float, ...] = _zeros(3)
    elbow: tuple[float, ...] = _zeros(2)
    elbow_d: tuple[float, ...] = _zeros(2)
    elbow_c: tuple[float, ...] = _zeros(2)
    delbow_c: tuple[float, ...] = _zeros(2)
    ddelbow_c: tuple[float, ...] = _zeros(2)
    tau_J: tuple[float, ...] = _zeros(7)
    tau_J_d: tuple[float, ...] = _zeros(7)
    dtau_J: tuple[float, ...] = _zeros(7)
    q: tuple[float, ...] = _zeros(7)
    q_d: tuple[float, ...] = _zeros(7)
    dq: tuple[float, ...] = _zeros(7)
    dq_d: tuple[float, ...] = _zeros(7)
    ddq_d: tuple[float, ...] = _zeros(7)
    joint_contact: tuple[float, ...] = _zeros(7)
    cartesian_contact: tuple[float, ...] = _zeros(6)
    joint_collision: tuple[float, ...] = _zeros(7)
    cartesian_collision: tuple[float, ...] = _zeros(6)
    tau_ext_hat_filtered: tuple[float, ...] = _zeros(7)
    O_F_ext_hat_K: tuple[float, ...] = _zeros(6)
    K_F_ext_hat_K: tuple[float, ...] = _zeros(6)
    O_dP_EE_d: tuple[float, ...] = _zeros(6)
    O_ddP_O: tuple[float, ...] = _zeros(3)
    O_T_EE_c: tuple[float, ...] = _zeros(16)
    O_dP_EE_c: tuple[float, ...] = _zeros(6)
    O_ddP_EE_c: tuple[float, ...] = _zeros(6)
    theta: tuple[float, ...] = _zeros(7)
    dtheta: tuple[float, ...] = _zeros(7)
    current_errors: frozenset[str] = frozenset()
    last_motion_errors: frozenset[str] = frozenset()
    control_command_success_rate: float = 0.0
    robot_mode: RobotMode = RobotMode.USER_STOPPED
    time: int = 0

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            length = f.metadata.get("length")
            if length is not None:
                setattr(self, f.name, self._vector(getattr(self, f.name), length, f.name))
        for name in ("m_ee", "m_load", "m_total", "control_command_success_rate"):
            setattr(self, name, float(getattr(self, name)))
        self.current_errors = self._errors(self.current_errors, "current_errors")
        self.last_motion_errors = self._errors(self.last_motion_errors, "last_motion_errors")
        self.robot_mode = RobotMode(self.robot_mode)
        if isinstance(self.time, bool) or not isinstance(self.time, int):
            raise TypeError("time must be an integer number of milliseconds")
        if self.time < 0:
            raise ValueError("time must not be negative")

    @staticmethod
    def _vector(values: Iterable[float], length: int, name: str) -> tuple[float, ...]:
        result = tuple(float(value) for value in values)
        if len(result) != length:
            raise ValueError(f"{name} requires {length} values, got {len(result)}")
        return result

    @staticmethod
    def _errors(values: Iterable[str], name: str) -> frozenset[str]:
        result = frozenset(values)
        if not all(isinstance(value, str) for value in result):
            raise TypeError(f"{name} must contain error names")
        return result

    def as_dict(self) -> dict[str, Any]:
        """Return the state as a JSON-serialisable mapping, in field order."""
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                result[f.name] = list(value)
            elif isinstance(value, frozenset):
                result[f.name] = sorted(value)
            elif isinstance(value, RobotMode):
                result[f.name] = str(value)
            else:
                result[f.name] = value
        return result