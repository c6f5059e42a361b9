"""Command types returned by control and motion generation callbacks."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, TypeVar

__all__ = [
    "ControllerMode",
    "RealtimeConfig",
    "Finishable",
    "Torques",
    "JointPositions",
    "JointVelocities",
    "CartesianPose",
    "CartesianVelocities",
    "motion_finished",
]


class ControllerMode(enum.Enum):
    """Available controller modes for a robot."""

    JOINT_IMPEDANCE = enum.auto()
    CARTESIAN_IMPEDANCE = enum.auto()


class RealtimeConfig(enum.Enum):
    """Whether to enforce realtime mode for a control loop thread."""

    ENFORCE = enum.auto()
    IGNORE = enum.auto()


def _vector(values: Iterable[float], length: int, name: str) -> tuple[float, ...]:
    """Convert *values* into a tuple of floats, requiring exactly *length* entries."""
    result = tuple(float(value) for value in values)
    if len(result) != length:
        raise ValueError(f"{name} requires {length} values, got {len(result)}")
    return result


@dataclass(frozen=True)
class Finishable:
    """Base for commands that can signal the end of a motion."""

    motion_finished: bool = field(default=False, kw_only=True)


@dataclass(frozen=True)
class Torques(Finishable):
    """Joint-level torque commands in Nm, without gravity and friction."""

    tau_J: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tau_J", _vector(self.tau_J, 7, "Torques"))


@dataclass(frozen=True)
class JointPositions(Finishable):
    """Desired joint angles in rad."""

    q: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "q", _vector(self.q, 7, "JointPositions"))


@dataclass(frozen=True)
class JointVelocities(Finishable):
    """Desired joint velocities in rad/s."""

    dq: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "dq", _vector(self.dq, 7, "JointVelocities"))


@dataclass(frozen=True)
class CartesianPose(Finishable):
    """Desired end effector pose as a column-major 4x4 homogeneous transformation.

    ``elbow`` holds the position of the 3rd joint in rad and the flip
    direction of the 4th joint, or ``None`` when no elbow is commanded.
    """

    O_T_EE: tuple[float, ...]
    elbow: Optional[tuple[float, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "O_T_EE", _vector(self.O_T_EE, 16, "CartesianPose"))
        if self.elbow is not None:
            object.__setattr__(self, "elbow", _vector(self.elbow, 2, "CartesianPose elbow"))

    def has_elbow(self) -> bool:
        """Return True if an elbow configuration is stored."""
        return self.elbow is not None


@dataclass(frozen=True)
class CartesianVelocities(Finishable):
    """Desired end effector twist relative to the base frame.

    The first three values are linear velocities in m/s, the last three
    angular velocities in rad/s. ``elbow`` is as for :class:`CartesianPose`.
    """

    O_dP_EE: tuple[float, ...]
    elbow: Optional[tuple[float, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "O_dP_EE", _vector(self.O_dP_EE, 6, "CartesianVelocities"))
        if self.elbow is not None:
            object.__setattr__(
                self, "elbow", _vector(self.elbow, 2, "CartesianVelocities elbow")
            )

    def has_elbow(self) -> bool:
        """Return True if an elbow configuration is stored."""
        return self.elbow is not None


_Command = TypeVar("_Command", bound=Finishable)


def motion_finished(command: _Command) -> _Command:
    """Return a copy of *command* marked as the last one of the motion."""
    return dataclasses.replace(command, motion_finished=True)