import dataclasses

import pytest

from fcikit.control_types import (
    CartesianPose,
    CartesianVelocities,
    ControllerMode,
    JointPositions,
    JointVelocities,
    RealtimeConfig,
    Torques,
    motion_finished,
)

IDENTITY = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1]


def test_torques_stores_values_as_floats():
    torques = Torques([1, 2, 3, 4, 5, 6, 7])
    assert torques.tau_J == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0)
    assert torques.motion_finished is False


@pytest.mark.parametrize(
    "cls, length",
    [
        (Torques, 7),
        (JointPositions, 7),
        (JointVelocities, 7),
        (CartesianPose, 16),
        (CartesianVelocities, 6),
    ],
)
def test_wrong_number_of_values_raises(cls, length):
    with pytest.raises(ValueError):
        cls([0.0] * (length - 1))
    with pytest.raises(ValueError):
        cls([0.0] * (length + 1))


@pytest.mark.parametrize(
    "cls, attr, length",
    [
        (Torques, "tau_J", 7),
        (JointPositions, "q", 7),
        (JointVelocities, "dq", 7),
        (CartesianPose, "O_T_EE", 16),
        (CartesianVelocities, "O_dP_EE", 6),
    ],
)
def test_values_round_trip(cls, attr, length):
    values = [0.5 * i for i in range(length)]
    command = cls(values)
    assert getattr(command, attr) == tuple(values)


def test_cartesian_pose_without_elbow():
    pose = CartesianPose(IDENTITY)
    assert pose.has_elbow() is False
    assert pose.elbow is None


def test_cartesian_pose_with_elbow():
    pose = CartesianPose(IDENTITY, [0.3, -1])
    assert pose.has_elbow() is True
    assert pose.elbow == (0.3, -1.0)


def test_cartesian_velocities_with_elbow():
    velocities = CartesianVelocities([0.0] * 6, (0.1, 1))
    assert velocities.has_elbow() is True
    assert velocities.elbow == (0.1, 1.0)
    assert CartesianVelocities([0.0] * 6).has_elbow() is False


@pytest.mark.parametrize("cls, length", [(CartesianPose, 16), (CartesianVelocities, 6)])
def test_wrong_elbow_size_raises(cls, length):
    with pytest.raises(ValueError):
        cls([0.0] * length, [1.0])
    with pytest.raises(ValueError):
        cls([0.0] * length, [1.0, 2.0, 3.0])


@pytest.mark.parametrize(
    "command",
    [
        Torques([0.0] * 7),
        JointPositions([0.0] * 7),
        JointVelocities([0.0] * 7),
        CartesianPose(IDENTITY, [0.0, 1.0]),
        CartesianVelocities([0.0] * 6),
    ],
)
def test_motion_finished_marks_copy(command):
    finished = motion_finished(command)
    assert finished.motion_finished is True
    assert command.motion_finished is False
    assert type(finished) is type(command)
    assert dataclasses.replace(finished, motion_finished=False) == command


def test_motion_finished_keeps_elbow():
    pose = CartesianPose(IDENTITY, [0.2, -1.0])
    finished = motion_finished(pose)
    assert finished.has_elbow() is True
    assert finished.elbow == pose.elbow
    assert finished.O_T_EE == pose.O_T_EE


def test_commands_are_immutable():
    torques = Torques([0.0] * 7)
    with pytest.raises(dataclasses.FrozenInstanceError):
        torques.motion_finished = True
    assert torques.motion_finished is False
    assert torques.tau_J == (0.0,) * 7


def test_motion_finished_keyword_in_constructor():
    positions = JointPositions([0.0] * 7, motion_finished=True)
    assert positions.motion_finished is True


def test_enums_round_trip_by_value():
    modes = list(ControllerMode)
    assert len(modes) == 2
    for mode in modes:
        assert ControllerMode(mode.value) is mode
    configs = list(RealtimeConfig)
    assert len(configs) == 2
    for config in configs:
        assert RealtimeConfig(config.value) is config