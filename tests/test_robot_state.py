import dataclasses
import json

import pytest

from fcikit.robot_state import RobotMode, RobotState


def _vector_fields():
    return [
        f.name
        for f in dataclasses.fields(RobotState)
        if "length" in f.metadata
    ]


def test_default_state_is_zero():
    state = RobotState()
    for name in _vector_fields():
        assert all(value == 0.0 for value in getattr(state, name)), name
    assert state.m_ee == 0.0
    assert state.m_load == 0.0
    assert state.m_total == 0.0
    assert state.control_command_success_rate == 0.0
    assert state.current_errors == frozenset()
    assert state.last_motion_errors == frozenset()
    assert state.time == 0


def test_default_robot_mode_is_user_stopped():
    assert RobotState().robot_mode is RobotMode.USER_STOPPED


@pytest.mark.parametrize(
    "name,length",
    [("O_T_EE", 16), ("I_ee", 9), ("F_x_Cee", 3), ("elbow", 2), ("q", 7), ("O_dP_EE_c", 6)],
)
def test_vector_lengths(name, length):
    assert len(getattr(RobotState(), name)) == length


def test_wrong_length_is_rejected():
    with pytest.raises(ValueError):
        RobotState(q=[0.0] * 6)
    with pytest.raises(ValueError):
        RobotState(O_T_EE=[1.0] * 15)


def test_negative_time_is_rejected():
    with pytest.raises(ValueError):
        RobotState(time=-1)


def test_non_integer_time_is_rejected():
    with pytest.raises(TypeError):
        RobotState(time=1.5)


def test_values_are_converted_to_float_tuples():
    state = RobotState(q=[1, 2, 3, 4, 5, 6, 7], m_ee=2)
    assert state.q == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0)
    assert isinstance(state.m_ee, float)
    assert state.m_ee == 2.0


def test_robot_mode_accepts_value():
    state = RobotState(robot_mode=RobotMode.MOVE.value)
    assert state.robot_mode is RobotMode.MOVE


def test_as_dict_keys_follow_field_order():
    keys = list(RobotState().as_dict())
    assert keys == [f.name for f in dataclasses.fields(RobotState)]
    assert keys[0] == "O_T_EE"
    assert keys[-1] == "time"


def test_as_dict_default_values():
    data = RobotState().as_dict()
    assert data["O_T_EE"] == [0.0] * 16
    assert data["q"] == [0.0] * 7
    assert data["current_errors"] == []
    assert data["robot_mode"] == str(RobotMode.USER_STOPPED)


def test_as_dict_is_json_round_trippable():
    state = RobotState(
        q=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7],
        current_errors={"joint_reflex", "cartesian_reflex"},
        robot_mode=RobotMode.IDLE,
        time=12345,
    )
    data = state.as_dict()
    assert json.loads(json.dumps(data)) == data
    assert data["q"] == list(state.q)
    assert data["time"] == 12345
    assert data["current_errors"] == sorted(["joint_reflex", "cartesian_reflex"])


def test_as_dict_rebuilds_equal_state():
    state = RobotState(
        O_T_EE=[1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1],
        m_load=0.5,
        last_motion_errors={"joint_reflex"},
        robot_mode=RobotMode.REFLEX,
        time=7,
    )
    rebuilt = RobotState(**state.as_dict())
    assert rebuilt == state


def test_error_names_must_be_strings():
    with pytest.raises(TypeError):
        RobotState(current_errors={1})


@pytest.mark.parametrize("mode", list(RobotMode))
def test_robot_mode_is_written_as_its_label(mode):
    data = RobotState(robot_mode=mode).as_dict()
    assert data["robot_mode"] == mode.value
    assert RobotState(robot_mode=data["robot_mode"]).robot_mode is mode