# fcikit

Building blocks for commanding a 7-DOF robot arm over its control interface:

- `fcikit.control_types`: the command values a control callback returns
  (`Torques`, `JointPositions`, `JointVelocities`, `CartesianPose`,
  `CartesianVelocities`), the `ControllerMode` and `RealtimeConfig` enums and
  the `motion_finished` helper.
- `fcikit.robot_state`: the `RobotState` record and the `RobotMode` enum.
- `fcikit.rate_limiting`: limiters that keep a commanded value within
  velocity, acceleration and jerk bounds for one 1 ms control step.
- `fcikit.network`: a TCP channel for framed request/response messages and a
  UDP channel for state datagrams (`Network`, `MessageHeader`, `connect`),
  with `NetworkException`, `ProtocolException` and
  `IncompatibleVersionException`.

## Installation

```
pip install fcikit
```

To run the tests:

```
pip install "fcikit[test]"
pytest
```

## Command types

Commands are frozen dataclasses. Values are stored as tuples of floats; a
sequence of the wrong length raises `ValueError`.

```python
from fcikit.control_types import JointVelocities, CartesianPose, motion_finished

command = JointVelocities([0.0, 0.1, 0.0, 0.0, 0.0, 0.0, 0.0])
last = motion_finished(command)   # copy with motion_finished=True

pose = CartesianPose([1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0.3, 0, 0.5, 1])
pose.has_elbow()                  # False: no elbow was given

pose = CartesianPose(pose.O_T_EE, elbow=(0.0, -1.0))
pose.has_elbow()                  # True
```

`Torques` (`tau_J`), `JointPositions` (`q`) and `JointVelocities` (`dq`)
take 7 values, `CartesianPose` (`O_T_EE`) a column-major 4×4 matrix as 16
values, `CartesianVelocities` (`O_dP_EE`) 6 values. The optional `elbow`
takes 2 values.

## Robot state

```python
from fcikit.robot_state import RobotState, RobotMode

state = RobotState()
state.robot_mode is RobotMode.USER_STOPPED   # the default mode
state.as_dict()["q"]                         # [0.0] * 7
```

Every vector field defaults to zeros and is checked for its length.
`current_errors` and `last_motion_errors` are sets of error names, `time` is
a non-negative integer in milliseconds. `as_dict()` returns the fields in
order as lists, sorted error lists and the mode as text (for example
`"User stopped"`), ready for `json.dumps`.

## Rate limiting

Each limiter computes one control step of `DELTA_T` (0.001 s) and raises
`ValueError` when a commanded value is infinite or NaN.

```python
from fcikit.rate_limiting import limit_rate_velocity

v = limit_rate_velocity(
    max_velocity=2.0, max_acceleration=10.0, max_jerk=5000.0,
    commanded_velocity=1.0, last_commanded_velocity=0.0,
    last_commanded_acceleration=0.0,
)
```

- `limit_rate_derivatives`: clamps the first derivative of 7 values.
- `limit_rate_velocity`, `limit_rate_position`: one scalar signal.
- `limit_rate_joint_velocities`, `limit_rate_joint_positions`: 7 joints,
  each with its own limits.
- `limit_rate_cartesian_velocity`: a 6-value twist, translation and rotation
  limited as 3D vectors.
- `limit_rate_cartesian_pose`: a column-major homogeneous 4×4 pose as 16
  values; anything that is not a homogeneous transformation raises
  `ValueError`. Rotational limits are scaled by
  `FACTOR_CARTESIAN_ROTATION_POSE_INTERFACE` (0.99).

## Network

```python
from fcikit.network import Network, connect

with Network("192.0.2.10", 1337) as network:
    server_version = connect(network, command=0, library_version=4)
    command_id = network.tcp_send_request(command=1, payload=b"")
    response = network.tcp_blocking_receive_response(command_id)
```

Every TCP message starts with a `MessageHeader` of three little-endian
32-bit fields: command, command id and total size. `tcp_send_request` returns
the command id it assigned; responses are matched by id and returned as
payload bytes without the header. `tcp_receive_response` does the same
without waiting and passes the payload to a handler.

`udp_blocking_receive(size)` and `udp_receive(size)` read datagrams of a
fixed size; `udp_send` replies to the address the last datagram came from.
`connect` sends the library version and the local UDP port and returns the
server's version.

Connection failures raise `NetworkException`, malformed messages
`ProtocolException`, and a server that refuses the library version
`IncompatibleVersionException`.

## What is not included

There is no robot object that runs a control loop, no kinematics or dynamics
model, no gripper support and no encoding of specific commands or of the
state datagram. The package provides the command and state types, the
limiters and the transport on which such parts can be built.