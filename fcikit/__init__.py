"""Command types, robot state, rate limiters and TCP/UDP transport for robot arm control."""

__version__ = "0.1.0"

__all__ = ["control_types", "robot_state", "rate_limiting", "network"]