[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fcikit"
version = "0.1.0"
description = "Command types, robot state, rate limiting and TCP/UDP transport for 7-DOF robot arm control"
requires-python = ">=3.10"
keywords = ["robotics", "robot arm", "rate limiting", "motion control", "fci"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fcikit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
