[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "canopenlite"
version = "0.1.0"
description = "A lightweight CANopen toolkit: CAN frame dispatch, emergency and heartbeat services, node configuration over SDO, CRC-16 and a ring buffer"
requires-python = ">=3.10"
dependencies = []
keywords = ["canopen", "can", "fieldbus", "embedded", "emergency", "heartbeat", "sdo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN) :: CANopen",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["canopenlite"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
