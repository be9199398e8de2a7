[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gmqtt"
version = "0.1.0"
description = "MQTT 3.1.1 and 5.0 packet encoding and decoding, topic validation and matching, a bitmap and a PID file helper"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "mqtt5", "protocol", "packets", "codec", "topics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gmqtt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
