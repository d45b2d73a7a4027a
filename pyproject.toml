[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lasergimbal"
version = "0.1.0"
description = "Control logic for a two-axis laser-tracking gimbal: stepper command frames, PID loops, sensor protocols and a cooperative scheduler."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "stepper",
    "closed-loop",
    "pid",
    "gimbal",
    "laser-tracking",
    "ring-buffer",
    "gyroscope",
    "embedded",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lasergimbal"]

[tool.hatch.build.targets.sdist]
include = ["lasergimbal", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
