[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "worktimer"
version = "0.1.0"
description = "Local-first time tracker library backed by a single SQLite file, with project/task command builders and agent-facing tool handlers"
requires-python = ">=3.10"
dependencies = []
keywords = ["time-tracking", "timer", "sqlite", "productivity"]
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
    "Topic :: Office/Business",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["worktimer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
