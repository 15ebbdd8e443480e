[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "adasa"
version = "0.1.0"
description = "Persistent, validated on-disk JSON state for a process manager daemon"
requires-python = ">=3.10"
dependencies = []
keywords = ["process-manager", "daemon", "state", "persistence", "json"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["adasa"]

[tool.pytest.ini_options]
addopts = "-ra"
