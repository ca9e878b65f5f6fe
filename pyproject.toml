[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wavebar"
version = "0.1.0"
description = "Configuration handling and module logic (custom, cpu, battery, clock) for a Wayland status bar"
requires-python = ">=3.10"
dependencies = []
keywords = ["status bar", "wayland", "panel", "battery", "clock", "cpu", "calendar"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: Window Managers :: Applets",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wavebar"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
