[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "carvecore"
version = "0.1.0"
description = "G-code block parsing and checking, motion front end and driver register helpers for a small CNC carving controller"
requires-python = ">=3.10"
dependencies = []
keywords = ["cnc", "gcode", "rs274", "motion-control", "stepper", "tmc26x"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Manufacturing",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["carvecore*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
