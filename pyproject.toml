[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "autompg"
version = "0.1.0"
description = "Tank fill measurement: record scale weight and COG sensor data, then plot and summarise it"
requires-python = ">=3.10"
keywords = ["tank", "scale", "sensor", "spectrogram", "data-acquisition", "serial", "csv"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
]
dependencies = [
    "numpy",
    "matplotlib",
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
autompg = "autompg.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["autompg"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
