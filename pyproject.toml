[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "hexlocomotion"
version = "0.1.0"
description = "Locomotion control for six-legged robots: gait sequencing, terrain adaptation, stability checks and manual body posing."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["hexapod", "robotics", "locomotion", "gait", "kinematics", "quaternion", "posing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["hexlocomotion*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
