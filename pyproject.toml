[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "roifusion"
version = "0.1.0"
description = "YOLO output decoding, box and rotated-box NMS, and lidar-to-camera ROI point fusion"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "yolo",
    "object-detection",
    "non-maximum-suppression",
    "oriented-bounding-box",
    "probiou",
    "letterbox",
    "lidar",
    "camera-projection",
    "sensor-fusion",
]
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
    "Topic :: Scientific/Engineering :: Image Recognition",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["roifusion"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
