[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bagkit"
version = "0.1.0"
description = "LZ4 frame streams with xxHash32 checksums, and second/nanosecond time, duration and loop-rate types"
requires-python = ">=3.10"
keywords = ["lz4", "xxhash", "compression", "time", "duration", "rate"]
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
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Archiving :: Compression",
]
dependencies = [
    "lz4",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["bagkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
