[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ariachain"
version = "0.1.0"
description = "Epoch-based deterministic transaction execution, reservation tables, chaincode, block storage and workload generators for an Aria-style blockchain database"
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "aria", "transactions", "smallbank", "zipfian", "chaincode", "deterministic"]
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
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ariachain"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
