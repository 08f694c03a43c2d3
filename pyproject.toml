[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ethereal"
version = "2.0.0"
description = "Command-line tools for querying Ethereum nodes, ENS names and the ERC-1820 registry"
requires-python = ">=3.10"
keywords = ["ethereum", "ens", "erc1820", "json-rpc", "gas", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "pycryptodome",
    "idna",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ethereal = "ethereal.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ethereal"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
