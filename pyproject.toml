[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dacnode"
version = "0.1.0"
description = "Data availability committee node: sequence signing, off-chain data handling and L1 batch synchronisation"
requires-python = ">=3.10"
dependencies = [
    "pycryptodome",
]
keywords = ["data-availability", "validium", "committee", "rollup", "synchronizer", "secp256k1"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dacnode"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
