[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uxnvm"
version = "0.1.0"
description = "Interpreter for the Uxn virtual machine"
requires-python = ">=3.10"
dependencies = []
keywords = ["uxn", "virtual machine", "emulator", "interpreter", "bytecode"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["uxnvm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
