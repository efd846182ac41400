[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ellyn"
version = "0.1.0"
description = "Runtime support for call-graph and block-coverage collection: metadata, agent, collectors and a small demo service."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "coverage",
    "call graph",
    "tracing",
    "instrumentation",
    "testing",
    "ring buffer",
    "lru cache",
]
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
    "Topic :: Software Development :: Testing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ellyn"]

[tool.hatch.build.targets.sdist]
include = ["ellyn", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
