[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "csvdbserver"
version = "0.1.0"
description = "A small TCP database server that keeps its tables in CSV files and answers a simple SQL dialect"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "csv", "sql", "server", "tcp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
csvdbserver = "csvdbserver.server:main"

[tool.hatch.build.targets.wheel]
packages = ["csvdbserver"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
