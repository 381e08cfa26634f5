[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dbwire"
version = "0.1.0"
description = "Wire-level building blocks for database programs: MySQL command parsing, ClickHouse column types, values and connection options, and fixed-width binary marshalling."
requires-python = ">=3.10"
dependencies = []
keywords = ["mysql", "clickhouse", "protocol", "wire", "decimal", "marshal"]
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
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["dbwire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
