[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "novel-looker"
version = "0.1.0"
description = "Reading core for web novels: a three-chapter scrolling buffer, reading progress and fuzzy table-of-contents filtering."
requires-python = ">=3.10"
dependencies = []
keywords = ["novel", "reader", "fuzzy", "chapters", "table-of-contents"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Traditional)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["novel_looker"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
