[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "releaseplz"
version = "0.1.0"
description = "Release configuration, changelog generation and changelog parsing for Cargo workspaces"
requires-python = ">=3.11"
keywords = ["release", "changelog", "cargo", "semver", "keep-a-changelog", "configuration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Typing :: Typed",
]
dependencies = [
    "jinja2>=3.1",
    "tomli-w>=1.0",
    "semver>=3.0",
    "requests>=2.31",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.24",
]

[tool.hatch.build.targets.wheel]
packages = ["releaseplz"]

[tool.hatch.build.targets.sdist]
include = ["releaseplz", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
