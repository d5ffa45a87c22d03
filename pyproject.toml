[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tfpolicy"
version = "0.1.0"
description = "Framework for writing policy plugins that expose typed functions over msgpack-encoded values"
requires-python = ">=3.10"
keywords = ["policy", "plugin", "functions", "typed values", "msgpack"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "msgpack",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tfpolicy-protobuf-compile = "tfpolicy.protobuf_compile:main"

[tool.hatch.build.targets.wheel]
packages = ["tfpolicy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
