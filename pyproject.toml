[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "veloxdfs"
version = "0.1.0"
description = "Message model, wire framing, asyncio networking and logical-block schedulers for a distributed file system"
requires-python = ">=3.10"
dependencies = [
    "msgpack",
]
keywords = ["distributed file system", "dfs", "scheduler", "logical blocks", "asyncio", "msgpack"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Distributed Computing",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["veloxdfs"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
