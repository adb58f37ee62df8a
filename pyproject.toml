[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rumba"
version = "0.1.0"
description = "Building blocks for a documentation site back end: settings, encoded ids, request tags, metrics and logging."
requires-python = ">=3.11"
keywords = ["statsd", "metrics", "hashids", "settings", "logging", "user-agent"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rumba"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
