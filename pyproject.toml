[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lings"
version = "5.5.1"
description = "Run, verify and track small Rust exercises described in an info.toml file"
requires-python = ">=3.11"
keywords = ["exercises", "learning", "rust", "education", "watch", "verify"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
]
dependencies = [
    "rich",
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lings = "lings.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["lings"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
