[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "noodlerating"
version = "0.1.0"
description = "A small HTTP API for uploading noodle dishes and rating them, backed by SQLite"
requires-python = ">=3.10"
dependencies = [
    "flask",
]
keywords = ["noodles", "rating", "reviews", "api", "sqlite", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
noodlerating = "noodlerating.app:main"

[tool.hatch.build.targets.wheel]
packages = ["noodlerating"]

[tool.pytest.ini_options]
addopts = "-ra"
