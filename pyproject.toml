[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kurosabi"
version = "0.3.10"
description = "A lightweight asynchronous HTTP/1.1 server framework with a radix-tree router."
requires-python = ">=3.10"
dependencies = [
    "brotli",
]
keywords = ["http", "server", "asyncio", "web", "framework", "router"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
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
    "pytest-asyncio",
]

[project.scripts]
kurosabi-demo = "kurosabi.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["kurosabi"]

[tool.hatch.build.targets.sdist]
include = ["kurosabi", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
