[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "microsched"
version = "0.1.0"
description = "A priority run queue, a cooperative thread scheduler with thread flags, locks and channels, and helpers for small embedded kernels"
requires-python = ">=3.10"
dependencies = []
keywords = ["scheduler", "runqueue", "threads", "embedded", "rtos", "simulation"]
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
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["microsched"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
