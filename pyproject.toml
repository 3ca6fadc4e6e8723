[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scalehttp"
version = "0.1.0"
description = "Building blocks for scaling HTTP workloads on demand: pending request counts, host and path routing, service endpoints and retrying dials"
requires-python = ">=3.10"
dependencies = []
keywords = ["autoscaling", "http", "routing", "queue", "kubernetes", "scale-to-zero"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["scalehttp"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
