[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "topup"
version = "0.1.0"
description = "Mobile top-up ordering service: suppliers, SKUs with cash back, weighted provider routing and purchase history."
requires-python = ">=3.10"
keywords = ["top-up", "orders", "cashback", "flask", "redis", "sqlalchemy"]
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
dependencies = [
    "sqlalchemy>=2.0",
    "redis>=5.0",
    "pyyaml>=6.0",
    "requests>=2.31",
    "flask>=3.0",
]

[project.optional-dependencies]
test = [
    "pytest>=8.0",
]

[tool.hatch.build.targets.wheel]
packages = ["topup"]

[tool.hatch.build.targets.sdist]
include = ["topup", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
