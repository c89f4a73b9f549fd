[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hawkeye"
version = "0.1.0"
description = "Watch web pages for changes and report what changed"
requires-python = ">=3.10"
keywords = ["monitoring", "web", "change-detection", "http", "watch"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Site Management",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
hawkeye = "hawkeye.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["hawkeye"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
