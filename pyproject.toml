[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toba"
version = "0.1.0"
description = "Building blocks for bootstrapping local Lando WordPress projects from backups or an SSH starter host"
requires-python = ">=3.10"
dependencies = []
keywords = ["wordpress", "lando", "updraft", "scaffolding", "ssh", "pipeline"]
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
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["toba"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
