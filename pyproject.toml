[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "waxpacks"
version = "0.1.0"
description = "Language packs that scan source trees for design-system component usage and report scan facts over a line-delimited JSON stdio protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["design-system", "adoption", "static-analysis", "compose", "kotlin", "react", "scanner"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wax-lang-basic = "waxpacks.basic:main"
wax-lang-compose = "waxpacks.compose:main"
wax-lang-react = "waxpacks.react:main"

[tool.hatch.build.targets.wheel]
packages = ["waxpacks"]

[tool.pytest.ini_options]
addopts = "-ra"
