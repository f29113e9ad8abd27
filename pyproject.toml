[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "navalbattle"
version = "0.1.0"
description = "Two-player naval battle game played over TCP, with a server and a terminal client"
requires-python = ">=3.10"
dependencies = []
keywords = ["battleship", "game", "tcp", "multiplayer", "terminal"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
navalbattle-server = "navalbattle.server:main"
navalbattle-client = "navalbattle.client:main"

[tool.hatch.build.targets.wheel]
packages = ["navalbattle"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
