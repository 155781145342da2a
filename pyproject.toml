[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dipgame"
version = "0.1.0"
description = "Game, membership, nation allocation, game state and message-flagging rules for online Diplomacy games"
requires-python = ">=3.10"
dependencies = [
    "scipy",
]
keywords = ["diplomacy", "board game", "nation allocation", "turn based"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Turn Based Strategy",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dipgame"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
