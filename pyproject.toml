[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cloudshell"
version = "0.1.0"
description = "Websocket backend for xterm.js terminals that bridges each session to a shell in a Kubernetes pod"
requires-python = ">=3.10"
keywords = ["xterm.js", "terminal", "websocket", "kubernetes", "shell", "aiohttp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Terminals :: Terminal Emulators/X Terminals",
]
dependencies = [
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["cloudshell"]

[tool.hatch.build.targets.sdist]
include = ["cloudshell", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
