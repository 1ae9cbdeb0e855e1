[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgwsim"
version = "0.1.0"
description = "A small PGW simulator: UDP session server with CDR logging, HTTP control API and a BCD IMSI client"
requires-python = ">=3.10"
dependencies = []
keywords = ["pgw", "imsi", "bcd", "cdr", "telephony", "udp", "simulator"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pgw-server = "pgwsim.server:main"
pgw-client = "pgwsim.client:main"

[tool.hatch.build.targets.wheel]
packages = ["pgwsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
