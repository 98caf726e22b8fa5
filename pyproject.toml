[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ltrader"
version = "0.1.0"
description = "Event-driven framework for intraday futures trading strategies, with live and back-test engines"
requires-python = ">=3.10"
dependencies = []
keywords = ["trading", "futures", "backtest", "strategy", "market-data", "bars"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ltrader"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
