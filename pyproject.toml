[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "signalcrate"
version = "0.1.0"
description = "A modular synthesis engine: patchable audio and control-voltage modules wired together from a text patch."
requires-python = ">=3.10"
dependencies = []
keywords = ["synthesis", "modular", "audio", "dsp", "patch", "lfo", "envelope", "reverb", "delay", "looper"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["signalcrate"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
