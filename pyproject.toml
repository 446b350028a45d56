[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nfctagpub"
version = "0.1.0"
description = "Poll an NFC reader for ISO14443A tags and publish their UIDs as JSON over MQTT"
requires-python = ">=3.10"
keywords = ["nfc", "mqtt", "rfid", "iso14443a", "mifare", "ndef"]
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
    "Topic :: Communications",
]
dependencies = [
    "pyyaml",
    "paho-mqtt",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
nfctagpub = "nfctagpub.app:main"

[tool.hatch.build.targets.wheel]
packages = ["nfctagpub"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
