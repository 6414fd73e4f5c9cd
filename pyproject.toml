[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "zarfkit"
version = "0.1.0"
description = "Air-gapped software delivery helpers: admission webhook, JSON patches, archiving and package tools"
requires-python = ">=3.10"
keywords = ["air-gap", "kubernetes", "packaging", "admission-webhook", "json-patch"]
classifiers = [
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Topic :: System :: Software Distribution",
]
dependencies = [
    "pyyaml",
    "zstandard",
    "tomli-w",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["zarfkit*"]

[tool.pytest.ini_options]
addopts = "-ra"
