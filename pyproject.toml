[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nachoskern"
version = "0.1.0"
description = "User-program support for a small teaching kernel: bitmaps, a synchronous console, a simulated machine, address spaces and system-call handling"
requires-python = ">=3.10"
dependencies = []
keywords = ["operating system", "kernel", "teaching", "syscall", "address space", "bitmap", "console", "noff"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Operating System Kernels",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nachoskern"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
