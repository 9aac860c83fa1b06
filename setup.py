#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

setup(
    name="assembly_bridge",
    version="1.0.0",
    description="Generate edge-js bridge modules and TOML manifests from compiled components",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "loguru>=0.5.0",
        "typer>=0.9.0",
        "rich>=10.0.0",
        "PyYAML>=5.4",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
        "dev": [
            "pytest>=6.0.0",
            "black>=21.5b2",
            "mypy>=0.812",
        ],
    },
    entry_points={
        "console_scripts": [
            "assembly-bridge=assembly_bridge.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
    ],
)
