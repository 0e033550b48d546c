"""
Setup script for cadence.

Cadence is an interactive command shell in front of a spaced-repetition
exercise scheduler. It serves two roles:

1. Practice front-end - Fetch exercises, read material, record mastery scores
2. Session control - Filters, blacklist and review list management

The scheduling itself is done by a scheduler backend, installed separately
and registered under the 'cadence.schedulers' entry point group.
"""

from setuptools import find_packages, setup

setup(
    name="cadence",
    version="0.1.0",
    description="Interactive shell for a spaced-repetition exercise scheduler",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0,<0.26",
        "click>=8.0.0",
        "rich>=13.0.0",
        "prompt_toolkit>=3.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cadence=cadence.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition cli repl practice",
)
