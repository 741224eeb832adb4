"""
Setup script for adaptive-engine.

The adaptive content engine is the decision core of a learning platform.
It serves three roles:

1. Question Compiler - Deterministic, seeded questions from templates
2. Exposure Tracker - No-repeat question serving per learner session
3. Difficulty Engine - In-session adaptation and next-session suggestions

The 'adaptive-engine' command is a developer CLI for inspecting all three.
"""

from setuptools import find_packages, setup

setup(
    name="adaptive-engine",
    version="1.0.0",
    description="Deterministic question compilation and adaptive difficulty decisions",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
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
            "adaptive-engine=adaptive_engine.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning adaptive-difficulty question-generation education",
)
