"""
Setup script for strandlab.

strandlab is a strand-based learning assessment engine. It:

1. Scores answers to MCQ, fill-in-the-blank, matching and short answer questions
2. Runs level blocks through an answer/feedback/advance state machine
3. Grades written work (tables, graphs, explanations) against strand rubrics

The 'strandlab' command validates content, grades written work and runs
level blocks in the terminal.
"""

from setuptools import find_packages, setup

setup(
    name="strandlab",
    version="0.1.0",
    description="Strand-based learning assessment engine with level blocks and rubric grading",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # HTML parsing
        "lxml>=4.9.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "strandlab=strandlab.cli.main:app",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="assessment education rubric quiz learning",
)
