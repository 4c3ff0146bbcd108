#!/usr/bin/env python3
"""
Setup script for the IMPAG Quotation Parser
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

# Read requirements
requirements = (this_directory / "requirements.txt").read_text().splitlines()

setup(
    name="impag-quotation-parser",
    version="1.0.0",
    author="IMPAG",
    author_email="impaqtodoparaelcampo@gmail.com",
    description="Parses AI-generated quotations into internal and customer documents with totals and exports",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"quotation_parser": ["templates/*.html"]},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "tests": ["pytest>=7.0.0", "pdfplumber>=0.9.0"],
    },
    entry_points={
        "console_scripts": [
            "quotation-parser=quotation_parser.cli:cli",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
