#!/usr/bin/env python3
"""
lingalign: Linguistic Similarity and Accommodation Measures
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="lingalign",
    version="0.3.0",
    author="lingalign developers",
    description="Measure linguistic similarity, style matching and accommodation between texts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "Topic :: Text Processing :: Linguistic",
    ],
    packages=find_packages(include=["lingalign", "lingalign.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.19.0",
        "scipy>=1.5.0",
        "scikit-learn>=1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "black",
            "flake8",
        ],
    },
    entry_points={
        "console_scripts": [
            "lingalign=lingalign.cli:main",
        ],
    },
    keywords=[
        "nlp",
        "linguistic-style-matching",
        "language-style-matching",
        "accommodation",
        "text-similarity",
        "document-term-matrix",
        "function-words",
        "latent-semantic-analysis",
    ],
)
