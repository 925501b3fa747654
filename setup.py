#!/usr/bin/env python3
"""Setup script for freshrss-filter."""
from setuptools import find_packages, setup

# Read version from package
with open("src/freshrss_filter/__init__.py", "r") as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split("=")[1].strip().strip('"').strip("'")
            break

# Read long description from README
with open("README.md", "r") as f:
    long_description = f.read()

setup(
    name="freshrss-filter",
    version=version,
    description="Classify and remove ads from FreshRSS using an LLM",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.31.0",
        "openai>=1.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.2.0",
        "python-dotenv>=1.0.0",
        "croniter>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "freshrss-filter=freshrss_filter.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary",
    ],
)
