# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the Native Extension Registry
"""

from setuptools import setup, find_packages

setup(
    name="native-ext-registry",
    version="1.0.0",
    description="Registry and load-order manager for compiled runtime extensions",
    author="Jason Cafarelli",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "extregistry=extregistry.cli:main",
        ]
    },
)
