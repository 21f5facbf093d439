#!/usr/bin/env python3
"""
Setup script for the ECS task deployer.
"""

from setuptools import setup, find_packages

# Most configuration is in pyproject.toml
# This file exists for compatibility with older pip versions

setup(
    packages=find_packages(include=["ecs_deployer", "ecs_deployer.*"]),
)
