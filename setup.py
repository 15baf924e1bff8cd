"""
Setup script for merge-digest.
"""

from setuptools import setup, find_packages

setup(
    name="merge-digest",
    version="0.1.0",
    description="Mergeable streaming quantile summaries (merging t-digest)",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    package_data={"merge_digest": ["py.typed"]},
    python_requires=">=3.8",
)
