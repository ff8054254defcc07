from __future__ import annotations

from setuptools import find_packages, setup


setup(
    name="billviz",
    version="0.1.0",
    description="U.S. Treasury bill rates: feed ingestion, caching and charts",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.28",
        "pandas>=2.0",
        "matplotlib>=3.6",
        "streamlit>=1.46",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
)
