"""
Setup script for compensation-intel project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_namespace_packages

setup(
    name="compensation-intel",
    version="0.1.0",
    packages=find_namespace_packages(include=["src", "src.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "langchain-core>=0.2",
        "langchain-openai>=0.1",
        "json-repair>=0.25",
        "pymongo>=4.6",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "pytest-mock>=3.12",
        ],
    },
)
