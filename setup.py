"""
Setup script for resume-tailor project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="resume-tailor",
    version="0.1.0",
    packages=find_packages(include=["resume_tailor", "resume_tailor.*"]),
    python_requires=">=3.11",
    install_requires=[
        "langchain-core>=0.3",
        "langchain-openai>=0.2",
        "langchain-google-genai>=2.0",
        "pydantic>=2.0",
        "tenacity>=8.2",
        "python-dotenv>=1.0",
        "json-repair>=0.25",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "pytest-mock>=3.12",
        ],
    },
)
