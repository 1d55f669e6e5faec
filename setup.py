"""
Schema Converter System - Setup Configuration
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [
        line.strip()
        for line in fh.readlines()
        if line.strip() and not line.startswith("#")
    ]

# Core requirements
core_requirements = [
    "pydantic>=2.0.0",
    "pyyaml>=6.0.0",
    "boto3>=1.28.0",
    "botocore>=1.31.0",
    "python-dotenv>=1.0.0",
    "sqlparse>=0.4.4",
]

# Development requirements
dev_requirements = [
    "pytest>=7.0.0",
    "pytest-cov>=4.0.0",
    "black>=23.0.0",
    "isort>=5.12.0",
    "flake8>=6.0.0",
    "mypy>=1.0.0",
    "pre-commit>=3.0.0",
]

setup(
    name="schema-converter-system",
    version="1.0.0",
    author="Schema Converter Contributors",
    author_email="",
    description="Bidirectional relational <-> document schema conversion through a canonical model",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/schema-converter-system",
    project_urls={
        "Bug Tracker": "https://github.com/yourusername/schema-converter-system/issues",
        "Documentation": "https://github.com/yourusername/schema-converter-system#readme",
        "Source Code": "https://github.com/yourusername/schema-converter-system",
    },
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Software Development :: Code Generators",
    ],
    python_requires=">=3.9",
    install_requires=core_requirements,
    extras_require={
        "dev": dev_requirements,
    },
    include_package_data=True,
    keywords=[
        "schema",
        "ddl",
        "mongodb",
        "document",
        "relational",
        "migration",
        "bedrock",
        "claude",
    ],
)
