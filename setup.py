"""Setup script for expediente-form package following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="expediente-form",
    version="1.0.0",
    description="Expediente pending fields form - single use links to complete case records",
    author="Expediente Form Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["expediente*"]),
    py_modules=["config"],
    package_data={"expediente.entrypoints": ["templates/*.html"]},
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "pydantic",
        "sqlalchemy",
        "psycopg2-binary",
        "python-multipart",
        "jinja2",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-cov",
            "httpx",
        ],
        "dev": [
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "expediente-issue-link=expediente.entrypoints.issue_link:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Legal Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Framework :: FastAPI",
    ],
)
