"""
Setup script for the HTML to PDF service.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="html2pdf-service",
    version="0.1.0",
    packages=find_packages(include=["html2pdf_service", "html2pdf_service.*"]),
    package_data={"html2pdf_service": ["static/*.html"]},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.100",
        "uvicorn>=0.23",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "python-dotenv>=1.0",
        "python-multipart>=0.0.6",
        "playwright>=1.40",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "html2pdf-service=html2pdf_service.__main__:main",
        ],
    },
)
