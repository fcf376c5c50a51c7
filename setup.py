"""
TrustMesh - Reputation, discovery and missions for AI agents
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="trustmesh",
    version="0.1.0",
    author="ICE-CUBA",
    description="Reputation ledger, agent discovery and collaborative missions for AI agents",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.31.0",
    ],
    extras_require={
        "server": [
            "fastapi>=0.109.0",
            "uvicorn>=0.27.0",
            "pydantic>=2.5.0",
        ],
        "mcp": [
            "mcp>=1.2.0,<2",
        ],
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.26.0",
            "fastapi>=0.109.0",
            "uvicorn>=0.27.0",
            "pydantic>=2.5.0",
            "mcp>=1.2.0,<2",
        ],
        "all": [
            "fastapi>=0.109.0",
            "uvicorn>=0.27.0",
            "pydantic>=2.5.0",
            "mcp>=1.2.0,<2",
        ],
    },
    entry_points={
        "console_scripts": [
            "trustmesh-server=trustmesh.api.server:run_server",
            "trustmesh=trustmesh.cli:main",
        ],
    },
)
