"""
Memecoin Observatory - Setup Configuration
Solana memecoin analytics: hype, rugpull risk, meme correlation and portfolio strategy
"""

from setuptools import setup, find_namespace_packages
import os

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
def read_requirements(file):
    """Read requirements from file"""
    if os.path.exists(file):
        with open(file, 'r') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

setup(
    name="memecoin-observatory",
    version="1.0.0",
    author="Memecoin Observatory Team",
    description="Solana memecoin analytics service with hype, safety and meme correlation scoring",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial :: Investment",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Framework :: AsyncIO",
        "Framework :: aiohttp",
    ],
    packages=find_namespace_packages(
        include=["analysis*", "config*", "core*", "data*", "monitoring*", "utils*"]
    ),
    py_modules=["main"],
    python_requires=">=3.11",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": read_requirements("test-requirements.txt"),
    },
    entry_points={
        "console_scripts": [
            "memecoin-observatory=main:main",
        ],
    },
    include_package_data=True,
    package_data={
        "config": ["*.yaml"],
    },
    zip_safe=False,
    keywords=[
        "solana", "memecoin", "cryptocurrency", "rugpull",
        "sentiment", "analytics", "dexscreener", "mcp"
    ],
)
