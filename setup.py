"""
Setup script for the mlpack Python bindings
"""
from setuptools import setup, find_packages


setup(
    name="mlpack-bindings",
    version="1.0.0",
    description="numpy bindings for mlpack's command-line programs over its C shim libraries",
    packages=find_packages(include=["mlpack_bindings", "mlpack_bindings.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.22",
        "pyyaml>=6.0",
        "requests>=2.28",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "mlpack-bindings=mlpack_bindings.cli:main",
        ],
    },
    zip_safe=False,
)
