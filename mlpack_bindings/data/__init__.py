"""
Dataset download and delimited-text helpers.
"""

from mlpack_bindings.data.datasets import download_file, load, save, unzip

__all__ = [
    "download_file",
    "unzip",
    "load",
    "save",
]
