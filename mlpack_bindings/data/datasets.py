"""
Dataset Helpers
===============

Small utilities for getting example datasets into and out of numpy:

- download_file: streamed HTTP download with retry and exponential backoff
- unzip:         gunzip a ``.gz`` file
- load / save:   delimited text <-> 2-D arrays (one point per row)

    path = download_file("https://www.mlpack.org/datasets/iris.csv.gz")
    X = load(unzip(path))
"""

from __future__ import annotations

import gzip
import logging
import shutil
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import numpy as np
import requests

from mlpack_bindings.config import get_config
from mlpack_bindings.core.error_handling import DownloadError, RetryConfig, RetryHandler

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_CHUNK_SIZE = 1 << 16


# =============================================================================
# DOWNLOAD
# =============================================================================


def _default_destination(url: str) -> Path:
    name = Path(urlparse(url).path).name or "download"
    return get_config().data_dir / name


def _fetch(url: str, destination: Path, timeout: float) -> int:
    """Stream ``url`` into ``destination`` through a temporary file."""
    partial = destination.with_name(destination.name + ".part")
    written = 0
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
        partial.replace(destination)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    return written


def download_file(
    url: str,
    destination: Optional[PathLike] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
) -> Path:
    """
    Download ``url`` to ``destination``.

    Connection errors, timeouts and HTTP 429/500/502/503/504 responses are
    retried with exponential backoff; other HTTP errors fail immediately.
    A failed attempt never leaves its ``.part`` file behind.

    Args:
        url: Source URL.
        destination: Target file; defaults to the URL's file name inside
            ``config.data_dir``.
        timeout: Per-request timeout in seconds (``config.download_timeout``).
        retries: Retries after the first attempt (``config.download_retries``).

    Returns:
        Path of the downloaded file.

    Raises:
        DownloadError: if the download ultimately fails.
    """
    config = get_config()
    dest = Path(destination) if destination is not None else _default_destination(url)
    timeout = config.download_timeout if timeout is None else timeout
    retries = config.download_retries if retries is None else retries

    dest.parent.mkdir(parents=True, exist_ok=True)
    handler = RetryHandler(RetryConfig(max_retries=retries))

    logger.info(f"Downloading {url} -> {dest}")
    try:
        size = handler.execute(_fetch, url, dest, timeout)
    except requests.RequestException as e:
        raise DownloadError(url, str(e)) from e
    except OSError as e:
        raise DownloadError(url, f"cannot write {dest}: {e}") from e

    logger.info(f"Downloaded {size} bytes to {dest}")
    return dest


# =============================================================================
# ARCHIVES
# =============================================================================


def unzip(source: PathLike, destination: Optional[PathLike] = None) -> Path:
    """
    Decompress a gzip file.

    ``destination`` defaults to ``source`` without its ``.gz`` suffix.
    """
    src = Path(source)
    if destination is not None:
        dest = Path(destination)
    elif src.suffix == ".gz":
        dest = src.with_suffix("")
    else:
        raise ValueError(f"cannot derive an output name for {src}; pass destination")

    with gzip.open(src, "rb") as fin, open(dest, "wb") as fout:
        shutil.copyfileobj(fin, fout)

    logger.debug(f"Extracted {src} -> {dest}")
    return dest


# =============================================================================
# DELIMITED TEXT
# =============================================================================


def load(path: PathLike, delimiter: str = ",", skip_header: bool = False) -> np.ndarray:
    """Read a delimited numeric file as a float64 array with one point per row."""
    return np.loadtxt(
        Path(path),
        delimiter=delimiter,
        skiprows=1 if skip_header else 0,
        dtype=np.float64,
        ndmin=2,
    )


def save(path: PathLike, array: np.ndarray, delimiter: str = ",") -> Path:
    """
    Write an array as delimited text.

    Integer arrays are written without decimals; 1-D arrays become one
    value per line.
    """
    dest = Path(path)
    arr = np.asarray(array)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    fmt = "%d" if np.issubdtype(arr.dtype, np.integer) else "%.18g"
    dest.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(dest, arr, delimiter=delimiter, fmt=fmt)
    return dest
