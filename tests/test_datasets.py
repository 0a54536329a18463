"""Tests for dataset download and delimited-text helpers (HTTP is mocked)."""

import gzip
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import requests


def _http_error(status, message):
    return requests.HTTPError(message, response=MagicMock(status_code=status))


def _response(chunks=(b"1,2\n", b"3,4\n"), status_error=None):
    response = MagicMock()
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    response.iter_content.return_value = list(chunks)
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


@pytest.fixture
def no_sleep():
    with patch("mlpack_bindings.core.error_handling.time.sleep") as sleep:
        yield sleep


class TestDownloadFile:
    """Verify streamed downloads and retry behavior."""

    def test_download_writes_file(self, tmp_path):
        from mlpack_bindings.data import download_file

        dest = tmp_path / "iris.csv"
        with patch("mlpack_bindings.data.datasets.requests.get", return_value=_response()) as get:
            path = download_file("https://example.org/iris.csv", dest, timeout=5)

        assert path == dest
        assert dest.read_bytes() == b"1,2\n3,4\n"
        assert not (tmp_path / "iris.csv.part").exists()
        get.assert_called_once_with("https://example.org/iris.csv", stream=True, timeout=5)

    def test_default_destination_is_data_dir(self, tmp_path):
        from mlpack_bindings.config import get_config
        from mlpack_bindings.data import download_file

        with patch("mlpack_bindings.data.datasets.requests.get", return_value=_response()):
            path = download_file("https://example.org/data/ratings.csv.gz")

        assert path == get_config().data_dir / "ratings.csv.gz"
        assert path.exists()

    def test_connection_errors_are_retried(self, tmp_path, no_sleep):
        from mlpack_bindings.data import download_file

        responses = [requests.ConnectionError("reset by peer"), _response()]
        with patch("mlpack_bindings.data.datasets.requests.get", side_effect=responses) as get:
            download_file("https://example.org/x.csv", tmp_path / "x.csv", retries=2)

        assert get.call_count == 2
        assert no_sleep.call_count == 1

    def test_server_errors_are_retried_then_fail(self, tmp_path, no_sleep):
        from mlpack_bindings.core.error_handling import DownloadError
        from mlpack_bindings.data import download_file

        error = _http_error(503, "503 Server Error: Service Unavailable")
        with patch(
            "mlpack_bindings.data.datasets.requests.get",
            return_value=_response(status_error=error),
        ) as get:
            with pytest.raises(DownloadError, match="503") as exc:
                download_file("https://example.org/x.csv", tmp_path / "x.csv", retries=2)

        assert get.call_count == 3
        assert exc.value.url == "https://example.org/x.csv"

    def test_client_errors_fail_immediately(self, tmp_path, no_sleep):
        from mlpack_bindings.core.error_handling import DownloadError
        from mlpack_bindings.data import download_file

        error = _http_error(404, "404 Client Error: Not Found")
        with patch(
            "mlpack_bindings.data.datasets.requests.get",
            return_value=_response(status_error=error),
        ) as get:
            with pytest.raises(DownloadError):
                download_file("https://example.org/x.csv", tmp_path / "x.csv", retries=3)

        assert get.call_count == 1
        no_sleep.assert_not_called()

    def test_status_code_decides_retry_not_message(self, tmp_path, no_sleep):
        from mlpack_bindings.core.error_handling import DownloadError
        from mlpack_bindings.data import download_file

        url = "https://example.org/release-5003/x.csv"
        error = _http_error(404, f"404 Client Error: Not Found for url: {url}")
        with patch(
            "mlpack_bindings.data.datasets.requests.get",
            return_value=_response(status_error=error),
        ) as get:
            with pytest.raises(DownloadError):
                download_file(url, tmp_path / "x.csv", retries=3)

        assert get.call_count == 1

    def test_interrupted_stream_leaves_no_partial_file(self, tmp_path, no_sleep):
        from mlpack_bindings.core.error_handling import DownloadError
        from mlpack_bindings.data import download_file

        def broken_stream(chunk_size):
            yield b"1,2\n"
            raise requests.ConnectionError("connection reset mid-stream")

        response = _response()
        response.iter_content.side_effect = broken_stream
        dest = tmp_path / "x.csv"

        with patch("mlpack_bindings.data.datasets.requests.get", return_value=response):
            with pytest.raises(DownloadError, match="mid-stream"):
                download_file("https://example.org/x.csv", dest, retries=0)

        assert not dest.exists()
        assert not (tmp_path / "x.csv.part").exists()

    def test_partial_file_removed_before_retry_succeeds(self, tmp_path, no_sleep):
        from mlpack_bindings.data import download_file

        def broken_stream(chunk_size):
            yield b"garbage"
            raise requests.ConnectionError("reset")

        first = _response()
        first.iter_content.side_effect = broken_stream
        dest = tmp_path / "x.csv"

        with patch("mlpack_bindings.data.datasets.requests.get", side_effect=[first, _response()]):
            download_file("https://example.org/x.csv", dest, retries=1)

        assert dest.read_bytes() == b"1,2\n3,4\n"
        assert not (tmp_path / "x.csv.part").exists()


class TestUnzip:
    """Verify gzip extraction."""

    def test_unzip_strips_suffix(self, tmp_path):
        from mlpack_bindings.data import unzip

        source = tmp_path / "data.csv.gz"
        with gzip.open(source, "wb") as f:
            f.write(b"1,2,3\n")

        out = unzip(source)
        assert out == tmp_path / "data.csv"
        assert out.read_bytes() == b"1,2,3\n"

    def test_unzip_needs_destination_without_gz(self, tmp_path):
        from mlpack_bindings.data import unzip

        with pytest.raises(ValueError):
            unzip(tmp_path / "data.bin")


class TestLoadSave:
    """Verify CSV reading and writing."""

    def test_load_is_two_dimensional(self, tmp_path):
        from mlpack_bindings.data import load

        path = tmp_path / "one.csv"
        path.write_text("1,2,3\n")
        assert load(path).shape == (1, 3)

    def test_load_skips_header(self, tmp_path):
        from mlpack_bindings.data import load

        path = tmp_path / "ratings.csv"
        path.write_text("user,item,rating\n1,10,4.5\n2,11,3.0\n")
        np.testing.assert_array_equal(load(path, skip_header=True), [[1, 10, 4.5], [2, 11, 3.0]])

    def test_save_integers_without_decimals(self, tmp_path):
        from mlpack_bindings.data import save

        path = save(tmp_path / "out" / "labels.csv", np.array([[1, 2], [3, 4]], dtype=np.int64))
        assert path.read_text() == "1,2\n3,4\n"

    def test_save_load_floats(self, tmp_path):
        from mlpack_bindings.data import load, save

        data = np.array([[0.1, 1e-9], [3.25, -2.0]])
        path = save(tmp_path / "data.csv", data)
        np.testing.assert_array_equal(load(path), data)

    def test_save_vector_as_column(self, tmp_path):
        from mlpack_bindings.data import save

        path = save(tmp_path / "v.csv", np.array([1, 2, 3]))
        assert path.read_text() == "1\n2\n3\n"
