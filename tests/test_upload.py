from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from wechat_sdk.core.errors import TransportError, UploadFetchError
from wechat_sdk.core.upload import new_upload_form, with_extra_field, with_resource_url


def _response(status_code: int, content: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    return response


def test_buffer_reads_local_file(tmp_path) -> None:
    path = tmp_path / "image.jpg"
    path.write_bytes(b"\xff\xd8jpeg")
    form = new_upload_form("media", str(path), with_extra_field("k", "v"))

    assert form.buffer() == b"\xff\xd8jpeg"
    assert dict(form.extra_fields) == {"k": "v"}


def test_buffer_missing_local_file_raises_filesystem_error(tmp_path) -> None:
    form = new_upload_form("media", str(tmp_path / "missing.jpg"))

    with pytest.raises(FileNotFoundError):
        form.buffer()


def test_buffer_fetches_remote_resource_first() -> None:
    session = MagicMock()
    session.get.return_value = _response(200, b"remote")
    form = new_upload_form(
        "media",
        "does-not-exist.jpg",
        with_resource_url("https://cdn.example.com/a.jpg"),
    )

    assert form.buffer(session=session, timeout=3) == b"remote"
    session.get.assert_called_once_with("https://cdn.example.com/a.jpg", timeout=3)


def test_buffer_remote_non_200_carries_status_code() -> None:
    session = MagicMock()
    session.get.return_value = _response(404)
    form = new_upload_form("media", "a.jpg", with_resource_url("https://cdn.example.com/a.jpg"))

    with pytest.raises(UploadFetchError) as excinfo:
        form.buffer(session=session)

    assert excinfo.value.status_code == 404
    assert isinstance(excinfo.value, TransportError)


def test_buffer_without_session_uses_requests(monkeypatch) -> None:
    getter = MagicMock(return_value=_response(200, b"payload"))
    monkeypatch.setattr("wechat_sdk.core.upload.requests.get", getter)
    form = new_upload_form("media", "a.jpg", with_resource_url("https://cdn.example.com/a.jpg"))

    assert form.buffer() == b"payload"
    getter.assert_called_once_with("https://cdn.example.com/a.jpg", timeout=None)


def test_buffer_remote_connection_failure_is_wrapped() -> None:
    session = MagicMock()
    failure = requests.ConnectionError("connection refused")
    session.get.side_effect = failure
    form = new_upload_form("media", "a.jpg", with_resource_url("https://cdn.example.com/a.jpg"))

    with pytest.raises(UploadFetchError) as excinfo:
        form.buffer(session=session)

    assert excinfo.value.__cause__ is failure
    assert excinfo.value.status_code is None
