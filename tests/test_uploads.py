import io
import os

import pytest
from fastapi import UploadFile

from app.services import uploads
from app.services.uploads import UploadRejected, save_upload


class FailingStream(io.BytesIO):
    """Hands out one chunk, then fails like a dropped connection or full disk."""

    def __init__(self):
        super().__init__(b"x" * 10)
        self.calls = 0

    def read(self, size=-1):
        self.calls += 1
        if self.calls > 1:
            raise OSError("No space left on device")
        return super().read(size)


def test_save_upload_writes_file(tmp_path):
    upload = UploadFile(io.BytesIO(b"a,b\n1,2\n"), filename="stock.csv")

    path = save_upload(upload, str(tmp_path), max_size=1024)

    assert os.path.basename(path).endswith("-stock.csv")
    with open(path, "rb") as f:
        assert f.read() == b"a,b\n1,2\n"


def test_failed_write_leaves_nothing_behind(tmp_path, monkeypatch):
    monkeypatch.setattr(uploads, "CHUNK_SIZE", 4)
    upload = UploadFile(FailingStream(), filename="stock.csv")

    with pytest.raises(OSError):
        save_upload(upload, str(tmp_path), max_size=1024)

    assert os.listdir(tmp_path) == []


def test_oversized_upload_is_removed(tmp_path):
    upload = UploadFile(io.BytesIO(b"x" * 100), filename="stock.csv")

    with pytest.raises(UploadRejected):
        save_upload(upload, str(tmp_path), max_size=10)

    assert os.listdir(tmp_path) == []
