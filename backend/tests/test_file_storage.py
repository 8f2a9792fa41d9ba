"""
Tests for local and Drive attachment storage.
"""

from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError
from tenacity import wait_none

from carfleet.errors import UpstreamError, ValidationError
from carfleet.services.file_storage import (
    Attachment,
    DriveFileStorage,
    LocalFileStorage,
    stored_name,
    validate_attachment,
)


def attachment(field="photo", filename="front.jpg", data=b"jpeg"):
    return Attachment(field=field, filename=filename, content_type="image/jpeg", data=data)


def http_error(status):
    return HttpError(httplib2.Response({"status": status}), b'{"error": {"message": "x"}}')


class TestHelpers:
    def test_oversize_attachment(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_attachment(attachment(data=b"x" * 11), max_bytes=10)
        assert exc_info.value.fields == ["photo"]

    def test_stored_name_is_safe(self):
        name = stored_name("../../my car photo.jpg")
        prefix, _, rest = name.partition("_")
        assert prefix.isdigit()
        assert rest == "my_car_photo.jpg"


class TestLocalFileStorage:
    @pytest.fixture
    def storage(self, tmp_path):
        return LocalFileStorage(tmp_path, url_prefix="/uploads")

    def test_upload_and_delete(self, storage, tmp_path):
        folder = storage.create_or_get_folder("CarDealership_Photos")
        url = storage.upload(attachment(), folder)

        assert url.startswith("/uploads/CarDealership_Photos/")
        assert url.endswith("_front.jpg")
        path = tmp_path / url[len("/uploads/"):]
        assert path.read_bytes() == b"jpeg"

        storage.delete(url)
        assert not path.exists()

    def test_delete_missing_file_is_quiet(self, storage):
        storage.delete("/uploads/photos/123_gone.jpg")

    def test_foreign_urls_are_left_alone(self, storage, tmp_path):
        outside = tmp_path.parent / "outside.txt"
        outside.write_text("keep")
        storage.delete("https://example.com/file.jpg")
        storage.delete("/uploads/../outside.txt")
        assert outside.read_text() == "keep"


class TestDriveFileStorage:
    @pytest.fixture
    def service(self):
        return MagicMock()

    @pytest.fixture
    def storage(self, service):
        return DriveFileStorage(wait=wait_none(), service_factory=lambda: service)

    def test_existing_folder_is_reused(self, storage, service):
        service.files().list().execute.return_value = {"files": [{"id": "F1", "name": "Photos"}]}
        assert storage.create_or_get_folder("Photos") == "F1"
        service.files().create.assert_not_called()

    def test_missing_folder_is_created(self, storage, service):
        service.files().list().execute.return_value = {"files": []}
        service.files().create().execute.return_value = {"id": "F2"}
        assert storage.create_or_get_folder("Docs") == "F2"

    def test_upload_shares_the_file(self, storage, service):
        service.files().create().execute.return_value = {
            "id": "abc",
            "webViewLink": "https://drive.google.com/file/d/abc/view?usp=drivesdk",
        }
        url = storage.upload(attachment(), "F1")
        assert url == "https://drive.google.com/file/d/abc/view?usp=drivesdk"
        service.permissions().create.assert_called_with(
            fileId="abc", body={"role": "reader", "type": "anyone"}
        )

    def test_upload_failure(self, storage, service):
        service.files().create().execute.side_effect = http_error(403)
        with pytest.raises(UpstreamError):
            storage.upload(attachment(), "F1")

    def test_delete_by_url(self, storage, service):
        storage.delete("https://drive.google.com/file/d/abc_1-2/view?usp=drivesdk")
        service.files().delete.assert_called_with(fileId="abc_1-2")

    def test_delete_already_gone(self, storage, service):
        service.files().delete().execute.side_effect = http_error(404)
        storage.delete("https://drive.google.com/file/d/abc/view")

    def test_delete_failure(self, storage, service):
        service.files().delete().execute.side_effect = http_error(500)
        with pytest.raises(UpstreamError):
            storage.delete("https://drive.google.com/file/d/abc/view")

    def test_url_without_file_id(self, storage, service):
        storage.delete("/uploads/photos/1_a.jpg")
        service.files().delete.assert_not_called()
