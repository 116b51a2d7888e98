"""
Тесты локального хранилища файлов
"""

import pytest

from airlab.features.objects.storage import (
    ObjectStorageService, ObjectNotFoundError, InvalidObjectPathError, UploadOwnerError
)


@pytest.fixture
def storage(tmp_path):
    return ObjectStorageService(root_dir=str(tmp_path), public_base_url="http://files.test/")


class TestObjectStorage:

    def test_create_upload(self, storage):
        upload = storage.create_upload()
        object_id = upload["objectPath"].rsplit("/", 1)[-1]

        assert upload["objectPath"].startswith("/objects/uploads/")
        assert upload["uploadURL"] == f"http://files.test/api/objects/upload/{object_id}"

    def test_write_read_delete(self, storage):
        path = storage.create_upload()["objectPath"]

        storage.write(path, b"hello")

        assert storage.read(path) == b"hello"
        assert storage.delete(path) is True
        assert storage.delete(path) is False
        with pytest.raises(ObjectNotFoundError):
            storage.read(path)

    @pytest.mark.parametrize("path", [
        "/objects/../secret.txt",
        "/objects/uploads/../../etc/passwd",
        "../outside",
        "/objects/",
    ])
    def test_path_traversal_rejected(self, storage, path):
        with pytest.raises(InvalidObjectPathError):
            storage.write(path, b"x")

    def test_owner_files_not_served(self, storage):
        upload = storage.create_upload(owner_id="user-1")
        object_id = upload["objectPath"].rsplit("/", 1)[-1]

        with pytest.raises(InvalidObjectPathError):
            storage.read(f"/objects/.owners/{object_id}")


class TestUploads:

    def test_upload_records_owner(self, storage):
        upload = storage.create_upload(owner_id="user-1")
        object_id = upload["objectPath"].rsplit("/", 1)[-1]

        assert storage.get_upload_owner(object_id) == "user-1"
        assert storage.write_upload(object_id, "user-1", b"data") == upload["objectPath"]
        assert storage.read(upload["objectPath"]) == b"data"

    def test_foreign_owner_rejected(self, storage):
        object_id = storage.create_upload(owner_id="user-1")["objectPath"].rsplit("/", 1)[-1]

        with pytest.raises(UploadOwnerError):
            storage.write_upload(object_id, "user-2", b"data")

    def test_unissued_upload_rejected(self, storage):
        with pytest.raises(ObjectNotFoundError):
            storage.write_upload("0b8e4a52-0c1e-4c7c-9a51-3f2b8f1d7e11", "user-1", b"data")

    @pytest.mark.parametrize("object_id", ["..", "../etc", "abc", ""])
    def test_non_uuid_rejected(self, storage, object_id):
        with pytest.raises(InvalidObjectPathError):
            storage.write_upload(object_id, "user-1", b"data")
