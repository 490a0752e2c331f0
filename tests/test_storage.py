import io

import pytest
from botocore.exceptions import ClientError

import config
import storage
from storage import (
    StorageError,
    delete_receipt_image,
    list_receipt_images,
    load_receipt_image,
    save_receipt_image,
)


class FakeS3:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = Body

    def get_object(self, Bucket, Key):
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)

    def list_objects_v2(self, Bucket, Prefix):
        keys = [k for (b, k) in self.objects if b == Bucket and k.startswith(Prefix)]
        return {"Contents": [{"Key": k} for k in keys]} if keys else {}


class FailingS3(FakeS3):
    def put_object(self, **kwargs):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")


def test_local_round_trip(local_storage):
    ref = save_receipt_image("receipt_1.jpg", b"abc")

    assert ref == str(local_storage / "receipts" / "receipt_1.jpg")
    assert load_receipt_image(ref) == b"abc"
    assert list_receipt_images() == ["receipt_1.jpg"]


def test_missing_local_image_loads_as_none(local_storage):
    assert load_receipt_image(str(local_storage / "receipts" / "nope.jpg")) is None
    assert list_receipt_images() == []


def test_local_write_failure_raises(tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setattr(config, "LOCAL_DATA_DIR", str(blocker))

    with pytest.raises(StorageError):
        save_receipt_image("receipt_1.jpg", b"abc")


def test_s3_round_trip(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(config, "S3_BUCKET", "goalpulse-bucket")
    monkeypatch.setattr(storage, "get_s3_client", lambda: fake)

    ref = save_receipt_image("receipt_2.jpg", b"xyz")

    assert ref == "s3://goalpulse-bucket/receipts/receipt_2.jpg"
    assert load_receipt_image(ref) == b"xyz"
    assert list_receipt_images() == ["receipt_2.jpg"]


def test_s3_upload_failure_raises(monkeypatch):
    monkeypatch.setattr(config, "S3_BUCKET", "goalpulse-bucket")
    monkeypatch.setattr(storage, "get_s3_client", lambda: FailingS3())

    with pytest.raises(StorageError):
        save_receipt_image("receipt_3.jpg", b"xyz")


def test_directory_ref_loads_as_none(local_storage):
    local_storage.mkdir(parents=True)
    assert load_receipt_image(str(local_storage)) is None
    assert load_receipt_image(".") is None


def test_delete_local_image(local_storage):
    ref = save_receipt_image("receipt_4.jpg", b"abc")

    assert delete_receipt_image(ref) is True
    assert load_receipt_image(ref) is None
    assert delete_receipt_image(ref) is False


def test_delete_s3_image(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(config, "S3_BUCKET", "goalpulse-bucket")
    monkeypatch.setattr(storage, "get_s3_client", lambda: fake)
    ref = save_receipt_image("receipt_5.jpg", b"xyz")

    assert delete_receipt_image(ref) is True
    assert list_receipt_images() == []
