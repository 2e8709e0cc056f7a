import io
import logging
from pathlib import Path

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from sqlmodel import Session, select

from pharmaportal.db.session import engine
from pharmaportal.errors import NotFound, StorageUnavailable
from pharmaportal.model.account import Account
from pharmaportal.model.base import MAX_ID
from pharmaportal.model.blob import Blob
from pharmaportal.storage.client import S3Client
from pharmaportal.storage.config import StorageConfig
from pharmaportal.storage.local import LocalClient
from pharmaportal.storage.service import sanitize_filename


@pytest.fixture
def owner(session):
    account = Account(email="blob@pharmacy.test", password_hash="x")
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


def test_storage_config_parses_urls(monkeypatch):
    monkeypatch.delenv("S3_BUCKET_NAME", raising=False)

    local = StorageConfig("file://./data/uploads")
    absolute = StorageConfig("file:///srv/blobs")
    s3 = StorageConfig("s3://pharma-docs")

    assert local.backend == "file" and local.local_root == Path("./data/uploads")
    assert absolute.local_root == Path("/srv/blobs")
    assert s3.backend == "s3" and s3.bucket_name == "pharma-docs"
    assert StorageConfig("s3://").bucket_name == "uploads"
    with pytest.raises(ValueError):
        StorageConfig("ftp://host/dir")


def test_local_client_put_stream_delete(tmp_path):
    client = LocalClient(StorageConfig(f"file://{tmp_path}"))
    client.ensure_bucket_exists()

    size = client.put(io.BytesIO(b"abc" * 50_000), "1/drugLicense/x.bin")

    assert size == 150_000
    assert b"".join(client.open_stream("1/drugLicense/x.bin")) == b"abc" * 50_000
    client.delete("1/drugLicense/x.bin")
    assert not client.exists("1/drugLicense/x.bin")
    with pytest.raises(NotFound):
        client.open_stream("1/drugLicense/x.bin")


def test_local_client_refuses_keys_outside_root(tmp_path):
    client = LocalClient(StorageConfig(f"file://{tmp_path / 'root'}"))

    with pytest.raises(NotFound):
        client.open_stream("../outside.txt")


def test_sanitize_filename():
    assert sanitize_filename("report final.pdf") == "report_final.pdf"
    assert sanitize_filename("C:\\docs\\gst.pdf") == "gst.pdf"
    assert sanitize_filename("/etc/passwd") == "passwd"
    assert sanitize_filename("..") == "unknown"


def test_upload_download_delete(storage, session, owner):
    blob = storage.upload(
        session,
        owner_id=owner.id,
        file_obj=io.BytesIO(b"certificate"),
        filename="gst.pdf",
        content_type="application/pdf",
        field="gstCertificate",
    )

    assert blob.file_size == len(b"certificate")
    assert blob.original_filename == "gst.pdf"
    assert blob.filename.endswith("_gst.pdf")
    found, chunks = storage.open_download(session, blob.id, owner.id)
    assert found.content_type == "application/pdf"
    assert b"".join(chunks) == b"certificate"

    storage.delete(blob.id)

    with Session(engine) as fresh, pytest.raises(NotFound):
        storage.open_download(fresh, blob.id, owner.id)
    assert not storage.client.exists(blob.storage_key)


def test_upload_defaults_content_type(storage, session, owner):
    blob = storage.upload(
        session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename=None, content_type=None, field="drugLicense"
    )

    assert blob.content_type == "application/octet-stream"
    assert blob.original_filename == "unknown"


def test_download_of_other_owner_is_not_found(storage, session, owner):
    blob = storage.upload(
        session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename="a.pdf", content_type=None, field="drugLicense"
    )

    with pytest.raises(NotFound):
        storage.open_download(session, blob.id, owner.id + 1)


def test_download_with_missing_object_is_not_found(storage, session, owner):
    blob = storage.upload(
        session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename="a.pdf", content_type=None, field="drugLicense"
    )
    storage.client.delete(blob.storage_key)

    with pytest.raises(NotFound):
        storage.open_download(session, blob.id, owner.id)


def test_delete_failures_are_swallowed_and_logged(storage, session, owner, monkeypatch, caplog):
    blob = storage.upload(
        session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename="a.pdf", content_type=None, field="drugLicense"
    )

    def broken_delete(key):
        raise OSError("disk gone")

    monkeypatch.setattr(storage.client, "delete", broken_delete)

    with caplog.at_level(logging.WARNING, logger="pharmaportal.storage.service"):
        storage.delete(blob.id)

    assert "disk gone" in caplog.text


def test_delete_unknown_blob_is_noop(storage):
    storage.delete(123456)


def test_closed_storage_is_unavailable(storage, session, owner):
    storage.close()

    with pytest.raises(StorageUnavailable):
        storage.upload(
            session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename="a.pdf", content_type=None, field="drugLicense"
        )
    # delete continua best-effort mesmo sem storage
    storage.delete(1)


def test_failed_metadata_insert_removes_object(storage, session, owner, monkeypatch):
    written = []
    original_put = storage.client.put

    def tracking_put(file_obj, key, content_type=None):
        written.append(key)
        return original_put(file_obj, key, content_type=content_type)

    monkeypatch.setattr(storage.client, "put", tracking_put)

    def failing_commit():
        raise RuntimeError("db down")

    monkeypatch.setattr(session, "commit", failing_commit)

    with pytest.raises(RuntimeError):
        storage.upload(
            session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename="a.pdf", content_type=None, field="drugLicense"
        )

    assert written and not storage.client.exists(written[0])


def test_blob_rows_only_for_completed_writes(storage, session, owner, monkeypatch):
    def failing_put(file_obj, key, content_type=None):
        raise OSError("write interrupted")

    monkeypatch.setattr(storage.client, "put", failing_put)

    with pytest.raises(OSError):
        storage.upload(
            session, owner_id=owner.id, file_obj=io.BytesIO(b"x"), filename="a.pdf", content_type=None, field="drugLicense"
        )

    assert session.exec(select(Blob)).all() == []


def test_download_of_out_of_range_id_is_not_found(storage, session, owner):
    with pytest.raises(NotFound):
        storage.open_download(session, MAX_ID + 1, owner.id)
    with pytest.raises(NotFound):
        storage.open_download(session, 0, owner.id)


@pytest.fixture
def s3_client():
    # Cliente boto3 real; nenhuma chamada de rede acontece na criação
    return S3Client(StorageConfig("s3://pharma-docs"))


def test_s3_put_when_endpoint_unreachable_is_unavailable(s3_client, monkeypatch):
    def unreachable(*args, **kwargs):
        raise EndpointConnectionError(endpoint_url="http://minio:9000")

    monkeypatch.setattr(s3_client._client, "upload_fileobj", unreachable)

    with pytest.raises(StorageUnavailable):
        s3_client.put(io.BytesIO(b"x"), "1/drugLicense/a.pdf", content_type="application/pdf")


@pytest.mark.parametrize("code,expected", [("NoSuchKey", NotFound), ("InternalError", StorageUnavailable)])
def test_s3_open_stream_maps_client_errors(s3_client, monkeypatch, code, expected):
    def failing_get(**kwargs):
        raise ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")

    monkeypatch.setattr(s3_client._client, "get_object", failing_get)

    with pytest.raises(expected):
        s3_client.open_stream("1/drugLicense/a.pdf")


def test_s3_delete_when_endpoint_unreachable_is_unavailable(s3_client, monkeypatch):
    def unreachable(**kwargs):
        raise EndpointConnectionError(endpoint_url="http://minio:9000")

    monkeypatch.setattr(s3_client._client, "delete_object", unreachable)

    with pytest.raises(StorageUnavailable):
        s3_client.delete("1/drugLicense/a.pdf")


def test_local_put_write_failure_is_unavailable(tmp_path, monkeypatch):
    client = LocalClient(StorageConfig(f"file://{tmp_path}"))

    def broken_copy(*args, **kwargs):
        raise OSError("no space left on device")

    monkeypatch.setattr("pharmaportal.storage.local.shutil.copyfileobj", broken_copy)

    with pytest.raises(StorageUnavailable):
        client.put(io.BytesIO(b"x"), "1/drugLicense/a.pdf")
