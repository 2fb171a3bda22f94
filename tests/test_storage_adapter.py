import os

import pytest

from loris_gateway.adapters.implementations.storage.adapter import StorageAdapter, validate_image
from loris_gateway.core.exceptions import (
    ConfigError,
    DeleteError,
    NotFoundError,
    UploadError,
    ValidationError,
)
from loris_gateway.domain.models.storage import UploadRequest

FIVE_MIB = 5 * 1024 * 1024


@pytest.mark.asyncio
async def test_upload_returns_public_url_and_removes_temp_file(storage_adapter, remote, make_upload):
    request = make_upload("Lamp Shade.JPG", content_type="image/jpeg")

    result = await storage_adapter.upload(request, "products")

    assert result.key.startswith("products/")
    assert result.key.endswith(".JPG")
    assert result.url == f"https://f003.backblazeb2.com/file/loris-images/{result.key}"
    assert result.remote_id == remote.files[result.key]
    assert result.size == request.size
    assert result.content_type == "image/jpeg"
    assert not os.path.exists(request.path)

    upload_headers = next(h for p, h in remote.headers.items() if "b2_upload_file" in p)
    assert upload_headers["Authorization"] == "upload-token"
    assert upload_headers["Content-Type"] == "image/jpeg"


@pytest.mark.asyncio
async def test_upload_keys_are_unique(storage_adapter, make_upload):
    first = await storage_adapter.upload(make_upload(), "products")
    second = await storage_adapter.upload(make_upload(), "products")
    assert first.key != second.key


@pytest.mark.asyncio
async def test_upload_reads_wrapped_upload_response(storage_adapter, remote, make_upload):
    remote.wrap_upload_response = True

    result = await storage_adapter.upload(make_upload(), "products")

    assert result.remote_id == remote.files[result.key]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, content_type",
    [
        ("notes.txt", "text/plain"),
        ("archive.gif", "image/gif"),
        ("script.png.exe", "application/octet-stream"),
        ("photo.png", "application/pdf"),
        ("no-extension", "image/png"),
    ],
)
async def test_non_images_are_rejected_without_remote_calls(storage_adapter, remote, make_upload, name, content_type):
    request = make_upload(name, content_type=content_type)

    with pytest.raises(ValidationError):
        await storage_adapter.upload(request)

    assert remote.calls == []
    assert not os.path.exists(request.path)


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [FIVE_MIB, FIVE_MIB + 1, 50 * 1024 * 1024])
async def test_large_files_are_rejected_without_remote_calls(storage_adapter, remote, make_upload, size):
    request = make_upload(size=size)

    with pytest.raises(ValidationError) as exc:
        await storage_adapter.upload(request)

    assert "5MB" in exc.value.detail
    assert remote.calls == []


def test_validate_image_accepts_every_allowed_type():
    for name, content_type in [("a.jpeg", "image/jpeg"), ("a.jpg", "image/jpeg"),
                               ("a.png", "image/png"), ("a.webp", "image/webp"), ("a.PNG", None)]:
        validate_image(UploadRequest(path="", original_name=name, size=FIVE_MIB - 1, content_type=content_type))


@pytest.mark.asyncio
async def test_missing_upload_url_fields_fail_before_uploading(storage_adapter, remote, make_upload):
    remote.upload_url_response = {"bucketId": "bucket-1"}
    request = make_upload()

    with pytest.raises(UploadError) as exc:
        await storage_adapter.upload(request)

    assert exc.value.detail == "Could not get valid upload URL and authorization token"
    assert not any("b2_upload_file" in path for path in remote.calls)
    assert not os.path.exists(request.path)


@pytest.mark.asyncio
async def test_upload_failure_clears_session_and_bucket(storage_adapter, remote, make_upload):
    await storage_adapter.upload(make_upload())
    assert remote.count("b2_authorize_account") == 1
    assert remote.count("b2_list_buckets") == 1

    remote.fail_once("b2_get_upload_url", 401)
    request = make_upload()
    with pytest.raises(UploadError):
        await storage_adapter.upload(request)

    assert storage_adapter.sessions.session is None
    assert storage_adapter.bucket is None
    assert not os.path.exists(request.path)

    await storage_adapter.upload(make_upload())
    assert remote.count("b2_authorize_account") == 2
    assert remote.count("b2_list_buckets") == 2


@pytest.mark.asyncio
async def test_session_is_reused_between_successful_calls(storage_adapter, remote, make_upload):
    await storage_adapter.upload(make_upload())
    await storage_adapter.upload(make_upload())

    assert remote.count("b2_authorize_account") == 1


@pytest.mark.asyncio
async def test_upload_then_delete_round_trip(storage_adapter, remote, make_upload):
    result = await storage_adapter.upload(make_upload())

    confirmation = await storage_adapter.delete(result.key)

    assert confirmation == {"success": True, "message": f"File {result.key} deleted successfully"}
    assert result.key not in remote.files
    assert remote.requests["/b2api/v2/b2_delete_file_version"] == {
        "fileName": result.key,
        "fileId": result.remote_id,
    }


@pytest.mark.asyncio
async def test_delete_unknown_key_raises_not_found(storage_adapter):
    with pytest.raises(NotFoundError) as exc:
        await storage_adapter.delete("products/never-uploaded.png")

    assert "products/never-uploaded.png" in exc.value.detail


@pytest.mark.asyncio
async def test_delete_requires_exact_key(storage_adapter, make_upload):
    result = await storage_adapter.upload(make_upload())
    prefix = result.key.rsplit(".", 1)[0]

    with pytest.raises(NotFoundError):
        await storage_adapter.delete(prefix)


@pytest.mark.asyncio
async def test_delete_failure_clears_session(storage_adapter, remote, make_upload):
    result = await storage_adapter.upload(make_upload())
    remote.fail_once("b2_delete_file_version")

    with pytest.raises(DeleteError):
        await storage_adapter.delete(result.key)
    assert storage_adapter.sessions.session is None

    await storage_adapter.delete(result.key)
    assert remote.count("b2_authorize_account") == 2


@pytest.mark.asyncio
async def test_configured_bucket_id_skips_lookup(settings, http_client, remote):
    adapter = StorageAdapter(
        key_id=settings.B2_KEY_ID,
        application_key=settings.B2_APPLICATION_KEY,
        bucket_name="loris-images",
        bucket_id="configured-bucket",
        http_client=http_client,
    )

    bucket = await adapter.resolve_target()

    assert bucket.id == "configured-bucket"
    assert bucket.name == "loris-images"
    assert remote.calls == []


@pytest.mark.asyncio
async def test_unknown_bucket_name_lists_available_buckets(settings, http_client):
    adapter = StorageAdapter(
        key_id=settings.B2_KEY_ID,
        application_key=settings.B2_APPLICATION_KEY,
        bucket_name="missing",
        http_client=http_client,
    )

    with pytest.raises(ConfigError) as exc:
        await adapter.resolve_target()

    assert exc.value.detail == 'Bucket "missing" not found. Available buckets: loris-images, archive'
    assert adapter.bucket is None


@pytest.mark.asyncio
async def test_bucket_is_resolved_once(storage_adapter, remote):
    first = await storage_adapter.resolve_target()
    second = await storage_adapter.resolve_target()

    assert first is second
    assert first.id == "bucket-1"
    assert remote.count("b2_list_buckets") == 1


@pytest.mark.asyncio
async def test_bucket_id_without_name_explains_what_is_missing(settings, http_client, remote):
    adapter = StorageAdapter(
        key_id=settings.B2_KEY_ID,
        application_key=settings.B2_APPLICATION_KEY,
        bucket_id="configured-bucket",
        http_client=http_client,
    )

    with pytest.raises(ConfigError) as exc:
        await adapter.resolve_target()

    assert "B2_BUCKET_NAME" in exc.value.detail
    assert "public file URLs" in exc.value.detail
    assert remote.calls == []
