from __future__ import annotations

import asyncio
import threading
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from sse_quotes.exceptions import StorageError
from sse_quotes.storage import CloudStorage


def client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture()
def s3() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def store(s3) -> CloudStorage:
    return CloudStorage(region="eu-west-1", client=s3)


@pytest.mark.asyncio
async def test_exists_at_true_when_head_succeeds(store, s3) -> None:
    assert await store.exists_at("sse-txt", "episode-1.txt") is True
    s3.head_object.assert_called_once_with(Bucket="sse-txt", Key="episode-1.txt")


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
async def test_exists_at_false_only_for_not_found(store, s3, code) -> None:
    s3.head_object.side_effect = client_error(code)
    assert await store.exists_at("sse-txt", "episode-1.txt") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["403", "AccessDenied", "500"])
async def test_exists_at_raises_for_other_client_errors(store, s3, code) -> None:
    s3.head_object.side_effect = client_error(code)
    with pytest.raises(StorageError) as excinfo:
        await store.exists_at("sse-txt", "episode-1.txt")
    assert excinfo.value.bucket == "sse-txt"
    assert excinfo.value.key == "episode-1.txt"


@pytest.mark.asyncio
async def test_exists_at_raises_for_transport_errors(store, s3) -> None:
    s3.head_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.eu-west-1.amazonaws.com")
    with pytest.raises(StorageError):
        await store.exists_at("sse-mp3", "sse-1.mp3")


@pytest.mark.asyncio
async def test_ensure_bucket_creates_missing_bucket_with_region(store, s3) -> None:
    s3.head_bucket.side_effect = client_error("404", "HeadBucket")

    await store.ensure_bucket("sse-mp3")

    s3.create_bucket.assert_called_once_with(
        Bucket="sse-mp3",
        CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
    )


@pytest.mark.asyncio
async def test_ensure_bucket_us_east_1_omits_location(s3) -> None:
    store = CloudStorage(region="us-east-1", client=s3)
    s3.head_bucket.side_effect = client_error("NoSuchBucket", "HeadBucket")

    await store.ensure_bucket("sse-mp3")

    s3.create_bucket.assert_called_once_with(Bucket="sse-mp3")


@pytest.mark.asyncio
async def test_ensure_bucket_existing_bucket_is_not_created(store, s3) -> None:
    await store.ensure_bucket("sse-mp3")
    s3.create_bucket.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["BucketAlreadyOwnedByYou", "BucketAlreadyExists"])
async def test_ensure_bucket_tolerates_lost_create_race(store, s3, code) -> None:
    s3.head_bucket.side_effect = client_error("404", "HeadBucket")
    s3.create_bucket.side_effect = client_error(code, "CreateBucket")

    await store.ensure_bucket("sse-mp3")


@pytest.mark.asyncio
async def test_ensure_bucket_propagates_real_failures(store, s3) -> None:
    s3.head_bucket.side_effect = client_error("403", "HeadBucket")
    with pytest.raises(StorageError):
        await store.ensure_bucket("sse-mp3")
    s3.create_bucket.assert_not_called()


@pytest.mark.asyncio
async def test_concurrent_ensure_bucket_creates_once(store, s3) -> None:
    created = threading.Event()

    def head_bucket(Bucket):
        if not created.is_set():
            raise client_error("404", "HeadBucket")

    s3.head_bucket.side_effect = head_bucket
    s3.create_bucket.side_effect = lambda **_: created.set()

    await asyncio.gather(*(store.ensure_bucket("sse-mp3") for _ in range(5)))
    await store.ensure_bucket("sse-mp3")

    assert s3.create_bucket.call_count == 1
    assert s3.head_bucket.call_count == 1


@pytest.mark.asyncio
async def test_upload_file_public_sets_acl(store, s3, tmp_path) -> None:
    path = tmp_path / "sse-7.trimmed.mp3"
    path.write_bytes(b"ID3")

    url = await store.upload_file("sse-mp3", "sse-7.mp3", path, public=True, content_type="audio/mpeg")

    s3.upload_file.assert_called_once_with(
        str(path),
        "sse-mp3",
        "sse-7.mp3",
        ExtraArgs={"ContentType": "audio/mpeg", "ACL": "public-read"},
    )
    assert url == "https://sse-mp3.s3.eu-west-1.amazonaws.com/sse-7.mp3"


@pytest.mark.asyncio
async def test_upload_text_is_private(store, s3) -> None:
    await store.upload_text("sse-txt", "episode-7.txt", "It takes more than tea")

    kwargs = s3.put_object.call_args.kwargs
    assert kwargs["Body"] == b"It takes more than tea"
    assert "ACL" not in kwargs


@pytest.mark.asyncio
async def test_upload_failure_raises_storage_error(store, s3) -> None:
    s3.put_object.side_effect = client_error("AccessDenied", "PutObject")
    with pytest.raises(StorageError):
        await store.upload_text("sse-txt", "episode-7.txt", "quote")


def test_public_url_uses_path_style_for_custom_endpoint(s3) -> None:
    store = CloudStorage(region="ams3", endpoint="https://ams3.digitaloceanspaces.com/", client=s3)
    assert store.public_url("sse-mp3", "sse-1.mp3") == "https://ams3.digitaloceanspaces.com/sse-mp3/sse-1.mp3"
