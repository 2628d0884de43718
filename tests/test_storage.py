"""Tests for profile photo storage."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from oneclick.core.exceptions import RemoteServiceException
from oneclick.core.storage import FileStorage, build_photo_path, sanitize_filename


def test_sanitize_filename():
    assert sanitize_filename("my photo (1).png") == "my_photo_1.png"
    assert sanitize_filename("Screenshot 10:30 AM.jpg") == "Screenshot_10_30_AM.jpg"
    assert sanitize_filename("???") == "photo"


def test_build_photo_path_is_under_owner_folder():
    assert build_photo_path("uid_1", "me.png", now_ms=1700000000000) == "uid_1/1700000000000_me.png"


@pytest.mark.asyncio
async def test_upload_puts_object_and_builds_public_url():
    s3 = MagicMock()
    storage = FileStorage(s3, bucket="volunteer-photos", public_base_url="https://cdn.test/photos/")

    path = await storage.upload("uid_1/1_me.png", b"png-bytes")

    s3.put_object.assert_called_once()
    kwargs = s3.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "volunteer-photos"
    assert kwargs["Key"] == "uid_1/1_me.png"
    assert kwargs["ContentType"] == "image/png"
    assert storage.public_url(path) == "https://cdn.test/photos/uid_1/1_me.png"


@pytest.mark.asyncio
async def test_upload_failure_raises_remote_service_error():
    s3 = MagicMock()
    s3.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
    )
    storage = FileStorage(s3, bucket="volunteer-photos", public_base_url="https://cdn.test")

    with pytest.raises(RemoteServiceException):
        await storage.upload("uid_1/1_me.png", b"data")
