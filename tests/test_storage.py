import boto3
import pytest

from piclips.core.config import StorageSettings
from piclips.services.storage_service import ObjectStorage, build_video_key, object_key_from_url


@pytest.mark.parametrize(
    "url, key",
    [
        ("https://bucket.s3.us-east-1.amazonaws.com/videos/abc-clip.mp4", "videos/abc-clip.mp4"),
        ("http://localhost:9000/bucket/videos/abc-clip.mp4", "videos/abc-clip.mp4"),
        ("https://bucket.s3.amazonaws.com/legacy/clip.mp4", "legacy/clip.mp4"),
        ("videos/abc-clip.mp4", "videos/abc-clip.mp4"),
    ],
)
def test_object_key_from_url(url, key):
    assert object_key_from_url(url) == key


def test_build_video_key_is_unique_and_flat():
    first = build_video_key("holiday/clip.mp4")
    second = build_video_key("holiday/clip.mp4")

    assert first != second
    assert first.startswith("videos/")
    assert first.endswith("-holiday_clip.mp4")
    assert first.count("/") == 1


def test_url_for_key_with_custom_endpoint(s3_client):
    settings = StorageSettings(aws_region="us-east-1", bucket_name="media", endpoint_url="http://localhost:9000/")
    storage = ObjectStorage(settings, client=s3_client)

    assert storage.url_for_key("videos/a.mp4") == "http://localhost:9000/media/videos/a.mp4"


async def test_upload_and_delete(s3_client):
    storage = ObjectStorage(StorageSettings(aws_region="eu-west-1", bucket_name="media"), client=s3_client)

    url = await storage.upload("videos/a.mp4", b"payload", None)

    assert url == "https://media.s3.eu-west-1.amazonaws.com/videos/a.mp4"
    assert s3_client.objects == {"videos/a.mp4": b"payload"}

    await storage.delete("videos/a.mp4")
    assert s3_client.objects == {}
    assert s3_client.deleted == ["videos/a.mp4"]


def test_signed_url_requests_inline_playback():
    settings = StorageSettings(
        aws_region="us-east-1",
        bucket_name="media",
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="secret",
    )
    client = boto3.client(
        "s3",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )
    storage = ObjectStorage(settings, client=client)

    url = storage.signed_url("videos/abc-clip.mp4", expires_in=600)

    assert "media" in url
    assert "/videos/abc-clip.mp4?" in url
    assert "response-content-disposition=inline" in url
    assert "response-content-type=video%2Fmp4" in url
