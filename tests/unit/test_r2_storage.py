"""Unit tests for R2Storage against a stub S3 client."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from scenestitch.services.r2_storage import R2Storage


def _storage(client, public_url=None) -> R2Storage:
    return R2Storage(
        endpoint="https://acct.r2.cloudflarestorage.com",
        access_key_id="key",
        secret_access_key="secret",
        bucket_name="clips-library",
        public_url=public_url,
        client=client,
    )


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "Operation")


@pytest.mark.unit
class TestListKeys:
    def test_follows_continuation_tokens(self):
        client = MagicMock()
        client.list_objects_v2.side_effect = [
            {
                "Contents": [{"Key": "a.mp4"}, {"Key": "b.mp4"}],
                "IsTruncated": True,
                "NextContinuationToken": "t1",
            },
            {"Contents": [{"Key": "c.mp4"}], "IsTruncated": False},
        ]

        keys = _storage(client).list_keys("stock/")

        assert keys == ["a.mp4", "b.mp4", "c.mp4"]
        first, second = client.list_objects_v2.call_args_list
        assert "ContinuationToken" not in first.kwargs
        assert first.kwargs["Prefix"] == "stock/"
        assert second.kwargs["ContinuationToken"] == "t1"

    def test_empty_bucket(self):
        client = MagicMock()
        client.list_objects_v2.return_value = {"KeyCount": 0, "IsTruncated": False}

        assert _storage(client).list_keys() == []


@pytest.mark.unit
class TestUploadAndDownload:
    def test_upload_path(self, temp_dir):
        client = MagicMock()
        video = temp_dir / "final.mp4"
        video.write_bytes(b"\x00" * 32)

        url = _storage(client).upload_file("videos/job.mp4", video, "video/mp4")

        assert url == "s3://clips-library/videos/job.mp4"
        args, kwargs = client.upload_fileobj.call_args
        assert args[1:] == ("clips-library", "videos/job.mp4")
        assert kwargs["ExtraArgs"] == {"ContentType": "video/mp4"}

    def test_upload_bytes_with_public_url(self):
        client = MagicMock()

        url = _storage(client, public_url="https://cdn.example.com/").upload_file("a/b.mp4", b"data")

        assert url == "https://cdn.example.com/a/b.mp4"
        assert client.upload_fileobj.call_args.kwargs["ExtraArgs"]["ContentType"] == "video/mp4"

    def test_download_missing_key(self, temp_dir):
        client = MagicMock()
        client.download_file.side_effect = _client_error("404")

        with pytest.raises(FileNotFoundError):
            _storage(client).download_to_path("missing.mp4", temp_dir / "out.mp4")

    def test_download_other_error_propagates(self, temp_dir):
        client = MagicMock()
        client.download_file.side_effect = _client_error("AccessDenied")

        with pytest.raises(ClientError):
            _storage(client).download_to_path("clip.mp4", temp_dir / "out.mp4")

    def test_presigned_url(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://signed"

        assert _storage(client).get_presigned_url("videos/job.mp4", expires_in=60) == "https://signed"
        client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "clips-library", "Key": "videos/job.mp4"},
            ExpiresIn=60,
        )
