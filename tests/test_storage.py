from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from simpleblog.services.storage import NoOpImageStorage, S3ImageStorage, sign_url


def test_s3_upload_uses_a_fresh_key_under_the_folder():
    client = MagicMock()
    storage = S3ImageStorage(client=client, bucket="bucket")

    key = storage.upload_image(b"bytes", "Photo.PNG", "posts", "image/png")

    assert key.startswith("simpleblog/posts/")
    assert key.endswith(".png")
    kwargs = client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "bucket"
    assert kwargs["Key"] == key
    assert kwargs["ContentType"] == "image/png"


def test_s3_signed_url_is_a_presigned_get():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://s3/signed"
    storage = S3ImageStorage(client=client, bucket="bucket")

    assert storage.generate_signed_url("simpleblog/posts/a.png") == "https://s3/signed"
    args, kwargs = client.generate_presigned_url.call_args
    assert kwargs["Params"] == {"Bucket": "bucket", "Key": "simpleblog/posts/a.png"}
    assert kwargs["ExpiresIn"] == 3600


def test_sign_url_falls_back_to_the_reference():
    client = MagicMock()
    client.generate_presigned_url.side_effect = ClientError({"Error": {"Code": "403", "Message": "no"}}, "GetObject")
    storage = S3ImageStorage(client=client, bucket="bucket")

    assert sign_url(storage, "simpleblog/posts/a.png") == "simpleblog/posts/a.png"
    assert sign_url(storage, None) is None


def test_noop_storage():
    storage = NoOpImageStorage()
    assert storage.upload_image(b"x", "a.png", "posts") == ""
    assert storage.delete_image("anything") is False
    assert storage.generate_signed_url("ref") == "ref"
