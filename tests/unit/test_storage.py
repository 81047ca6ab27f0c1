import pytest
from minio.error import S3Error

from inkwell.core.exceptions import StorageError
from inkwell.infrastructure.storage import ObjectStorage, create_minio_client


class FakeS3Error(S3Error):
    def __init__(self, code):
        Exception.__init__(self, code)
        self._fake_code = code

    @property
    def code(self):
        return self._fake_code

    def __str__(self):
        return f"{self._fake_code} happened"


def s3_error(code):
    return FakeS3Error(code)


@pytest.fixture
def minio(mocker):
    return mocker.MagicMock()


@pytest.fixture
def storage(minio):
    return ObjectStorage(minio, "avatars-bucket", "https://cdn.test/avatars-bucket/")


def test_object_url_joins_public_base(storage):
    assert storage.object_url("avatars/1/a.png") == "https://cdn.test/avatars-bucket/avatars/1/a.png"


def test_from_settings_defaults_to_aws_virtual_host(test_settings):
    settings = test_settings.model_copy(
        update={"AWS_ENDPOINT": "", "AWS_PUBLIC_URL": "", "AWS_BUCKET_NAME": "inkwell", "AWS_REGION": "eu-west-1"}
    )
    storage = ObjectStorage.from_settings(settings)
    assert storage.object_url("k") == "https://inkwell.s3.eu-west-1.amazonaws.com/k"


def test_endpoint_scheme_decides_tls(test_settings, mocker):
    minio_cls = mocker.patch("inkwell.infrastructure.storage.Minio")
    settings = test_settings.model_copy(update={"AWS_ENDPOINT": "http://localhost:9000", "AWS_SECURE": True})
    create_minio_client(settings)
    args, kwargs = minio_cls.call_args
    assert args == ("localhost:9000",)
    assert kwargs["secure"] is False


@pytest.mark.asyncio
async def test_put_object_streams_bytes(storage, minio):
    assert await storage.put_object("avatars/1/a.png", b"png-bytes", "image/png") == "avatars/1/a.png"
    bucket, key, stream, length = minio.put_object.call_args.args
    assert (bucket, key, length) == ("avatars-bucket", "avatars/1/a.png", 9)
    assert stream.read() == b"png-bytes"
    assert minio.put_object.call_args.kwargs == {"content_type": "image/png"}


@pytest.mark.asyncio
async def test_get_object_reads_and_releases(storage, minio):
    response = minio.get_object.return_value
    response.read.return_value = b"data"
    assert await storage.get_object("k") == b"data"
    response.close.assert_called_once()
    response.release_conn.assert_called_once()


@pytest.mark.asyncio
async def test_list_objects_is_recursive(storage, minio, mocker):
    minio.list_objects.return_value = [mocker.Mock(object_name="avatars/1/a.png"), mocker.Mock(object_name="avatars/1/b.png")]
    assert await storage.list_objects("avatars/1/") == ["avatars/1/a.png", "avatars/1/b.png"]
    minio.list_objects.assert_called_once_with("avatars-bucket", prefix="avatars/1/", recursive=True)


@pytest.mark.asyncio
async def test_head_object_returns_metadata(storage, minio, mocker):
    minio.stat_object.return_value = mocker.Mock(size=12, content_type="image/png", etag="abc")
    stored = await storage.head_object("k")
    assert (stored.key, stored.size, stored.content_type, stored.etag) == ("k", 12, "image/png", "abc")


@pytest.mark.asyncio
async def test_head_object_missing_is_none(storage, minio):
    minio.stat_object.side_effect = s3_error("NoSuchKey")
    assert await storage.head_object("k") is None


@pytest.mark.asyncio
async def test_head_object_other_errors_raise(storage, minio):
    minio.stat_object.side_effect = s3_error("AccessDenied")
    with pytest.raises(StorageError):
        await storage.head_object("k")


@pytest.mark.asyncio
@pytest.mark.parametrize("method,args", [("put_object", ("k", b"x", "image/png")), ("delete_object", ("k",)), ("get_object", ("k",))])
async def test_sdk_failures_become_storage_errors(storage, minio, method, args):
    getattr(minio, "remove_object" if method == "delete_object" else method).side_effect = s3_error("InternalError")
    with pytest.raises(StorageError):
        await getattr(storage, method)(*args)


@pytest.mark.asyncio
async def test_check_connection_requires_bucket(storage, minio):
    minio.bucket_exists.return_value = False
    with pytest.raises(StorageError):
        await storage.check_connection()
    minio.bucket_exists.return_value = True
    await storage.check_connection()
