"""Shared fixtures for sudo-config-manager tests."""
import json
import pytest

from sudo_config_manager import S3Client, TransportError


class FakeS3Client(S3Client):
    """In-memory service info bucket that records every call."""

    def __init__(self, objects=None, region="us-east-1", bucket="service-info-bucket",
                 list_error=None, get_errors=None):
        self._region = region
        self._bucket = bucket
        self.objects = dict(objects or {})
        self.list_error = list_error
        self.get_errors = dict(get_errors or {})
        self.list_calls = 0
        self.fetched = []

    @property
    def region(self):
        return self._region

    @property
    def bucket(self):
        return self._bucket

    def list_objects(self):
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.objects.keys())

    def get_object(self, key):
        self.fetched.append(key)
        if key in self.get_errors:
            raise self.get_errors[key]
        return self.objects[key]


def service_info(name, **fields):
    """Encode a service info document."""
    return json.dumps({name: fields}).encode("utf-8")


@pytest.fixture
def platform_config():
    """Sample sudoplatformconfig.json contents."""
    return {
        "identityService": {
            "region": "us-east-1",
            "poolId": "us-east-1_ZiPDToF73",
            "clientId": "120q904mra9d5l4psmvdbrgm49",
            "serviceInfoBucket": "service-info-bucket",
            "version": 2,
        },
        "sudoService": {
            "region": "us-east-1",
            "apiUrl": "https://sudos.example.com/graphql",
            "version": 3,
        },
        "vcService": {
            "region": "us-east-1",
        },
        "notAnObject": "just a string",
    }


@pytest.fixture
def config_file(tmp_path, platform_config):
    """Write the sample platform config to disk."""
    path = tmp_path / "sudoplatformconfig.json"
    path.write_text(json.dumps(platform_config, indent=2))
    return path


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def transport_error():
    return TransportError("Failed to request https://service-info-bucket.s3.us-east-1.amazonaws.com/")
