"""Root pytest configuration for netstorage-driver tests."""
import pytest

from netstorage_driver.driver import DriverOptions, HybridDriver
from netstorage_driver.settings import Settings
from netstorage_driver.storage.netstorage import NetStorageClient

from tests.helpers.placement import split_by_prefix
from tests.storage.fakes import FakeNetStorage, InMemoryLocalDriver


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires NetStorage credentials)"
    )


# Keep real NETSTORAGE_* variables from leaking into tests
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically set up test environment variables."""
    monkeypatch.setenv("NETSTORAGE_HOSTNAME", "example-nsu.akamaihd.net")
    monkeypatch.setenv("NETSTORAGE_KEYNAME", "uploader")
    monkeypatch.setenv("NETSTORAGE_KEY", "s3cr3t")
    monkeypatch.delenv("NETSTORAGE_SSL", raising=False)
    monkeypatch.delenv("NETSTORAGE_TMP", raising=False)
    monkeypatch.delenv("NETSTORAGE_HTTP_TIMEOUT", raising=False)


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(
        hostname="example-nsu.akamaihd.net",
        keyname="uploader",
        key="s3cr3t",
        ssl=True,
    )


@pytest.fixture
def credentials(settings):
    return settings.credentials


@pytest.fixture
def netstorage():
    """In-memory NetStorage service."""
    return FakeNetStorage(keyname="uploader", key="s3cr3t")


@pytest.fixture
def client(credentials, netstorage):
    """NetStorage client wired to the fake service."""
    ns_client = NetStorageClient(credentials, transport=netstorage.transport)
    yield ns_client
    ns_client.close()


@pytest.fixture
def local_driver():
    """Standard fake local driver."""
    return InMemoryLocalDriver()


@pytest.fixture
def driver(client, local_driver, tmp_path):
    """Hybrid driver with /local/* on the fake local driver and staging in tmp_path."""
    staging = tmp_path / "staging"
    staging.mkdir()
    return HybridDriver(
        client,
        local=local_driver,
        options=DriverOptions(name_mapper=split_by_prefix),
        temp_dir=str(staging),
    )


@pytest.fixture
def staging_dir(driver):
    return driver.temp_dir
