# Fake implementations for testing

from .fake_local_driver import InMemoryFileWriter, InMemoryLocalDriver
from .fake_netstorage import FakeNetStorage, RecordedRequest

__all__ = ["FakeNetStorage", "InMemoryFileWriter", "InMemoryLocalDriver", "RecordedRequest"]
