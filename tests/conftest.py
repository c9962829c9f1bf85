import pytest

from fakes import FakeChainClient, RecordingNotifier


@pytest.fixture
def chain():
    return FakeChainClient()


@pytest.fixture
def notifier():
    return RecordingNotifier()
