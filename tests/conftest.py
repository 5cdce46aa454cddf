import pytest

from broker.state import BrokerState


class RecordingChannel:
    """In-memory ClientChannel that keeps everything the broker sends."""

    def __init__(self):
        self.messages = []
        self.closed = False

    def send(self, message):
        self.messages.append(message)

    def close(self):
        self.closed = True

    def events(self):
        return [message["event"] for message in self.messages]

    def of(self, event):
        return [message["data"] for message in self.messages if message["event"] == event]

    def clear(self):
        self.messages.clear()


@pytest.fixture
def state():
    return BrokerState()


@pytest.fixture
def connect(state):
    """Register a connection and return (connection_id, channel)."""

    def _connect():
        channel = RecordingChannel()
        connection_id = state.registry.register(channel)
        return connection_id, channel

    return _connect
