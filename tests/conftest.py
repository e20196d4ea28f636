import pytest

from fakes import FakeConnection
from protocol import rabbit_session
from protocol.rabbit_session import RabbitSession


@pytest.fixture
def connection(monkeypatch):
    """Fake broker connection handed out by every pika.BlockingConnection call."""
    conn = FakeConnection()
    conn.parameters = []

    def connect(parameters):
        conn.parameters.append(parameters)
        return conn

    monkeypatch.setattr(rabbit_session.pika, "BlockingConnection", connect)
    return conn


@pytest.fixture
def channel(connection):
    return connection.channel_obj


@pytest.fixture
def confirm_session(connection):
    session = RabbitSession("amqp://localhost:5672")
    session.connect()
    session.open_channel(confirms=True)
    return session


@pytest.fixture
def consumer_session(connection):
    session = RabbitSession("amqp://localhost:5672")
    session.connect()
    session.open_channel()
    return session


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run config parsing away from the repository config.ini and any AMQP env vars."""
    monkeypatch.chdir(tmp_path)
    for name in ("AMQP_ADDR", "PUB_EXCHANGE", "PUB_ROUTING", "PUB_HEADERS", "PUB_COUNT",
                 "SUB_QUEUE", "SUB_STRICT", "SUB_PREFETCH", "SUB_INACTIVITY_TIMEOUT", "LOGGING_LEVEL"):
        # set first so teardown also removes anything load_dotenv adds
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path
