# pytest common/tests/test_redis_client.py -q

import pytest
from redis.exceptions import ConnectionError

from common.redis_client import RedisClient, _decode_password

pytestmark = pytest.mark.unit


@pytest.fixture
def redis_mock(mocker):
    fake = mocker.MagicMock()
    values = {}
    fake.setex.side_effect = lambda key, ttl, value: values.__setitem__(key, value) or True
    fake.get.side_effect = values.get
    mocker.patch("common.redis_client.redis.Redis", return_value=fake)
    return fake


def test_json_values_are_stored_with_ttl(redis_mock):
    client = RedisClient()

    assert client.set_json("nexus:session:s1", {"sid": "s1"}, ttl=60)
    redis_mock.setex.assert_called_once_with("nexus:session:s1", 60, '{"sid": "s1"}')
    assert client.get_json("nexus:session:s1") == {"sid": "s1"}


def test_unserializable_value_is_rejected(redis_mock):
    client = RedisClient()

    assert client.set_json("k", {"bad": object()}) is False
    redis_mock.setex.assert_not_called()


def test_client_degrades_when_redis_is_down(mocker):
    fake = mocker.MagicMock()
    fake.ping.side_effect = ConnectionError("connection refused")
    mocker.patch("common.redis_client.redis.Redis", return_value=fake)

    client = RedisClient()

    assert client.client is None
    assert client.set_json("k", {"a": 1}) is False
    assert client.get_json("k") is None
    assert client.smembers("k") == set()
    assert client.delete_many(["k"]) == 0


def test_operation_error_marks_client_disconnected(redis_mock):
    client = RedisClient()
    redis_mock.smembers.side_effect = ConnectionError("reset")

    assert client.smembers("nexus:user_sessions:u1") == set()
    assert client.client is None


def test_decode_password():
    assert _decode_password("c2VjcmV0") == "secret"
    assert _decode_password("plain-pass!") == "plain-pass!"
