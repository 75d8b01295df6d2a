"""Tests for endpoint_resolver.target — endpoint:// target codec."""

import pytest

from endpoint_resolver.target import (
    SCHEME,
    TARGET_PREFIX,
    MalformedTargetError,
    is_target,
    parse_target,
    split_target,
    target,
)


def test_prefix():
    assert SCHEME == "endpoint"
    assert TARGET_PREFIX == "endpoint://"


def test_target_format():
    assert target("cluster1", "10.0.0.1:2379") == "endpoint://cluster1/10.0.0.1:2379"


def test_target_does_not_escape():
    assert target("c 1", "http://h:1/a b") == "endpoint://c 1/http://h:1/a b"


@pytest.mark.parametrize(
    "client_id, endpoint",
    [
        ("cluster1", "h:2379"),
        ("c", ""),
        ("", "h:2379"),
        ("c", "unix:///var/run/etcd.sock"),
        ("c", "a/b/c"),
    ],
)
def test_parse_target_inverts_target(client_id, endpoint):
    assert parse_target(target(client_id, endpoint)) == (client_id, endpoint)


def test_parse_target_splits_on_first_slash():
    assert parse_target("endpoint://c/http://h:1/x") == ("c", "http://h:1/x")


def test_parse_target_missing_prefix():
    with pytest.raises(MalformedTargetError) as exc:
        parse_target("dns://c/h:1")
    assert "prefix is required" in str(exc.value)
    assert exc.value.target == "dns://c/h:1"


def test_parse_target_missing_separator():
    with pytest.raises(MalformedTargetError) as exc:
        parse_target("endpoint://cluster1")
    assert "expected endpoint://<clientId>/<endpoint>" in str(exc.value)


def test_malformed_target_is_value_error():
    with pytest.raises(ValueError):
        parse_target("h:1")


def test_is_target():
    assert is_target("endpoint://c/h:1")
    assert is_target("endpoint://")
    assert not is_target("endpoint:/c/h:1")
    assert not is_target("unix:///tmp/x.sock")
    assert not is_target("h:1")


def test_split_target():
    assert split_target("endpoint://c/h:1/x") == ("endpoint", "c", "h:1/x")
    assert split_target("endpoint://c") == ("endpoint", "c", "")
    assert split_target("endpoint:///h:1") == ("endpoint", "", "h:1")
    assert split_target("127.0.0.1:2379") == ("", "", "127.0.0.1:2379")
