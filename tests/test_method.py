import pytest

from kurosabi.method import Method, StatusCode

STANDARD = ["GET", "POST", "HEAD", "PUT", "DELETE", "OPTIONS", "TRACE", "CONNECT", "PATCH"]


@pytest.mark.parametrize("token", STANDARD)
def test_standard_methods_round_trip(token):
    method = Method.from_str(token)
    assert method == getattr(Method, token)
    assert method.to_str() == token
    assert method.is_standard


def test_unknown_method_is_preserved():
    method = Method.from_str("PROPFIND")
    assert method.to_str() == "PROPFIND"
    assert not method.is_standard
    assert method != Method.GET


def test_parsing_is_case_sensitive():
    method = Method.from_str("get")
    assert method != Method.GET
    assert not method.is_standard


def test_str_matches_token():
    assert str(Method.DELETE) == "DELETE"
    assert str(Method.from_str("OTHER")) == "OTHER"


def test_methods_work_as_dict_keys():
    table = {Method.GET: 1, Method.from_str("OTHER"): 2}
    assert table[Method.from_str("GET")] == 1
    assert table[Method("OTHER")] == 2


@pytest.mark.parametrize(
    "member, value",
    [
        (StatusCode.CONTINUE, 100),
        (StatusCode.OK, 200),
        (StatusCode.NOT_FOUND, 404),
        (StatusCode.INTERNAL_SERVER_ERROR, 500),
    ],
)
def test_status_codes(member, value):
    assert member == value
    assert StatusCode(value) is member