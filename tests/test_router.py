import pytest

from kurosabi.method import Method
from kurosabi.path import Path
from kurosabi.request import Request
from kurosabi.router import Router


def make_request(method, target):
    req = Request(None)
    req.method = method
    req.path = Path(target)
    return req


@pytest.fixture
def router():
    r = Router()
    r.register(Method.GET, "/", "root")
    r.register(Method.GET, "/hello", "hello")
    r.register(Method.GET, "/hello/:name", "hello_name")
    r.register(Method.GET, "/field/:field/:value", "field")
    r.register(Method.GET, "/gurd/*", "gurd")
    r.register(Method.GET, "/loopA", "loopA")
    r.register(Method.GET, "/loopB", "loopB")
    r.register(Method.GET, "/login", "login")
    r.register(Method.POST, "/submit", "submit")
    r.build()
    return r


def test_root(router):
    assert router.route(make_request(Method.GET, "/")) == "root"


def test_static(router):
    assert router.route(make_request(Method.GET, "/hello")) == "hello"


def test_param(router):
    req = make_request(Method.GET, "/hello/kurosabi")
    assert router.route(req) == "hello_name"
    assert req.path.get_field("name") == "kurosabi"


def test_two_params(router):
    req = make_request(Method.GET, "/field/name/Kurosabi")
    assert router.route(req) == "field"
    assert req.path.get_field("field") == "name"
    assert req.path.get_field("value") == "Kurosabi"


def test_wildcard(router):
    req = make_request(Method.GET, "/gurd/some/path")
    assert router.route(req) == "gurd"
    assert req.path.get_field("*") == "some/path"


@pytest.mark.parametrize("target,handler", [("/loopA", "loopA"), ("/loopB", "loopB"), ("/login", "login")])
def test_shared_prefixes(router, target, handler):
    assert router.route(make_request(Method.GET, target)) == handler


def test_query_and_fragment_ignored(router):
    assert router.route(make_request(Method.GET, "/hello?x=1")) == "hello"
    assert router.route(make_request(Method.GET, "/hello#top")) == "hello"


def test_method_mismatch(router):
    assert router.route(make_request(Method.POST, "/hello")) is None
    assert router.route(make_request(Method.POST, "/submit")) == "submit"


def test_unmatched_returns_none_without_not_found(router):
    assert router.route(make_request(Method.GET, "/nothing")) is None


def test_not_found_handler():
    r = Router()
    r.register(Method.GET, "/a", "a")
    r.register_not_found("missing")
    assert r.route(make_request(Method.GET, "/zzz")) == "missing"
    assert r.route(make_request(Method.DELETE, "/zzz")) is None


def test_duplicate_route_rejected():
    r = Router()
    r.register(Method.GET, "/x/:id", "one")
    with pytest.raises(ValueError):
        r.register(Method.GET, "/x/:id", "two")


def test_sealed_router_rejects_routes(router):
    assert router.sealed
    with pytest.raises(RuntimeError):
        router.register(Method.GET, "/late", "late")


def test_split_keeps_children_with_tail():
    r = Router()
    r.register(Method.GET, "/abc/:x", "abc_x")
    r.register(Method.GET, "/ab", "ab")
    r.register(Method.GET, "/abcd", "abcd")
    req = make_request(Method.GET, "/abc/q")
    assert r.route(req) == "abc_x"
    assert req.path.get_field("x") == "q"
    assert r.route(make_request(Method.GET, "/ab")) == "ab"
    assert r.route(make_request(Method.GET, "/abcd")) == "abcd"
    assert r.route(make_request(Method.GET, "/ab/zz")) is None


def test_custom_method_tree():
    r = Router()
    other = Method("OTHER")
    r.register(other, "/any", "any")
    assert r.route(make_request(Method("OTHER"), "/any")) == "any"
    assert r.route(make_request(Method.GET, "/any")) is None