from kurosabi.path import Path


def test_raw_path_is_unchanged():
    path = Path("/api/v1/user?id=123&name=John")
    assert path.raw_path() == "/api/v1/user?id=123&name=John"
    assert path.path == "/api/v1/user?id=123&name=John"


def test_default_is_empty():
    path = Path()
    assert path.raw_path() == ""
    assert path.path_only() == ""


def test_path_only_drops_empty_segments():
    assert Path("//api//v1/user/").path_only() == "api/v1/user"


def test_path_only_is_stable_across_calls():
    path = Path("/a/b")
    first = path.path_only()
    assert path.path_only() == first


def test_query_lookup():
    path = Path("/api/v1/user?id=123&name=John")
    assert path.get_query("id") == "123"
    assert path.get_query("name") == "John"
    assert path.get_query("missing") is None


def test_query_pairs_without_value_are_ignored():
    path = Path("/search?flag&q=a=b")
    assert path.get_query("flag") is None
    assert path.get_query("q") == "a=b"


def test_no_query_string():
    assert Path("/plain").get_query("id") is None


def test_fields_set_get_remove():
    path = Path("/hello/kurosabi")
    path.set_field("name", "kurosabi")
    assert path.get_field("name") == "kurosabi"
    assert path.remove_field("name") == "kurosabi"
    assert path.get_field("name") is None
    assert path.remove_field("name") is None


def test_first_field_wins():
    path = Path("/x")
    path.set_field("*", "one")
    path.set_field("*", "two")
    assert path.get_field("*") == "one"
    path.remove_field("*")
    assert path.get_field("*") == "two"