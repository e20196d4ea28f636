import logging

import pika.data

from protocol.headers import parse_headers, render_headers


def test_no_flag_means_no_headers():
    assert parse_headers(None) is None


def test_empty_input_is_an_empty_map():
    assert parse_headers("") == {}
    assert parse_headers([]) == {}


def test_comma_separated_string():
    assert parse_headers("a=1,b=2") == {"a": "1", "b": "2"}


def test_sequence_of_entries():
    assert parse_headers(["a=1", "b=2"]) == {"a": "1", "b": "2"}


def test_split_on_first_equals_only():
    assert parse_headers(["query=x=y"]) == {"query": "x=y"}


def test_last_value_wins():
    headers = parse_headers("a=1,b=2,a=3")
    assert headers == {"a": "3", "b": "2"}
    assert list(headers) == ["a", "b"]


def test_entry_without_equals_is_dropped(caplog):
    with caplog.at_level(logging.WARNING):
        headers = parse_headers("a=1,broken,b=2")

    assert headers == {"a": "1", "b": "2"}
    assert "broken" in caplog.text


def test_empty_value_is_kept():
    assert parse_headers("a=") == {"a": ""}


def test_render_headers_joins_pairs():
    assert render_headers({"a": "1", "b": "2"}) == "a=1, b=2"


def test_render_headers_empty():
    assert render_headers({}) == ""
    assert render_headers(None) == ""


def test_render_non_long_string_values_as_empty():
    assert render_headers({"n": 5, "flag": True, "s": "x"}) == "n=, flag=, s=x"


def test_render_byte_values_as_empty():
    pieces = []
    pika.data.encode_table(pieces, {"blob": b"secret", "s": "x"})
    decoded, _ = pika.data.decode_table(b"".join(pieces), 0)

    assert render_headers(decoded) == "blob=, s=x"


def test_values_are_kept_verbatim():
    assert parse_headers(["a= 1", "b=two words "]) == {"a": " 1", "b": "two words "}


def test_spaces_around_keys_are_trimmed():
    assert parse_headers("a=1, b=2") == {"a": "1", "b": "2"}


def test_entry_without_key_is_dropped(caplog):
    with caplog.at_level(logging.WARNING):
        headers = parse_headers("=v,a=1, =w")

    assert headers == {"a": "1"}
    assert "=v" in caplog.text
