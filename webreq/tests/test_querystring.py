from __future__ import annotations

from urllib.parse import parse_qsl

import pytest

from webreq.core.errors import InvalidUrlError, MissingParametersError, ParameterEncodingError
from webreq.core.querystring import merge_query, serialize_query_string, strip_query, validate_url


def test_single_pair():
    assert serialize_query_string({"key": "value"}) == "key=value"


def test_multiple_pairs_keep_declared_order():
    assert serialize_query_string({"key": "value", "key2": "value2"}) == "key=value&key2=value2"


def test_ampersand_is_percent_encoded():
    assert serialize_query_string({"key": "value&"}) == "key=value%26"


def test_space_and_unreserved_characters():
    assert serialize_query_string({"q": "a b-c_d.e~f"}) == "q=a%20b-c_d.e~f"


def test_none_parameters_fail_before_returning():
    with pytest.raises(MissingParametersError):
        serialize_query_string(None)


def test_empty_bag_is_empty_string():
    assert serialize_query_string({}) == ""
    assert serialize_query_string([]) == ""


@pytest.mark.parametrize("n", [0, 1, 2, 5])
def test_segment_and_separator_counts(n):
    out = serialize_query_string([(f"k{i}", f"v&{i}") for i in range(n)])
    segments = out.split("&") if out else []
    assert len(segments) == n
    assert out.count("&") == max(0, n - 1)
    assert all(s.count("=") == 1 for s in segments)


def test_duplicates_pass_through():
    assert serialize_query_string([("a", "1"), ("a", "2")]) == "a=1&a=2"


def test_output_decodes_back_to_the_same_pairs():
    pairs = [("name", "Jane Doe"), ("x&y", "1=2"), ("emoji", "☃"), ("a", "")]
    out = serialize_query_string(pairs)
    assert parse_qsl(out, keep_blank_values=True) == pairs


def test_non_string_values_are_stringified():
    assert serialize_query_string({"n": 3, "flag": True, "raw": b"x y"}) == "n=3&flag=True&raw=x%20y"


def test_none_value_is_an_encoding_error():
    with pytest.raises(ParameterEncodingError):
        serialize_query_string({"a": None})


def test_merge_query_joins_with_single_ampersand():
    assert merge_query("http://h/p?a=1", {"b": "2"}) == "http://h/p?a=1&b=2"
    assert merge_query("http://h/p", {"b": "2"}) == "http://h/p?b=2"
    assert merge_query("http://h/p?a=1", {}) == "http://h/p?a=1"
    assert merge_query("http://h/p", {}) == "http://h/p"


def test_merge_query_keeps_fragment():
    assert merge_query("https://h/p?a=1#top", {"b": "2"}) == "https://h/p?a=1&b=2#top"


@pytest.mark.parametrize("url", ["", "   ", "example.com/x", "ftp://h/file", "http://"])
def test_invalid_urls(url):
    with pytest.raises(InvalidUrlError):
        validate_url(url)


def test_strip_query_drops_query_and_fragment():
    assert strip_query("http://h/p?token=secret#frag") == "http://h/p"
