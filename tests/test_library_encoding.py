"""Tests for encoding, hashing, JSON and YAML functions."""

import string
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from gotmplengine import TemplateExecutionError, get_shared_registry

type Render = Callable[..., str]


def call(name: str, *args: Any) -> Any:
    return get_shared_registry().call(name, args)


@dataclass
class Port:
    name: str
    number: int


# JSON-representable values with string keys, as produced by fromJson/fromYaml
json_values = st.recursive(
    st.none() | st.booleans() | st.integers(min_value=-(2**53), max_value=2**53) | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=5), children, max_size=4),
    max_leaves=12,
)

# YAML round trips are checked over plain printable text
yaml_values = st.recursive(
    st.none()
    | st.booleans()
    | st.integers(min_value=-(2**31), max_value=2**31)
    | st.text(alphabet=string.ascii_letters + string.digits + " -:#.'\"", max_size=10),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(alphabet=string.ascii_letters, max_size=5), children, max_size=4),
    max_leaves=12,
)


class TestBaseEncodings:
    """base64, base32 and checksums."""

    def test_base64(self) -> None:
        assert call("b64enc", "hello") == "aGVsbG8="
        assert call("b64dec", "aGVsbG8=") == "hello"

    def test_base64_invalid_returns_message(self) -> None:
        """Undecodable input yields the decoder's message rather than failing."""
        result = call("b64dec", "!!!")
        assert isinstance(result, str)
        assert result != ""

    def test_base32(self) -> None:
        assert call("b32enc", "hi") == "NBUQ===="
        assert call("b32dec", "NBUQ====") == "hi"

    def test_checksums(self) -> None:
        assert call("sha1sum", "abc") == "a9993e364706816aba3e25717850c26c9cd0d89d"
        assert call("sha256sum", "") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )
        assert len(call("sha512sum", "x")) == 128
        assert call("adler32sum", "hello") == "103547413"

    def test_url_parse(self) -> None:
        parts = call("urlParse", "https://user:pw@example.com:8080/p?q=1#f")
        assert parts["scheme"] == "https"
        assert parts["host"] == "example.com:8080"
        assert parts["hostname"] == "example.com"
        assert parts["path"] == "/p"
        assert parts["query"] == "q=1"
        assert parts["fragment"] == "f"
        assert parts["userinfo"] == "user:pw"

    @given(st.text(max_size=40))
    def test_base64_round_trip(self, text: str) -> None:
        assert call("b64dec", call("b64enc", text)) == text


class TestJson:
    """toJson family and fromJson family."""

    def test_to_json_go_layout(self) -> None:
        """Sorted keys, compact separators, integral floats without fraction."""
        assert call("toJson", {"b": [1, 2.0], "a": None}) == '{"a":null,"b":[1,2]}'

    def test_to_json_escapes_html(self) -> None:
        assert call("toJson", "<a&b>") == '"\\u003ca\\u0026b\\u003e"'
        assert call("toRawJson", "<a&b>") == '"<a&b>"'

    def test_printed_json_is_unescaped(self, render: Render) -> None:
        """The function result keeps its escapes; the printed text does not."""
        assert render("{{ toJson . }}", {"k": 'a"b'}) == '{"k":"a"b"}'
        assert render("{{ toJson . }}", "<a>") == '"<a>"'
        assert render("{{ (toJson . | fromJson).k }}", {"k": 'a"b'}) == 'a"b'

    def test_to_pretty_json(self) -> None:
        assert call("toPrettyJson", {"a": [1]}) == '{\n  "a": [\n    1\n  ]\n}'

    def test_unicode_kept(self) -> None:
        assert call("toJson", "é") == '"é"'

    def test_structured_values(self) -> None:
        """Dataclasses, tuples, bytes and datetimes are converted."""
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert call("toJson", Port("http", 80)) == '{"name":"http","number":80}'
        assert call("toJson", (1, "a")) == '[1,"a"]'
        assert call("toJson", b"hi") == '"aGk="'
        assert call("toJson", moment) == '"2024-01-02T03:04:05+00:00"'

    def test_unsupported_type(self) -> None:
        """The lenient form renders nothing; the must form fails."""
        assert call("toJson", object()) == ""
        with pytest.raises(TemplateExecutionError, match="unsupported type object"):
            call("mustToJson", object())

    def test_from_json(self) -> None:
        assert call("fromJson", '{"a": [1, true]}') == {"a": [1, True]}
        assert "Error" in call("fromJson", "{bad")
        with pytest.raises(TemplateExecutionError, match="error calling mustFromJson"):
            call("mustFromJson", "{bad")

    def test_from_json_array(self) -> None:
        assert call("fromJsonArray", "[1, 2]") == [1, 2]
        assert call("fromJsonArray", '{"a": 1}') == ["JSON document is not an array"]

    @given(json_values)
    def test_json_round_trip(self, value: Any) -> None:
        assert call("fromJson", call("toRawJson", value)) == value


class TestYaml:
    """toYaml family and fromYaml family (ruamel.yaml)."""

    def test_to_yaml_block_style(self) -> None:
        data = {"b": [1, 2], "a": "x", "n": {"k": True}}
        assert call("toYaml", data) == "a: x\nb:\n- 1\n- 2\nn:\n  k: true"

    def test_to_yaml_scalars(self) -> None:
        assert call("toYaml", "plain") == "plain"
        assert call("toYaml", 3) == "3"
        assert call("toYaml", None) == ""

    def test_to_yaml_long_lines_not_folded(self) -> None:
        text = "word " * 50
        assert "\n" not in call("toYaml", {"k": text.strip()})

    def test_to_yaml_unsupported(self) -> None:
        assert call("toYaml", object()) == ""
        with pytest.raises(TemplateExecutionError):
            call("mustToYaml", object())

    def test_from_yaml(self) -> None:
        assert call("fromYaml", "a: 1\nb: [x]") == {"a": 1, "b": ["x"]}
        assert call("fromYaml", "") == {}

    def test_from_yaml_errors(self) -> None:
        """Invalid YAML and non-mapping documents report through an Error key."""
        assert "Error" in call("fromYaml", "a: [1")
        assert call("fromYaml", "- 1") == {"Error": "YAML document is not a mapping"}
        with pytest.raises(TemplateExecutionError, match="not a mapping"):
            call("mustFromYaml", "- 1")

    def test_from_yaml_array(self) -> None:
        assert call("fromYamlArray", "- 1\n- b") == [1, "b"]
        assert call("fromYamlArray", "a: 1") == ["YAML document is not a sequence"]

    def test_values_file_rendering(self, render: Render) -> None:
        """The common Helm idiom of embedding a YAML section."""
        source = "spec:\n  template:\n{{ toYaml .Values.pod | indent 4 }}"
        data = {"Values": {"pod": {"containers": [{"name": "app", "image": "nginx"}]}}}
        assert render(source, data) == (
            "spec:\n  template:\n    containers:\n    - image: nginx\n      name: app"
        )

    @given(yaml_values)
    def test_yaml_round_trip(self, value: Any) -> None:
        """Mappings survive toYaml | fromYaml."""
        document = {"root": value}
        assert call("fromYaml", call("toYaml", document)) == document
