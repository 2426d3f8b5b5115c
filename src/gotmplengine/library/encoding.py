"""Encoding, hashing and serialization functions.

JSON output matches Go's encoding/json: map keys are sorted, integral
floats print without a fraction, and toJson escapes <, > and & for safe
HTML embedding (toRawJson does not). YAML goes through ruamel.yaml in safe
mode with Go-compatible layout (block style, sorted keys, no folding).

Lenient forms swallow conversion failures the way Helm does (toJson
returns "", fromYaml returns {"Error": message}); the must* forms raise.

Python 3.13+. Uses ruamel.yaml for YAML.
"""

import base64
import binascii
import dataclasses
import hashlib
import io
import json
import logging
import zlib
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_str

__all__ = ["from_yaml", "register", "to_yaml"]

logger = logging.getLogger(__name__)

# Largest magnitude Go's encoding/json prints without an exponent.
_JSON_EXPONENT_LIMIT = 1e21

_HTML_SAFE_JSON = str.maketrans({"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"})


# ============================================================================
# BASE ENCODINGS AND HASHES
# ============================================================================


def b64enc(value: Any) -> str:
    return base64.b64encode(to_str(value).encode()).decode("ascii")


def b64dec(value: Any) -> str:
    """Decode base64; an invalid payload yields the decoder's message."""
    try:
        return base64.b64decode(to_str(value), validate=True).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as e:
        return str(e)


def b32enc(value: Any) -> str:
    return base64.b32encode(to_str(value).encode()).decode("ascii")


def b32dec(value: Any) -> str:
    try:
        return base64.b32decode(to_str(value)).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as e:
        return str(e)


def sha1sum(value: Any) -> str:
    return hashlib.sha1(to_str(value).encode()).hexdigest()  # noqa: S324 - checksum, not security


def sha256sum(value: Any) -> str:
    return hashlib.sha256(to_str(value).encode()).hexdigest()


def sha512sum(value: Any) -> str:
    return hashlib.sha512(to_str(value).encode()).hexdigest()


def adler32sum(value: Any) -> str:
    return str(zlib.adler32(to_str(value).encode()))


def url_parse(value: Any) -> dict[str, str]:
    """Split a URL into the fields Sprig's urlParse returns."""
    parts = urlsplit(to_str(value))
    userinfo, _, _ = parts.netloc.rpartition("@")
    return {
        "scheme": parts.scheme,
        "host": parts.netloc.rpartition("@")[2],
        "hostname": parts.hostname or "",
        "path": parts.path,
        "query": parts.query,
        "opaque": "",
        "fragment": parts.fragment,
        "userinfo": userinfo,
    }


# ============================================================================
# PLAIN DATA
# ============================================================================


def _to_plain(value: Any) -> Any:
    """Normalize template data into JSON/YAML-representable builtins."""
    match value:
        case None | bool() | str() | int():
            return value
        case float():
            if value.is_integer() and abs(value) < _JSON_EXPONENT_LIMIT:
                return int(value)
            return value
        case Mapping():
            return {to_str(k): _to_plain(v) for k, v in sorted(value.items(), key=lambda i: to_str(i[0]))}
        case list() | tuple() | set() | frozenset():
            return [_to_plain(v) for v in value]
        case bytes():
            return base64.b64encode(value).decode("ascii")
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return _to_plain(dataclasses.asdict(value))
        case _ if hasattr(value, "isoformat"):
            return value.isoformat()
        case _:
            msg = f"unsupported type {type(value).__name__}"
            raise TypeError(msg)


# ============================================================================
# JSON
# ============================================================================


def must_to_raw_json(value: Any) -> str:
    return json.dumps(_to_plain(value), ensure_ascii=False, separators=(",", ":"))


def must_to_json(value: Any) -> str:
    """Compact JSON with HTML-sensitive characters escaped.

    Example:
        >>> must_to_json({"b": [1, 2.0], "a": "<x>"})
        '{"a":"\\\\u003cx\\\\u003e","b":[1,2]}'
    """
    return must_to_raw_json(value).translate(_HTML_SAFE_JSON)


def must_to_pretty_json(value: Any) -> str:
    return json.dumps(_to_plain(value), ensure_ascii=False, indent=2).translate(_HTML_SAFE_JSON)


def to_json(value: Any) -> str:
    try:
        return must_to_json(value)
    except (TypeError, ValueError) as e:
        logger.debug("toJson failed: %s", e)
        return ""


def to_raw_json(value: Any) -> str:
    try:
        return must_to_raw_json(value)
    except (TypeError, ValueError) as e:
        logger.debug("toRawJson failed: %s", e)
        return ""


def to_pretty_json(value: Any) -> str:
    try:
        return must_to_pretty_json(value)
    except (TypeError, ValueError) as e:
        logger.debug("toPrettyJson failed: %s", e)
        return ""


def must_from_json(text: Any) -> Any:
    return json.loads(to_str(text))


def from_json(text: Any) -> Any:
    """Parse JSON; invalid input yields {"Error": message}."""
    try:
        return must_from_json(text)
    except json.JSONDecodeError as e:
        return {"Error": str(e)}


def must_from_json_array(text: Any) -> list[Any]:
    data = must_from_json(text)
    if not isinstance(data, list):
        msg = "JSON document is not an array"
        raise ValueError(msg)
    return data


def from_json_array(text: Any) -> list[Any]:
    try:
        return must_from_json_array(text)
    except ValueError as e:
        return [str(e)]


# ============================================================================
# YAML
# ============================================================================


def _yaml() -> YAML:
    # YAML instances hold per-document state; one per call keeps them thread-local.
    yaml = YAML(typ="safe", pure=True)
    yaml.default_flow_style = False
    yaml.width = 1000000
    return yaml


def must_to_yaml(value: Any) -> str:
    """Serialize to block-style YAML without document markers.

    Example:
        >>> must_to_yaml({"b": [1, 2], "a": "x"})
        'a: x\\nb:\\n- 1\\n- 2'
    """
    stream = io.StringIO()
    _yaml().dump(_to_plain(value), stream)
    text = stream.getvalue()
    text = text.removeprefix("---\n")
    text = text.removesuffix("...\n")
    return text.strip()


def to_yaml(value: Any) -> str:
    if value is None:
        return ""
    try:
        return must_to_yaml(value)
    except (TypeError, ValueError, YAMLError) as e:
        logger.debug("toYaml failed: %s", e)
        return ""


def must_from_yaml(text: Any) -> dict[str, Any]:
    data = _yaml().load(to_str(text))
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = "YAML document is not a mapping"
        raise ValueError(msg)
    return data


def from_yaml(text: Any) -> dict[str, Any]:
    """Parse a YAML mapping; invalid input yields {"Error": message}.

    Example:
        >>> from_yaml("a: 1\\nb: [x]")
        {'a': 1, 'b': ['x']}
    """
    try:
        return must_from_yaml(text)
    except (ValueError, YAMLError) as e:
        return {"Error": str(e)}


def must_from_yaml_array(text: Any) -> list[Any]:
    data = _yaml().load(to_str(text))
    if data is None:
        return []
    if not isinstance(data, list):
        msg = "YAML document is not a sequence"
        raise ValueError(msg)
    return data


def from_yaml_array(text: Any) -> list[Any]:
    try:
        return must_from_yaml_array(text)
    except (ValueError, YAMLError) as e:
        return [str(e)]


def register(registry: FunctionRegistry) -> None:
    """Register encoding, hashing and serialization functions."""
    for func in (
        b64enc,
        b64dec,
        b32enc,
        b32dec,
        sha1sum,
        sha256sum,
        sha512sum,
        adler32sum,
        url_parse,
        to_json,
        to_raw_json,
        to_pretty_json,
        from_json,
        from_json_array,
        to_yaml,
        from_yaml,
        from_yaml_array,
        must_to_json,
        must_to_raw_json,
        must_to_pretty_json,
        must_from_json,
        must_from_json_array,
        must_to_yaml,
        must_from_yaml,
        must_from_yaml_array,
    ):
        registry.register(func)
