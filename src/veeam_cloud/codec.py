"""
Body codecs shared by every request of a client.

The Enterprise Manager API speaks XML by default; JSON is available on
servers that negotiate it. A codec turns a plain mapping into a request body
and a response body back into a mapping, so models stay independent of the
wire format.

XML attributes decode to "@"-prefixed keys and encode back from them, so a
document read from the server can be sent back unchanged.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional
from xml.etree import ElementTree

from .errors import VeeamParseError

VEEAM_XML_NAMESPACE = "http://www.veeam.com/ent/v1.0"

# Key holding the text of an element that also has attributes or children
TEXT_KEY = "#text"
ATTRIBUTE_PREFIX = "@"


class BodyCodec:
    media_type: str = "application/octet-stream"

    def encode(self, root: str, payload: Mapping[str, Any]) -> bytes:
        raise NotImplementedError

    def decode(self, content: bytes) -> Dict[str, Any]:
        raise NotImplementedError


class XmlCodec(BodyCodec):
    media_type = "application/xml"

    def __init__(self, namespace: Optional[str] = VEEAM_XML_NAMESPACE):
        self.namespace = namespace

    def encode(self, root: str, payload: Mapping[str, Any]) -> bytes:
        elem = ElementTree.Element(root)
        if self.namespace:
            elem.set("xmlns", self.namespace)
        _fill_element(elem, payload)
        return ElementTree.tostring(elem, encoding="utf-8", xml_declaration=True)

    def decode(self, content: bytes) -> Dict[str, Any]:
        if not content or not content.strip():
            return {}

        try:
            root = ElementTree.fromstring(content)
        except ElementTree.ParseError as exc:
            snippet = content[:500].decode("utf-8", errors="replace")
            raise VeeamParseError(
                f"Expected XML body, got: {snippet!r}"
            ) from exc

        value = _element_to_value(root)
        if value is None:
            return {}
        if not isinstance(value, dict):
            return {TEXT_KEY: value}
        return value


class JsonCodec(BodyCodec):
    media_type = "application/json"

    def encode(self, root: str, payload: Mapping[str, Any]) -> bytes:
        return json.dumps(dict(payload)).encode("utf-8")

    def decode(self, content: bytes) -> Dict[str, Any]:
        if not content or not content.strip():
            return {}

        try:
            data = json.loads(content)
        except ValueError as exc:
            snippet = content[:500].decode("utf-8", errors="replace")
            raise VeeamParseError(f"Expected JSON body, got: {snippet!r}") from exc

        if not isinstance(data, dict):
            raise VeeamParseError(
                f"Expected top-level JSON object, got {type(data).__name__}"
            )
        return data


def _local_name(tag: str) -> str:
    """Strip the '{namespace}' prefix ElementTree puts on qualified names."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _element_to_value(elem: ElementTree.Element) -> Any:
    children = list(elem)
    text = (elem.text or "").strip()

    if not children and not elem.attrib:
        return text or None

    # Attributes stay distinguishable from child elements of the same name
    result: Dict[str, Any] = {
        ATTRIBUTE_PREFIX + _local_name(key): value
        for key, value in elem.attrib.items()
    }
    for child in children:
        tag = _local_name(child.tag)
        value = _element_to_value(child)
        if tag in result:
            if not isinstance(result[tag], list):
                result[tag] = [result[tag]]
            result[tag].append(value)
        else:
            result[tag] = value

    if text:
        result[TEXT_KEY] = text
    return result


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _fill_element(elem: ElementTree.Element, value: Any) -> None:
    if not isinstance(value, Mapping):
        elem.text = _format_scalar(value)
        return

    for key, item in value.items():
        if item is None:
            continue
        if key == TEXT_KEY:
            elem.text = _format_scalar(item)
        elif key.startswith(ATTRIBUTE_PREFIX):
            elem.set(key[len(ATTRIBUTE_PREFIX) :], _format_scalar(item))
        elif isinstance(item, (list, tuple)):
            for entry in item:
                _fill_element(ElementTree.SubElement(elem, key), entry)
        else:
            _fill_element(ElementTree.SubElement(elem, key), item)


__all__ = [
    "BodyCodec",
    "XmlCodec",
    "JsonCodec",
    "VEEAM_XML_NAMESPACE",
    "TEXT_KEY",
    "ATTRIBUTE_PREFIX",
]
