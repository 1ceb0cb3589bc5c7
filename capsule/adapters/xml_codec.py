"""XML encoding for the legacy Capsule endpoints.

The mapping between XML and Python values follows a small fixed policy:

- Encoding writes an XML declaration, one element per mapping key, repeated
  elements for list values, and no attributes. ``None`` and empty strings are
  skipped.
- Decoding strips the root element, ignores attributes and namespaces, drops
  empty elements, turns leaf elements into stripped strings, and collapses
  repeated sibling elements into a list. A single child therefore decodes to
  a scalar or mapping, never a one-item list.
"""

from __future__ import annotations

import xml.etree.ElementTree as ElT
from typing import Any, Dict, Mapping, Optional, Union


def dumps(data: Mapping[str, Any], root_name: str) -> bytes:
    """Encode ``data`` as an XML document rooted at ``root_name``."""
    if not isinstance(data, Mapping):
        raise ValueError("XML payloads must be mappings.")
    root = ElT.Element(root_name)
    _fill(root, data)
    return ElT.tostring(root, encoding="utf-8", xml_declaration=True)


def loads(body: Union[bytes, str]) -> Any:
    """Decode an XML document; the root element itself is not kept.

    Raises:
        xml.etree.ElementTree.ParseError: The body is not well-formed XML.
    """
    root = ElT.fromstring(body)
    value = _read(root)
    return {} if value is None else value


def _fill(element: ElT.Element, value: Any) -> None:
    if isinstance(value, Mapping):
        for key, child in value.items():
            items = child if isinstance(child, (list, tuple)) else [child]
            for item in items:
                if _is_empty(item):
                    continue
                _fill(ElT.SubElement(element, str(key)), item)
        return
    if isinstance(value, bool):
        element.text = "true" if value else "false"
        return
    element.text = str(value)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read(element: ElT.Element) -> Optional[Any]:
    children = list(element)
    if not children:
        text = (element.text or "").strip()
        return text or None

    result: Dict[str, Any] = {}
    repeated = set()
    for child in children:
        value = _read(child)
        if value is None:
            continue
        tag = _local_name(child.tag)
        if tag not in result:
            result[tag] = value
        elif tag in repeated:
            result[tag].append(value)
        else:
            result[tag] = [result[tag], value]
            repeated.add(tag)
    return result or None


def _local_name(tag: str) -> str:
    # "{namespace}name" -> "name"
    return tag.rsplit("}", 1)[-1]


__all__ = ["dumps", "loads"]
