"""Namespace-agnostic helpers for walking XML responses."""

from __future__ import annotations

from typing import TYPE_CHECKING
from xml.etree import ElementTree as ET

from parcelsync.domain.errors import ParseError

if TYPE_CHECKING:
    from collections.abc import Iterator


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_document(body: bytes | str) -> ET.Element:
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        raise ParseError(f"Response is not well-formed XML: {exc}") from exc


def iter_named(root: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield every descendant (or ``root`` itself) whose local tag is ``name``."""

    for element in root.iter():
        if local_name(element.tag) == name:
            yield element


def find_named(root: ET.Element, name: str) -> ET.Element | None:
    return next(iter_named(root, name), None)


def child_text(element: ET.Element, name: str) -> str | None:
    """Stripped text of the first direct child named ``name``; ``None`` if absent or blank."""

    for child in element:
        if local_name(child.tag) == name:
            text = (child.text or "").strip()
            return text or None
    return None


def child_texts(element: ET.Element) -> dict[str, str]:
    """Map of direct children's local names to their stripped, non-blank text."""

    values: dict[str, str] = {}
    for child in element:
        text = (child.text or "").strip()
        if text:
            values.setdefault(local_name(child.tag), text)
    return values
