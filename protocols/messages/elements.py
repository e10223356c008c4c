"""
XML element helpers shared by the EBICS message handlers.

Author: Ebics client Python Project
Date: October 2025
"""

import base64
from typing import Dict, Optional

from lxml import etree


def qname(namespace: str, tag: str) -> str:
    return f"{{{namespace}}}{tag}"


def create_root(namespace: str, tag: str, nsmap: Dict[Optional[str], str], attrib: Dict[str, str] = None) -> etree._Element:
    root = etree.Element(qname(namespace, tag), nsmap=nsmap)
    for key, value in (attrib or {}).items():
        root.set(key, value)
    return root


def sub_element(
    parent: etree._Element,
    namespace: str,
    tag: str,
    text: Optional[str] = None,
    attrib: Dict[str, str] = None,
) -> etree._Element:
    """Append a namespaced child, optionally with text and attributes."""
    element = etree.SubElement(parent, qname(namespace, tag))
    for key, value in (attrib or {}).items():
        element.set(key, value)
    if text is not None:
        element.text = text
    return element


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: Optional[str]) -> bytes:
    return base64.b64decode("".join((text or "").split()))
