"""
XML Canonicalization and XPath helpers

Inclusive Canonical XML 1.0 without comments, as required by the
AuthSignature of EBICS requests, and the namespace map used for every
XPath query on requests and responses.

Standards Reference:
- W3C Canonical XML Version 1.0 (REC-xml-c14n-20010315)
- EBICS Specification 2.5 Section 5.5.1.1 (Identification and authentication signature)

Author: Ebics client Python Project
Date: October 2025
"""

from typing import Dict, List

from lxml import etree

from protocols.core.types import NS_DS, NS_H000, NS_S001, EbicsVersion


def xpath_namespaces(version: EbicsVersion = EbicsVersion.H004) -> Dict[str, str]:
    """Prefixes used in XPath expressions, bound to the version namespace."""
    return {
        version.value: version.namespace,
        "H000": NS_H000,
        "S001": NS_S001,
        "ds": NS_DS,
    }


def canonicalize(element: etree._Element) -> bytes:
    """
    Canonicalize a subtree (inclusive C14N 1.0, no comments).

    In-scope namespace declarations of the ancestors are rendered on the
    subtree root, so the result only depends on the logical tree.
    """
    return etree.tostring(element, method="c14n", exclusive=False, with_comments=False)


def select_nodes(document: etree._Element, xpath: str, namespaces: Dict[str, str] = None) -> List[etree._Element]:
    return document.xpath(xpath, namespaces=namespaces or {})


def canonicalize_nodes(document: etree._Element, xpath: str, namespaces: Dict[str, str] = None) -> bytes:
    """
    Concatenate the canonical form of every node selected by an XPath.

    Args:
        document: Any element of the document (the query is absolute)
        xpath: Node selection, e.g. //*[@authenticate='true']
        namespaces: Prefix map for the query

    Returns:
        bytes: Concatenated canonical XML in document order
    """
    return b"".join(canonicalize(node) for node in select_nodes(document, xpath, namespaces))
