"""Tolerant access to NETCONF RPC reply documents."""

from typing import Iterable, List, Optional

from lxml import etree

from ..errors import ReplyDecodeError

_PARSER = etree.XMLParser(remove_blank_text=True, resolve_entities=False, huge_tree=True)


def parse_reply(raw: str) -> etree._Element:
    """
    Parse a raw RPC reply and strip XML namespaces.

    Element tags and attribute names are reduced to their local names so that
    lookups such as ``find("interface-flapped")`` and ``attr(el, "seconds")``
    work regardless of the Junos release's namespace URIs.

    Args:
        raw: Reply document as returned by the transport

    Returns:
        etree._Element: Root element of the reply

    Raises:
        ReplyDecodeError: If the reply is not well-formed XML
    """
    data = raw.encode("utf-8") if isinstance(raw, str) else raw
    try:
        root = etree.fromstring(data, parser=_PARSER)
    except etree.XMLSyntaxError as e:
        raise ReplyDecodeError(e) from e

    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        element.tag = etree.QName(element).localname
        for key in list(element.attrib):
            if key.startswith("{"):
                value = element.attrib.pop(key)
                element.attrib[etree.QName(key).localname] = value
    etree.cleanup_namespaces(root)
    return root


def find_all(element: Optional[etree._Element], path: str) -> List[etree._Element]:
    """Return all elements at path below element; an empty list when element is None."""
    if element is None:
        return []
    return element.findall(path)


def text(element: Optional[etree._Element], path: Optional[str] = None) -> str:
    """
    Return the stripped text at path below element.

    Args:
        element: Context element, may be None
        path: Relative ElementPath; None reads the element itself

    Returns:
        str: Stripped text, "" when the element or its text is missing
    """
    if element is None:
        return ""
    target = element if path is None else element.find(path)
    if target is None or target.text is None:
        return ""
    return target.text.strip()


def attr(element: Optional[etree._Element], path: str, name: str) -> str:
    """Return attribute name of the element at path, "" when missing."""
    if element is None:
        return ""
    target = element.find(path)
    if target is None:
        return ""
    return target.get(name, "").strip()


def exists(element: Optional[etree._Element], path: str) -> bool:
    """True when an element exists at path, even if it is empty."""
    return element is not None and element.find(path) is not None


def first_text(element: Optional[etree._Element], paths: Iterable[str]) -> str:
    """Return the first non-empty text among paths, in order."""
    for path in paths:
        value = text(element, path)
        if value:
            return value
    return ""
