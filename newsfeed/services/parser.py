from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from newsfeed.services.errors import MalformedFeedError

ATOM_NS = "http://www.w3.org/2005/Atom"
ATOM_03_NS = "http://purl.org/atom/ns#"
RSS_10_NS = "http://purl.org/rss/1.0/"
RSS_090_NS = "http://my.netscape.com/rdf/simple/0.9/"

# Used when a feed references a prefix without declaring it on an ancestor we saw.
WELL_KNOWN_PREFIXES = {
    "content": "http://purl.org/rss/1.0/modules/content/",
    "media": "http://search.yahoo.com/mrss/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "atom": ATOM_NS,
}

# (element name, attribute name). element None = attribute of the node itself,
# attribute None = text of the element.
Candidate = Tuple[Optional[str], Optional[str]]


def _split_tag(tag: str) -> tuple[str | None, str]:
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        return uri, local
    return None, tag


@dataclass(frozen=True)
class FeedNode:
    """
    One raw <item>/<entry> element plus the namespace context needed to look up
    prefixed names like "content:encoded".
    """
    element: ET.Element
    namespaces: Mapping[str, str] = field(default_factory=dict)
    plain_namespaces: frozenset = frozenset()

    def _resolve(self, name: str) -> tuple[str | None, str]:
        prefix, sep, local = name.partition(":")
        if not sep:
            return None, name
        uri = self.namespaces.get(prefix) or WELL_KNOWN_PREFIXES.get(prefix)
        # an undeclared prefix resolves to a bogus uri and matches nothing
        return uri or prefix, local

    def children(self, name: str) -> Iterator[ET.Element]:
        uri, local = self._resolve(name)
        for child in self.element:
            if not isinstance(child.tag, str):
                continue
            child_uri, child_local = _split_tag(child.tag)
            if child_local != local:
                continue
            if uri is None:
                if child_uri is None or child_uri in self.plain_namespaces:
                    yield child
            elif child_uri == uri:
                yield child

    def _attribute_key(self, attr: str) -> str:
        uri, local = self._resolve(attr)
        return f"{{{uri}}}{local}" if uri else local

    def text(self, name: str) -> str | None:
        for child in self.children(name):
            value = "".join(child.itertext()).strip()
            if value:
                return value
        return None

    def attribute(self, name: str | None, attr: str) -> str | None:
        key = self._attribute_key(attr)
        elements = [self.element] if name is None else self.children(name)
        for el in elements:
            value = (el.get(key) or "").strip()
            if value:
                return value
        return None

    def first_value(self, candidates: Sequence[Candidate]) -> str | None:
        for name, attr in candidates:
            if attr is None:
                value = self.text(name)
            else:
                value = self.attribute(name, attr)
            if value:
                return value
        return None


class FeedDocument:
    def __init__(self, root: ET.Element, namespaces: Mapping[str, str]) -> None:
        self.root = root
        self.namespaces = dict(namespaces)
        self.default_namespace = self.namespaces.get("")

    @classmethod
    def from_bytes(cls, content: bytes) -> "FeedDocument":
        """
        Parse the whole document up front. Raises MalformedFeedError for anything
        that is not well-formed XML.
        """
        namespaces: dict[str, str] = {}
        root: ET.Element | None = None
        try:
            for event, payload in ET.iterparse(io.BytesIO(content.lstrip()), events=("start", "start-ns")):
                if event == "start-ns":
                    prefix, uri = payload
                    namespaces.setdefault(prefix, uri)
                elif root is None:
                    root = payload
        except ET.ParseError as e:
            raise MalformedFeedError(f"Feed is not well-formed XML ({e})") from e
        if root is None:
            raise MalformedFeedError("Feed has no root element")
        return cls(root, namespaces)

    def _plain_namespaces(self, *extra: str) -> frozenset:
        found = set(extra)
        if self.default_namespace:
            found.add(self.default_namespace)
        return frozenset(found)

    def _select(self, local: str, plain: frozenset) -> Iterator[ET.Element]:
        for el in self.root.iter():
            if not isinstance(el.tag, str):
                continue
            uri, name = _split_tag(el.tag)
            if name == local and (uri is None or uri in plain):
                yield el

    def iter_nodes(self) -> Iterator[FeedNode]:
        """RSS <item> nodes; Atom <entry> nodes only if the feed has no items."""
        plain = self._plain_namespaces(RSS_10_NS, RSS_090_NS, ATOM_NS)
        found = False
        for el in self._select("item", plain):
            found = True
            yield FeedNode(el, self.namespaces, plain)
        if found:
            return
        plain = self._plain_namespaces(ATOM_NS, ATOM_03_NS)
        for el in self._select("entry", plain):
            yield FeedNode(el, self.namespaces, plain)


def parse_feed(content: bytes) -> Iterator[FeedNode]:
    """
    Parse feed bytes and return a lazy, single-pass iterator of raw item nodes.

    The XML itself is parsed eagerly, so a broken document raises here rather than
    on first iteration. Re-parse to iterate again.
    """
    return FeedDocument.from_bytes(content).iter_nodes()
