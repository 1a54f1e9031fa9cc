# file: repute/parser.py
"""
REPUTE reply parsing.

A reply is an XML document shaped like:

    <reputation>
      <reputon>
        <rater>rep.example.net</rater>
        <rater-authenticity>0.95</rater-authenticity>
        <assertion>sending-spam</assertion>
        <extension>dkim</extension>
        <rated>example.com</rated>
        <rating>0.012</rating>
        <sample-size>16938213</sample-size>
        <updated>1317795852</updated>
      </reputon>
    </reputation>

Only a reputon carrying both the "sending-spam" assertion and the "dkim"
extension produces a result. Malformed values inside a reputon are skipped one
field at a time; only a structurally wrong document is an error.

The `rated` and `rater` values are not checked against the question that was
asked: the server is trusted to answer about the requested subject.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from xml.etree.ElementTree import Element, TreeBuilder

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, XMLParser

from repute.errors import ReputeParseError
from repute.template import ASSERT_SENDS_SPAM

logger = logging.getLogger(__name__)

ROOT_NAME = "reputation"
REPUTON_NAME = "reputon"
EXT_ID_DKIM = "dkim"

_ULONG_MAX = 2**64 - 1
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_UINT_RE = re.compile(r"\d+")


class Field(Enum):
    ASSERTION = "assertion"
    EXTENSION = "extension"
    RATED = "rated"
    RATER = "rater"
    RATER_AUTHENTICITY = "rater-authenticity"
    RATING = "rating"
    SAMPLE_SIZE = "sample-size"
    UPDATED = "updated"


_FIELDS: dict[str, Field] = {f.value: f for f in Field}


@dataclass(frozen=True, slots=True)
class QueryResult:
    """
    Reputation of a domain as reported by a REPUTE service.

    Fields:
        reputation: Rating in [-1, 1]; higher means more likely to send spam.
        confidence: Rater authenticity in [0, 1].
        sample_size: Number of observations behind the rating.
        updated: When the rating was last updated (epoch seconds).

    Values missing or rejected in the reply are left at 0.
    """

    reputation: float = 0.0
    confidence: float = 0.0
    sample_size: int = 0
    updated: int = 0


@dataclass(slots=True)
class Reputon:
    assertion: str = ""
    extension: str = ""
    rated: str = ""
    rater: str = ""
    rater_authenticity: float = 0.0
    rating: float = 0.0
    sample_size: int = 0
    updated: int = 0
    sends_spam: bool = False
    dkim: bool = False

    @property
    def accepted(self) -> bool:
        return self.sends_spam and self.dkim

    def to_result(self) -> QueryResult:
        return QueryResult(
            reputation=self.rating,
            confidence=self.rater_authenticity,
            sample_size=self.sample_size,
            updated=self.updated,
        )


def strip_header_block(data: bytes) -> bytes:
    """
    Drop anything up to and including the first blank line.

    Some transports hand back the HTTP header block along with the body. A
    blank line is either LF LF or CR LF CR LF, whichever comes first. Data
    without a blank line is returned unchanged.
    """

    lf = data.find(b"\n\n")
    crlf = data.find(b"\r\n\r\n")
    if lf < 0 and crlf < 0:
        return data
    if crlf < 0 or (0 <= lf < crlf):
        return data[lf + 2 :]
    return data[crlf + 4 :]


def _local_name(elem: Element) -> str | None:
    tag = elem.tag
    if not isinstance(tag, str):
        return None
    return tag.rsplit("}", 1)[-1].lower()


def _has_children(elem: Element) -> bool:
    return len(elem) > 0 or bool(elem.text)


def _parse_float(text: str, low: float, high: float) -> float | None:
    if _FLOAT_RE.fullmatch(text) is None:
        return None
    value = float(text)
    if value < low or value > high:
        return None
    return value


def _parse_uint(text: str) -> int | None:
    if _UINT_RE.fullmatch(text) is None:
        return None
    value = int(text)
    if value > _ULONG_MAX:
        return None
    return value


def parse_reputon(node: Element) -> Reputon:
    """Collect the recognized fields of one reputon element."""

    rep = Reputon()
    for child in node:
        name = _local_name(child)
        text = child.text
        if name is None or not text:
            continue

        kind = _FIELDS.get(name)
        if kind is None:
            continue

        if kind is Field.ASSERTION:
            rep.assertion = text
            if text.lower() == ASSERT_SENDS_SPAM:
                rep.sends_spam = True
        elif kind is Field.EXTENSION:
            rep.extension = text
            if text.lower() == EXT_ID_DKIM:
                rep.dkim = True
        elif kind is Field.RATED:
            rep.rated = text
        elif kind is Field.RATER:
            rep.rater = text
        elif kind is Field.RATER_AUTHENTICITY:
            conf = _parse_float(text, 0.0, 1.0)
            if conf is None:
                logger.debug("skipping rater-authenticity %r", text)
                continue
            rep.rater_authenticity = conf
        elif kind is Field.RATING:
            rating = _parse_float(text, -1.0, 1.0)
            if rating is None:
                logger.debug("skipping rating %r", text)
                continue
            rep.rating = rating
        elif kind is Field.SAMPLE_SIZE:
            sample = _parse_uint(text)
            if sample is None:
                logger.debug("skipping sample-size %r", text)
                continue
            rep.sample_size = sample
        elif kind is Field.UPDATED:
            when = _parse_uint(text)
            if when is None:
                logger.debug("skipping updated %r", text)
                continue
            rep.updated = when

    return rep


def parse_response(data: bytes) -> QueryResult | None:
    """
    Parse a REPUTE reply and return the first qualifying reputon's values.

    Returns:
        A `QueryResult`, or None when the document is valid but holds no
        reputon with both the "sending-spam" assertion and the "dkim"
        extension. Callers must treat None as "no data", not as a zero rating.

    Raises:
        ReputeParseError: if the reply is not XML, or its root is not a
            non-empty "reputation" element.
    """

    body = strip_header_block(data)
    # Comments and processing instructions are kept: they count as children.
    parser = XMLParser(target=TreeBuilder(insert_comments=True, insert_pis=True))
    try:
        parser.feed(body)
        root = parser.close()
    except (ParseError, DefusedXmlException) as exc:
        raise ReputeParseError(f"malformed reply: {exc}") from exc

    if _local_name(root) != ROOT_NAME:
        raise ReputeParseError(f"unexpected root element {root.tag!r}")
    if not _has_children(root):
        raise ReputeParseError(f"empty {ROOT_NAME} element")

    for node in root:
        if _local_name(node) != REPUTON_NAME or not _has_children(node):
            continue
        rep = parse_reputon(node)
        if rep.accepted:
            return rep.to_result()

    return None
