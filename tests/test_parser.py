# file: tests/test_parser.py
from __future__ import annotations

import pytest

import repute.parser as parser_mod
from repute.errors import ReputeParseError, ReputeStatus
from repute.parser import QueryResult, parse_response, strip_header_block

BODY = (
    b"<reputation><reputon>"
    b"<rater-authenticity>0.9</rater-authenticity>"
    b"<assertion>sending-spam</assertion>"
    b"<rated>example.com</rated>"
    b"<rating>0.7</rating>"
    b"<sample-size>42</sample-size>"
    b"<updated>1000000</updated>"
    b"<extension>dkim</extension>"
    b"</reputon></reputation>"
)

EXPECTED = QueryResult(reputation=0.7, confidence=0.9, sample_size=42, updated=1000000)


def _doc(*reputons: str, root: str = "reputation") -> bytes:
    inner = "".join(f"<reputon>{r}</reputon>" for r in reputons)
    return f"<{root}>{inner}</{root}>".encode("utf-8")


def test_end_to_end_body() -> None:
    assert parse_response(BODY) == EXPECTED


def test_http_preamble_is_stripped() -> None:
    data = b"HTTP/1.1 200 OK\r\nContent-Type: text/xml\r\n\r\n" + BODY
    assert parse_response(data) == EXPECTED


def test_header_variants_parse_identically() -> None:
    plain = parse_response(BODY)
    lf = parse_response(b"HTTP/1.1 200 OK\nContent-Type: text/xml\n\n" + BODY)
    crlf = parse_response(b"HTTP/1.1 200 OK\r\nContent-Type: text/xml\r\n\r\n" + BODY)
    assert plain == lf == crlf == EXPECTED


def test_strip_header_block_picks_first_blank_line() -> None:
    assert strip_header_block(b"<a/>") == b"<a/>"
    assert strip_header_block(b"h: 1\n\nbody") == b"body"
    assert strip_header_block(b"h: 1\r\n\r\nbody") == b"body"
    assert strip_header_block(b"h\n\nmid\r\n\r\nbody") == b"mid\r\n\r\nbody"
    assert strip_header_block(b"h\r\n\r\nmid\n\nbody") == b"mid\n\nbody"


def test_matching_ignores_letter_case() -> None:
    data = (
        b"<REPUTATION><Reputon>"
        b"<Extension>DKIM</Extension>"
        b"<ASSERTION>SENDING-SPAM</ASSERTION>"
        b"<Rating>-0.5</Rating>"
        b"<SAMPLE-SIZE>7</SAMPLE-SIZE>"
        b"</Reputon></REPUTATION>"
    )
    res = parse_response(data)
    assert res is not None
    assert res.reputation == -0.5
    assert res.sample_size == 7


def test_out_of_range_values_are_skipped_not_fatal() -> None:
    data = _doc(
        "<rater-authenticity>1.2</rater-authenticity>"
        "<rating>1.5</rating>"
        "<assertion>sending-spam</assertion>"
        "<extension>dkim</extension>"
        "<sample-size>42</sample-size>"
        "<updated>1000000</updated>"
    )
    res = parse_response(data)
    assert res == QueryResult(reputation=0.0, confidence=0.0, sample_size=42, updated=1000000)


@pytest.mark.parametrize(
    "field, text",
    [
        ("rating", "abc"),
        ("rating", "0.5x"),
        ("rating", "nan"),
        ("rater-authenticity", "-0.1"),
        ("sample-size", "-5"),
        ("sample-size", "12x"),
        ("updated", "soon"),
        ("updated", str(2**64)),
    ],
)
def test_malformed_field_is_skipped(field: str, text: str) -> None:
    data = _doc(
        "<assertion>sending-spam</assertion>"
        "<extension>dkim</extension>"
        "<rating>0.25</rating>"
        "<rater-authenticity>0.5</rater-authenticity>"
        "<sample-size>3</sample-size>"
        "<updated>99</updated>"
        f"<{field}>{text}</{field}>"
    )
    res = parse_response(data)
    # A later bad value must not clobber the earlier good one.
    assert res == QueryResult(reputation=0.25, confidence=0.5, sample_size=3, updated=99)


def test_first_qualifying_reputon_wins(monkeypatch) -> None:
    calls = []
    real = parser_mod.parse_reputon

    def spy(node):
        calls.append(node)
        return real(node)

    monkeypatch.setattr(parser_mod, "parse_reputon", spy)

    data = _doc(
        "<assertion>sending-spam</assertion><extension>dkim</extension><rating>0.1</rating>",
        "<assertion>sending-spam</assertion><extension>dkim</extension><rating>0.9</rating>",
    )
    res = parse_response(data)
    assert res is not None
    assert res.reputation == 0.1
    assert len(calls) == 1


def test_non_qualifying_reputons_are_passed_over() -> None:
    data = _doc(
        "<assertion>sending-spam</assertion><extension>spf</extension><rating>0.1</rating>",
        "<assertion>other</assertion><extension>dkim</extension><rating>0.2</rating>",
        "<assertion>sending-spam</assertion><extension>dkim</extension><rating>0.3</rating>",
    )
    res = parse_response(data)
    assert res is not None
    assert res.reputation == 0.3


def test_no_match_is_ok_without_data() -> None:
    data = _doc("<assertion>sending-spam</assertion><extension>spf</extension><rating>1</rating>")
    assert parse_response(data) is None


def test_no_match_with_only_text_content() -> None:
    assert parse_response(b"<reputation> </reputation>") is None


def test_unrelated_elements_and_namespaces() -> None:
    data = (
        b'<r:reputation xmlns:r="urn:example:repute">'
        b"<note>ignored</note>"
        b"<r:reputon/>"
        b"<r:reputon>"
        b"<r:assertion>sending-spam</r:assertion>"
        b"<r:extension>dkim</r:extension>"
        b"<r:rating><nested>0.9</nested></r:rating>"
        b"<r:unknown>1</r:unknown>"
        b"<r:rated>example.com</r:rated>"
        b"<r:rater>rep.example.net</r:rater>"
        b"</r:reputon>"
        b"</r:reputation>"
    )
    assert parse_response(data) == QueryResult()


def test_wrong_root_name_is_parse_error() -> None:
    with pytest.raises(ReputeParseError) as excinfo:
        parse_response(_doc("<assertion>sending-spam</assertion>", root="reputations"))
    assert excinfo.value.status is ReputeStatus.PARSE


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"not xml at all",
        b"<reputation>",
        b"<reputation/>",
        b"<reputation></reputation>",
    ],
)
def test_structural_problems_are_parse_errors(data: bytes) -> None:
    with pytest.raises(ReputeParseError):
        parse_response(data)


def test_entity_declarations_are_rejected() -> None:
    data = (
        b'<?xml version="1.0"?>'
        b'<!DOCTYPE reputation [<!ENTITY x "sending-spam">]>'
        b"<reputation><reputon><assertion>&x;</assertion></reputon></reputation>"
    )
    with pytest.raises(ReputeParseError):
        parse_response(data)


def test_comment_counts_as_root_child() -> None:
    assert parse_response(b"<reputation><!-- none --></reputation>") is None
    assert parse_response(b"<reputation><?marker?></reputation>") is None


def test_comments_inside_a_reputon_are_ignored() -> None:
    data = _doc(
        "<!-- rated by rep.example.net -->"
        "<assertion>sending-spam</assertion>"
        "<!-- dkim only -->"
        "<extension>dkim</extension>"
        "<rating>0.4</rating>"
    )
    res = parse_response(data)
    assert res is not None
    assert res.reputation == 0.4


def test_comment_before_root_is_allowed() -> None:
    assert parse_response(b"<!-- reply -->\n" + BODY) == EXPECTED
