"""Tests for the codec primitives."""

import base64
from email.header import decode_header, make_header

import pytest

from mail_composer.encoding import (
    CRLF,
    encode_base64,
    encode_mime_word,
    encode_quoted_printable,
    fold_line,
    has_utf_chars,
    parse_addresses,
    upper_first,
)
from mail_composer.errors import AddressParseFailure


def _decode_words(value):
    return str(make_header(decode_header(value)))


class TestHasUtfChars:

    def test_ascii_only(self):
        assert has_utf_chars("plain ascii text") is False

    def test_non_ascii(self):
        assert has_utf_chars("tõlge") is True

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_values(self, value):
        assert not has_utf_chars(value)


class TestUpperFirst:

    def test_header_name(self):
        assert upper_first("x-my-header") == "X-My-Header"

    def test_lowercases_rest_by_default(self):
        assert upper_first("CONTENT-id") == "Content-Id"

    def test_keep_upper(self):
        assert upper_first("john mcDonald", keep_upper=True) == "John McDonald"


class TestQuotedPrintable:

    def test_newlines_become_crlf(self):
        assert encode_quoted_printable("Hello\nWorld") == "Hello\r\nWorld"

    def test_encodes_non_ascii(self):
        assert encode_quoted_printable("õ") == "=C3=B5"

    def test_empty(self):
        assert encode_quoted_printable("") == ""

    def test_soft_line_breaks(self):
        encoded = encode_quoted_printable("a" * 200)
        lines = encoded.split(CRLF)
        assert len(lines) > 1
        assert all(len(line) <= 76 for line in lines)
        assert lines[0].endswith("=")


class TestBase64:

    def test_wraps_lines(self):
        data = bytes(range(256)) * 2
        encoded = encode_base64(data)
        lines = encoded.split(CRLF)
        assert all(len(line) <= 76 for line in lines)
        assert base64.b64decode("".join(lines)) == data

    def test_custom_line_length(self):
        encoded = encode_base64(b"x" * 60, line_length=20)
        assert all(len(line) == 20 for line in encoded.split(CRLF))


class TestMimeWord:

    def test_q_encoding(self):
        encoded = encode_mime_word("Jõgi Mets")
        assert encoded == "=?utf-8?q?J=C3=B5gi_Mets?="

    def test_long_text_stays_on_one_line(self):
        text = "õun " * 40
        encoded = encode_mime_word(text)
        assert CRLF not in encoded
        assert encoded.count("=?utf-8?q?") > 1
        assert _decode_words(encoded).strip() == text.strip()


class TestFoldLine:

    def test_short_line_untouched(self):
        assert fold_line("Subject: Hello") == "Subject: Hello"

    def test_folds_at_spaces(self):
        line = "Subject: " + " ".join(["word"] * 30)
        folded = fold_line(line)
        pieces = folded.split(CRLF)
        assert len(pieces) > 1
        assert all(len(piece) <= 76 for piece in pieces)
        assert all(piece.startswith(" ") for piece in pieces[1:])
        assert folded.replace(CRLF, "") == line

    def test_unbreakable_value_left_intact(self):
        line = "X-Long-Token: " + "x" * 120
        assert fold_line(line) == line


class TestParseAddresses:

    def test_named_and_bare(self):
        assert parse_addresses('"Name" <a@example.com>, b@example.com') == [
            ("Name", "a@example.com"),
            ("", "b@example.com"),
        ]

    def test_list_input(self):
        parsed = parse_addresses(["a@example.com", "b@example.com"])
        assert [address for _, address in parsed] == ["a@example.com", "b@example.com"]

    @pytest.mark.parametrize("value", [None, "", []])
    def test_empty(self, value):
        assert parse_addresses(value) == []

    def test_parser_failure_is_wrapped(self, monkeypatch):
        def broken(fields):
            raise ValueError("bad input")

        monkeypatch.setattr("mail_composer.encoding.getaddresses", broken)
        with pytest.raises(AddressParseFailure):
            parse_addresses("a@example.com")


class TestCharsetFallback:

    def test_quoted_printable_replaces_unencodable(self):
        assert encode_quoted_printable("euro €", "ISO-8859-1") == "euro ?"

    def test_quoted_printable_uses_charset(self):
        assert encode_quoted_printable("õ", "ISO-8859-1") == "=F5"

    def test_quoted_printable_unknown_charset(self):
        assert encode_quoted_printable("õ", "no-such-charset") == "=C3=B5"

    def test_mime_word_in_requested_charset(self):
        encoded = encode_mime_word("Tere õ", "ISO-8859-1")
        assert encoded.startswith("=?iso-8859-1?q?")
        assert _decode_words(encoded) == "Tere õ"

    def test_mime_word_falls_back_to_utf8(self):
        encoded = encode_mime_word("Tere €", "ISO-8859-1")
        assert encoded.startswith("=?utf-8?q?")
        assert _decode_words(encoded) == "Tere €"


def test_mime_word_leaves_room_for_header_name():
    encoded = encode_mime_word("õ" * 60, header_name="Subject")
    first_word = encoded.split(" ")[0]
    assert len("Subject: " + first_word) <= 76
