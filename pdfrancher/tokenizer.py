"""A small PDF tokenizer used by the object parser."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List

from .primitives import PDFName

_WHITESPACE = b"\x00\t\n\r\f "
_DELIMITERS = b"()<>[]{}/%"
_NUMBER_RE = re.compile(rb"^[+-]?(\d+\.?\d*|\.\d+)$")
_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
}


@dataclass
class PDFString:
    value: str

    def __str__(self) -> str:  # pragma: no cover
        return self.value


@dataclass
class PDFHexString:
    value: bytes


Token = str | float | int | PDFName | PDFString | PDFHexString


class TokenStream:
    """Helper that behaves like an iterator with peek support."""

    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._index = 0

    def __iter__(self) -> Iterator[Token]:  # pragma: no cover
        return self

    def __next__(self) -> Token:  # pragma: no cover
        if self._index >= len(self._tokens):
            raise StopIteration
        value = self._tokens[self._index]
        self._index += 1
        return value

    def peek(self) -> Token | None:
        if self._index >= len(self._tokens):
            return None
        return self._tokens[self._index]

    def pop(self) -> Token:
        value = self.peek()
        if value is None:
            raise ValueError("Unexpected end of token stream")
        self._index += 1
        return value

    def peek_n(self, offset: int) -> Token | None:
        index = self._index + offset
        if index < 0 or index >= len(self._tokens):
            return None
        return self._tokens[index]

    def exhausted(self) -> bool:
        return self._index >= len(self._tokens)


def _is_regular(byte: bytes) -> bool:
    return bool(byte) and byte not in _WHITESPACE and byte not in _DELIMITERS


def _parse_name(data: bytes, index: int) -> tuple[PDFName, int]:
    start = index + 1
    index = start
    while index < len(data) and _is_regular(data[index : index + 1]):
        index += 1
    raw = data[start:index]
    # "#xx" encodes one byte as two hex digits
    decoded = re.sub(rb"#([0-9A-Fa-f]{2})", lambda m: bytes.fromhex(m.group(1).decode("ascii")), raw)
    return PDFName(decoded.decode("latin-1")), index


def _parse_number_or_keyword(data: bytes, index: int) -> tuple[Token, int]:
    start = index
    while index < len(data) and _is_regular(data[index : index + 1]):
        index += 1
    token = data[start:index]
    if _NUMBER_RE.match(token):
        if b"." in token:
            return float(token), index
        return int(token), index
    return token.decode("latin-1"), index


def _parse_literal_string(data: bytes, index: int) -> tuple[PDFString, int]:
    index += 1  # skip opening '('
    depth = 1
    result = []
    length = len(data)
    while index < length:
        char = data[index : index + 1].decode("latin-1")
        if char == "\\":
            index += 1
            if index >= length:
                break
            char = data[index : index + 1].decode("latin-1")
            if char in _ESCAPES:
                result.append(_ESCAPES[char])
            elif char in "01234567":
                digits = char
                while len(digits) < 3 and data[index + 1 : index + 2] in (b"0", b"1", b"2", b"3", b"4", b"5", b"6", b"7"):
                    index += 1
                    digits += data[index : index + 1].decode("ascii")
                result.append(chr(int(digits, 8) & 0xFF))
            elif char == "\r":
                # backslash-EOL is a line continuation
                if data[index + 1 : index + 2] == b"\n":
                    index += 1
            elif char == "\n":
                pass
            else:
                result.append(char)
        elif char == "(":
            depth += 1
            result.append(char)
        elif char == ")":
            depth -= 1
            if depth == 0:
                index += 1
                break
            result.append(char)
        else:
            result.append(char)
        index += 1
    return PDFString("".join(result)), index


def _parse_hex_string(data: bytes, index: int) -> tuple[PDFHexString, int]:
    end = data.find(b">", index + 1)
    if end == -1:
        end = len(data)
    hex_data = bytes(byte for byte in data[index + 1 : end] if byte not in _WHITESPACE)
    if len(hex_data) % 2:
        hex_data += b"0"
    try:
        value = bytes.fromhex(hex_data.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ValueError(f"Invalid hex string at offset {index}") from exc
    return PDFHexString(value), end + 1


def tokenize(data: bytes) -> List[Token]:
    tokens: List[Token] = []
    index = 0
    length = len(data)
    while index < length:
        byte = data[index : index + 1]
        if byte in _WHITESPACE:
            index += 1
            continue
        if byte == b"%":
            while index < length and data[index : index + 1] not in {b"\n", b"\r"}:
                index += 1
            continue
        if byte == b"/":
            name, index = _parse_name(data, index)
            tokens.append(name)
            continue
        if byte == b"(":
            string, index = _parse_literal_string(data, index)
            tokens.append(string)
            continue
        if byte == b"<":
            if data[index + 1 : index + 2] == b"<":
                tokens.append("<<")
                index += 2
                continue
            hex_string, index = _parse_hex_string(data, index)
            tokens.append(hex_string)
            continue
        if byte == b">":
            if data[index + 1 : index + 2] == b">":
                tokens.append(">>")
                index += 2
            else:
                index += 1
            continue
        if byte in _DELIMITERS:
            tokens.append(byte.decode("latin-1"))
            index += 1
            continue
        token, index = _parse_number_or_keyword(data, index)
        tokens.append(token)
    return tokens


__all__ = ["PDFHexString", "PDFString", "Token", "TokenStream", "tokenize"]
