"""Wire-level primitives of the MQTT protocol and topic validation."""

from __future__ import annotations

from enum import IntEnum
from typing import BinaryIO, Callable, Iterator, Optional, Tuple

from .codes import MalformedError

VERSION_311 = 0x04
VERSION_5 = 0x05
MAXIMUM_SIZE = 268435456

QOS0 = 0x00
QOS1 = 0x01
QOS2 = 0x02
SUBSCRIBE_FAILURE = 0x80

FLAG_RESERVED = 0
FLAG_SUBSCRIBE = 2
FLAG_UNSUBSCRIBE = 2
FLAG_PUBREL = 2

MAX_PACKET_ID = 65535
MIN_PACKET_ID = 1

PAYLOAD_FORMAT_BYTES = 0
PAYLOAD_FORMAT_STRING = 1

_SLASH = ord("/")
_PLUS = ord("+")
_HASH = ord("#")
_DOLLAR = ord("$")


class PacketType(IntEnum):
    """MQTT control packet types."""

    RESERVED = 0
    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14
    AUTH = 15


class InvalidUTF8String(ValueError):
    """A length-prefixed string is truncated or not valid MQTT UTF-8."""

    def __init__(self) -> None:
        super().__init__("invalid utf-8 string")


def _decode_varint(next_byte: Callable[[], Optional[int]]) -> int:
    value = 0
    shift = 0
    while True:
        digit = next_byte()
        if digit is None:
            digit = 0
        if shift < 32:
            value |= ((digit & 127) << shift) & 0xFFFFFFFF
        if not digit & 128:
            return value
        shift += 7


class ByteReader:
    """A cursor over an in-memory packet body."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def read_byte(self) -> int:
        """Read one byte; raises MalformedError when none is left."""
        if self._pos >= len(self._data):
            raise MalformedError()
        value = self._data[self._pos]
        self._pos += 1
        return value

    def take(self, n: int) -> bytes:
        """Return up to ``n`` bytes, fewer if the data runs out."""
        chunk = self._data[self._pos : self._pos + n]
        self._pos += len(chunk)
        return chunk

    def read_uint16(self) -> int:
        if len(self) < 2:
            raise MalformedError()
        return int.from_bytes(self.take(2), "big")

    def read_uint32(self) -> int:
        if len(self) < 4:
            raise MalformedError()
        return int.from_bytes(self.take(4), "big")

    def read_utf8_string(self, must_utf8: bool) -> bytes:
        """Read a length-prefixed string, optionally checking it is MQTT UTF-8."""
        if len(self) < 2:
            raise MalformedError()
        length = int.from_bytes(self.take(2), "big")
        if len(self) < length:
            raise MalformedError()
        payload = self.take(length)
        if must_utf8 and not valid_utf8(payload):
            raise MalformedError()
        return payload

    def read_binary(self) -> bytes:
        return self.read_utf8_string(False)

    def read_remaining_length(self) -> int:
        """Read a variable byte integer; missing bytes count as zero."""

        def next_byte() -> Optional[int]:
            return self.read_byte() if len(self) else None

        return _decode_varint(next_byte)

    def read_rest(self) -> bytes:
        return self.take(len(self))


def encode_remaining_length(length: int) -> bytes:
    """Encode ``length`` as an MQTT variable byte integer."""
    if length < 0 or length >= MAXIMUM_SIZE:
        raise MalformedError()
    out = bytearray()
    while True:
        digit = length % 128
        length //= 128
        if length > 0:
            digit |= 128
        out.append(digit)
        if length <= 0:
            return bytes(out)


def read_remaining_length(stream: BinaryIO) -> int:
    """Read a variable byte integer from a binary stream."""

    def next_byte() -> Optional[int]:
        b = stream.read(1)
        return b[0] if b else None

    return _decode_varint(next_byte)


def encode_utf8_string(data: bytes) -> bytes:
    """Prefix ``data`` with its two-byte big-endian length."""
    if len(data) > 65535:
        raise MalformedError()
    return write_binary(data)


def decode_utf8_string(buf: bytes) -> Tuple[bytes, int]:
    """Decode a length-prefixed string; return the payload and bytes consumed."""
    if len(buf) < 2:
        raise InvalidUTF8String()
    length = int.from_bytes(buf[:2], "big")
    if len(buf) < length + 2:
        raise InvalidUTF8String()
    payload = bytes(buf[2 : length + 2])
    if not valid_utf8(payload):
        raise InvalidUTF8String()
    return payload, length + 2


def write_uint16(value: int) -> bytes:
    return (value & 0xFFFF).to_bytes(2, "big")


def write_uint32(value: int) -> bytes:
    return (value & 0xFFFFFFFF).to_bytes(4, "big")


def write_binary(data: bytes) -> bytes:
    """Prefix ``data`` with its length truncated to two bytes."""
    return write_uint16(len(data)) + bytes(data)


def _sequence_length(lead: int) -> int:
    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def _runes(data: bytes) -> Iterator[Tuple[int, int, bool]]:
    """Yield (offset, size, is_error) for each UTF-8 rune, one byte per bad rune."""
    pos = 0
    while pos < len(data):
        n = _sequence_length(data[pos])
        size, bad = 1, True
        if n == 1:
            bad = False
        elif n > 1:
            try:
                decoded = data[pos : pos + n].decode("utf-8")
            except UnicodeDecodeError:
                pass
            else:
                size, bad = n, decoded == "\ufffd"
        yield pos, size, bad
        pos += size


def valid_utf8(data: bytes) -> bool:
    """Return whether ``data`` is UTF-8 without control characters."""
    try:
        text = bytes(data).decode("utf-8")
    except UnicodeDecodeError:
        return False
    return not any(
        ch <= "\u001f" or "\u007f" <= ch <= "\u009f" or ch == "\ufffd" for ch in text
    )


def valid_topic_name(must_utf8: bool, data: bytes) -> bool:
    """Return whether ``data`` is a topic name, free of wildcards."""
    for pos, size, bad in _runes(data):
        if must_utf8 and bad:
            return False
        if size == 1 and data[pos] in (_PLUS, _HASH):
            return False
    return True


def valid_topic_filter(must_utf8: bool, data: bytes) -> bool:
    """Return whether ``data`` is a well-formed topic filter."""
    if not data:
        return False
    prev: Optional[int] = None
    for pos, size, bad in _runes(data):
        if must_utf8 and bad:
            return False
        first = data[pos]
        remaining = len(data) - pos
        if first == _HASH and remaining != 1:
            return False
        if size == 1 and prev is not None:
            if first in (_PLUS, _HASH) and prev != _SLASH:
                return False
            if remaining > 1 and first == _PLUS and data[pos + 1] != _SLASH:
                return False
        prev = first
    return True


def valid_v5_topic(data: bytes) -> bool:
    """Return whether ``data`` is a valid MQTT 5 filter, shared ones included."""
    if not data:
        return False
    if data.startswith(b"$share/"):
        if len(data) < 9 or data[7] == _SLASH:
            return False
        group = data[7:]
        for pos, size, bad in _runes(group):
            if bad:
                return False
            if size == 1:
                if group[pos] == _SLASH:
                    return valid_topic_filter(True, group[pos + 1 :])
                if group[pos] in (_PLUS, _HASH):
                    return False
        return False
    return valid_topic_filter(True, data)


def topic_match(topic: bytes, topic_filter: bytes) -> bool:
    """Return whether ``topic`` matches ``topic_filter``."""
    f, t = topic_filter, topic
    sublen, topiclen = len(f), len(t)
    if sublen == 0 or topiclen == 0:
        return False
    if (f[0] == _DOLLAR) != (t[0] == _DOLLAR):
        return False
    spos = tpos = 0
    while spos < sublen and tpos <= topiclen:
        if tpos != topiclen and f[spos] == t[tpos]:
            if tpos == topiclen - 1:
                # e.g. "foo" matching "foo/#"
                if spos == sublen - 3 and f[spos + 1] == _SLASH and f[spos + 2] == _HASH:
                    return True
            spos += 1
            tpos += 1
            if spos == sublen and tpos == topiclen:
                return True
            if tpos == topiclen and spos == sublen - 1 and f[spos] == _PLUS:
                return not (spos > 0 and f[spos - 1] != _SLASH)
        elif f[spos] == _PLUS:
            spos += 1
            while tpos < topiclen and t[tpos] != _SLASH:
                tpos += 1
            if tpos == topiclen and spos == sublen:
                return True
        elif f[spos] == _HASH:
            return True
        else:
            # e.g. "foo/bar" matching "foo/+/#"
            return (
                spos > 0
                and spos + 2 == sublen
                and tpos == topiclen
                and f[spos - 1] == _PLUS
                and f[spos] == _SLASH
                and f[spos + 1] == _HASH
            )
    return False