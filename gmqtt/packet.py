"""The fixed header and the base class shared by all MQTT packets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .codes import MalformedError
from .encoding import ByteReader, encode_remaining_length, read_remaining_length


@dataclass
class FixHeader:
    """The fixed header that starts every MQTT packet."""

    packet_type: int
    flags: int = 0
    remain_length: int = 0

    def pack(self) -> bytes:
        """Encode the header; raises MalformedError if the length is too large."""
        first = ((self.packet_type << 4) | self.flags) & 0xFF
        return bytes([first]) + encode_remaining_length(self.remain_length)

    @classmethod
    def read(cls, stream: BinaryIO) -> "FixHeader":
        """Read a fixed header from a binary stream; raises EOFError at end of stream."""
        first = stream.read(1)
        if not first:
            raise EOFError("no packet to read")
        length = read_remaining_length(stream)
        return cls(packet_type=first[0] >> 4, flags=first[0] & 0x0F, remain_length=length)


class Packet(ABC):
    """Base of all decoded or to-be-encoded MQTT packets."""

    fix_header: Optional[FixHeader]

    @abstractmethod
    def pack(self) -> bytes:
        """Encode the packet, fixed header included."""

    def write_to(self, stream: BinaryIO) -> None:
        """Encode the packet and write it to ``stream``."""
        stream.write(self.pack())

    def _frame(self, packet_type: int, flags: int, body: bytes) -> bytes:
        header = FixHeader(packet_type, flags, len(body))
        encoded = header.pack()
        self.fix_header = header
        return encoded + body


def read_body(stream: BinaryIO, length: int) -> ByteReader:
    """Read exactly ``length`` bytes of packet body; raises MalformedError if short."""
    data = stream.read(length) if length else b""
    if len(data) < length:
        raise MalformedError()
    return ByteReader(data)


def total_bytes(packet: object) -> int:
    """Return the size of the packet on the wire, or 0 without a fixed header."""
    header = getattr(packet, "fix_header", None)
    if header is None:
        return 0
    length = header.remain_length
    if length <= 127:
        header_length = 2
    elif length <= 16383:
        header_length = 3
    elif length <= 2097151:
        header_length = 4
    elif length <= 268435455:
        header_length = 5
    else:
        header_length = 0
    return header_length + length


def _show(value: object) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, int):
        return str(int(value))
    return str(value)