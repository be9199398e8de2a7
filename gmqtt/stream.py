"""Reading MQTT packets from, and writing them to, binary streams."""

from __future__ import annotations

from typing import BinaryIO

from .codes import CodeError, ProtocolViolation, ReasonCode
from .connect import Connack, Connect
from .control import Auth, Disconnect, Pingreq, Pingresp
from .encoding import VERSION_311, PacketType
from .packet import FixHeader, Packet
from .publish import Puback, Pubcomp, Publish, Pubrec, Pubrel
from .subscribe import Suback, Subscribe, Unsuback, Unsubscribe

_MAX_INCOMING_SIZE = 1234
_BUFFER_SIZE = 2048


def new_packet(fix_header: FixHeader, version: int, stream: BinaryIO) -> Packet:
    """Decode the body that follows ``fix_header`` into the matching packet."""
    kind = fix_header.packet_type
    if kind == PacketType.CONNECT:
        return Connect.read(fix_header, version, stream)
    if kind == PacketType.CONNACK:
        return Connack.read(fix_header, version, stream)
    if kind == PacketType.PUBLISH:
        return Publish.read(fix_header, version, stream)
    if kind == PacketType.PUBACK:
        return Puback.read(fix_header, version, stream)
    if kind == PacketType.PUBREC:
        return Pubrec.read(fix_header, version, stream)
    if kind == PacketType.PUBREL:
        return Pubrel.read(fix_header, stream)
    if kind == PacketType.PUBCOMP:
        return Pubcomp.read(fix_header, version, stream)
    if kind == PacketType.SUBSCRIBE:
        return Subscribe.read(fix_header, version, stream)
    if kind == PacketType.SUBACK:
        return Suback.read(fix_header, version, stream)
    if kind == PacketType.UNSUBSCRIBE:
        return Unsubscribe.read(fix_header, version, stream)
    if kind == PacketType.PINGREQ:
        return Pingreq.read(fix_header, stream)
    if kind == PacketType.DISCONNECT:
        return Disconnect.read(fix_header, version, stream)
    if kind == PacketType.UNSUBACK:
        return Unsuback.read(fix_header, version, stream)
    if kind == PacketType.PINGRESP:
        return Pingresp.read(fix_header, stream)
    if kind == PacketType.AUTH:
        return Auth.read(fix_header, stream)
    raise ProtocolViolation()


def _header_length(remain_length: int) -> int:
    if remain_length <= 127:
        return 2
    if remain_length <= 16383:
        return 3
    if remain_length <= 2097151:
        return 4
    if remain_length <= 268435455:
        return 5
    return 0


class PacketReader:
    """Reads packets one at a time, tracking the protocol version in use.

    The version starts as given and switches to that of any CONNECT read.
    """

    def __init__(self, stream: BinaryIO, version: int = VERSION_311) -> None:
        self._stream = stream
        self.version = version

    def read_packet(self) -> Packet:
        """Read the next packet; raises EOFError when the stream is exhausted."""
        header = FixHeader.read(self._stream)
        if _header_length(header.remain_length) + header.remain_length > _MAX_INCOMING_SIZE:
            raise CodeError(ReasonCode.RECV_MAX_EXCEEDED)
        packet = new_packet(header, self.version, self._stream)
        if isinstance(packet, Connect):
            self.version = packet.version
        return packet


class PacketWriter:
    """Encodes packets into a buffer that is flushed to a stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._buffer = bytearray()

    def _append(self, data: bytes) -> None:
        self._buffer += data
        if len(self._buffer) > _BUFFER_SIZE:
            self._drain()

    def _drain(self) -> None:
        if self._buffer:
            self._stream.write(bytes(self._buffer))
            self._buffer.clear()

    def write_packet(self, packet: Packet) -> None:
        """Buffer the encoded packet; call flush to send it on."""
        self._append(packet.pack())

    def write_raw(self, data: bytes) -> None:
        """Buffer raw bytes; call flush to send them on."""
        self._append(bytes(data))

    def flush(self) -> None:
        """Write buffered data to the underlying stream."""
        self._drain()
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()

    def write_and_flush(self, packet: Packet) -> None:
        """Encode the packet and flush it to the underlying stream."""
        self.write_packet(packet)
        self.flush()