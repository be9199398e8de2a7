"""The PUBLISH packet and its acknowledgements: PUBACK, PUBREC, PUBREL, PUBCOMP."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

from .codes import MalformedError, ProtocolViolation, ReasonCode
from .encoding import (
    FLAG_PUBREL,
    FLAG_RESERVED,
    QOS0,
    QOS1,
    QOS2,
    VERSION_5,
    PacketType,
    valid_topic_name,
    write_binary,
    write_uint16,
)
from .packet import FixHeader, Packet, _show, read_body
from .properties import Properties, pack_properties, unpack_properties, validate_code


def _ack_body(
    packet_type: PacketType,
    packet_id: int,
    code: int,
    properties: Optional[Properties],
    with_reason: bool,
) -> bytes:
    body = write_uint16(packet_id)
    if with_reason and (code != ReasonCode.SUCCESS or properties is not None):
        body += bytes([int(code) & 0xFF]) + pack_properties(properties, packet_type)
    return body


def _read_ack(
    packet_type: PacketType,
    fix_header: FixHeader,
    stream: BinaryIO,
    with_reason: bool,
) -> Tuple[int, int, Optional[Properties]]:
    """Decode an acknowledgement body into (packet id, code, properties)."""
    body = read_body(stream, fix_header.remain_length)
    packet_id = body.read_uint16()
    if fix_header.remain_length == 2 or not with_reason:
        return packet_id, ReasonCode.SUCCESS, None
    code = body.read_byte()
    if not validate_code(packet_type, code):
        raise ProtocolViolation()
    properties = unpack_properties(body, packet_type)
    return packet_id, code, properties


@dataclass
class Puback(Packet):
    """The PUBACK packet, answering a QoS 1 PUBLISH."""

    version: int = 0
    packet_id: int = 0
    code: int = ReasonCode.SUCCESS
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Puback, Version: {_show(self.version)}, Pid: {_show(self.packet_id)}, "
            f"Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        body = _ack_body(
            PacketType.PUBACK, self.packet_id, self.code, self.properties, self.version == VERSION_5
        )
        return self._frame(PacketType.PUBACK, FLAG_RESERVED, body)

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Puback":
        packet_id, code, properties = _read_ack(
            PacketType.PUBACK, fix_header, stream, version == VERSION_5
        )
        return cls(
            version=version,
            packet_id=packet_id,
            code=code,
            properties=properties,
            fix_header=fix_header,
        )


@dataclass
class Pubcomp(Packet):
    """The PUBCOMP packet, the last step of a QoS 2 exchange."""

    version: int = 0
    packet_id: int = 0
    code: int = ReasonCode.SUCCESS
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Pubcomp, Version: {_show(self.version)}, Pid: {_show(self.packet_id)}, "
            f"Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        body = _ack_body(
            PacketType.PUBCOMP, self.packet_id, self.code, self.properties, self.version == VERSION_5
        )
        return self._frame(PacketType.PUBCOMP, FLAG_RESERVED, body)

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Pubcomp":
        packet_id, code, properties = _read_ack(
            PacketType.PUBCOMP, fix_header, stream, version == VERSION_5
        )
        return cls(
            version=version,
            packet_id=packet_id,
            code=code,
            properties=properties,
            fix_header=fix_header,
        )


@dataclass
class Pubrel(Packet):
    """The PUBREL packet, answering a PUBREC."""

    packet_id: int = 0
    code: int = ReasonCode.SUCCESS
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Pubrel, Code: {_show(self.code)}, Pid: {_show(self.packet_id)}, "
            f"Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        body = _ack_body(PacketType.PUBREL, self.packet_id, self.code, self.properties, True)
        return self._frame(PacketType.PUBREL, FLAG_PUBREL, body)

    @classmethod
    def read(cls, fix_header: FixHeader, stream: BinaryIO) -> "Pubrel":
        packet_id, code, properties = _read_ack(PacketType.PUBREL, fix_header, stream, True)
        return cls(packet_id=packet_id, code=code, properties=properties, fix_header=fix_header)

    def new_pubcomp(self) -> Pubcomp:
        """Build the PUBCOMP answering this PUBREL."""
        return Pubcomp(
            packet_id=self.packet_id,
            fix_header=FixHeader(PacketType.PUBCOMP, FLAG_RESERVED, 2),
        )


@dataclass
class Pubrec(Packet):
    """The PUBREC packet, answering a QoS 2 PUBLISH."""

    version: int = 0
    packet_id: int = 0
    code: int = ReasonCode.SUCCESS
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Pubrec, Version: {_show(self.version)}, Code {_show(self.code)}, "
            f"Pid: {_show(self.packet_id)}, Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        body = _ack_body(
            PacketType.PUBREC, self.packet_id, self.code, self.properties, self.version == VERSION_5
        )
        return self._frame(PacketType.PUBREC, FLAG_RESERVED, body)

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Pubrec":
        packet_id, code, properties = _read_ack(
            PacketType.PUBREC, fix_header, stream, version == VERSION_5
        )
        return cls(
            version=version,
            packet_id=packet_id,
            code=code,
            properties=properties,
            fix_header=fix_header,
        )

    def new_pubrel(self) -> Pubrel:
        """Build the PUBREL answering this PUBREC."""
        return Pubrel(
            packet_id=self.packet_id,
            fix_header=FixHeader(PacketType.PUBREL, FLAG_PUBREL),
        )


@dataclass
class Publish(Packet):
    """The PUBLISH packet."""

    version: int = 0
    dup: bool = False
    qos: int = QOS0
    retain: bool = False
    topic_name: bytes = b""
    packet_id: int = 0
    payload: bytes = b""
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Publish, Version: {_show(self.version)}, Pid: {_show(self.packet_id)}, "
            f"Dup: {_show(self.dup)}, Qos: {_show(self.qos)}, Retain: {_show(self.retain)}, "
            f"TopicName: {_show(self.topic_name)}, Payload: {_show(self.payload)}, "
            f"Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        flags = (8 if self.dup else 0) | (1 if self.retain else 0) | ((self.qos << 1) & 0xFF)
        parts = [write_binary(self.topic_name)]
        if self.qos in (QOS1, QOS2):
            parts.append(write_uint16(self.packet_id))
        if self.version == VERSION_5:
            parts.append(pack_properties(self.properties, PacketType.PUBLISH))
        parts.append(bytes(self.payload))
        return self._frame(PacketType.PUBLISH, flags, b"".join(parts))

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Publish":
        flags = fix_header.flags
        dup = bool((flags >> 3) & 1)
        qos = (flags >> 1) & 3
        if qos == QOS0 and dup:  # [MQTT-3.3.1-2] [MQTT-4.3.1-1]
            raise MalformedError()
        if qos > QOS2:
            raise MalformedError()
        retain = bool(flags & 1)

        body = read_body(stream, fix_header.remain_length)
        topic_name = body.read_utf8_string(True)
        if not valid_topic_name(True, topic_name):
            raise MalformedError()
        packet_id = body.read_uint16() if qos > QOS0 else 0
        properties = None
        if version == VERSION_5:
            properties = unpack_properties(body, PacketType.PUBLISH)
        payload = body.read_rest()
        return cls(
            version=version,
            dup=dup,
            qos=qos,
            retain=retain,
            topic_name=topic_name,
            packet_id=packet_id,
            payload=payload,
            properties=properties,
            fix_header=fix_header,
        )

    def new_puback(self, code: int, properties: Optional[Properties]) -> Puback:
        """Build the PUBACK answering this QoS 1 PUBLISH."""
        return Puback(
            version=self.version, code=code, packet_id=self.packet_id, properties=properties
        )

    def new_pubrec(self, code: int, properties: Optional[Properties]) -> Pubrec:
        """Build the PUBREC answering this QoS 2 PUBLISH."""
        return Pubrec(
            version=self.version, code=code, packet_id=self.packet_id, properties=properties
        )