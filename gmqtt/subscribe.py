"""The SUBSCRIBE, SUBACK, UNSUBSCRIBE and UNSUBACK packets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, List, Optional

from .codes import MalformedError, ProtocolViolation
from .encoding import (
    FLAG_RESERVED,
    FLAG_SUBSCRIBE,
    FLAG_UNSUBSCRIBE,
    QOS0,
    QOS2,
    VERSION_311,
    VERSION_5,
    ByteReader,
    PacketType,
    valid_topic_filter,
    valid_v5_topic,
    write_binary,
    write_uint16,
)
from .packet import FixHeader, Packet, _show, read_body
from .properties import Properties, pack_properties, unpack_properties, validate_code


def _list(values: Iterable[object]) -> str:
    return "[" + " ".join(str(v) for v in values) + "]"


@dataclass
class Topic:
    """A topic filter together with its subscription options.

    ``retain_handling``: 0 sends retained messages on subscribe, 1 only when the
    subscription is new, 2 never. ``no_local`` stops messages from being sent
    back to the publishing client. ``retain_as_published`` keeps the retain flag
    of forwarded messages.
    """

    name: str
    qos: int = QOS0
    retain_handling: int = 0
    no_local: bool = False
    retain_as_published: bool = False

    def _options(self) -> int:
        options = self.qos & 0xFF
        if self.no_local:
            options |= 4
        if self.retain_as_published:
            options |= 8
        options |= (self.retain_handling << 4) & 0xFF
        return options & 0xFF


def _read_codes(body: ByteReader, packet_type: PacketType, check: bool) -> List[int]:
    """Read the one-or-more reason codes that end a SUBACK or UNSUBACK."""
    codes: List[int] = []
    while True:
        code = body.read_byte()
        if check and not validate_code(packet_type, code):
            raise ProtocolViolation()
        codes.append(code)
        if not len(body):
            return codes


@dataclass
class Suback(Packet):
    """The SUBACK packet."""

    version: int = 0
    packet_id: int = 0
    payload: List[int] = field(default_factory=list)
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Suback,Version: {_show(self.version)}, Pid: {_show(self.packet_id)}, "
            f"Payload: {_list(self.payload)}, Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        parts = [write_uint16(self.packet_id)]
        if self.version == VERSION_5:
            parts.append(pack_properties(self.properties, PacketType.SUBACK))
        parts.append(bytes(c & 0xFF for c in self.payload))
        return self._frame(PacketType.SUBACK, FLAG_RESERVED, b"".join(parts))

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Suback":
        if fix_header.flags != FLAG_RESERVED:
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        packet_id = body.read_uint16()
        properties = None
        if version == VERSION_5:
            properties = unpack_properties(body, PacketType.SUBACK)
        payload = _read_codes(body, PacketType.SUBACK, True)
        return cls(
            version=version,
            packet_id=packet_id,
            payload=payload,
            properties=properties,
            fix_header=fix_header,
        )


@dataclass
class Subscribe(Packet):
    """The SUBSCRIBE packet."""

    version: int = 0
    packet_id: int = 0
    topics: List[Topic] = field(default_factory=list)
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        text = f"Subscribe, Version: {_show(self.version)}, Pid: {_show(self.packet_id)}"
        for index, topic in enumerate(self.topics):
            text += f", Topic[{index}][Name: {topic.name}, Qos: {topic.qos}]"
        return text + f", Properties: {_show(self.properties)}"

    def pack(self) -> bytes:
        parts = [write_uint16(self.packet_id)]
        if self.version == VERSION_5:
            parts.append(pack_properties(self.properties, PacketType.SUBSCRIBE))
            for topic in self.topics:
                parts.append(write_binary(topic.name.encode("utf-8")))
                parts.append(bytes([topic._options()]))
        else:
            for topic in self.topics:
                parts.append(write_binary(topic.name.encode("utf-8")))
                parts.append(bytes([topic.qos & 0xFF]))
        return self._frame(PacketType.SUBSCRIBE, FLAG_SUBSCRIBE, b"".join(parts))

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Subscribe":
        if fix_header.flags != FLAG_SUBSCRIBE:  # [MQTT-3.8.1-1]
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        packet_id = body.read_uint16()
        v5 = version == VERSION_5
        properties = unpack_properties(body, PacketType.SUBSCRIBE) if v5 else None
        topics: List[Topic] = []
        while True:
            raw = body.read_utf8_string(True)
            valid = valid_v5_topic(raw) if v5 else valid_topic_filter(True, raw)
            if not valid:
                raise MalformedError()
            options = body.read_byte()
            name = raw.decode("utf-8")
            if v5:
                topic = Topic(
                    name=name,
                    qos=options & 3,
                    no_local=bool((options >> 2) & 1),
                    retain_as_published=bool((options >> 3) & 1),
                    retain_handling=(options >> 4) & 3,
                )
            else:
                topic = Topic(name=name, qos=options)
                if topic.qos > QOS2:
                    raise ProtocolViolation()
            if (options >> 6) & 3:
                raise ProtocolViolation()
            if topic.qos > QOS2:
                raise ProtocolViolation()
            topics.append(topic)
            if not len(body):
                break
        return cls(
            version=version,
            packet_id=packet_id,
            topics=topics,
            properties=properties,
            fix_header=fix_header,
        )

    def new_suback(self) -> Suback:
        """Build the SUBACK granting each topic its requested QoS."""
        return Suback(
            version=self.version,
            packet_id=self.packet_id,
            payload=[topic.qos for topic in self.topics],
            fix_header=FixHeader(PacketType.SUBACK, FLAG_RESERVED),
        )


@dataclass
class Unsuback(Packet):
    """The UNSUBACK packet."""

    version: int = 0
    packet_id: int = 0
    properties: Optional[Properties] = None
    payload: List[int] = field(default_factory=list)
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Unsuback, Version: {_show(self.version)}, Pid: {_show(self.packet_id)}, "
            f"Payload: {_list(self.payload)}, Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        parts = [write_uint16(self.packet_id)]
        if self.version == VERSION_5:
            parts.append(pack_properties(self.properties, PacketType.UNSUBACK))
        parts.append(bytes(c & 0xFF for c in self.payload))
        return self._frame(PacketType.UNSUBACK, FLAG_RESERVED, b"".join(parts))

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Unsuback":
        if fix_header.flags != FLAG_RESERVED:
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        packet_id = body.read_uint16()
        if version == VERSION_311:
            return cls(version=version, packet_id=packet_id, fix_header=fix_header)
        properties = unpack_properties(body, PacketType.UNSUBACK)
        payload = _read_codes(body, PacketType.UNSUBACK, version == VERSION_5)
        return cls(
            version=version,
            packet_id=packet_id,
            properties=properties,
            payload=payload,
            fix_header=fix_header,
        )


@dataclass
class Unsubscribe(Packet):
    """The UNSUBSCRIBE packet."""

    version: int = 0
    packet_id: int = 0
    topics: List[str] = field(default_factory=list)
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Unsubscribe, Version: {_show(self.version)}, Pid: {_show(self.packet_id)}, "
            f"Topics: {_list(self.topics)}, Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        parts = [write_uint16(self.packet_id)]
        if self.version == VERSION_5:
            parts.append(pack_properties(self.properties, PacketType.UNSUBSCRIBE))
        parts.extend(write_binary(topic.encode("utf-8")) for topic in self.topics)
        return self._frame(PacketType.UNSUBSCRIBE, FLAG_UNSUBSCRIBE, b"".join(parts))

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Unsubscribe":
        if fix_header.flags != FLAG_UNSUBSCRIBE:  # [MQTT-3.10.1-1]
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        packet_id = body.read_uint16()
        properties = None
        if version == VERSION_5:
            properties = unpack_properties(body, PacketType.UNSUBSCRIBE)
        topics: List[str] = []
        while True:
            raw = body.read_utf8_string(True)
            if not valid_topic_filter(True, raw):
                raise ProtocolViolation()
            topics.append(raw.decode("utf-8"))
            if not len(body):
                break
        return cls(
            version=version,
            packet_id=packet_id,
            topics=topics,
            properties=properties,
            fix_header=fix_header,
        )

    def new_unsuback(self) -> Unsuback:
        """Build the UNSUBACK answering this UNSUBSCRIBE."""
        payload = [0] * len(self.topics) if self.version == VERSION_5 else []
        return Unsuback(
            version=self.version,
            packet_id=self.packet_id,
            payload=payload,
            fix_header=FixHeader(PacketType.UNSUBACK, 0),
        )