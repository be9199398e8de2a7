"""The CONNECT and CONNACK packets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional

from .codes import CodeError, MalformedError, ProtocolViolation, ReasonCode, V3ConnackCode
from .encoding import (
    FLAG_RESERVED,
    VERSION_311,
    VERSION_5,
    PacketType,
    encode_utf8_string,
    write_uint16,
)
from .packet import FixHeader, Packet, _show, read_body
from .properties import (
    Properties,
    pack_properties,
    pack_will_properties,
    unpack_properties,
    unpack_will_properties,
    validate_code,
)

_WILL_QOS_BITS = {1: 8, 2: 16}


@dataclass
class Connack(Packet):
    """The CONNACK packet."""

    version: int = 0
    code: int = ReasonCode.SUCCESS
    session_present: bool = False
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Connack, Version: {_show(self.version)}, Code:{_show(self.code)}, "
            f"SessionPresent:{_show(self.session_present)}, Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        body = bytes([1 if self.session_present else 0, int(self.code) & 0xFF])
        if self.version == VERSION_5:
            body += pack_properties(self.properties, PacketType.CONNACK)
        return self._frame(PacketType.CONNACK, FLAG_RESERVED, body)

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Connack":
        """Decode a CONNACK body; it is always parsed as MQTT 5."""
        if fix_header.flags != FLAG_RESERVED:
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        flags = body.read_byte()
        if 127 & (flags >> 1):
            raise MalformedError()
        code = body.read_byte()
        if not validate_code(PacketType.CONNACK, code):
            raise ProtocolViolation()
        properties = unpack_properties(body, PacketType.CONNACK)
        return cls(
            version=VERSION_5,
            code=code,
            session_present=flags == 1,
            properties=properties,
            fix_header=fix_header,
        )


@dataclass
class Connect(Packet):
    """The CONNECT packet."""

    version: int = 0
    protocol_level: int = 0
    protocol_name: bytes = b""
    username_flag: bool = False
    password_flag: bool = False
    will_retain: bool = False
    will_qos: int = 0
    will_flag: bool = False
    will_topic: bytes = b""
    will_msg: bytes = b""
    clean_start: bool = False
    keep_alive: int = 0
    client_id: bytes = b""
    username: bytes = b""
    password: bytes = b""
    properties: Optional[Properties] = None
    will_properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Connect, Version: {_show(self.version)},ProtocolLevel: {_show(self.protocol_level)}, "
            f"UsernameFlag: {_show(self.username_flag)}, PasswordFlag: {_show(self.password_flag)}, "
            f"ProtocolName: {_show(self.protocol_name)}, CleanStart: {_show(self.clean_start)}, "
            f"KeepAlive: {_show(self.keep_alive)}, ClientID: {_show(self.client_id)}, "
            f"Username: {_show(self.username)}, Password: {_show(self.password)}, "
            f"WillFlag: {_show(self.will_flag)}, WillRetain: {_show(self.will_retain)}, "
            f"WillQos: {_show(self.will_qos)}, WillMsg: {_show(self.will_msg)}, "
            f"Properties: {_show(self.properties)}, WillProperties: {_show(self.will_properties)}"
        )

    def pack(self) -> bytes:
        flags = _WILL_QOS_BITS.get(self.will_qos, 0)
        if self.username_flag:
            flags |= 128
        if self.password_flag:
            flags |= 64
        if self.will_retain:
            flags |= 32
        if self.will_flag:
            flags |= 4
        if self.clean_start:
            flags |= 2
        parts = [
            b"\x00\x04",
            bytes(self.protocol_name),
            bytes([self.protocol_level & 0xFF, flags]),
            write_uint16(self.keep_alive),
        ]
        v5 = self.version == VERSION_5
        if v5:
            parts.append(pack_properties(self.properties, PacketType.CONNECT))
        parts.append(encode_utf8_string(self.client_id))
        if self.will_flag:
            if v5:
                parts.append(pack_will_properties(self.will_properties))
            parts.append(encode_utf8_string(self.will_topic))
            parts.append(encode_utf8_string(self.will_msg))
        if self.username_flag:
            parts.append(encode_utf8_string(self.username))
        if self.password_flag:
            parts.append(encode_utf8_string(self.password))
        return self._frame(PacketType.CONNECT, FLAG_RESERVED, b"".join(parts))

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Connect":
        """Decode a CONNECT body; the protocol level decides the version."""
        if fix_header.flags != FLAG_RESERVED:
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        protocol_name = body.read_utf8_string(False)
        level = body.read_byte()
        if level not in (VERSION_311, VERSION_5):
            raise CodeError(V3ConnackCode.UNACCEPTABLE_PROTOCOL_VERSION)
        if protocol_name != b"MQTT":
            raise CodeError(ReasonCode.UNSUPPORTED_PROTOCOL_VERSION)
        flags = body.read_byte()
        if flags & 1:  # [MQTT-3.1.2-3]
            raise MalformedError()
        clean_start = bool((flags >> 1) & 1)
        will_flag = bool((flags >> 2) & 1)
        will_qos = (flags >> 3) & 3
        if not will_flag and will_qos != 0:  # [MQTT-3.1.2-11]
            raise MalformedError()
        will_retain = bool((flags >> 5) & 1)
        if not will_flag and will_retain:
            raise MalformedError()
        password_flag = bool((flags >> 6) & 1)
        username_flag = bool((flags >> 7) & 1)
        keep_alive = body.read_uint16()

        properties = will_properties = None
        if level == VERSION_5:
            properties = unpack_properties(body, PacketType.CONNECT)
            will_properties = Properties()

        client_id = body.read_utf8_string(True)
        if level == VERSION_311 and not client_id and not clean_start:  # [MQTT-3.1.3-7]
            raise CodeError(V3ConnackCode.IDENTIFIER_REJECTED)

        will_topic = will_msg = b""
        if will_flag:
            if level == VERSION_5:
                will_properties = unpack_will_properties(body)
            will_topic = body.read_utf8_string(True)
            will_msg = body.read_utf8_string(True)
        username = body.read_utf8_string(True) if username_flag else b""
        password = body.read_utf8_string(True) if password_flag else b""

        return cls(
            version=level,
            protocol_level=level,
            protocol_name=protocol_name,
            username_flag=username_flag,
            password_flag=password_flag,
            will_retain=will_retain,
            will_qos=will_qos,
            will_flag=will_flag,
            will_topic=will_topic,
            will_msg=will_msg,
            clean_start=clean_start,
            keep_alive=keep_alive,
            client_id=client_id,
            username=username,
            password=password,
            properties=properties,
            will_properties=will_properties,
            fix_header=fix_header,
        )

    def new_connack(self, code: int, session_reuse: bool) -> Connack:
        """Build the CONNACK answering this CONNECT."""
        present = not self.clean_start and session_reuse and code == ReasonCode.SUCCESS
        return Connack(version=self.version, code=code, session_present=present)  # [MQTT-3.2.2-2]