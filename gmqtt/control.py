"""The AUTH, DISCONNECT, PINGREQ and PINGRESP packets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional

from .codes import MalformedError, ProtocolViolation, ReasonCode
from .encoding import FLAG_RESERVED, VERSION_311, VERSION_5, PacketType
from .packet import FixHeader, Packet, _show, read_body
from .properties import Properties, pack_properties, unpack_properties, validate_code


@dataclass
class Auth(Packet):
    """The AUTH packet."""

    code: int = ReasonCode.SUCCESS
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return f"Auth, Code: {_show(self.code)}, Properties: {_show(self.properties)}"

    def pack(self) -> bytes:
        body = b""
        if self.code != ReasonCode.SUCCESS or self.properties is not None:
            body = bytes([int(self.code) & 0xFF]) + pack_properties(self.properties, PacketType.AUTH)
        return self._frame(PacketType.AUTH, FLAG_RESERVED, body)

    @classmethod
    def read(cls, fix_header: FixHeader, stream: BinaryIO) -> "Auth":
        if fix_header.flags != FLAG_RESERVED:  # [MQTT-2.2.2-2]
            raise MalformedError()
        if fix_header.remain_length == 0:
            return cls(code=ReasonCode.SUCCESS, fix_header=fix_header)
        body = read_body(stream, fix_header.remain_length)
        code = body.read_byte()
        if not validate_code(PacketType.AUTH, code):
            raise ProtocolViolation()
        properties = unpack_properties(body, PacketType.AUTH)
        return cls(code=code, properties=properties, fix_header=fix_header)


@dataclass
class Disconnect(Packet):
    """The DISCONNECT packet."""

    version: int = 0
    code: int = ReasonCode.SUCCESS
    properties: Optional[Properties] = None
    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return (
            f"Disconnect, Version: {_show(self.version)}, Code: {_show(self.code)}, "
            f"Properties: {_show(self.properties)}"
        )

    def pack(self) -> bytes:
        if self.version == VERSION_311:
            return self._frame(PacketType.DISCONNECT, FLAG_RESERVED, b"")
        body = b""
        if self.code != ReasonCode.SUCCESS or self.properties is not None:
            body = bytes([int(self.code) & 0xFF]) + pack_properties(
                self.properties, PacketType.DISCONNECT
            )
        return self._frame(PacketType.DISCONNECT, FLAG_RESERVED, body)

    @classmethod
    def read(cls, fix_header: FixHeader, version: int, stream: BinaryIO) -> "Disconnect":
        if fix_header.flags != 0:
            raise MalformedError()
        body = read_body(stream, fix_header.remain_length)
        if version != VERSION_5:
            return cls(version=version, fix_header=fix_header)
        if fix_header.remain_length == 0:
            return cls(
                version=version,
                code=ReasonCode.SUCCESS,
                properties=Properties(),
                fix_header=fix_header,
            )
        code = body.read_byte()
        if not validate_code(PacketType.DISCONNECT, code):
            raise ProtocolViolation()
        properties = unpack_properties(body, PacketType.DISCONNECT)
        return cls(version=version, code=code, properties=properties, fix_header=fix_header)


def _check_empty(fix_header: FixHeader) -> None:
    if fix_header.flags != FLAG_RESERVED or fix_header.remain_length != 0:
        raise MalformedError()


@dataclass
class Pingresp(Packet):
    """The PINGRESP packet."""

    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return "Pingresp"

    def pack(self) -> bytes:
        return self._frame(PacketType.PINGRESP, 0, b"")

    @classmethod
    def read(cls, fix_header: FixHeader, stream: BinaryIO) -> "Pingresp":
        _check_empty(fix_header)
        return cls(fix_header=fix_header)


@dataclass
class Pingreq(Packet):
    """The PINGREQ packet."""

    fix_header: Optional[FixHeader] = None

    def __str__(self) -> str:
        return "Pingreq"

    def pack(self) -> bytes:
        return self._frame(PacketType.PINGREQ, 0, b"")

    @classmethod
    def read(cls, fix_header: FixHeader, stream: BinaryIO) -> "Pingreq":
        _check_empty(fix_header)
        return cls(fix_header=fix_header)

    def new_pingresp(self) -> Pingresp:
        """Build the PINGRESP answering this PINGREQ."""
        return Pingresp(fix_header=FixHeader(PacketType.PINGRESP, 0, 0))