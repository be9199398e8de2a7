"""MQTT reason codes and the error type that carries them."""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Sequence, Tuple


class V3ConnackCode(IntEnum):
    """Return codes of an MQTT 3.1.1 CONNACK packet."""

    ACCEPTED = 0x00
    UNACCEPTABLE_PROTOCOL_VERSION = 0x01
    IDENTIFIER_REJECTED = 0x02
    SERVER_UNAVAILABLE = 0x03
    BAD_USERNAME_OR_PASSWORD = 0x04
    NOT_AUTHORIZED = 0x05


class ReasonCode(IntEnum):
    """Reason codes defined by MQTT 5."""

    SUCCESS = 0x00
    NORMAL_DISCONNECTION = 0x00
    GRANTED_QOS0 = 0x00
    GRANTED_QOS1 = 0x01
    GRANTED_QOS2 = 0x02
    DISCONNECT_WITH_WILL_MESSAGE = 0x04
    NOT_MATCHING_SUBSCRIBERS = 0x10
    NO_SUBSCRIPTION_EXISTED = 0x11
    CONTINUE_AUTHENTICATION = 0x18
    RE_AUTHENTICATE = 0x19
    UNSPECIFIED_ERROR = 0x80
    MALFORMED_PACKET = 0x81
    PROTOCOL_ERROR = 0x82
    IMPLEMENTATION_SPECIFIC_ERROR = 0x83
    UNSUPPORTED_PROTOCOL_VERSION = 0x84
    CLIENT_IDENTIFIER_NOT_VALID = 0x85
    BAD_USER_NAME_OR_PASSWORD = 0x86
    NOT_AUTHORIZED = 0x87
    SERVER_UNAVAILABLE = 0x88
    SERVER_BUSY = 0x89
    BANNED = 0x8A
    BAD_AUTH_METHOD = 0x8C
    KEEP_ALIVE_TIMEOUT = 0x8D
    SESSION_TAKEN_OVER = 0x8E
    TOPIC_FILTER_INVALID = 0x8F
    TOPIC_NAME_INVALID = 0x90
    PACKET_ID_IN_USE = 0x91
    PACKET_ID_NOT_FOUND = 0x92
    RECV_MAX_EXCEEDED = 0x93
    TOPIC_ALIAS_INVALID = 0x94
    PACKET_TOO_LARGE = 0x95
    MESSAGE_RATE_TOO_HIGH = 0x96
    QUOTA_EXCEEDED = 0x97
    ADMIN_ACTION = 0x98
    PAYLOAD_FORMAT_INVALID = 0x99
    RETAIN_NOT_SUPPORTED = 0x9A
    QOS_NOT_SUPPORTED = 0x9B
    USE_ANOTHER_SERVER = 0x9C
    SERVER_MOVED = 0x9D
    SHARED_SUB_NOT_SUPPORTED = 0x9E
    CONNECTION_RATE_EXCEEDED = 0x9F
    MAX_CONNECT_TIME = 0xA0
    SUB_ID_NOT_SUPPORTED = 0xA1
    WILDCARD_SUB_NOT_SUPPORTED = 0xA2


class CodeError(Exception):
    """An MQTT reason code together with optional diagnostic details."""

    def __init__(
        self,
        code: int,
        reason_string: bytes = b"",
        user_properties: Iterable[Tuple[bytes, bytes]] = (),
    ) -> None:
        self.code = int(code)
        self.reason_string = bytes(reason_string or b"")
        self.user_properties: Sequence[Tuple[bytes, bytes]] = list(user_properties)
        super().__init__(str(self))

    def __str__(self) -> str:
        reason = self.reason_string.decode("utf-8", errors="replace")
        return f"operation error: Code = {self.code:x}, reasonString: {reason}"


class MalformedError(CodeError):
    """The packet could not be parsed (reason code 0x81)."""

    def __init__(self) -> None:
        super().__init__(ReasonCode.MALFORMED_PACKET)


class ProtocolViolation(CodeError):
    """The packet breaks the protocol rules (reason code 0x82)."""

    def __init__(self) -> None:
        super().__init__(ReasonCode.PROTOCOL_ERROR)