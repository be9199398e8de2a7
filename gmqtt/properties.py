"""MQTT 5 properties: their model, wire encoding and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from .codes import MalformedError, ProtocolViolation
from .encoding import (
    ByteReader,
    PacketType,
    encode_remaining_length,
    valid_topic_name,
    write_binary,
    write_uint16,
    write_uint32,
)


class PropertyID(IntEnum):
    """Identifiers of the MQTT 5 properties."""

    PAYLOAD_FORMAT = 0x01
    MESSAGE_EXPIRY = 0x02
    CONTENT_TYPE = 0x03
    RESPONSE_TOPIC = 0x08
    CORRELATION_DATA = 0x09
    SUBSCRIPTION_IDENTIFIER = 0x0B
    SESSION_EXPIRY_INTERVAL = 0x11
    ASSIGNED_CLIENT_ID = 0x12
    SERVER_KEEP_ALIVE = 0x13
    AUTH_METHOD = 0x15
    AUTH_DATA = 0x16
    REQUEST_PROBLEM_INFO = 0x17
    WILL_DELAY_INTERVAL = 0x18
    REQUEST_RESPONSE_INFO = 0x19
    RESPONSE_INFO = 0x1A
    SERVER_REFERENCE = 0x1C
    REASON_STRING = 0x1F
    RECEIVE_MAXIMUM = 0x21
    TOPIC_ALIAS_MAXIMUM = 0x22
    TOPIC_ALIAS = 0x23
    MAXIMUM_QOS = 0x24
    RETAIN_AVAILABLE = 0x25
    USER = 0x26
    MAXIMUM_PACKET_SIZE = 0x27
    WILDCARD_SUB_AVAILABLE = 0x28
    SUB_ID_AVAILABLE = 0x29
    SHARED_SUB_AVAILABLE = 0x2A


@dataclass(frozen=True)
class UserProperty:
    """A user-defined key/value pair."""

    key: bytes
    value: bytes


@dataclass
class Properties:
    """All properties an MQTT 5 packet can carry; unset ones are None."""

    payload_format: Optional[int] = None
    message_expiry: Optional[int] = None
    content_type: Optional[bytes] = None
    response_topic: Optional[bytes] = None
    correlation_data: Optional[bytes] = None
    subscription_identifier: List[int] = field(default_factory=list)
    session_expiry_interval: Optional[int] = None
    assigned_client_id: Optional[bytes] = None
    server_keep_alive: Optional[int] = None
    auth_method: Optional[bytes] = None
    auth_data: Optional[bytes] = None
    request_problem_info: Optional[int] = None
    will_delay_interval: Optional[int] = None
    request_response_info: Optional[int] = None
    response_info: Optional[bytes] = None
    server_reference: Optional[bytes] = None
    reason_string: Optional[bytes] = None
    receive_maximum: Optional[int] = None
    topic_alias_maximum: Optional[int] = None
    topic_alias: Optional[int] = None
    maximum_qos: Optional[int] = None
    retain_available: Optional[int] = None
    user: List[UserProperty] = field(default_factory=list)
    maximum_packet_size: Optional[int] = None
    wildcard_sub_available: Optional[int] = None
    sub_id_available: Optional[int] = None
    shared_sub_available: Optional[int] = None

    def __str__(self) -> str:
        parts = []
        for label, attr in _LABELS:
            value = getattr(self, attr)
            if value is None:
                shown = "[]" if attr in _BYTES_FIELDS else "nil"
            else:
                shown = _format_value(value)
            parts.append(f"{label}: {shown}")
        return ", ".join(parts)


_LABELS: Tuple[Tuple[str, str], ...] = (
    ("PayloadFormat", "payload_format"),
    ("MessageExpiry", "message_expiry"),
    ("ContentType", "content_type"),
    ("ResponseTopic", "response_topic"),
    ("CorrelationData", "correlation_data"),
    ("SubscriptionIdentifier", "subscription_identifier"),
    ("SessionExpiryInterval", "session_expiry_interval"),
    ("AssignedClientID", "assigned_client_id"),
    ("ServerKeepAlive", "server_keep_alive"),
    ("AuthMethod", "auth_method"),
    ("AuthData", "auth_data"),
    ("RequestProblemInfo", "request_problem_info"),
    ("WillDelayInterval", "will_delay_interval"),
    ("RequestResponseInfo", "request_response_info"),
    ("ResponseInfo", "response_info"),
    ("ServerReference", "server_reference"),
    ("ReasonString", "reason_string"),
    ("ReceiveMaximum", "receive_maximum"),
    ("TopicAliasMaximum", "topic_alias_maximum"),
    ("TopicAlias", "topic_alias"),
    ("MaximumQoS", "maximum_qos"),
    ("RetainAvailable", "retain_available"),
    ("User", "user"),
    ("MaximumPacketSize", "maximum_packet_size"),
    ("WildcardSubAvailable", "wildcard_sub_available"),
    ("SubIDAvailable", "sub_id_available"),
    ("SharedSubAvailable", "shared_sub_available"),
)

_BYTES_FIELDS = frozenset(
    {
        "content_type",
        "response_topic",
        "correlation_data",
        "assigned_client_id",
        "auth_method",
        "auth_data",
        "response_info",
        "server_reference",
        "reason_string",
    }
)


def _format_value(value: object) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "[" + " ".join(str(b) for b in value) + "]"
    if isinstance(value, UserProperty):
        return "{" + _format_value(value.key) + " " + _format_value(value.value) + "}"
    if isinstance(value, list):
        return "[" + " ".join(_format_value(v) for v in value) + "]"
    return str(int(value))  # type: ignore[call-overload]


# --- validity of properties per packet type -------------------------------

_P = PacketType
_ALL_ACKS = frozenset(
    {_P.CONNACK, _P.PUBACK, _P.PUBREC, _P.PUBREL, _P.PUBCOMP, _P.SUBACK, _P.UNSUBACK, _P.DISCONNECT, _P.AUTH}
)

VALID_PROPERTIES: Dict[PropertyID, FrozenSet[PacketType]] = {
    PropertyID.PAYLOAD_FORMAT: frozenset({_P.CONNECT, _P.PUBLISH}),
    PropertyID.MESSAGE_EXPIRY: frozenset({_P.CONNECT, _P.PUBLISH}),
    PropertyID.CONTENT_TYPE: frozenset({_P.CONNECT, _P.PUBLISH}),
    PropertyID.RESPONSE_TOPIC: frozenset({_P.CONNECT, _P.PUBLISH}),
    PropertyID.CORRELATION_DATA: frozenset({_P.CONNECT, _P.PUBLISH}),
    PropertyID.SUBSCRIPTION_IDENTIFIER: frozenset({_P.SUBSCRIBE}),
    PropertyID.SESSION_EXPIRY_INTERVAL: frozenset({_P.CONNECT, _P.CONNACK, _P.DISCONNECT}),
    PropertyID.ASSIGNED_CLIENT_ID: frozenset({_P.CONNACK}),
    PropertyID.SERVER_KEEP_ALIVE: frozenset({_P.CONNACK}),
    PropertyID.AUTH_METHOD: frozenset({_P.CONNECT, _P.CONNACK, _P.AUTH}),
    PropertyID.AUTH_DATA: frozenset({_P.CONNECT, _P.CONNACK, _P.AUTH}),
    PropertyID.REQUEST_PROBLEM_INFO: frozenset({_P.CONNECT}),
    PropertyID.WILL_DELAY_INTERVAL: frozenset({_P.CONNECT}),
    PropertyID.REQUEST_RESPONSE_INFO: frozenset({_P.CONNECT}),
    PropertyID.RESPONSE_INFO: frozenset({_P.CONNACK}),
    PropertyID.SERVER_REFERENCE: frozenset({_P.CONNACK, _P.DISCONNECT}),
    PropertyID.REASON_STRING: _ALL_ACKS,
    PropertyID.RECEIVE_MAXIMUM: frozenset({_P.CONNECT, _P.CONNACK}),
    PropertyID.TOPIC_ALIAS_MAXIMUM: frozenset({_P.CONNECT, _P.CONNACK}),
    PropertyID.TOPIC_ALIAS: frozenset({_P.PUBLISH}),
    PropertyID.MAXIMUM_QOS: frozenset({_P.CONNACK}),
    PropertyID.RETAIN_AVAILABLE: frozenset({_P.CONNACK}),
    PropertyID.USER: _ALL_ACKS | {_P.CONNECT, _P.PUBLISH, _P.SUBSCRIBE, _P.UNSUBSCRIBE},
    PropertyID.MAXIMUM_PACKET_SIZE: frozenset({_P.CONNECT, _P.CONNACK}),
    PropertyID.WILDCARD_SUB_AVAILABLE: frozenset({_P.CONNACK}),
    PropertyID.SUB_ID_AVAILABLE: frozenset({_P.CONNACK}),
    PropertyID.SHARED_SUB_AVAILABLE: frozenset({_P.CONNACK}),
}


def validate_id(packet_type: int, property_id: int) -> bool:
    """Return whether the property may appear in a packet of that type."""
    try:
        allowed = VALID_PROPERTIES[PropertyID(property_id)]
    except ValueError:
        return False
    return packet_type in allowed


def validate_code(packet_type: int, code: int) -> bool:
    """Return whether the reason code is acceptable; every code is accepted."""
    return True


# --- encoding -------------------------------------------------------------

_Writer = Callable[[int], bytes]

_BYTE = "byte"
_U16 = "u16"
_U32 = "u32"
_STR = "str"


def _encode_field(pid: PropertyID, kind: str, value: object) -> bytes:
    if value is None:
        return b""
    head = bytes([pid])
    if kind == _BYTE:
        return head + bytes([int(value) & 0xFF])  # type: ignore[call-overload]
    if kind == _U16:
        return head + write_uint16(int(value))  # type: ignore[call-overload]
    if kind == _U32:
        return head + write_uint32(int(value))  # type: ignore[call-overload]
    return head + write_binary(value)  # type: ignore[arg-type]


def _encode_user(users: List[UserProperty]) -> bytes:
    return b"".join(
        bytes([PropertyID.USER]) + write_binary(u.key) + write_binary(u.value) for u in users
    )


def _with_length(body: bytes) -> bytes:
    return encode_remaining_length(len(body)) + body


_MESSAGE_FIELDS = (
    (PropertyID.PAYLOAD_FORMAT, "payload_format", _BYTE),
    (PropertyID.MESSAGE_EXPIRY, "message_expiry", _U32),
    (PropertyID.CONTENT_TYPE, "content_type", _STR),
    (PropertyID.RESPONSE_TOPIC, "response_topic", _STR),
    (PropertyID.CORRELATION_DATA, "correlation_data", _STR),
)

_MIDDLE_FIELDS = (
    (PropertyID.SESSION_EXPIRY_INTERVAL, "session_expiry_interval", _U32),
    (PropertyID.ASSIGNED_CLIENT_ID, "assigned_client_id", _STR),
    (PropertyID.SERVER_KEEP_ALIVE, "server_keep_alive", _U16),
    (PropertyID.AUTH_METHOD, "auth_method", _STR),
    (PropertyID.AUTH_DATA, "auth_data", _STR),
    (PropertyID.REQUEST_PROBLEM_INFO, "request_problem_info", _BYTE),
    (PropertyID.WILL_DELAY_INTERVAL, "will_delay_interval", _U32),
    (PropertyID.REQUEST_RESPONSE_INFO, "request_response_info", _BYTE),
    (PropertyID.RESPONSE_INFO, "response_info", _STR),
    (PropertyID.SERVER_REFERENCE, "server_reference", _STR),
    (PropertyID.REASON_STRING, "reason_string", _STR),
    (PropertyID.RECEIVE_MAXIMUM, "receive_maximum", _U16),
    (PropertyID.TOPIC_ALIAS_MAXIMUM, "topic_alias_maximum", _U16),
    (PropertyID.TOPIC_ALIAS, "topic_alias", _U16),
    (PropertyID.MAXIMUM_QOS, "maximum_qos", _BYTE),
    (PropertyID.RETAIN_AVAILABLE, "retain_available", _BYTE),
)

_TAIL_FIELDS = (
    (PropertyID.MAXIMUM_PACKET_SIZE, "maximum_packet_size", _U32),
    (PropertyID.WILDCARD_SUB_AVAILABLE, "wildcard_sub_available", _BYTE),
    (PropertyID.SUB_ID_AVAILABLE, "sub_id_available", _BYTE),
    (PropertyID.SHARED_SUB_AVAILABLE, "shared_sub_available", _BYTE),
)


def _encode_fields(props: Properties, specs) -> bytes:
    return b"".join(_encode_field(pid, kind, getattr(props, attr)) for pid, attr, kind in specs)


def _encode_subscription_id(value: int) -> bytes:
    try:
        encoded = encode_remaining_length(value)
    except MalformedError:
        encoded = b""
    return bytes([PropertyID.SUBSCRIPTION_IDENTIFIER]) + encoded


def pack_properties(properties: Optional[Properties], packet_type: int) -> bytes:
    """Encode the properties, length prefix included; None encodes as empty."""
    if properties is None:
        return _with_length(b"")
    body = b"".join(
        (
            _encode_fields(properties, _MESSAGE_FIELDS),
            b"".join(_encode_subscription_id(v) for v in properties.subscription_identifier),
            _encode_fields(properties, _MIDDLE_FIELDS),
            _encode_user(properties.user),
            _encode_fields(properties, _TAIL_FIELDS),
        )
    )
    return _with_length(body)


def pack_will_properties(properties: Optional[Properties]) -> bytes:
    """Encode the will properties of a CONNECT packet, length prefix included."""
    if properties is None:
        return _with_length(b"")
    body = b"".join(
        (
            _encode_fields(properties, _MESSAGE_FIELDS),
            _encode_field(PropertyID.WILL_DELAY_INTERVAL, _U32, properties.will_delay_interval),
            _encode_user(properties.user),
        )
    )
    return _with_length(body)


# --- decoding -------------------------------------------------------------

_Validator = Optional[Callable[[object], bool]]


def _nonzero(value: object) -> bool:
    return value != 0


def _topic_name(value: object) -> bool:
    return valid_topic_name(True, value)  # type: ignore[arg-type]


def _duplicate(property_id: int) -> ValueError:
    return ValueError(f"property {int(property_id)} presents more than once")


def _read_bool(body: ByteReader, current: object, pid: int, validate: _Validator) -> int:
    if current is not None:
        raise ProtocolViolation()
    value = body.read_byte()
    if value not in (0, 1):
        raise ProtocolViolation()
    return value


def _read_u16(body: ByteReader, current: object, pid: int, validate: _Validator) -> int:
    if current is not None:
        raise ProtocolViolation()
    value = body.read_uint16()
    if validate is not None and not validate(value):
        raise ProtocolViolation()
    return value


def _read_u32(body: ByteReader, current: object, pid: int, validate: _Validator) -> int:
    if current is not None:
        raise _duplicate(pid)
    value = body.read_uint32()
    if validate is not None and not validate(value):
        raise ProtocolViolation()
    return value


def _read_utf8(body: ByteReader, current: object, pid: int, validate: _Validator) -> bytes:
    if current is not None:
        raise _duplicate(pid)
    value = body.read_utf8_string(True)
    if validate is not None and not validate(value):
        raise ProtocolViolation()
    return value


def _read_bin(body: ByteReader, current: object, pid: int, validate: _Validator) -> bytes:
    if current is not None:
        raise _duplicate(pid)
    value = body.read_binary()
    if validate is not None and not validate(value):
        raise ProtocolViolation()
    return value


_READERS = {
    PropertyID.PAYLOAD_FORMAT: ("payload_format", _read_bool, None),
    PropertyID.MESSAGE_EXPIRY: ("message_expiry", _read_u32, None),
    PropertyID.CONTENT_TYPE: ("content_type", _read_utf8, None),
    PropertyID.RESPONSE_TOPIC: ("response_topic", _read_utf8, _topic_name),
    PropertyID.CORRELATION_DATA: ("correlation_data", _read_bin, None),
    PropertyID.SESSION_EXPIRY_INTERVAL: ("session_expiry_interval", _read_u32, None),
    PropertyID.ASSIGNED_CLIENT_ID: ("assigned_client_id", _read_utf8, None),
    PropertyID.SERVER_KEEP_ALIVE: ("server_keep_alive", _read_u16, None),
    PropertyID.AUTH_METHOD: ("auth_method", _read_utf8, None),
    PropertyID.AUTH_DATA: ("auth_data", _read_utf8, None),
    PropertyID.REQUEST_PROBLEM_INFO: ("request_problem_info", _read_bool, None),
    PropertyID.WILL_DELAY_INTERVAL: ("will_delay_interval", _read_u32, None),
    PropertyID.REQUEST_RESPONSE_INFO: ("request_response_info", _read_bool, None),
    PropertyID.RESPONSE_INFO: ("response_info", _read_utf8, None),
    PropertyID.SERVER_REFERENCE: ("server_reference", _read_utf8, None),
    PropertyID.REASON_STRING: ("reason_string", _read_utf8, None),
    PropertyID.RECEIVE_MAXIMUM: ("receive_maximum", _read_u16, _nonzero),
    PropertyID.TOPIC_ALIAS_MAXIMUM: ("topic_alias_maximum", _read_u16, None),
    PropertyID.TOPIC_ALIAS: ("topic_alias", _read_u16, _nonzero),
    PropertyID.MAXIMUM_QOS: ("maximum_qos", _read_bool, None),
    PropertyID.RETAIN_AVAILABLE: ("retain_available", _read_bool, None),
    PropertyID.MAXIMUM_PACKET_SIZE: ("maximum_packet_size", _read_u32, _nonzero),
    PropertyID.WILDCARD_SUB_AVAILABLE: ("wildcard_sub_available", _read_bool, None),
    PropertyID.SUB_ID_AVAILABLE: ("sub_id_available", _read_bool, None),
    PropertyID.SHARED_SUB_AVAILABLE: ("shared_sub_available", _read_bool, None),
}

_WILL_IDS = frozenset(
    {
        PropertyID.WILL_DELAY_INTERVAL,
        PropertyID.PAYLOAD_FORMAT,
        PropertyID.MESSAGE_EXPIRY,
        PropertyID.CONTENT_TYPE,
        PropertyID.RESPONSE_TOPIC,
        PropertyID.CORRELATION_DATA,
        PropertyID.USER,
    }
)


def _read_one(props: Properties, body: ByteReader, pid: int) -> None:
    if pid == PropertyID.USER:
        try:
            key = body.read_utf8_string(True)
            value = body.read_utf8_string(True)
        except MalformedError:
            raise MalformedError() from None
        props.user.append(UserProperty(key, value))
        return
    if pid == PropertyID.SUBSCRIPTION_IDENTIFIER:
        if props.subscription_identifier:
            raise ProtocolViolation()
        identifier = body.read_remaining_length()
        if identifier == 0:
            raise ProtocolViolation()
        props.subscription_identifier.append(identifier)
        return
    entry = _READERS.get(pid)  # type: ignore[call-overload]
    if entry is None:
        raise MalformedError()
    attr, reader, validate = entry
    setattr(props, attr, reader(body, getattr(props, attr), pid, validate))


def _property_body(reader: ByteReader) -> ByteReader:
    length = reader.read_remaining_length()
    return ByteReader(reader.take(length))


def unpack_properties(reader: ByteReader, packet_type: int) -> Properties:
    """Decode length-prefixed properties of a packet of the given type."""
    props = Properties()
    body = _property_body(reader)
    while len(body):
        pid = body.read_byte()
        if not validate_id(packet_type, pid):
            raise ProtocolViolation()
        _read_one(props, body, pid)
    if props.auth_data is not None and props.auth_method is None:
        raise MalformedError()
    return props


def unpack_will_properties(reader: ByteReader) -> Properties:
    """Decode the will properties of a CONNECT packet."""
    props = Properties()
    body = _property_body(reader)
    while len(body):
        pid = body.read_byte()
        if pid not in _WILL_IDS:
            raise MalformedError()
        _read_one(props, body, pid)
    return props