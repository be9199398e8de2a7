import io

import pytest

from gmqtt.codes import MalformedError, ReasonCode
from gmqtt.encoding import (
    QOS0,
    QOS1,
    QOS2,
    VERSION_311,
    VERSION_5,
    PacketType,
    encode_remaining_length,
    encode_utf8_string,
)
from gmqtt.packet import FixHeader
from gmqtt.properties import Properties
from gmqtt.publish import Puback, Pubcomp, Publish, Pubrec, Pubrel


def append_packet(first_byte, *parts):
    body = b"".join(parts)
    return bytes([first_byte]) + encode_remaining_length(len(body)) + body


def read_versioned(cls, data, version):
    stream = io.BytesIO(data)
    header = FixHeader.read(stream)
    packet = cls.read(header, version, stream)
    return packet, stream.read(1)


# --- PUBLISH --------------------------------------------------------------

PUBLISH_V5_CASES = [
    (b"test topic name1", True, False, QOS1, 10, b"test payload1", Properties(payload_format=1)),
    (b"test topic name2", False, True, QOS0, 0, b"test payload2", Properties(message_expiry=100)),
    (b"test topic name3", False, True, QOS2, 11, b"test payload3", Properties()),
    (b"test topic name4", False, False, QOS1, 12, b"", Properties()),
]


@pytest.mark.parametrize("topic,dup,retain,qos,pid,payload,props", PUBLISH_V5_CASES)
def test_read_write_publish_v5(topic, dup, retain, qos, pid, payload, props):
    pub = Publish(
        version=VERSION_5,
        dup=dup,
        qos=qos,
        retain=retain,
        topic_name=topic,
        packet_id=pid,
        payload=payload,
        properties=props,
    )
    packet, rest = read_versioned(Publish, pub.pack(), VERSION_5)
    assert rest == b""
    assert packet.topic_name == topic
    assert packet.packet_id == pid
    assert packet.payload == payload
    assert packet.retain == retain
    assert packet.qos == qos
    assert packet.dup == dup
    assert packet.properties == props


def test_read_publish_v5_and_pack_back():
    topic = b"test Topic Name"
    pid = b"\x00\x0a"
    properties = bytes([7, 0x01, 0, 0x02, 0, 0, 0, 1])
    payload = b"test payload"
    pb = append_packet(0x3D, encode_utf8_string(topic), pid, properties, payload)

    packet, _ = read_versioned(Publish, pb, VERSION_5)
    assert packet.qos == QOS2
    assert packet.retain is True
    assert packet.dup is True
    assert packet.topic_name == topic
    assert packet.payload == payload
    assert packet.packet_id == 10
    assert packet.properties == Properties(payload_format=0, message_expiry=1)
    assert packet.pack() == pb


PUBLISH_V311_CASES = [
    (b"abc", True, False, QOS1, 10, b"a"),
    (b"test topic name2", False, True, QOS0, 0, b"test payload2"),
    (b"test topic name3", False, True, QOS2, 11, b"test payload3"),
]


@pytest.mark.parametrize("topic,dup,retain,qos,pid,payload", PUBLISH_V311_CASES)
def test_read_write_publish_v311(topic, dup, retain, qos, pid, payload):
    pub = Publish(
        version=VERSION_311,
        dup=dup,
        qos=qos,
        retain=retain,
        topic_name=topic,
        packet_id=pid,
        payload=payload,
    )
    packet, rest = read_versioned(Publish, pub.pack(), VERSION_311)
    assert rest == b""
    assert packet.topic_name == topic
    assert packet.packet_id == pid
    assert packet.payload == payload
    assert packet.retain == retain
    assert packet.qos == qos
    assert packet.dup == dup
    assert packet.properties is None


def test_publish_qos0_with_dup_is_malformed():
    data = append_packet(0x38, encode_utf8_string(b"a"))
    with pytest.raises(MalformedError):
        read_versioned(Publish, data, VERSION_311)


def test_publish_qos3_is_malformed():
    data = append_packet(0x36, encode_utf8_string(b"a"), b"\x00\x01")
    with pytest.raises(MalformedError):
        read_versioned(Publish, data, VERSION_311)


def test_publish_wildcard_topic_is_malformed():
    data = append_packet(0x30, encode_utf8_string(b"a/+"), b"x")
    with pytest.raises(MalformedError):
        read_versioned(Publish, data, VERSION_311)


def test_publish_fix_header_after_pack():
    pub = Publish(version=VERSION_311, qos=QOS1, retain=True, topic_name=b"t", packet_id=1)
    data = pub.pack()
    assert data == bytes([0x33, 5, 0, 1, ord("t"), 0, 1])
    assert pub.fix_header == FixHeader(PacketType.PUBLISH, 0x03, 5)


def test_publish_new_puback():
    pub = Publish(qos=QOS1, packet_id=123)
    puback = pub.new_puback(ReasonCode.SUCCESS, None)
    assert puback.packet_id == 123
    assert puback.code == ReasonCode.SUCCESS


def test_publish_new_pubrec():
    pub = Publish(qos=QOS2, packet_id=123)
    pubrec = pub.new_pubrec(ReasonCode.SUCCESS, None)
    assert pubrec.packet_id == 123


# --- acknowledgements -----------------------------------------------------

ACK_CASES = [
    (ReasonCode.SUCCESS, None, [2, 0, 10]),
    (ReasonCode.SUCCESS, Properties(reason_string=b"a"), [8, 0, 10, 0, 4, 0x1F, 0, 1, ord("a")]),
    (ReasonCode.NOT_AUTHORIZED, Properties(), [4, 0, 10, ReasonCode.NOT_AUTHORIZED, 0]),
]


@pytest.mark.parametrize("cls,first", [(Puback, 64), (Pubrec, 80), (Pubcomp, 112)])
@pytest.mark.parametrize("code,props,rest", ACK_CASES)
def test_read_write_ack_v5(cls, first, code, props, rest):
    ack = cls(version=VERSION_5, packet_id=10, properties=props, code=code)
    data = ack.pack()
    assert data == bytes([first] + rest)
    packet, _ = read_versioned(cls, data, VERSION_5)
    assert packet.code == code
    assert packet.properties == props
    assert packet.packet_id == 10


@pytest.mark.parametrize("cls", [Puback, Pubrec, Pubcomp])
def test_write_ack_v311(cls):
    ack = cls(version=VERSION_311, packet_id=65535)
    packet, rest = read_versioned(cls, ack.pack(), VERSION_311)
    assert rest == b""
    assert packet.packet_id == 65535


@pytest.mark.parametrize("cls,first", [(Puback, 64), (Pubrec, 0x50), (Pubcomp, 0x70)])
def test_read_ack_v311(cls, first):
    packet, _ = read_versioned(cls, bytes([first, 2, 0, 1]), VERSION_311)
    assert packet.packet_id == 1
    assert packet.code == ReasonCode.SUCCESS


def test_ack_v311_ignores_code_on_write():
    ack = Puback(version=VERSION_311, packet_id=7, code=ReasonCode.NOT_AUTHORIZED)
    assert ack.pack() == bytes([64, 2, 0, 7])


def test_ack_short_body_is_malformed():
    with pytest.raises(MalformedError):
        read_versioned(Puback, bytes([64, 1, 0]), VERSION_5)


def test_pubrec_new_pubrel():
    pubrel = Pubrec(packet_id=10).new_pubrel()
    assert pubrel.packet_id == 10
    assert pubrel.fix_header == FixHeader(PacketType.PUBREL, 2, 0)


@pytest.mark.parametrize("code,props,rest", ACK_CASES)
def test_read_write_pubrel(code, props, rest):
    pubrel = Pubrel(packet_id=10, properties=props, code=code)
    data = pubrel.pack()
    assert data == bytes([98] + rest)
    stream = io.BytesIO(data)
    packet = Pubrel.read(FixHeader.read(stream), stream)
    assert packet.code == code
    assert packet.properties == props
    assert packet.packet_id == 10


def test_pubrel_new_pubcomp():
    pubcomp = Pubrel(packet_id=10).new_pubcomp()
    assert pubcomp.packet_id == 10
    assert pubcomp.fix_header == FixHeader(PacketType.PUBCOMP, 0, 2)


def test_ack_str():
    assert str(Puback(version=VERSION_5, packet_id=3)) == "Puback, Version: 5, Pid: 3, Properties: <nil>"
    assert str(Pubrel(packet_id=4)) == "Pubrel, Code: 0, Pid: 4, Properties: <nil>"
    assert str(Pubrec(version=4, packet_id=5)) == "Pubrec, Version: 4, Code 0, Pid: 5, Properties: <nil>"


def test_publish_str():
    pub = Publish(version=4, qos=1, packet_id=2, topic_name=b"a/b", payload=b"hi")
    assert str(pub) == (
        "Publish, Version: 4, Pid: 2, Dup: false, Qos: 1, Retain: false, "
        "TopicName: a/b, Payload: hi, Properties: <nil>"
    )