import io

import pytest

from gmqtt.codes import CodeError, MalformedError, ReasonCode, V3ConnackCode
from gmqtt.connect import Connack, Connect
from gmqtt.encoding import VERSION_311, VERSION_5
from gmqtt.packet import FixHeader
from gmqtt.properties import Properties


def _read(cls, data, version):
    stream = io.BytesIO(bytes(data))
    header = FixHeader.read(stream)
    return cls.read(header, version, stream)


@pytest.mark.parametrize(
    "connack, want",
    [
        (Connack(version=VERSION_5, code=ReasonCode.SUCCESS, session_present=True), [0x20, 3, 1, 0, 0]),
        (Connack(version=VERSION_5, code=ReasonCode.SUCCESS, session_present=False), [0x20, 3, 0, 0, 0]),
        (
            Connack(version=VERSION_5, code=ReasonCode.NOT_AUTHORIZED, session_present=False),
            [0x20, 3, 0, ReasonCode.NOT_AUTHORIZED, 0],
        ),
        (
            Connack(
                version=VERSION_5,
                code=ReasonCode.SUCCESS,
                properties=Properties(session_expiry_interval=1, receive_maximum=2, maximum_qos=1),
            ),
            [0x20, 13, 0, 0, 10, 0x11, 0, 0, 0, 1, 0x21, 0, 2, 0x24, 1],
        ),
    ],
)
def test_write_connack_v5(connack, want):
    assert connack.pack() == bytes(want)


def test_read_connack_v5():
    packet = _read(Connack, [32, 8, 0, 0, 5, 0x11, 0, 0, 0, 1], VERSION_5)
    assert packet.session_present is False
    assert packet.code == 0
    assert packet.properties == Properties(session_expiry_interval=1)


@pytest.mark.parametrize(
    "connack, want",
    [
        (Connack(version=VERSION_311, code=V3ConnackCode.ACCEPTED, session_present=True), [0x20, 2, 1, 0]),
        (Connack(version=VERSION_311, code=V3ConnackCode.ACCEPTED, session_present=False), [0x20, 2, 0, 0]),
        (Connack(version=VERSION_311, code=V3ConnackCode.NOT_AUTHORIZED), [0x20, 2, 0, 0x05]),
    ],
)
def test_write_connack_v311(connack, want):
    assert connack.pack() == bytes(want)


def test_read_connack_v311():
    packet = _read(Connack, [32, 2, 0, 1], VERSION_311)
    assert packet.session_present is False
    assert packet.code == 1


def test_read_connack_reserved_bits():
    with pytest.raises(MalformedError):
        _read(Connack, [32, 2, 2, 0], VERSION_311)


def test_connack_str():
    text = str(Connack(version=VERSION_5, code=ReasonCode.SUCCESS))
    assert text.startswith("Connack, Version: 5, Code:0, SessionPresent:false")


def test_read_connect_reserved_flag_v5():
    data = [16, 12, 0, 4, ord("M"), ord("Q"), ord("T"), ord("T"), 5, 1, 0, 2, 31, 32]
    with pytest.raises(MalformedError):
        _read(Connect, data, VERSION_5)


def test_read_connect_reserved_flag_v311():
    data = [16, 12, 0, 4, ord("M"), ord("Q"), ord("T"), ord("T"), 4, 1, 0, 2, 31, 32]
    with pytest.raises(MalformedError):
        _read(Connect, data, VERSION_311)


def test_read_connect_unacceptable_level():
    data = [16, 10, 0, 4, ord("M"), ord("Q"), ord("T"), ord("T"), 3, 2, 0, 60]
    with pytest.raises(CodeError) as exc:
        _read(Connect, data, VERSION_311)
    assert exc.value.code == V3ConnackCode.UNACCEPTABLE_PROTOCOL_VERSION


def test_read_connect_wrong_protocol_name():
    data = [16, 10, 0, 4, ord("M"), ord("Q"), ord("T"), ord("X"), 4, 2, 0, 60]
    with pytest.raises(CodeError) as exc:
        _read(Connect, data, VERSION_311)
    assert exc.value.code == ReasonCode.UNSUPPORTED_PROTOCOL_VERSION


def test_read_connect_identifier_rejected():
    data = [16, 12, 0, 4, ord("M"), ord("Q"), ord("T"), ord("T"), 4, 0, 0, 60, 0, 0]
    with pytest.raises(CodeError) as exc:
        _read(Connect, data, VERSION_311)
    assert exc.value.code == V3ConnackCode.IDENTIFIER_REJECTED


def test_read_connect_will_qos_without_will():
    data = [16, 12, 0, 4, ord("M"), ord("Q"), ord("T"), ord("T"), 4, 0x0A, 0, 60, 0, 0]
    with pytest.raises(MalformedError):
        _read(Connect, data, VERSION_311)


def test_connect_round_trip_v311():
    password = b"password"
    connect = Connect(
        version=VERSION_311,
        protocol_name=b"MQTT",
        protocol_level=VERSION_311,
        clean_start=True,
        keep_alive=30,
        client_id=b"client",
        username_flag=True,
        username=b"user",
        password_flag=True,
        password=password,
    )
    data = connect.pack()
    parsed = _read(Connect, data, VERSION_311)
    assert parsed.version == VERSION_311
    assert parsed.client_id == b"client"
    assert parsed.username == b"user"
    assert parsed.password == password
    assert parsed.keep_alive == 30
    assert parsed.clean_start is True
    assert parsed.properties is None
    assert parsed.pack() == data


def test_connect_round_trip_v5_with_will():
    connect = Connect(
        version=VERSION_5,
        protocol_name=b"MQTT",
        protocol_level=VERSION_5,
        clean_start=False,
        keep_alive=60,
        client_id=b"cid",
        properties=Properties(session_expiry_interval=10),
        will_flag=True,
        will_qos=2,
        will_retain=True,
        will_topic=b"will/topic",
        will_msg=b"bye",
        will_properties=Properties(will_delay_interval=5),
    )
    data = connect.pack()
    parsed = _read(Connect, data, VERSION_311)
    assert parsed.version == VERSION_5
    assert parsed.will_flag is True
    assert parsed.will_qos == 2
    assert parsed.will_retain is True
    assert parsed.will_topic == b"will/topic"
    assert parsed.will_msg == b"bye"
    assert parsed.properties == Properties(session_expiry_interval=10)
    assert parsed.will_properties == Properties(will_delay_interval=5)
    assert parsed.pack() == data


@pytest.mark.parametrize(
    "clean_start, reuse, code, present",
    [
        (False, True, ReasonCode.SUCCESS, True),
        (True, True, ReasonCode.SUCCESS, False),
        (False, False, ReasonCode.SUCCESS, False),
        (False, True, ReasonCode.NOT_AUTHORIZED, False),
    ],
)
def test_new_connack(clean_start, reuse, code, present):
    connect = Connect(version=VERSION_5, clean_start=clean_start)
    ack = connect.new_connack(code, reuse)
    assert ack.session_present is present
    assert ack.code == code
    assert ack.version == VERSION_5