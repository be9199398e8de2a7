import io

import pytest

from gmqtt.codes import MalformedError, ReasonCode
from gmqtt.control import Auth, Disconnect, Pingreq, Pingresp
from gmqtt.encoding import VERSION_311, VERSION_5
from gmqtt.packet import FixHeader
from gmqtt.properties import Properties


def _read(cls, data, *version):
    stream = io.BytesIO(bytes(data))
    header = FixHeader.read(stream)
    return cls.read(header, *version, stream)


@pytest.mark.parametrize(
    "code, properties, want",
    [
        (ReasonCode.SUCCESS, None, [0xF0, 0]),
        (ReasonCode.SUCCESS, Properties(reason_string=b"a"), [0xF0, 6, 0, 4, 0x1F, 0, 1, ord("a")]),
        (ReasonCode.NOT_AUTHORIZED, Properties(), [0xF0, 2, ReasonCode.NOT_AUTHORIZED, 0]),
    ],
)
def test_read_write_auth(code, properties, want):
    auth = Auth(code=code, properties=properties)
    data = auth.pack()
    assert data == bytes(want)
    parsed = _read(Auth, data)
    assert parsed.code == code
    assert parsed.properties == properties


def test_auth_bad_flags():
    with pytest.raises(MalformedError):
        _read(Auth, [0xF1, 0])


def test_auth_str():
    text = str(Auth(code=ReasonCode.NOT_AUTHORIZED))
    assert text.startswith("Auth, Code: 135, Properties: ")


@pytest.mark.parametrize(
    "code, properties, want",
    [
        (ReasonCode.SUCCESS, Properties(), [0xE0, 0x02, 0x00, 0x00]),
        (ReasonCode.SUCCESS, Properties(reason_string=b"a"), [0xE0, 6, 0, 4, 0x1F, 0, 1, ord("a")]),
        (ReasonCode.NOT_AUTHORIZED, Properties(), [0xE0, 2, ReasonCode.NOT_AUTHORIZED, 0]),
    ],
)
def test_read_write_disconnect_v5(code, properties, want):
    disconnect = Disconnect(code=code, properties=properties)
    data = disconnect.pack()
    assert data == bytes(want)
    parsed = _read(Disconnect, data, VERSION_5)
    assert parsed.code == code
    assert parsed.properties == properties


def test_read_disconnect_v5_empty_body():
    parsed = _read(Disconnect, [0xE0, 0], VERSION_5)
    assert parsed.code == ReasonCode.SUCCESS
    assert parsed.properties == Properties()


def test_read_disconnect_v311():
    parsed = _read(Disconnect, [0xE0, 0], VERSION_311)
    assert isinstance(parsed, Disconnect)
    assert parsed.version == VERSION_311


def test_write_disconnect_v311():
    assert Disconnect(version=VERSION_311).pack() == bytes([0xE0, 0])


def test_disconnect_bad_flags():
    with pytest.raises(MalformedError):
        _read(Disconnect, [0xE1, 0], VERSION_311)


def test_read_pingreq():
    packet = _read(Pingreq, [0xC0, 0])
    assert isinstance(packet, Pingreq)
    assert packet.fix_header.remain_length == 0


def test_write_pingreq():
    assert Pingreq().pack() == bytes([0xC0, 0])


def test_read_pingresp():
    packet = _read(Pingresp, [0xD0, 0])
    assert isinstance(packet, Pingresp)
    assert packet.fix_header.remain_length == 0


def test_write_pingresp():
    assert Pingresp().pack() == bytes([0xD0, 0])


def test_pingreq_with_body_is_malformed():
    with pytest.raises(MalformedError):
        _read(Pingreq, [0xC0, 1, 0])


def test_pingresp_bad_flags():
    with pytest.raises(MalformedError):
        _read(Pingresp, [0xD1, 0])


def test_new_pingresp():
    resp = Pingreq().new_pingresp()
    assert resp.pack() == bytes([0xD0, 0])
    assert str(resp) == "Pingresp"
    assert str(Pingreq()) == "Pingreq"