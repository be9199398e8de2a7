# gmqtt

Encoding and decoding of MQTT control packets for protocol versions 3.1.1 and 5.0,
with the helpers that go with them: MQTT 5 properties, topic name and topic filter
validation, topic matching, remaining-length and string encoding, a bitmap and a
PID file. It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Reading and writing packets

`gmqtt.stream.PacketReader` reads packets from any binary stream. Its protocol
version defaults to 3.1.1 (`4`) and switches to the version announced by any
`Connect` packet it reads. `read_packet()` raises `EOFError` when the stream is
exhausted, and raises `CodeError` with reason code `0x93` when a packet is larger
than 1234 bytes on the wire.

`gmqtt.stream.PacketWriter` buffers encoded packets (`write_packet`, `write_raw`)
and writes them to its stream on `flush()`; `write_and_flush()` does both.

```python
import io

from gmqtt.stream import PacketReader, PacketWriter
from gmqtt.publish import Publish

buf = io.BytesIO()
PacketWriter(buf).write_and_flush(
    Publish(version=5, qos=1, packet_id=10, topic_name=b"sensors/temp", payload=b"21.5")
)

buf.seek(0)
packet = PacketReader(buf, 5).read_packet()
ack = packet.new_puback(0, None)
print(ack.pack())  # b'@\x02\x00\n'
```

The packet classes are dataclasses:

- `gmqtt.connect`: `Connect` (with `new_connack`), `Connack`
- `gmqtt.publish`: `Publish` (with `new_puback`, `new_pubrec`), `Puback`,
  `Pubrec` (with `new_pubrel`), `Pubrel` (with `new_pubcomp`), `Pubcomp`
- `gmqtt.subscribe`: `Topic`, `Subscribe` (with `new_suback`), `Suback`,
  `Unsubscribe` (with `new_unsuback`), `Unsuback`
- `gmqtt.control`: `Auth`, `Disconnect`, `Pingreq` (with `new_pingresp`), `Pingresp`

Each has `pack()`, which returns the wire bytes and records the fixed header it
wrote in `fix_header`, and a `read()` class method that decodes the body following
a `gmqtt.packet.FixHeader`. `gmqtt.stream.new_packet(fix_header, version, stream)`
dispatches on the packet type, and `gmqtt.packet.total_bytes(packet)` returns the
size of a packet on the wire.

## Errors

`gmqtt.codes.CodeError` carries an MQTT reason code (`code`) and optional
`reason_string` and `user_properties`. A malformed packet raises its subclass
`MalformedError` (code `0x81`); a protocol violation raises `ProtocolViolation`
(code `0x82`). The codes themselves are the enums `ReasonCode` (MQTT 5) and
`V3ConnackCode` (MQTT 3.1.1 CONNACK return codes). A property that appears twice
in one packet may also raise `ValueError`.

## MQTT 5 properties

`gmqtt.properties.Properties` holds every property MQTT 5 defines; unset ones are
`None`, and `subscription_identifier` and `user` (a list of `UserProperty`) are
lists. `pack_properties(properties, packet_type)` and
`unpack_properties(reader, packet_type)` encode and decode them, length prefix
included; `pack_will_properties` and `unpack_will_properties` do the same for the
will properties of a CONNECT packet. `validate_id(packet_type, property_id)` tells
whether a property may appear in a packet of that type. Property identifiers are
in the `PropertyID` enum.

## Topics and wire encoding

```python
from gmqtt.encoding import topic_match, valid_topic_filter, valid_topic_name, valid_v5_topic

topic_match(b"a/123/4", b"a/#")         # True
topic_match(b"a/123/4", b"a/+")         # False
valid_topic_filter(True, b"/1/+/#")     # True
valid_topic_name(True, b"sport/+")      # False
valid_v5_topic(b"$share/group/a/b")     # True
```

`gmqtt.encoding` also provides `encode_remaining_length` / `read_remaining_length`
for variable byte integers, `encode_utf8_string` / `decode_utf8_string` for
length-prefixed strings (the latter raises `InvalidUTF8String`), `valid_utf8`,
the `PacketType` enum and `ByteReader`, a cursor over a packet body.

## Utilities

- `gmqtt.bitmap.Bitmap(size)`: a bit set of up to 65535 bits with `set`, `get`
  and `size`; sizes are rounded up to a multiple of 8, and 0 means the maximum.
- `gmqtt.pidfile.create_pidfile(path)`: writes the current process ID to a file,
  creating missing directories, and raises `PIDFileExistsError` when the file
  already names a running process. `PIDFile.remove()` deletes the file.
  `process_exists(pid)` checks `/proc` on Linux and uses signal 0 on macOS; on
  Windows it only recognises the current process.

## What this package does not do

It encodes and decodes packets only. There is no broker or client, no network
handling, no session or subscription storage, no retained-message store and no
command-line program.