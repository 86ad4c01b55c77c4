import zlib

import pytest

from nntpproto import yenc
from nntpproto.errors import NNTPEncodingError
from nntpproto.yenc import YEnc, decode, decode_frame, encode, trailer_crc32


def test_crc32() -> None:
    assert trailer_crc32(b" crc32=00000000") == 0
    assert trailer_crc32(b" crc32=ffffffff") == 0xFFFFFFFF
    assert trailer_crc32(b" crc32=12345678") == 0x12345678
    assert trailer_crc32(b"=yend size=3") is None


def test_decode() -> None:
    blob = b"=ybegin line=128 size=3 name=abc\r\n" + bytes([42, 43, 44]) + b"\r\n=yend size=3\r\n"
    assert decode(blob) == b"\x00\x01\x02"


def test_decode_escape() -> None:
    # 0x3d escapes the next byte: (0x7d - 64 - 42) == 19
    blob = b"=ybegin size=2 name=x\r\n=\x7d\x2b\r\n=yend size=2\r\n"
    assert decode(blob) == bytes([19, 1])


def test_decode_ignores_surrounding_data() -> None:
    blob = b"junk\r\n=ybegin size=1 name=x\r\n\x2b\r\n=yend size=1\r\ntrailing\r\n"
    assert decode(blob) == b"\x01"


def test_decode_frame() -> None:
    data = b"the quick brown fox"
    frame = decode_frame(encode(data, name="fox.txt"))
    assert frame.name == "fox.txt"
    assert frame.size == len(data)
    assert frame.crc32 == zlib.crc32(data)
    assert frame.data == data


def test_encode_decode_all_bytes() -> None:
    data = bytes(range(256)) * 3
    blob = encode(data, name="all", line_length=64)
    for line in blob.split(b"\r\n"):
        assert b"\r" not in line
        assert b"\n" not in line
        assert b"\0" not in line
        assert not line.startswith(b".")
    assert decode(blob) == data


def test_size_mismatch() -> None:
    blob = b"=ybegin size=4 name=x\r\n\x2b\x2c\r\n=yend size=4\r\n"
    with pytest.raises(NNTPEncodingError, match="declared size does not match decoded size"):
        decode(blob)


@pytest.mark.parametrize(
    ("blob", "message"),
    [
        (b"\x2b\x2c\r\n=yend size=2\r\n", "Missing yEnc header"),
        (b"=ybegin size=2 name=x\r\n\x2b\x2c\r\n", "Missing yEnc trailer"),
        (b"=ybegin name=x\r\n\x2b\x2c\r\n=yend\r\n", "Bad yEnc header"),
    ],
)
def test_bad_frame(blob: bytes, message: str) -> None:
    with pytest.raises(NNTPEncodingError, match=message):
        decode(blob)


def test_bad_crc() -> None:
    blob = encode(b"abc", name="x")
    assert b" crc32=352441c2" in blob
    with pytest.raises(NNTPEncodingError, match="Bad yEnc CRC"):
        decode(blob.replace(b" crc32=352441c2", b" crc32=deadbeef"))


def test_incremental_decoder() -> None:
    data = bytes(range(256))
    lines = encode(data).split(b"\r\n")[1:-2]
    encoded = b"\r\n".join(lines)

    # split right after an escape character
    split = encoded.index(b"=") + 1
    decoder = YEnc()
    plain = decoder.decode(encoded[:split]) + decoder.decode(encoded[split:])

    assert plain == data
    assert decoder.crc32 == zlib.crc32(data)


def test_module_exports() -> None:
    assert set(yenc.__all__) == {"YEnc", "YEncFrame", "decode", "decode_frame", "encode", "trailer_crc32"}
