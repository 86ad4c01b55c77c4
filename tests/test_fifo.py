from nntpproto.fifo import LineFifo


def test_empty() -> None:
    fifo = LineFifo()
    assert len(fifo) == 0
    assert not fifo
    assert fifo.read() == b""
    assert fifo.readline() == b""


def test_readline_across_writes() -> None:
    fifo = LineFifo()
    fifo.write(b"200 news.exa")
    assert fifo.readline() == b""
    fifo.write(b"mple.com ready\r")
    assert fifo.readline() == b""
    fifo.write(b"\n211 5 100 104 misc.test\r\n")
    assert fifo.readline() == b"200 news.example.com ready\r\n"
    assert fifo.readline() == b"211 5 100 104 misc.test\r\n"
    assert fifo.readline() == b""


def test_bare_lf_is_not_a_line_end() -> None:
    fifo = LineFifo(b"one\ntwo\r\n")
    assert fifo.readline() == b"one\ntwo\r\n"


def test_read_length() -> None:
    fifo = LineFifo(b"abcdef")
    fifo.write(b"ghi")
    assert len(fifo) == 9
    assert fifo.read(4) == b"abcd"
    assert len(fifo) == 5
    assert fifo.read() == b"efghi"
    assert not fifo


def test_peek_does_not_consume() -> None:
    fifo = LineFifo()
    fifo.write(b"=ybegin line=128\r\n")
    assert fifo.peek(7) == b"=ybegin"
    assert fifo.peek() == b"=ybegin line=128\r\n"
    assert len(fifo) == 18
    assert fifo.readline() == b"=ybegin line=128\r\n"


def test_clear() -> None:
    fifo = LineFifo(b"data\r\n")
    fifo.write(b"more")
    fifo.clear()
    assert len(fifo) == 0
    assert fifo.peek() == b""


def test_discard_consumed_data() -> None:
    fifo = LineFifo()
    line = b"x" * 1022 + b"\r\n"
    for _ in range(100):
        fifo.write(line)
    for _ in range(99):
        assert fifo.readline() == line
    assert fifo.pos < 0xFFFF + len(line)
    assert fifo.readline() == line
    assert not fifo
