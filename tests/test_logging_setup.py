import io
import logging

from shortlink.logging_setup import AsyncWriter, init_logger


class Sink(io.BytesIO):
    def __init__(self):
        super().__init__()
        self.closed_flag = False
        self.data = b""

    def write(self, b):
        self.data += b
        return len(b)

    def close(self):
        self.closed_flag = True


def test_async_writer_flushes_on_stop():
    sink = Sink()
    writer = AsyncWriter(sink)
    assert writer.write(b"hello ") == 6
    writer.write("world")
    writer.stop()
    assert sink.data == b"hello world"
    assert sink.closed_flag


def test_write_after_stop_is_dropped():
    sink = Sink()
    writer = AsyncWriter(sink)
    writer.stop()
    assert writer.write(b"late") == 0
    assert sink.data == b""


def test_init_logger_writes_file(tmp_path):
    path = tmp_path / "logs" / "app.log"
    root = init_logger(str(path))
    try:
        logging.getLogger("x").info("marker-line")
        for handler in root.handlers:
            handler.flush()
        assert "marker-line" in path.read_text(encoding="utf-8")
        assert root.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()