import io

from bavoice.common.logging import (
    _WorkerPrefixedWriter,
    clear_worker_log_context,
    set_worker_log_context,
)


def test_main_thread_prefix():
    buf = io.StringIO()
    writer = _WorkerPrefixedWriter(buf)
    clear_worker_log_context()
    print("[sync] [done] saved", file=writer)
    assert buf.getvalue() == "[main] [sync] [done] saved\n"


def test_worker_prefix_and_status_emoji():
    buf = io.StringIO()
    writer = _WorkerPrefixedWriter(buf)
    set_worker_log_context(2, "hoshino")
    try:
        print("[link-cache] [cache-hit] /x (3 files)", file=writer)
    finally:
        clear_worker_log_context()
    assert buf.getvalue() == "[w02] [hoshino] 🎯 [link-cache] [cache-hit] /x (3 files)\n"


def test_every_line_is_prefixed():
    buf = io.StringIO()
    writer = _WorkerPrefixedWriter(buf)
    set_worker_log_context(0)
    try:
        writer.write("one\ntwo\n")
    finally:
        clear_worker_log_context()
    assert buf.getvalue() == "[w00] one\n[w00] two\n"
