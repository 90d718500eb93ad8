import logging

import pytest

from cron_monitor.core.state import NotificationStateStore


def test_missing_record_reads_zero(tmp_path):
    store = NotificationStateStore(tmp_path / "nested" / "cron_monitor.last_sent")
    assert store.read() == 0


def test_write_creates_directory_and_round_trips(tmp_path):
    path = tmp_path / "state" / "deeper" / "cron_monitor.last_sent"
    store = NotificationStateStore(path)
    store.write(1700000000)
    assert path.read_text() == "1700000000\n"
    assert store.read() == 1700000000
    assert not path.with_name(path.name + ".tmp").exists()


def test_write_overwrites_previous_value(tmp_path):
    store = NotificationStateStore(tmp_path / "last_sent")
    store.write(10)
    store.write(20)
    assert store.read() == 20


@pytest.mark.parametrize("contents", ["", "abc", "-4", "12 13", "1.5", b"\xff\xfe\x00garbage", b"17\xff"])
def test_corrupt_record_reads_zero(tmp_path, caplog, contents):
    path = tmp_path / "last_sent"
    if isinstance(contents, bytes):
        path.write_bytes(contents)
    else:
        path.write_text(contents)
    with caplog.at_level(logging.WARNING):
        assert NotificationStateStore(path).read() == 0
    assert "assuming no prior notification" in caplog.text


def test_write_rejects_negative(tmp_path):
    store = NotificationStateStore(tmp_path / "last_sent")
    with pytest.raises(ValueError):
        store.write(-1)
    assert store.read() == 0
