import os

import pytest

from gmqtt.pidfile import PIDFile, PIDFileExistsError, create_pidfile, process_exists


def test_new_and_remove(tmp_path):
    path = tmp_path / "test-pidfile" / "testfile"
    pidfile = create_pidfile(path)
    assert path.read_text() == str(os.getpid())

    with pytest.raises(PIDFileExistsError):
        create_pidfile(path)

    pidfile.remove()
    assert not path.exists()


def test_remove_invalid_path(tmp_path):
    pidfile = PIDFile(str(tmp_path / "foo" / "bar"))
    with pytest.raises(FileNotFoundError):
        pidfile.remove()


def test_garbage_content_is_overwritten(tmp_path):
    path = tmp_path / "pid"
    path.write_text("not a number")
    pidfile = create_pidfile(path)
    assert path.read_text() == str(os.getpid())
    assert os.fspath(pidfile.path) == os.fspath(path)


def test_current_process_exists():
    assert process_exists(os.getpid()) is True