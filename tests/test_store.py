import errno
import os

import pytest

from errors import IOFailure, NotFound
from store import object_exists, object_get, object_list, object_path, object_put

SHA = "f2ba8f84ab5c1bce84a7b441cb1959cfc7093b7f"

def test_layout(repo):
    object_put(repo, SHA, b"data")

    path = os.path.join(repo.gitdir, "objects", "f2", "ba8f84ab5c1bce84a7b441cb1959cfc7093b7f")
    assert object_path(repo, SHA) == path
    with open(path, "rb") as fp:
        assert fp.read() == b"data"

def test_get(repo):
    object_put(repo, SHA, b"data")
    assert object_exists(repo, SHA)
    assert object_get(repo, SHA) == b"data"

def test_put_is_idempotent(repo):
    assert object_put(repo, SHA, b"first")
    assert not object_put(repo, SHA, b"second")
    assert object_get(repo, SHA) == b"first"
    assert object_list(repo, "f2") == [SHA]

def test_missing_object(repo):
    assert not object_exists(repo, SHA)
    with pytest.raises(NotFound):
        object_get(repo, SHA)

@pytest.mark.parametrize("sha", ["abc", SHA.upper(), SHA + "0", "g" * 40, None])
def test_bad_ids(repo, sha):
    with pytest.raises(ValueError):
        object_put(repo, sha, b"data")

def test_fanout_blocked_by_file(repo):
    with open(os.path.join(repo.gitdir, "objects", "f2"), "wb") as fp:
        fp.write(b"in the way")

    with pytest.raises(IOFailure):
        object_put(repo, SHA, b"data")

def test_list_prefix(repo):
    other = "f2" + "0" * 38
    object_put(repo, SHA, b"a")
    object_put(repo, other, b"b")

    assert object_list(repo, "f2") == [other, SHA]
    assert object_list(repo, "f2ba") == [SHA]
    assert object_list(repo, "00") == []

class DiskFull():
    """
    A file that takes the first two bytes of a write and then runs out of space.
    """
    def __init__(self, fp):
        self.fp = fp

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.fp.close()

    def write(self, data):
        self.fp.write(data[:2])
        raise OSError(errno.ENOSPC, "No space left on device")

def test_failed_write_leaves_no_object(repo, monkeypatch):
    real_fdopen = os.fdopen
    monkeypatch.setattr(os, "fdopen", lambda fd, mode: DiskFull(real_fdopen(fd, mode)))

    with pytest.raises(IOFailure):
        object_put(repo, SHA, b"full-data")

    monkeypatch.undo()
    assert not object_exists(repo, SHA)
    assert os.listdir(os.path.join(repo.gitdir, "objects", "f2")) == []

    assert object_put(repo, SHA, b"full-data")
    assert object_get(repo, SHA) == b"full-data"

def test_list_ignores_temporary_files(repo):
    object_put(repo, SHA, b"a")
    with open(os.path.join(repo.gitdir, "objects", "f2", "tmp_obj_leftover"), "wb") as fp:
        fp.write(b"partial")

    assert object_list(repo, "f2") == [SHA]
