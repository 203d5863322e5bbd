import os

import pytest

from errors import RepositoryError
from repository import create_repo, repo_find, Repository

def test_layout(tmp_path):
    repo = create_repo(tmp_path / "new")

    assert repo.gitdir == os.path.join(str(tmp_path / "new"), ".git")
    for directory in ["objects", "refs", os.path.join("refs", "heads")]:
        assert os.path.isdir(os.path.join(repo.gitdir, directory))
    with open(os.path.join(repo.gitdir, "HEAD")) as fp:
        assert fp.read() == "ref: refs/heads/main\n"
    assert repo.conf.get("core", "repositoryformatversion") == "0"
    assert not repo.config_bool("core", "filemode")

def test_init_existing_directory(tmp_path):
    (tmp_path / "file").write_text("keep")
    repo = create_repo(tmp_path)
    assert repo.worktree == str(tmp_path)
    assert (tmp_path / "file").read_text() == "keep"

def test_init_twice(tmp_path):
    create_repo(tmp_path)
    with pytest.raises(RepositoryError):
        create_repo(tmp_path)

def test_init_on_file(tmp_path):
    (tmp_path / "file").write_text("")
    with pytest.raises(RepositoryError):
        create_repo(tmp_path / "file")

def test_open(repo):
    reopened = Repository(repo.worktree)
    assert reopened.gitdir == repo.gitdir
    assert reopened.conf.get("core", "bare") == "false"

def test_not_a_repository(tmp_path):
    with pytest.raises(RepositoryError):
        Repository(tmp_path)

def test_unsupported_version(repo):
    repo.conf.set("core", "repositoryformatversion", "1")
    with open(os.path.join(repo.gitdir, "config"), "w") as fp:
        repo.conf.write(fp)

    with pytest.raises(RepositoryError):
        Repository(repo.worktree)

def test_bad_filemode(repo):
    repo.conf.set("core", "filemode", "sometimes")
    with pytest.raises(RepositoryError):
        repo.config_bool("core", "filemode")

def test_find_from_subdirectory(repo):
    sub = os.path.join(repo.worktree, "a", "b")
    os.makedirs(sub)

    assert repo_find(sub).worktree == os.path.realpath(repo.worktree)

def test_find_nothing(tmp_path):
    assert repo_find(tmp_path, required=False) is None
    with pytest.raises(RepositoryError):
        repo_find(tmp_path)
