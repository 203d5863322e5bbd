import pytest

from repository import create_repo


@pytest.fixture()
def repo(tmp_path):
    """
    A freshly initialized repository whose worktree is an empty temporary directory.
    """
    return create_repo(tmp_path / "work")
