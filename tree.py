"""
Building tree objects from a directory on disk, and listing them back.

write-tree walks the directory bottom-up: every file becomes a blob, every subdirectory becomes a
tree (recursively), and the directory itself becomes a tree listing them. The metadata directory is
never part of the snapshot.
"""

import logging
import os
import stat

from errors import IOFailure
from objects import (
    Blob, Tree, TreeLeaf, object_find, object_read, object_write,
    BLOB_MODE, EXECUTABLE_MODE, SYMLINK_MODE, TREE_MODE,
)
from repository import GITDIR_NAME

logger = logging.getLogger(__name__)

def blob_write(repo, path):
    """
    Store the contents of a file as a blob and return its sha.
    """
    try:
        with open(path, 'rb') as fp:
            data = fp.read()
    except OSError as e:
        raise IOFailure(f"Error reading file {path}: {e}") from e

    return object_write(Blob(data), repo)

def symlink_write(repo, path):
    """
    A symlink is stored as a blob holding the link target, it is never followed.
    """
    try:
        target = os.readlink(path)
    except OSError as e:
        raise IOFailure(f"Error reading link {path}: {e}") from e

    return object_write(Blob(os.fsencode(target)), repo)

def file_mode(repo, entry_stat):
    if repo.config_bool("core", "filemode") and entry_stat.st_mode & stat.S_IXUSR:
        return EXECUTABLE_MODE
    return BLOB_MODE

def tree_build(repo, path=None):
    """
    Snapshot the directory at path (the worktree by default) and return the root tree's sha.

    Entries named .git are skipped at every level. Files are read whole. An unreadable file or
    directory aborts the build with IOFailure; objects already written for its siblings stay in
    the store, which is harmless.
    """
    if path is None:
        path = repo.worktree

    tree = Tree()

    try:
        with os.scandir(path) as it:
            entries = list(it)
    except OSError as e:
        raise IOFailure(f"Error reading directory {path}: {e}") from e

    for entry in entries:
        if entry.name == GITDIR_NAME:
            continue

        try:
            entry_stat = entry.stat(follow_symlinks=False)
        except OSError as e:
            raise IOFailure(f"Cannot stat {entry.path}: {e}") from e

        if stat.S_ISLNK(entry_stat.st_mode):
            mode, sha = SYMLINK_MODE, symlink_write(repo, entry.path)
        elif stat.S_ISDIR(entry_stat.st_mode):
            mode, sha = TREE_MODE, tree_build(repo, entry.path)
        elif stat.S_ISREG(entry_stat.st_mode):
            mode, sha = file_mode(repo, entry_stat), blob_write(repo, entry.path)
        else:
            logger.warning("Skipping %s: not a regular file, directory or symlink", entry.path)
            continue

        tree.items.append(TreeLeaf(mode, os.fsencode(entry.name), sha))

    # serializing sorts the items, so the order scandir returned them in doesn't matter
    sha = object_write(tree, repo)
    logger.debug("Wrote tree %s for %s (%d entries)", sha, path, len(tree.items))
    return sha

def ls_tree(repo, tree_ref, recursive=False, prefix=""):
    """
    List a tree as (mode, type, sha, path) tuples, in the order they are stored.
    tree_ref can be an abbreviated sha, or a commit whose tree is listed.
    """
    sha = object_find(repo, tree_ref, b'tree')
    obj = object_read(repo, sha)
    result = list()

    for item in obj.items:
        leaf_type = "tree" if item.is_tree() else "blob"
        path = f"{prefix}/{os.fsdecode(item.path)}" if prefix else os.fsdecode(item.path)

        if recursive and leaf_type == "tree":
            result.extend(ls_tree(repo, item.sha, recursive, path))
        else:
            mode = item.mode.decode('ascii').rjust(6, "0")
            result.append((mode, leaf_type, item.sha, path))

    return result
