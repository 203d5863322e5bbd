"""
Loose object storage.

The first 2 characters of the SHA-1 hash of an object are used as the directory name, and the rest as
the file name: objects/ab/cdef0123... The store only moves compressed bytes around; it never looks
inside them and never checks that the bytes match the hash they are filed under.
"""

import contextlib
import logging
import os
import re
import tempfile

from errors import IOFailure, NotFound
from repository import get_path_to_repo_dir, get_path_under_repo

logger = logging.getLogger(__name__)

SHA_RE = re.compile(r"^[0-9a-f]{40}$")

# temporary files share the fan-out directory with objects, which are never named like this
TMP_PREFIX = "tmp_obj_"

def check_sha(sha):
    if not isinstance(sha, str) or not SHA_RE.match(sha):
        raise ValueError(f"Not a full lowercase hex object id: {sha!r}")
    return sha

def object_path(repo, sha):
    check_sha(sha)
    return get_path_under_repo(repo, "objects", sha[:2], sha[2:])

def object_exists(repo, sha):
    return os.path.isfile(object_path(repo, sha))

def object_put(repo, sha, data):
    """
    Write compressed object bytes. Writing an id that is already present does nothing:
    objects are immutable, so whatever is there is assumed to be right.

    The bytes go to a temporary file in the fan-out directory first and are only linked to their
    final name once complete, so a failed write never leaves a partial object under a valid id.
    """
    check_sha(sha)
    directory = get_path_to_repo_dir(repo, "objects", sha[:2], mkdir=True)
    path = os.path.join(directory, sha[2:])

    if os.path.exists(path):
        logger.debug("Object %s already in store, skipped", sha)
        return False

    try:
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=TMP_PREFIX)
    except OSError as e:
        raise IOFailure(f"Failed to write object {sha}: {e}") from e

    try:
        with os.fdopen(fd, 'wb') as fp:
            fp.write(data)

        try:
            # link fails if the file exists, so an existing object is never replaced
            os.link(tmp_path, path)
        except FileExistsError:
            logger.debug("Object %s already in store, skipped", sha)
            return False
        except OSError:
            # file systems without hard links
            os.replace(tmp_path, path)
    except OSError as e:
        raise IOFailure(f"Failed to write object {sha}: {e}") from e
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)

    logger.debug("Stored object %s (%d bytes)", sha, len(data))
    return True

def object_get(repo, sha):
    path = object_path(repo, sha)

    try:
        with open(path, 'rb') as fp:
            return fp.read()
    except FileNotFoundError as e:
        raise NotFound(f"Object {sha} not found") from e
    except OSError as e:
        raise IOFailure(f"Failed to read object {sha}: {e}") from e

def object_list(repo, prefix=""):
    """
    All object ids in the store starting with prefix (at least 2 hex characters).
    """
    fanout = prefix[:2]
    directory = get_path_to_repo_dir(repo, "objects", fanout)
    if not directory:
        return []

    try:
        names = sorted(os.listdir(directory))
    except OSError as e:
        raise IOFailure(f"Cannot list {directory}: {e}") from e

    return [fanout + name for name in names
            if not name.startswith(TMP_PREFIX) and name.startswith(prefix[2:])]
