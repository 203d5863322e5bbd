"""
Creating commit objects (commit-tree).

Neither the tree nor the parent is checked for existence: a commit only records the ids it is given.
"""

import collections
import getpass
import logging
import socket
from datetime import datetime

from objects import Commit, object_write
from store import check_sha

logger = logging.getLogger(__name__)

def format_timestamp(timestamp: datetime):
    """
    "<unix seconds> <+hhmm>" as found at the end of author and committer lines.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()

    offset = int(timestamp.utcoffset().total_seconds()) // 60
    sign = "-" if offset < 0 else "+"
    hours, minutes = divmod(abs(offset), 60)
    return f"{int(timestamp.timestamp())} {sign}{hours:02}{minutes:02}"

def default_identity(repo):
    """
    "name <email>" from the [user] section of the repository config, falling back to the login name.
    """
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        # no login name for this uid
        username = "unknown"

    name = repo.conf.get("user", "name", fallback=username)
    email = repo.conf.get("user", "email", fallback=f"{username}@{socket.gethostname()}")
    return f"{name} <{email}>"

def commit_create(repo, tree, parent, message, author=None, committer=None, timestamp=None):
    """
    Store a commit for tree and return its sha.

    * tree, parent: full hex shas; they are not looked up. parent is None or "" for the first
      commit, which gets no parent line.
    * author, committer: full identity lines ("name <email> seconds +hhmm"). Built from the
      repository config and timestamp (default: now) when not given.
    """
    if author is None or committer is None:
        if timestamp is None:
            timestamp = datetime.now().astimezone()
        identity = f"{default_identity(repo)} {format_timestamp(timestamp)}"
        author = author or identity
        committer = committer or identity

    check_sha(tree)
    if parent:
        check_sha(parent)

    if not message.endswith("\n"):
        message += "\n"

    commit = Commit()
    commit.kvlm = collections.OrderedDict()
    commit.kvlm[b'tree'] = tree.encode('ascii')
    if parent:
        commit.kvlm[b'parent'] = parent.encode('ascii')
    commit.kvlm[b'author'] = author.encode('utf8')
    commit.kvlm[b'committer'] = committer.encode('utf8')
    commit.kvlm[None] = message.encode('utf8')

    sha = object_write(commit, repo)
    logger.debug("Wrote commit %s (tree %s, parent %s)", sha, tree, parent or "none")
    return sha
