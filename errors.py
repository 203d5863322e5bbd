"""
Everything mygit raises on purpose derives from MygitError, so the command line can report it
and exit instead of dumping a traceback. Low level OSError and zlib.error are wrapped and chained.
"""

class MygitError(Exception):
    pass

class RepositoryError(MygitError):
    """
    Not a repository, unreadable configuration or an unsupported repository format.
    """

class IOFailure(MygitError):
    """
    Reading, writing or creating a file or directory failed.
    """

class NotFound(MygitError):
    """
    The requested object is not in the store.
    """

class AmbiguousObject(MygitError):
    pass

class MalformedObject(MygitError):
    """
    Stored bytes do not follow the object format: bad header, bad length, unknown type,
    or a tree/commit body that cannot be parsed.
    """

class CorruptStream(MygitError):
    """
    The compressed stream is truncated or not valid zlib.
    """
