"""
A repository is a worktree plus the metadata directory (worktree/.git) that holds the object store.

Nothing in mygit looks at the current working directory implicitly: every operation receives the
Repository it works on, and only this module and store.py turn that into paths.
"""

import configparser # parses microsoft INI file format
import logging
import os

from errors import IOFailure, RepositoryError

logger = logging.getLogger(__name__)

GITDIR_NAME = ".git"


class Repository():

    # force is used to create a new repository from a repository object
    def __init__(self, path, force=False):
        # this is where the files checked into the version control live
        self.worktree = os.path.abspath(path)
        # this is where the object store and refs live, typically worktree/.git
        self.gitdir = os.path.join(self.worktree, GITDIR_NAME)

        if not (force or os.path.isdir(self.gitdir)):
            raise RepositoryError(f"Not a git repository {path}")

        # the git conf --> an INI file
        self.conf = configparser.ConfigParser()
        config_file_path = get_path_under_repo(self, "config")

        if os.path.exists(config_file_path):
            try:
                self.conf.read([config_file_path])
            except configparser.Error as e:
                raise RepositoryError(f"Invalid configuration file {config_file_path}: {e}") from e
        elif not force:
            raise RepositoryError("Configuration file missing")

        if not force:
            version = self.conf.getint("core", "repositoryformatversion", fallback=0)
            if version != 0:
                raise RepositoryError(f"Unsupported repositoryformatversion {version}")

    def config_bool(self, section, option, default=False):
        try:
            return self.conf.getboolean(section, option, fallback=default)
        except ValueError as e:
            raise RepositoryError(f"Bad boolean value for {section}.{option}") from e

    def __repr__(self):
        return f"Repository({self.worktree!r})"


def get_path_under_repo(repo: Repository, *path):
    """
    Util function to get path under the git directory
    """
    return os.path.join(repo.gitdir, *path)

def get_path_to_repo_file(repo: Repository, *path, mkdir=False):
    """
    * Util function to get or create the path to a file
    * Returns None if the parent directory is missing and mkdir is False
    """
    # check for existence of or create parent directory
    if get_path_to_repo_dir(repo, *path[:-1], mkdir=mkdir):
        return get_path_under_repo(repo, *path)

def get_path_to_repo_dir(repo: Repository, *path, mkdir=False):
    """
    * Util function to get or create the path to a directory under the git directory.
    * Raise IOFailure if path exists but is not a directory, or cannot be created
    """
    path = get_path_under_repo(repo, *path)

    if os.path.exists(path):
        if os.path.isdir(path):
            return path
        else:
            raise IOFailure(f"Not a directory {path}")

    if mkdir:
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Cannot create directory {path}: {e}") from e
        return path

def repo_default_config():
    ret = configparser.ConfigParser()

    ret.add_section("core")

    # version of the gitdir format. 0 means initial, 1 is the same with some extensions. git panics on > 1
    ret.set("core", "repositoryformatversion", "0")
    # disable tracking of file modes (permissions): every file is stored as 100644
    ret.set("core", "filemode", "false")
    # indicates that this repository has a worktree
    ret.set("core", "bare", "false")

    return ret

def create_repo(path, branch="main"):
    """
    Create a repository inside the specified directory
    """
    repo = Repository(path, force=True)

    if os.path.exists(repo.worktree):
        if not os.path.isdir(repo.worktree):
            raise RepositoryError(f"{repo.worktree} is not a directory!")
        if os.path.exists(repo.gitdir) and os.listdir(repo.gitdir):
            raise RepositoryError(f"{path} already has a gitdir!")
    else:
        try:
            os.makedirs(repo.worktree)
        except OSError as e:
            raise IOFailure(f"Cannot create directory {repo.worktree}: {e}") from e

    # create essential directories
    get_path_to_repo_dir(repo, "refs", "tags", mkdir=True)
    get_path_to_repo_dir(repo, "refs", "heads", mkdir=True)
    get_path_to_repo_dir(repo, "objects", mkdir=True)

    try:
        # free form description for humans to read, rarely used
        with open(get_path_to_repo_file(repo, "description"), 'w') as fp:
            fp.write("Unnamed repository; edit this file 'description' to name the repository.\n")

        # reference to the current branch
        with open(get_path_to_repo_file(repo, "HEAD"), 'w') as fp:
            fp.write(f"ref: refs/heads/{branch}\n")

        with open(get_path_to_repo_file(repo, "config"), 'w') as fp:
            config = repo_default_config()
            config.write(fp)
            repo.conf = config
    except OSError as e:
        raise IOFailure(f"Cannot initialize {repo.gitdir}: {e}") from e

    logger.debug("Initialized repository in %s", repo.gitdir)
    return repo

def repo_find(path=".", required=True):
    """
    Walk up from path until a directory containing .git is found.
    """
    path = os.path.realpath(path)

    if os.path.isdir(os.path.join(path, GITDIR_NAME)):
        return Repository(path)

    parent = os.path.realpath(os.path.join(path, ".."))

    # reached the file system root: os.path.join("/", "..") == "/"
    if parent == path:
        if required:
            raise RepositoryError("No git directory.")
        return None

    return repo_find(parent, required)
