import argparse
import logging
import sys

from commit import commit_create
from errors import MygitError
from objects import object_find, object_hash, object_load, Tree
from repository import create_repo, repo_find
from tree import ls_tree, tree_build

def cmd_init(args):
    repo = create_repo(args.path)
    print(f"Initialized empty repository in {repo.gitdir}")

def cmd_cat_file(args):
    repo = repo_find()
    cat_file(repo, args.object, args.mode)

def cat_file(repo, name, mode):
    object_type, data = object_load(repo, object_find(repo, name))

    match mode:
        case "type":
            print(object_type.decode('ascii'))
        case "size":
            print(len(data))
        case _:
            if object_type == b'tree':
                # pretty print trees like ls-tree, the raw form is binary
                for leaf in Tree(data).items:
                    leaf_type = "tree" if leaf.is_tree() else "blob"
                    print(f"{leaf.mode.decode('ascii').rjust(6, '0')} {leaf_type} {leaf.sha}\t{leaf.path.decode('utf8', 'replace')}")
            else:
                sys.stdout.flush()
                sys.stdout.buffer.write(data)
                sys.stdout.buffer.flush()

def cmd_hash_object(args):
    """
    Objects are only stored as loose objects, never in packfiles.
    """
    if args.write:
        repo = repo_find()
    else:
        repo = None

    try:
        with open(args.path, 'rb') as fp:
            sha = object_hash(fp, args.type.encode(), repo)
    except OSError as e:
        raise MygitError(f"Error reading file {args.path}: {e}") from e
    print(sha)

def cmd_ls_tree(args):
    repo = repo_find()

    for mode, leaf_type, sha, path in ls_tree(repo, args.tree, args.recursive):
        if args.name_only:
            print(path)
        else:
            print(f"{mode} {leaf_type} {sha}\t{path}")

def cmd_write_tree(args):
    repo = repo_find()
    print(tree_build(repo))

def cmd_commit_tree(args):
    repo = repo_find()
    tree = object_find(repo, args.tree, b'tree')
    parent = object_find(repo, args.parent, b'commit') if args.parent else None
    print(commit_create(repo, tree, parent, args.message))


argparser = argparse.ArgumentParser(prog="mygit", description="A content-addressed object store in git's format.")
argparser.add_argument("-v", "--verbose", action="store_true", help="Log what is being read and written.")

# enforce that `mygit` must be called with a command --> `mygit COMMAND`
argsubparsers = argparser.add_subparsers(title="Available commands", dest="command")
argsubparsers.required = True

init = argsubparsers.add_parser("init", help="Initialize a new, empty repository.")
init.add_argument("path", metavar="directory", nargs="?", default=".", help="Where to create the repository?")

cat_file_cmd = argsubparsers.add_parser("cat-file", help="Provide content, type or size of repository objects.")
cat_file_mode = cat_file_cmd.add_mutually_exclusive_group(required=True)
cat_file_mode.add_argument("-p", dest="mode", action="store_const", const="pretty", help="Pretty-print the content")
cat_file_mode.add_argument("-t", dest="mode", action="store_const", const="type", help="Show the object type")
cat_file_mode.add_argument("-s", dest="mode", action="store_const", const="size", help="Show the object size")
cat_file_cmd.add_argument("object", metavar="object", help="The object to display")

hash_object_cmd = argsubparsers.add_parser("hash-object", help="Compute object ID and optionally create an object from a file.")
hash_object_cmd.add_argument("-t", metavar="type", dest="type",
                              choices=["blob", "commit", "tree"],
                              default="blob",
                              help="Specify the type")
hash_object_cmd.add_argument("-w", dest="write", action="store_true", help="Actually write the object in the repository")
hash_object_cmd.add_argument("path", help="Path to the object file")

ls_tree_cmd = argsubparsers.add_parser("ls-tree", help="Pretty print a tree object")
ls_tree_cmd.add_argument("-r", dest="recursive", action="store_true", help="Recurse into sub trees and get final objects.")
ls_tree_cmd.add_argument("--name-only", dest="name_only", action="store_true", help="List only names")
ls_tree_cmd.add_argument("tree", help="A tree or commit")

write_tree_cmd = argsubparsers.add_parser("write-tree", help="Create a tree object from the working directory")

commit_tree_cmd = argsubparsers.add_parser("commit-tree", help="Create a new commit object")
commit_tree_cmd.add_argument("tree", help="The tree the commit records")
commit_tree_cmd.add_argument("-p", dest="parent", default=None, help="The parent commit")
commit_tree_cmd.add_argument("-m", dest="message", required=True, help="The commit message")


# entrypoint
def main(argv=None):
    args = argparser.parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        match args.command:
            case "cat-file"     : cmd_cat_file(args)
            case "commit-tree"  : cmd_commit_tree(args)
            case "hash-object"  : cmd_hash_object(args)
            case "init"         : cmd_init(args)
            case "ls-tree"      : cmd_ls_tree(args)
            case "write-tree"   : cmd_write_tree(args)
    except MygitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
