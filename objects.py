"""
The object store is content-addressed: the name of an object is derived mathematically (SHA-1 hash)
from its contents. You don't modify an object; you create a new object with a different name.

Object storage format:
* Starts with its type: blob, commit or tree, followed by an ASCII space (0x20), then the size of the
object in bytes as an ASCII number, then null (0x00), then the contents of the object.
* That whole byte string is what gets hashed, and it is compressed with zlib before storing.

Blob content is arbitrary binary, so everything here slices bytes and never decodes them as text.
"""

import collections
import hashlib
import re

from compress import compress, decompress
from errors import AmbiguousObject, MalformedObject, MygitError, NotFound
from store import object_exists, object_get, object_list, object_put


TREE_MODE = b'40000'
BLOB_MODE = b'100644'
EXECUTABLE_MODE = b'100755'
SYMLINK_MODE = b'120000'
TREE_MODES = (BLOB_MODE, EXECUTABLE_MODE, SYMLINK_MODE, TREE_MODE)

def object_encode(object_type, data):
    """
    Build the payload "<type> <size>\\0<data>" and its hex SHA-1.
    """
    if object_type not in OBJECT_TYPES:
        raise ValueError(f"Unknown object type {object_type!r}")

    payload = object_type + b' ' + str(len(data)).encode('ascii') + b'\x00' + data
    return payload, hashlib.sha1(payload).hexdigest()

def object_decode(raw):
    """
    Split a decompressed payload into (type, data), validating the header.
    """
    null_index = raw.find(b'\x00')
    if null_index < 0:
        raise MalformedObject("Missing null byte after object header")

    header = raw[:null_index]
    space_index = header.find(b' ')
    if space_index < 0:
        raise MalformedObject(f"Malformed object header {header[:32]!r}")

    object_type = header[:space_index]
    if object_type not in OBJECT_TYPES:
        raise MalformedObject(f"Unknown object type {object_type[:32]!r}")

    # Read and validate object size
    size = header[space_index+1:]
    if not size.isdigit():
        raise MalformedObject(f"Malformed object size {size[:32]!r}")
    if int(size) != len(raw) - null_index - 1:
        raise MalformedObject(f"Bad object length: header says {int(size)}, found {len(raw) - null_index - 1}")

    return object_type, raw[null_index+1:]


class Object():

    def __init__(self, data=None):
        if data is not None:
            self.deserialize(data)
        else:
            self.init()

    def serialize(self):
        """
        MUST be implemented by subclasses.
        Turn the object's meaningful data into the content byte string.
        """
        raise NotImplementedError

    def deserialize(self, data):
        raise NotImplementedError

    def init(self):
        pass

class Blob(Object):
    """
    Blobs are user data. The content of every file is stored as a blob.
    """

    object_type=b'blob'

    def serialize(self):
        return self.blobdata

    def deserialize(self, data):
        self.blobdata = data

    def init(self):
        self.blobdata = b''

# key -> value list message
def kvlm_parse(raw_data, start=0, dct=None):
    if dct is None:
        dct = collections.OrderedDict()

    while True:
        next_spc = raw_data.find(b' ', start)
        next_nwline = raw_data.find(b'\n', start)

        # a blank line ends the headers, the rest is the message
        if next_nwline == start:
            dct[None] = raw_data[start+1:]
            return dct

        if next_nwline < 0:
            raise MalformedObject("Commit headers are not followed by a blank line")
        if next_spc < 0 or next_spc > next_nwline:
            raise MalformedObject(f"Commit header without value {raw_data[start:next_nwline][:32]!r}")

        key = raw_data[start:next_spc]

        # the value for this key can be multiline. Each continuation line starts with a space,
        # so find the first '\n' not followed by a space.
        end = next_nwline
        while end + 1 < len(raw_data) and raw_data[end+1] == ord(' '):
            end = raw_data.find(b'\n', end+1)
            if end < 0:
                raise MalformedObject(f"Unterminated commit header {key[:32]!r}")

        value = raw_data[next_spc+1:end].replace(b'\n ', b'\n')

        # don't override existing key contents
        if key in dct:
            if type(dct[key]) == list:
                dct[key].append(value)
            else:
                dct[key] = [dct[key], value]
        else:
            dct[key] = value

        start = end + 1

def kvlm_serialize(kvlm):
    output = b''

    for key in kvlm.keys():
        if key is None: continue

        # normalize value to list
        val = kvlm[key]
        if type(val) != list:
            val = [val]

        for v in val:
            output += key + b' ' + (v.replace(b'\n', b'\n ')) + b'\n'

    # append message
    output += b'\n' + kvlm.get(None, b'')
    return output

class Commit(Object):
    """
    A commit looks like this:

        tree 29ff16c9c14e2652b22f8b78bb08a5a07930c147
        parent 206941306e8a8af65b66eaaaea388a7ae24d49a0
        author Jane Doe <jane@example.com> 1527025023 +0200
        committer Jane Doe <jane@example.com> 1527025044 +0200

        Message

    * Subsequent lines of a multiline value start with a space that the parser must drop.
    * tree: the snapshot this commit records. parent: the previous commit, absent for the first one.
    """
    object_type=b'commit'

    def deserialize(self, data):
        self.kvlm = kvlm_parse(data)

    def serialize(self):
        return kvlm_serialize(self.kvlm)

    def init(self):
        self.kvlm = collections.OrderedDict()

# Wrapper for a single record in the tree
class TreeLeaf(object):
    def __init__(self, mode, path, sha):
        self.mode = mode
        self.path = path
        self.sha = sha

    def is_tree(self):
        return self.mode.lstrip(b'0') == TREE_MODE

    def __eq__(self, other):
        if not isinstance(other, TreeLeaf):
            return NotImplemented
        return (self.mode, self.path, self.sha) == (other.mode, other.path, other.sha)

    def __repr__(self):
        return f"TreeLeaf({self.mode!r}, {self.path!r}, {self.sha!r})"

def tree_parse_one_record(raw, start=0):
    space = raw.find(b' ', start)
    if space < 0 or space - start not in (5, 6):
        raise MalformedObject(f"Bad tree entry mode at offset {start}")

    mode = raw[start:space]
    if mode.lstrip(b'0') not in TREE_MODES:
        raise MalformedObject(f"Bad tree entry mode {mode!r}")

    null_terminator = raw.find(b'\x00', space)
    if null_terminator < 0:
        raise MalformedObject(f"Unterminated tree entry name at offset {space + 1}")

    path = raw[space+1:null_terminator]
    if not path:
        raise MalformedObject(f"Empty tree entry name at offset {space + 1}")

    raw_sha = raw[null_terminator+1:null_terminator+21]
    if len(raw_sha) != 20:
        raise MalformedObject(f"Truncated object id for tree entry {path!r}")

    return null_terminator+21, TreeLeaf(mode, path, raw_sha.hex())

def tree_parse(raw):
    curr = 0
    max = len(raw)
    all_tuples = list()

    while curr < max:
        curr, data = tree_parse_one_record(raw, curr)
        all_tuples.append(data)

    return all_tuples

def tree_leaf_sort_key(leaf: TreeLeaf):
    """
    Names are compared as raw bytes, case-sensitively. Directories are sorted with a final '/' at
    their end, so "foo" (a tree) comes after "foo.txt" but before "foo0".
    """
    if leaf.is_tree():
        return leaf.path + b'/'
    return leaf.path

class Tree(Object):
    """
    Tree describes the contents of a directory, mapping names to blobs and other trees.
    Array of 3 element records (file_mode, path, sha-1).
    Format: [mode] space [path] 0x00 [sha-1 as 20 raw bytes]
    """
    object_type = b'tree'

    def serialize(self):
        return tree_serialize(self)

    def deserialize(self, data):
        self.items = tree_parse(data)

    def init(self):
        self.items = list()

def tree_serialize(tree: Tree):
    tree.items.sort(key=tree_leaf_sort_key)
    serialized_tree = b''

    for leaf in tree.items:
        serialized_tree += leaf.mode
        serialized_tree += b' '
        serialized_tree += leaf.path
        serialized_tree += b'\x00'
        serialized_tree += bytes.fromhex(leaf.sha)

    return serialized_tree

OBJECT_TYPES = {
    b'blob': Blob,
    b'commit': Commit,
    b'tree': Tree,
}

def object_load(repo, sha):
    """
    Read object (type, data) from the repository given its sha hash
    """
    return object_decode(decompress(object_get(repo, sha)))

def object_read(repo, sha):
    """
    Read an object and build the matching Blob, Tree or Commit.
    """
    object_type, data = object_load(repo, sha)
    return OBJECT_TYPES[object_type](data)

def object_store(type, data, repo=None):
    """
    Encode data as an object of the given type, store it when a repository is given,
    and return its sha.
    """
    payload, sha = object_encode(type, data)

    # no need to compress what the store already has
    if repo is not None and not object_exists(repo, sha):
        object_put(repo, sha, compress(payload))

    return sha

def object_write(obj, repo=None):
    """
    Compute the object's sha and, when a repository is given, store it.
    """
    return object_store(obj.object_type, obj.serialize(), repo)

def object_hash(fp, type, repo=None):
    """
    Hash object, write it to repo if not None. The bytes read are stored exactly as given.
    """
    data = fp.read()

    if type not in OBJECT_TYPES:
        raise ValueError(f"Unknown object type {type!r}")

    # trees and commits are parsed so that garbage is rejected before it gets an id,
    # but they are not re-serialized: that would reorder tree entries and commit headers
    OBJECT_TYPES[type](data)
    return object_store(type, data, repo)

HASH_RE = re.compile(r"^[0-9A-Fa-f]{4,40}$") # minimum of 4 characters to be considered a short hash

def object_resolve(repo, name):
    """
    Expand a full or abbreviated object id to every matching id in the store.
    """
    name = name.strip()
    if not HASH_RE.match(name):
        return []
    return object_list(repo, name.lower())

def object_find(repo, name, type=None, follow=True):
    sha = object_resolve(repo, name)

    if not sha:
        raise NotFound(f"No such object {name}.")

    if len(sha) > 1:
        candidates = "\n - ".join(sha)
        raise AmbiguousObject(f"Ambiguous object name {name}: Candidates are\n - {candidates}")

    sha = sha[0]

    if not type:
        return sha

    while True:
        # TODO: we are reading the entire object just to get the type. can be optimized.
        object_type, data = object_load(repo, sha)

        if object_type == type:
            return sha

        if follow and object_type == b'commit' and type == b'tree':
            tree = Commit(data).kvlm.get(b'tree')
            if not isinstance(tree, bytes):
                raise MalformedObject(f"Commit {sha} does not have exactly one tree")
            sha = tree.decode('ascii')
            continue

        raise MygitError(f"Object {sha} is a {object_type.decode('ascii')}, not a {type.decode('ascii')}")
