"""The PairCommit commitment function.

    pair_commit_hash(x1, x2) = SHA256(tag || tag || ser(x1) || ser(x2))

    where tag = SHA256(b'PairCommit') and ser(x) is the CompactSize
    length of x followed by x. The framing makes the preimage injective
    over (x1, x2), and the digest is not symmetric in its arguments.
"""

from .errors import tert
from .serialization import ser_string
from hashlib import sha256


PAIRCOMMIT_TAG_NAME = b'PairCommit'
PAIRCOMMIT_TAG = sha256(PAIRCOMMIT_TAG_NAME).digest()


def tagged_hash(tag: bytes|str, message: bytes) -> bytes:
    """BIP-340 style tagged hash: SHA256(SHA256(tag) || SHA256(tag) ||
        message).
    """
    tert(type(tag) in (bytes, str), 'tag must be bytes or str')
    tert(type(message) is bytes, 'message must be bytes')
    if type(tag) is str:
        tag = tag.encode('utf-8')
    tag_hash = sha256(tag).digest()
    return sha256(tag_hash + tag_hash + message).digest()

def pair_commit_preimage(x1: bytes, x2: bytes) -> bytes:
    """Assemble the full preimage hashed by pair_commit_hash."""
    tert(type(x1) is bytes, 'x1 must be bytes')
    tert(type(x2) is bytes, 'x2 must be bytes')
    return PAIRCOMMIT_TAG + PAIRCOMMIT_TAG + ser_string(x1) + ser_string(x2)

def pair_commit_hash(x1: bytes, x2: bytes) -> bytes:
    """Commit to the ordered pair (x1, x2). Returns a 32-byte digest."""
    return sha256(pair_commit_preimage(x1, x2)).digest()
