from __future__ import annotations
from .errors import tert, vert, ScriptExecutionError
from .functions import run_script, run_auth_script
from .hashes import pair_commit_hash
from .parsing import compile_script, decompile_script, is_hex
from dataclasses import dataclass, field
from hashlib import sha256
from importlib.metadata import version as _pkg_version, PackageNotFoundError
from sys import argv
import json


@dataclass
class Script:
    """Represent a script as a pairing of source and byte code."""
    src: str = field()
    bytes: bytes = field()

    @classmethod
    def from_src(cls, src: str) -> Script:
        """Create an instance from script source code."""
        return cls(src, compile_script(src))

    @classmethod
    def from_bytes(cls, code: bytes) -> Script:
        """Create an instance from script byte code."""
        return cls('\n'.join(decompile_script(code)), code)

    def commitment(self) -> bytes:
        """Return a cryptographic commitment for the Script."""
        return sha256(self.bytes).digest()

    def __bytes__(self) -> bytes:
        """Return the script byte code."""
        return self.bytes

    def __str__(self) -> str:
        """Return the script source code."""
        return self.src

    def __add__(self, other: Script) -> Script:
        """Add two instances together."""
        tert(isinstance(other, Script), 'cannot add Script to non-Script')
        return Script(f'{self.src}\n{other.src}', self.bytes + other.bytes)


def make_pair_commit_lock(digest: bytes) -> Script:
    """Makes a lock that is unlocked by the two preimages committed to
        by the digest, pushed in order.
    """
    tert(type(digest) is bytes, 'digest must be bytes')
    vert(len(digest) == 32, 'digest must be 32 bytes')
    return Script.from_src(f'OP_PAIRCOMMIT x{digest.hex()} OP_EQUAL')

def make_pair_commit_lock_from_preimages(x1: bytes, x2: bytes) -> Script:
    """Makes a pair commit lock for pair_commit_hash(x1, x2)."""
    return make_pair_commit_lock(pair_commit_hash(x1, x2))

def make_pair_commit_witness(x1: bytes, x2: bytes) -> Script:
    """Makes a witness that pushes x1 and then x2 onto the stack."""
    tert(type(x1) is bytes, 'x1 must be bytes')
    tert(type(x2) is bytes, 'x2 must be bytes')
    return Script.from_src(f'x{x1.hex()} x{x2.hex()}')

def verify_pair_commit(x1: bytes, x2: bytes, digest: bytes,
                       additional_flags: dict = {}) -> bool:
    """Run the witness for (x1, x2) against the lock for digest with
        OP_PAIRCOMMIT active unless additional_flags says otherwise.
        Returns True iff the combined script succeeds.
    """
    script = make_pair_commit_witness(x1, x2) + make_pair_commit_lock(digest)
    return run_auth_script(
        script,
        additional_flags={'pair_commit': True, **additional_flags}
    )


def version() -> str:
    """Return the installed paircommit version."""
    try:
        return _pkg_version('paircommit')
    except PackageNotFoundError:
        return 'unknown'

def cli_help() -> str:
    """Return CLI help text."""
    name = argv[0]
    return '\n'.join([
        f'Usage: {name} [method] [options]',
        '\thash x1 x2 -- prints the pair commitment of x1 and x2; each value '
        'is hexadecimal or, if prefixed with s:, text',
        '\tcompile src_file bin_file -- compiles the source code into bytecode '
        'and writes it to bin_file',
        '\tdecompile bin_file -- decompiles the bytecode and outputs to stdout',
        '\trun bin_file [flags_file] -- runs script bytecode and prints the '
        'resulting stack',
        '\tauth bin_file [flags_file] -- runs script bytecode as auth script'
        ' and prints true if it was successful or false otherwise',
        '\tversion -- print current paircommit version',
        '',
        'The optional flags_file parameter must be a json object mapping flag '
        'names to values. For example:',
        '{', '\t"pair_commit": true,',
        '\t"disabled_opcode_policy": "fail"', '}',
    ])

def _clert(condition: bool, message: str = ''):
    """CLI assert: print error message and exit if condition fails."""
    if not condition:
        message = f'{message}\n{cli_help()}' if message else cli_help()
        print(message)
        exit(1)

def _parse_cli_bytes(value: str) -> bytes:
    if value[:2] == 's:':
        return value[2:].encode('utf-8')
    _clert(is_hex(value), f'{value} is not hexadecimal; prefix text with s:')
    return bytes.fromhex(value)

def _parse_flags_json(fname: str) -> dict:
    errmsg = 'JSON flags file format is {"flag_name": value, ...}.'
    with open(fname, 'r') as f:
        data = json.loads(f.read())
    _clert(type(data) is dict, errmsg)
    return data

def run_cli() -> None:
    """Run the simple CLI tool. More advanced functionality requires
        programmatic access.
    """
    method = argv[1] if len(argv) > 1 else 'help'
    match method:
        case 'version' | '--version':
            print(version())
        case 'help' | '--help' | '?' | '-?' | '-h':
            print(cli_help())
        case 'hash':
            _clert(len(argv) >= 4, 'Must supply x1 and x2 parameters.')
            x1 = _parse_cli_bytes(argv[2])
            x2 = _parse_cli_bytes(argv[3])
            print(pair_commit_hash(x1, x2).hex())
        case 'compile':
            _clert(len(argv) >= 4, 'Must supply src_file and bin_file parameters.')
            src_fname = argv[2]
            bin_fname = argv[3]
            data = b''
            with open(src_fname, 'r') as f:
                data = compile_script(f.read())
            with open(bin_fname, 'wb') as f:
                f.write(data)
        case 'decompile':
            _clert(len(argv) >= 3, 'Missing bin_file parameter.')
            bin_fname = argv[2]
            with open(bin_fname, 'rb') as f:
                data = f.read()
            print('\n'.join(decompile_script(data)))
        case 'run':
            _clert(len(argv) >= 3, 'Must supply bin_file parameter.')
            bin_fname, script, flags = argv[2], b'', {}
            with open(bin_fname, 'rb') as f:
                script = f.read()
            if len(argv) > 3:
                flags = _parse_flags_json(argv[3])
            try:
                _, stack, _ = run_script(script, additional_flags=flags)
            except ScriptExecutionError as e:
                print(f'script failed: {e}')
                exit(1)
            items = [item.hex() for item in stack.list()]
            print(f'stack:\n' + '\n'.join(items))
        case 'auth':
            _clert(len(argv) >= 3, 'Must supply bin_file parameter.')
            bin_fname, script, flags = argv[2], b'', {}
            with open(bin_fname, 'rb') as f:
                script = f.read()
            if len(argv) > 3:
                flags = _parse_flags_json(argv[3])
            print('true' if run_auth_script(script, additional_flags=flags) else 'false')
        case _:
            _clert(False, f'Unrecognized method: {method}')
