from .classes import Tape, Stack
from .errors import (
    ScriptExecutionError,
    StackUnderflowError,
    DisabledOpcodeError,
)
from .functions import (
    OP_PAIRCOMMIT,
    run_script,
    run_tape,
    run_auth_script,
    add_opcode,
)
from .hashes import PAIRCOMMIT_TAG, pair_commit_hash, tagged_hash
from .parsing import compile_script, decompile_script
from .serialization import compact_size, read_compact_size, ser_string
from .tools import (
    Script,
    make_pair_commit_lock,
    make_pair_commit_witness,
    verify_pair_commit,
)
