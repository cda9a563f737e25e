from __future__ import annotations
from .classes import Tape, Stack
from .errors import (
    tert,
    vert,
    sert,
    uert,
    DisabledOpcodeError,
    ScriptExecutionError,
)
from .hashes import pair_commit_hash
from .interfaces import ScriptProtocol
from hashlib import sha256
from typing import Callable


def int_to_bytes(number: int) -> bytes:
    """Convert from a signed int to a minimally encoded script number."""
    tert(type(number) is int, 'number must be int')
    if number == 0:
        return b''

    negative = number < 0
    number = abs(number)
    result = bytearray(number.to_bytes((number.bit_length() + 7) // 8, 'little'))

    # the sign bit lives in the msb of the last byte
    if result[-1] & 0x80:
        result.append(0x80 if negative else 0x00)
    elif negative:
        result[-1] |= 0x80

    return bytes(result)

def bytes_to_bool(val: bytes) -> bool:
    """Return True if any bit is set, except for negative zero (only the
        sign bit of the last byte set), else False.
    """
    for i in range(len(val)):
        if val[i] != 0:
            return not (i == len(val) - 1 and val[i] == 0x80)
    return False

def xor(b1: bytes, b2: bytes) -> bytes:
    """XOR two equal-length byte strings together."""
    b3 = bytearray()
    for i in range(len(b1)):
        b3.append(b1[i] ^ b2[i])

    return bytes(b3)

def bytes_are_same(b1: bytes, b2: bytes) -> bool:
    """Timing-attack safe bytes comparison."""
    return len(b1) == len(b2) and int.from_bytes(xor(b1, b2), 'little') == 0


def OP_0(tape: Tape, stack: Stack, cache: dict) -> None:
    """Puts an empty byte string (false, or the number 0) onto the stack."""
    stack.put(b'')

def _make_OP_PUSHBYTES(size: int) -> Callable[[Tape, Stack, dict], None]:
    def op(tape: Tape, stack: Stack, cache: dict) -> None:
        stack.put(tape.read(size))
    op.__name__ = f'OP_PUSHBYTES_{size}'
    op.__doc__ = f'Read the next {size} bytes from the tape; put them onto the stack.'
    return op

def OP_PUSHDATA1(tape: Tape, stack: Stack, cache: dict) -> None:
    """Read the next byte from the tape, interpreting as an unsigned int;
        take that many bytes from the tape; put them onto the stack.
    """
    size = int.from_bytes(tape.read(1), 'little')
    stack.put(tape.read(size))

def OP_PUSHDATA2(tape: Tape, stack: Stack, cache: dict) -> None:
    """Read the next 2 bytes from the tape, interpreting as a
        little-endian unsigned int; take that many bytes from the tape;
        put them onto the stack.
    """
    size = int.from_bytes(tape.read(2), 'little')
    stack.put(tape.read(size))

def OP_PUSHDATA4(tape: Tape, stack: Stack, cache: dict) -> None:
    """Read the next 4 bytes from the tape, interpreting as a
        little-endian unsigned int; take that many bytes from the tape;
        put them onto the stack.
    """
    size = int.from_bytes(tape.read(4), 'little')
    stack.put(tape.read(size))

def OP_1NEGATE(tape: Tape, stack: Stack, cache: dict) -> None:
    """Puts the number -1 onto the stack."""
    stack.put(int_to_bytes(-1))

def _make_OP_N(n: int) -> Callable[[Tape, Stack, dict], None]:
    def op(tape: Tape, stack: Stack, cache: dict) -> None:
        stack.put(int_to_bytes(n))
    op.__name__ = f'OP_{n}'
    op.__doc__ = f'Puts the number {n} onto the stack.'
    return op

def OP_NOP(tape: Tape, stack: Stack, cache: dict) -> None:
    """Does nothing."""
    ...

def OP_VERIFY(tape: Tape, stack: Stack, cache: dict) -> None:
    """Pull a value from the stack; evaluate it as a bool; and raise a
        ScriptExecutionError if it is False.
    """
    sert(bytes_to_bool(stack.get()), 'OP_VERIFY check failed')

def OP_RETURN(tape: Tape, stack: Stack, cache: dict) -> None:
    """Fails the script."""
    raise ScriptExecutionError('OP_RETURN encountered')

def OP_DROP(tape: Tape, stack: Stack, cache: dict) -> None:
    """Remove the top item from the stack."""
    stack.get()

def OP_DUP(tape: Tape, stack: Stack, cache: dict) -> None:
    """Pull an item from the stack; put it back onto the stack twice."""
    item = stack.get()
    stack.put(item)
    stack.put(item)

def OP_SWAP(tape: Tape, stack: Stack, cache: dict) -> None:
    """Swap the order of the top two items of the stack."""
    uert(len(stack) >= 2, 'OP_SWAP requires 2 stack items')
    first = stack.get()
    second = stack.get()
    stack.put(first)
    stack.put(second)

def OP_SIZE(tape: Tape, stack: Stack, cache: dict) -> None:
    """Put the size of the top stack item onto the stack as a script
        number, leaving the item in place.
    """
    stack.put(int_to_bytes(len(stack.peek())))

def OP_EQUAL(tape: Tape, stack: Stack, cache: dict) -> None:
    """Pull 2 items from the stack; compare them; put the bool result
        onto the stack.
    """
    uert(len(stack) >= 2, 'OP_EQUAL requires 2 stack items')
    item1, item2 = stack.get(), stack.get()
    stack.put(b'\x01' if bytes_are_same(item1, item2) else b'')

def OP_EQUALVERIFY(tape: Tape, stack: Stack, cache: dict) -> None:
    """Runs OP_EQUAL then OP_VERIFY."""
    OP_EQUAL(tape, stack, cache)
    OP_VERIFY(tape, stack, cache)

def OP_SHA256(tape: Tape, stack: Stack, cache: dict) -> None:
    """Pull an item from the stack and put its sha256 hash back onto
        the stack.
    """
    item = stack.get()
    stack.put(sha256(item).digest())

def OP_PAIRCOMMIT(tape: Tape, stack: Stack, cache: dict) -> None:
    """If the pair_commit flag is not set, defer to the disabled-opcode
        policy. Otherwise, pull x2 and then x1 from the stack (so x1 is
        the one pushed first); put pair_commit_hash(x1, x2) onto the
        stack. Raises StackUnderflowError if fewer than 2 items are on
        the stack; the stack is left untouched in that case.
    """
    if not tape.flags.get('pair_commit', False):
        return disabled_op('OP_PAIRCOMMIT', tape, stack, cache)

    uert(len(stack) >= 2, 'OP_PAIRCOMMIT requires 2 stack items')
    x2 = stack.get()
    x1 = stack.get()
    stack.put(pair_commit_hash(x1, x2))

def OP_SUCCESS(tape: Tape, stack: Stack, cache: dict) -> None:
    """Ends the script and marks it as unconditionally successful."""
    tape.pointer = len(tape.data)
    cache['success'] = True

def disabled_op(name: str, tape: Tape, stack: Stack, cache: dict) -> None:
    """Apply tape.flags['disabled_opcode_policy'] to a flag-gated op
        that is not active: 'nop' treats it as an unassigned NOP, 'fail'
        raises DisabledOpcodeError, and 'success' runs OP_SUCCESS.
    """
    policy = tape.flags.get('disabled_opcode_policy', 'nop')

    match policy:
        case 'nop':
            NOP(tape, stack, cache)
        case 'fail':
            raise DisabledOpcodeError(f'{name} disabled')
        case 'success':
            OP_SUCCESS(tape, stack, cache)
        case _:
            raise ScriptExecutionError(
                f'unrecognized disabled_opcode_policy: {policy}'
            )

def NOP(tape: Tape, stack: Stack, cache: dict) -> None:
    """Placeholder for an unassigned byte code. Does nothing unless the
        discourage_upgradable_nops flag is set, in which case it raises
        ScriptExecutionError. Useful for later soft-forks by redefining
        byte codes.
    """
    sert(not tape.flags.get('discourage_upgradable_nops', False),
         'upgradable NOP discouraged')


OP_PAIRCOMMIT_CODE = 0xcd

# byte code => flag that activates it
flag_gated_opcodes = {
    OP_PAIRCOMMIT_CODE: 'pair_commit',
}

opcodes = [
    (0x00, 'OP_0', OP_0),
    *[(n, f'OP_PUSHBYTES_{n}', _make_OP_PUSHBYTES(n)) for n in range(1, 0x4c)],
    (0x4c, 'OP_PUSHDATA1', OP_PUSHDATA1),
    (0x4d, 'OP_PUSHDATA2', OP_PUSHDATA2),
    (0x4e, 'OP_PUSHDATA4', OP_PUSHDATA4),
    (0x4f, 'OP_1NEGATE', OP_1NEGATE),
    *[(0x50 + n, f'OP_{n}', _make_OP_N(n)) for n in range(1, 17)],
    (0x61, 'OP_NOP', OP_NOP),
    (0x69, 'OP_VERIFY', OP_VERIFY),
    (0x6a, 'OP_RETURN', OP_RETURN),
    (0x75, 'OP_DROP', OP_DROP),
    (0x76, 'OP_DUP', OP_DUP),
    (0x7c, 'OP_SWAP', OP_SWAP),
    (0x82, 'OP_SIZE', OP_SIZE),
    (0x87, 'OP_EQUAL', OP_EQUAL),
    (0x88, 'OP_EQUALVERIFY', OP_EQUALVERIFY),
    (0xa8, 'OP_SHA256', OP_SHA256),
    (OP_PAIRCOMMIT_CODE, 'OP_PAIRCOMMIT', OP_PAIRCOMMIT),
]
opcodes: dict[int, tuple[str, Callable]] = {
    code: (name, function) for code, name, function in opcodes
}

nopcodes = {}

for i in range(256):
    if i not in opcodes:
        nopcodes[i] = (f'NOP{i}', NOP)

opcodes_inverse = {
    opcodes[key][0]: (key, opcodes[key][1]) for key in opcodes
}

opcode_aliases = {
    k[3:]: k for k, _ in opcodes_inverse.items()
}

opcode_aliases['OP_FALSE'] = 'OP_0'
opcode_aliases['FALSE'] = 'OP_0'
opcode_aliases['OP_TRUE'] = 'OP_1'
opcode_aliases['TRUE'] = 'OP_1'
opcode_aliases['OP_EQUAL_VERIFY'] = 'OP_EQUALVERIFY'
opcode_aliases['EQUAL_VERIFY'] = 'OP_EQUALVERIFY'
opcode_aliases['OP_PC'] = 'OP_PAIRCOMMIT'
opcode_aliases['PC'] = 'OP_PAIRCOMMIT'
opcode_aliases['OP_SUCCESS205'] = 'OP_PAIRCOMMIT'

nopcodes_inverse = {
    nopcodes[key][0]: (key, nopcodes[key][1]) for key in nopcodes
}

# flags are intended to change how specific opcodes function; they are
# supplied per evaluation by the caller, these are only the defaults
flags = {
    'pair_commit': False,
    'disabled_opcode_policy': 'nop',
    'discourage_upgradable_nops': False,
}

disabled_opcode_policies = ('nop', 'fail', 'success')


def add_opcode(code: int, name: str, function: Callable) -> None:
    """Adds an OP implementation with the code, name, and function. The
        code must be an unassigned NOP placeholder.
    """
    tert(type(code) is int, 'code must be int')
    tert(type(name) is str, 'name must be str')
    tert(callable(function), 'function must be callable')
    vert(code not in opcodes,
         f'{code} already assigned to {opcodes.get(code, ("",))[0]}')
    vert(0 <= code < 256, 'code must be between 0 and 255')
    vert(name[:3].upper() == 'OP_', 'name must start with OP_')
    name = name.upper()
    vert(name not in opcodes_inverse, f'{name} already assigned')
    opcodes[code] = (name, function)
    opcodes_inverse[name] = (code, function)

    if code in nopcodes:
        nopname = nopcodes[code][0]
        del nopcodes[code]
        del nopcodes_inverse[nopname]

def add_alias(alias: str, op_name: str) -> None:
    """Adds an alias for an OP."""
    tert(type(alias) is str, "alias must be str")
    tert(type(op_name) is str, "op_name must be str")
    alias = alias.upper()
    op_name = op_name.upper()
    vert(op_name in opcodes_inverse,
         f'op_name must be a valid OP name; "{op_name}" unrecognized')
    vert(alias not in opcode_aliases,
         f'alias "{alias}" already in use for {opcode_aliases.get(alias, "")}')
    vert(alias.replace('_', '').isalnum(),
         f'alias must be alphanumeric; "{alias}" is invalid')
    opcode_aliases[alias] = op_name

def set_tape_flags(tape: Tape, additional_flags: dict = {}) -> Tape:
    """Sets the default flags not already set on the tape, then any
        additional_flags. Raises ValueError for an unrecognized
        disabled_opcode_policy.
    """
    for key in flags:
        if key not in tape.flags:
            tape.flags[key] = flags[key]
    for key in additional_flags:
        if type(key) in (str, int):
            tape.flags[key] = additional_flags[key]
    vert(tape.flags['disabled_opcode_policy'] in disabled_opcode_policies,
         f'disabled_opcode_policy must be one of {disabled_opcode_policies}')
    return tape

def has_inactive_gated_op(tape: Tape) -> bool:
    """Decode the rest of the tape without executing it and report
        whether a flag-gated op whose flag is not set sits at an op
        position. Push data is skipped; decoding stops at a truncated
        push.
    """
    data, index = tape.data, tape.pointer
    pushdata_widths = {0x4c: 1, 0x4d: 2, 0x4e: 4}

    while index < len(data):
        op_code = data[index]
        index += 1
        if op_code in flag_gated_opcodes:
            if not tape.flags.get(flag_gated_opcodes[op_code], False):
                return True
        elif 0 < op_code < 0x4c:
            index += op_code
        elif op_code in pushdata_widths:
            width = pushdata_widths[op_code]
            if index + width > len(data):
                return False
            size = int.from_bytes(data[index:index+width], 'little')
            index += width + size

    return False

def run_tape(tape: Tape, stack: Stack, cache: dict,
             additional_flags: dict = {}) -> None:
    """Run the given tape using the stack and cache. Under the
        'success' disabled_opcode_policy, an inactive flag-gated op
        anywhere in the byte code ends the script successfully before
        anything executes.
    """
    tape = set_tape_flags(tape, additional_flags)
    if tape.flags['disabled_opcode_policy'] == 'success' and \
            has_inactive_gated_op(tape):
        return OP_SUCCESS(tape, stack, cache)

    while not tape.has_terminated():
        op_code = int.from_bytes(tape.read(1), 'big')
        if op_code in opcodes:
            op = opcodes[op_code][1]
        else:
            op = nopcodes[op_code][1]
        op(tape, stack, cache)

def run_script(script: bytes|ScriptProtocol, cache_vals: dict = {},
               additional_flags: dict = {}) -> tuple[Tape, Stack, dict]:
    """Run the given script byte code with a fresh Tape and Stack.
        Returns the tape, stack, and cache. Raises ScriptExecutionError
        if the script fails.
    """
    tert(type(script) is bytes or isinstance(script, ScriptProtocol),
         'script must be bytes or ScriptProtocol implementation')
    script = bytes(script)
    tape = Tape(script)
    stack = Stack()
    cache = {**cache_vals}
    run_tape(tape, stack, cache, additional_flags=additional_flags)
    return (tape, stack, cache)

def run_auth_script(script: bytes|ScriptProtocol, cache_vals: dict = {},
                    additional_flags: dict = {}) -> bool:
    """Run the given auth script byte code. Returns True iff no
        ScriptExecutionError was raised and either OP_SUCCESS ran or the
        stack holds a single true value after script execution;
        otherwise, returns False.
    """
    try:
        tape, stack, cache = run_script(
            script, cache_vals, additional_flags=additional_flags
        )
    except ScriptExecutionError:
        return False

    if cache.get('success', False):
        return True

    return tape.has_terminated() and len(stack) == 1 and \
        bytes_to_bool(stack.peek())
