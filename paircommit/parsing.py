from .errors import yert, vert
from .classes import Tape
from .functions import (
    int_to_bytes,
    opcodes,
    opcodes_inverse,
    opcode_aliases,
    nopcodes,
    nopcodes_inverse,
)


def is_hex(s: str) -> bool:
    """Checks if a string is made of an even number of valid hexadecimal
        chars.
    """
    if len(s) % 2:
        return False
    try:
        bytes.fromhex(s)
        return True
    except ValueError:
        return False

def is_int(s: str) -> bool:
    """Checks if a string is a base 10 signed int."""
    digits = s[1:] if s[:1] == '-' else s
    return len(digits) > 0 and digits.isdigit()

def get_symbols(script: str) -> list[str]:
    """Split the script source into symbols. String values are kept
        verbatim, whitespace included, up to the closing quote. Raises
        SyntaxError for unterminated string values.
    """
    symbols = []
    index = 0

    while index < len(script):
        if script[index].isspace():
            index += 1
            continue

        if script[index:index+2] in ('s"', "s'"):
            quote = script[index+1]
            end = script.find(quote, index + 2)
            yert(end != -1, 'unterminated string encountered')
            symbols.append(script[index:end+1])
            index = end + 1
            continue

        end = index
        while end < len(script) and not script[end].isspace():
            end += 1
        token = script[index:end]
        index = end

        if token[:2].lower() == '0x' and is_hex(token[2:]):
            symbols.append('0x' + token[2:].lower())
        elif token[0] == 'x' and is_hex(token[1:]):
            symbols.append(token)
        elif token[0] == 'd' and is_int(token[1:]):
            symbols.append(token)
        else:
            symbols.append(token.upper())

    return symbols

def push_data(data: bytes) -> bytes:
    """Return the byte code that pushes data using the smallest push op
        for its length.
    """
    size = len(data)

    if size == 0:
        return bytes([opcodes_inverse['OP_0'][0]])
    if size < opcodes_inverse['OP_PUSHDATA1'][0]:
        return bytes([size]) + data
    if size <= 0xff:
        return bytes([opcodes_inverse['OP_PUSHDATA1'][0]]) + \
            size.to_bytes(1, 'little') + data
    if size <= 0xffff:
        return bytes([opcodes_inverse['OP_PUSHDATA2'][0]]) + \
            size.to_bytes(2, 'little') + data

    vert(size <= 0xffffffff, 'data too large to push')
    return bytes([opcodes_inverse['OP_PUSHDATA4'][0]]) + \
        size.to_bytes(4, 'little') + data

def push_number(number: int) -> bytes:
    """Return the byte code that pushes number as a minimal script
        number: OP_0, OP_1NEGATE, or OP_1-OP_16 where possible.
    """
    if number == 0:
        return bytes([opcodes_inverse['OP_0'][0]])
    if number == -1:
        return bytes([opcodes_inverse['OP_1NEGATE'][0]])
    if 1 <= number <= 16:
        return bytes([opcodes_inverse[f'OP_{number}'][0]])
    return push_data(int_to_bytes(number))

_explicit_pushes = {
    'OP_PUSHDATA1': 1,
    'OP_PUSHDATA2': 2,
    'OP_PUSHDATA4': 4,
}

def resolve_op_name(symbol: str) -> str|None:
    """Return the canonical OP/NOP name for the symbol or None."""
    if symbol in opcodes_inverse or symbol in nopcodes_inverse:
        return symbol
    if symbol in opcode_aliases:
        return opcode_aliases[symbol]
    return None

def parse_next(symbols: list[str], symbol_index: int) -> tuple[int, bytes]:
    """Parse the symbol at symbol_index. Returns the number of symbols
        consumed and the byte code they produced.
    """
    symbol = symbols[symbol_index]

    if symbol[:2] in ('s"', "s'"):
        yert(len(symbol) > 2 and symbol[-1] == symbol[1],
             f'Error at symbol {symbol_index}: malformed string {symbol}')
        return (1, push_data(symbol[2:-1].encode('utf-8')))

    if symbol[:2] == '0x':
        return (1, bytes.fromhex(symbol[2:]))

    if symbol[0] == 'x' and is_hex(symbol[1:]):
        return (1, push_data(bytes.fromhex(symbol[1:])))

    if symbol[0] == 'd' and is_int(symbol[1:]):
        return (1, push_number(int(symbol[1:])))

    name = resolve_op_name(symbol)
    yert(name is not None,
         f'Error at symbol {symbol_index}: unrecognized symbol {symbol}')

    if name in nopcodes_inverse:
        return (1, bytes([nopcodes_inverse[name][0]]))

    code = bytes([opcodes_inverse[name][0]])

    if name in _explicit_pushes and symbol_index + 1 < len(symbols):
        val = symbols[symbol_index + 1]
        if val[0] == 'x' and is_hex(val[1:]):
            data = bytes.fromhex(val[1:])
            width = _explicit_pushes[name]
            vert(len(data) < 2**(8*width),
                 f'Error at symbol {symbol_index}: {name} value too large')
            return (2, code + len(data).to_bytes(width, 'little') + data)

    return (1, code)

def assemble(symbols: list[str]) -> bytes:
    """Assemble the symbols into bytecode. Raises SyntaxError and
        ValueError for invalid syntax or values.
    """
    index = 0
    code = []

    while index < len(symbols):
        advance, part = parse_next(symbols, index)
        index += advance
        code.append(part)

    return b''.join(code)

def compile_script(script: str) -> bytes:
    """Compile the given human-readable script into byte code. Bubbles
        any SyntaxError or ValueError raised by assemble.
    """
    vert(type(script) is str, 'input script must be str')
    symbols = get_symbols(script)
    return assemble(symbols)


def decompile_script(script: bytes) -> list[str]:
    """Decompile the byte code into human-readable script, one symbol
        per line. Raises ScriptExecutionError for a truncated push.
    """
    vert(type(script) is bytes, 'input script must be bytes')
    tape = Tape(script)
    code_lines = []

    while not tape.has_terminated():
        op_code = tape.read(1)[0]
        op_name = opcodes[op_code][0] if op_code in opcodes else nopcodes[op_code][0]

        match op_name:
            case 'OP_PUSHDATA1' | 'OP_PUSHDATA2' | 'OP_PUSHDATA4':
                # explicit pushes of form [size, little-endian] [val]
                width = _explicit_pushes[op_name]
                size = int.from_bytes(tape.read(width), 'little')
                val = tape.read(size)
                code_lines.append(f'{op_name} x{val.hex()}')
            case _:
                if op_name.startswith('OP_PUSHBYTES_'):
                    # the op code is the size of the value
                    val = tape.read(op_code)
                    code_lines.append(f'x{val.hex()}')
                else:
                    code_lines.append(op_name)

    return code_lines
