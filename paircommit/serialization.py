from .errors import tert, vert
import struct


MAX_COMPACT_SIZE = 0xffffffffffffffff

def compact_size(number: int) -> bytes:
    """Encode a non-negative int as a canonical CompactSize: 1 byte
        below 0xfd, otherwise a marker byte (0xfd, 0xfe, or 0xff)
        followed by a 2, 4, or 8 byte little-endian uint.
    """
    tert(type(number) is int, 'number must be int')
    vert(0 <= number <= MAX_COMPACT_SIZE,
         'number must be between 0 and 2**64-1')

    if number < 0xfd:
        return struct.pack('<B', number)
    if number <= 0xffff:
        return b'\xfd' + struct.pack('<H', number)
    if number <= 0xffffffff:
        return b'\xfe' + struct.pack('<I', number)
    return b'\xff' + struct.pack('<Q', number)

def read_compact_size(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a CompactSize starting at offset. Returns the value and
        the number of bytes consumed. Raises ValueError for truncated
        data or for a non-canonical encoding.
    """
    tert(type(data) is bytes, 'data must be bytes')
    vert(0 <= offset < len(data), 'no CompactSize to read at offset')
    marker = data[offset]

    if marker < 0xfd:
        return (marker, 1)

    fmt, minimum = {
        0xfd: ('<H', 0xfd),
        0xfe: ('<I', 0x10000),
        0xff: ('<Q', 0x100000000),
    }[marker]
    width = struct.calcsize(fmt)
    vert(offset + 1 + width <= len(data), 'truncated CompactSize')
    number = struct.unpack(fmt, data[offset+1:offset+1+width])[0]
    vert(number >= minimum, 'non-canonical CompactSize')

    return (number, 1 + width)

def ser_string(data: bytes) -> bytes:
    """Frame a byte string by prefixing its CompactSize length."""
    tert(type(data) is bytes, 'data must be bytes')
    return compact_size(len(data)) + data

def deser_string(data: bytes, offset: int = 0) -> tuple[bytes, int]:
    """Read a CompactSize-framed byte string starting at offset. Returns
        the string and the number of bytes consumed.
    """
    size, advance = read_compact_size(data, offset)
    start = offset + advance
    vert(start + size <= len(data), 'truncated string')
    return (data[start:start+size], advance + size)
