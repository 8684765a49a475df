"""Variable-length integer encoding for database key suffixes.

An n-byte encoding starts with n-1 one bits followed by a zero bit (UTF-8
style), leaving 7n payload bits. Nine-byte encodings start with 0xff and carry
the value in the following eight bytes.

    0 to 2^7-1:   1 byte   0xxxxxxx
    up to 2^14-1: 2 bytes  10xxxxxx xxxxxxxx
    up to 2^21-1: 3 bytes  110xxxxx xxxxxxxx xxxxxxxx
    ...
    up to 2^63-1: 9 bytes  11111111 xxxxxxxx * 8
"""

_MAX_BYTES = 9


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer below 2^63.

    Raises:
        ValueError: If value is negative or too large
    """
    if value < 0:
        raise ValueError(f"Cannot encode negative value: {value}")
    if value >= (1 << 63):
        raise ValueError(f"Value {value} exceeds maximum (2^63-1)")

    byte_count = 1
    while byte_count < _MAX_BYTES - 1 and value >= (1 << (7 * byte_count)):
        byte_count += 1
    if value >= (1 << (7 * byte_count)):
        byte_count = _MAX_BYTES

    leading_ones = min(byte_count - 1, 8)
    prefix = (0xff << (8 - leading_ones)) & 0xff
    encoded = value.to_bytes(byte_count, 'big')
    return bytes([encoded[0] | prefix]) + encoded[1:]


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a varint starting at offset.

    Returns:
        Tuple of (decoded_value, bytes_consumed)

    Raises:
        ValueError: If data is truncated
    """
    if offset >= len(data):
        raise ValueError("Offset exceeds data length")

    first_byte = data[offset]
    leading_ones = 0
    while leading_ones < 8 and first_byte & (0x80 >> leading_ones):
        leading_ones += 1

    if leading_ones == 8:
        byte_count = _MAX_BYTES
        value = 0
    else:
        byte_count = leading_ones + 1
        value = first_byte & ((1 << (7 - leading_ones)) - 1)

    if offset + byte_count > len(data):
        raise ValueError(f"Insufficient data: need {byte_count} bytes, have {len(data) - offset}")

    for byte in data[offset + 1:offset + byte_count]:
        value = (value << 8) | byte

    return value, byte_count
