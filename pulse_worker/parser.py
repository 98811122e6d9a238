"""Heart Rate Measurement (0x2A37) notification decoding."""

from .errors import DecodeError

# Bit 0 of the flags byte: HR value format (0 = uint8, 1 = uint16)
FLAG_HR_16BIT = 0b1


def decode_heart_rate(data: bytes) -> int:
    """Decode the BPM value from a Heart Rate Measurement notification.

    Only the flags byte and the heart rate value field are read; any
    trailing fields (energy expended, RR intervals) are ignored.

    Args:
        data: Raw bytes from the HR measurement characteristic

    Returns:
        Heart rate in beats per minute (0-65535)

    Raises:
        DecodeError: If data is too short for the format the flags announce
    """
    if not data:
        raise DecodeError("Empty HR data received")

    flags = data[0]
    is_16_bit = flags & FLAG_HR_16BIT == FLAG_HR_16BIT

    min_len = 1 + (2 if is_16_bit else 1)
    if len(data) < min_len:
        raise DecodeError(f"HR data too short: {len(data)} bytes, need {min_len}")

    if is_16_bit:
        return int.from_bytes(data[1:3], "little")
    return data[1]
