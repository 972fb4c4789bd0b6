"""
Portable Executable header inspection.

Reading the machine type out of python.exe is much cheaper than starting the
interpreter to ask for its word size, and never executes untrusted code.
Only the two fields needed are read; magic numbers are not validated.
"""

import logging
import struct
from os import PathLike

from pyget.core.errors import UnrecognizedFormat
from pyget.models.target import Bitness

logger = logging.getLogger(__name__)

HEADER_SIZE = 4096
PE_POINTER_OFFSET = 60  # last field of the 64-byte DOS header
MACHINE_OFFSET = 4  # after the "PE\0\0" signature

MACHINE_I386 = 0x014C
MACHINE_AMD64 = 0x8664

_MACHINE_BITNESS = {
    MACHINE_I386: Bitness.X86,
    MACHINE_AMD64: Bitness.X64,
}


def machine_type(header: bytes) -> int:
    """Return the COFF machine type stored in a PE header buffer."""
    try:
        (pe_offset,) = struct.unpack_from("<i", header, PE_POINTER_OFFSET)
        if pe_offset < 0:
            raise UnrecognizedFormat(f"Negative PE header offset: {pe_offset}")
        (machine,) = struct.unpack_from("<H", header, pe_offset + MACHINE_OFFSET)
    except struct.error as e:
        raise UnrecognizedFormat(f"Header too short: {e}") from e
    return machine


def word_size_from_header(header: bytes) -> Bitness:
    """Map a PE header buffer to the word size of its target machine."""
    machine = machine_type(header)
    try:
        return _MACHINE_BITNESS[machine]
    except KeyError:
        raise UnrecognizedFormat(f"Unknown machine type: 0x{machine:04x}") from None


def detect_word_size(executable: str | PathLike) -> Bitness:
    """
    Determine whether an executable targets a 32-bit or 64-bit machine.

    Args:
        executable: Path to a Windows PE file such as python.exe.

    Raises:
        UnrecognizedFormat: If the machine type is neither i386 nor AMD64.
    """
    with open(executable, "rb") as f:
        header = f.read(HEADER_SIZE)

    bitness = word_size_from_header(header)
    logger.debug(f"{executable}: {bitness.value}-bit")
    return bitness
