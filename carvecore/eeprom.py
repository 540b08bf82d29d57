"""Byte-addressed EEPROM with split erase/write programming and checksummed blocks."""

from __future__ import annotations

import enum

ERASED = 0xFF


class ChecksumError(ValueError):
    """Raised when a checksummed block does not match its stored checksum."""


class ProgramMode(enum.Enum):
    """The programming operation used to store a byte."""

    ERASE_WRITE = "erase+write"
    ERASE_ONLY = "erase"
    WRITE_ONLY = "write"


def _checksum_step(checksum: int, byte: int) -> int:
    # The rotate is a logical OR on the device, so it collapses to 0 or 1.
    # Stored checksums rely on this exact sequence.
    checksum = 1 if checksum else 0
    return (checksum + byte) & 0xFF


class Eeprom:
    """An in-memory EEPROM of ``size`` bytes, erased (0xFF) at creation."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("EEPROM size must be positive")
        self._cells = bytearray([ERASED] * size)

    def __len__(self) -> int:
        return len(self._cells)

    def _check_range(self, addr: int, count: int = 1) -> None:
        if addr < 0 or addr + count > len(self._cells):
            raise IndexError(f"EEPROM address {addr} (+{count}) out of range")

    def get_char(self, addr: int) -> int:
        """Return the byte stored at ``addr``."""
        self._check_range(addr)
        return self._cells[addr]

    def put_char(self, addr: int, new_value: int) -> ProgramMode | None:
        """Store one byte, choosing the cheapest programming mode.

        Returns the mode used, or None when the cell already holds the value.
        """
        self._check_range(addr)
        new_value &= 0xFF
        old_value = self._cells[addr]
        diff_mask = old_value ^ new_value
        if diff_mask & new_value:
            # Some bits must be erased back to 1.
            if new_value != ERASED:
                self._cells[addr] = new_value
                return ProgramMode.ERASE_WRITE
            self._cells[addr] = ERASED
            return ProgramMode.ERASE_ONLY
        if diff_mask:
            # Only 1 -> 0 transitions: program without erasing.
            self._cells[addr] = old_value & new_value
            return ProgramMode.WRITE_ONLY
        return None

    def write_with_checksum(self, destination: int, data: bytes) -> None:
        """Write ``data`` followed by its checksum byte."""
        self._check_range(destination, len(data) + 1)
        checksum = 0
        for offset, byte in enumerate(data):
            checksum = _checksum_step(checksum, byte)
            self.put_char(destination + offset, byte)
        self.put_char(destination + len(data), checksum)

    def read_with_checksum(self, source: int, size: int) -> bytes:
        """Read ``size`` bytes and verify the checksum byte that follows them."""
        self._check_range(source, size + 1)
        data = bytes(self._cells[source:source + size])
        checksum = 0
        for byte in data:
            checksum = _checksum_step(checksum, byte)
        if checksum != self._cells[source + size]:
            raise ChecksumError(f"checksum mismatch in block at {source}")
        return data

    def write(self, destination: int, data: bytes) -> None:
        """Write ``data`` without a checksum."""
        self._check_range(destination, len(data))
        for offset, byte in enumerate(data):
            self.put_char(destination + offset, byte)

    def read(self, source: int, size: int) -> bytes:
        """Read ``size`` bytes without a checksum."""
        self._check_range(source, size)
        return bytes(self._cells[source:source + size])