"""Multi-resolution ICO container encoder and validator.

An ICO file is a 6-byte header, one 16-byte directory record per image and
the image payloads packed back to back. Every multi-byte field is
little-endian. Width and height are single bytes, so 256 is stored as 0.
"""

import struct
from collections.abc import Sequence
from dataclasses import dataclass

ICO_HEADER_FORMAT = "<HHH"
ICO_DIRECTORY_ENTRY_FORMAT = "<BBBBHHII"
ICO_HEADER_SIZE = struct.calcsize(ICO_HEADER_FORMAT)
ICO_DIRECTORY_ENTRY_SIZE = struct.calcsize(ICO_DIRECTORY_ENTRY_FORMAT)

ICO_TYPE_ICON = 1
ICO_COLOR_PLANES = 1
ICO_BITS_PER_PIXEL = 32
MAX_ICON_SIZE = 256
MAX_PAYLOAD_LENGTH = 0xFFFFFFFF


class IcoError(ValueError):
    """Base class for ICO encoding and validation errors."""

    pass


class EmptyInputError(IcoError):
    """Raised when no image entries are given to the encoder."""

    pass


class InvalidEntryError(IcoError):
    """Raised when an image entry has a bad size or an empty payload."""

    def __init__(self, index: int, size: int, reason: str):
        self.index = index
        self.size = size
        super().__init__(f"Invalid icon entry {index} (size={size}): {reason}")


class IcoFormatError(IcoError):
    """Raised when a buffer is not a well-formed ICO container."""

    pass


@dataclass(frozen=True)
class ImageEntry:
    """One rasterized size variant, already compressed (PNG)."""

    size: int
    data: bytes


@dataclass(frozen=True)
class IconDirectoryEntry:
    """A decoded 16-byte ICO directory record."""

    width: int
    height: int
    color_count: int
    reserved: int
    planes: int
    bit_count: int
    size_in_bytes: int
    offset: int

    @property
    def pixel_width(self) -> int:
        return self.width or MAX_ICON_SIZE

    @property
    def pixel_height(self) -> int:
        return self.height or MAX_ICON_SIZE

    @property
    def end(self) -> int:
        return self.offset + self.size_in_bytes


@dataclass(frozen=True)
class IconImage:
    """A payload recovered from an ICO container."""

    size: int
    data: bytes
    entry: IconDirectoryEntry


def ico_size_byte(size: int) -> int:
    """Return the directory width/height byte for a pixel size (256 -> 0)."""
    return 0 if size == MAX_ICON_SIZE else size


def _check_entries(entries: Sequence[ImageEntry]) -> None:
    if not entries:
        raise EmptyInputError("At least one image entry is required")

    for index, entry in enumerate(entries):
        if not isinstance(entry.size, int) or isinstance(entry.size, bool):
            raise InvalidEntryError(index, entry.size, "size must be an integer")
        if not 1 <= entry.size <= MAX_ICON_SIZE:
            raise InvalidEntryError(index, entry.size, f"size must be between 1 and {MAX_ICON_SIZE}")
        if not entry.data:
            raise InvalidEntryError(index, entry.size, "payload is empty")
        if len(entry.data) > MAX_PAYLOAD_LENGTH:
            raise InvalidEntryError(index, entry.size, "payload does not fit in 32 bits")


def encode_ico(entries: Sequence[ImageEntry]) -> bytes:
    """Pack PNG payloads into a single ICO container.

    Directory records follow the input order and payloads are placed
    contiguously right after the directory, so each record's offset is
    the running sum of the preceding payload lengths.
    """
    _check_entries(entries)

    count = len(entries)
    directory_size = ICO_DIRECTORY_ENTRY_SIZE * count
    total_size = ICO_HEADER_SIZE + directory_size + sum(len(e.data) for e in entries)

    buffer = bytearray(total_size)
    struct.pack_into(ICO_HEADER_FORMAT, buffer, 0, 0, ICO_TYPE_ICON, count)

    offset = ICO_HEADER_SIZE + directory_size
    for index, entry in enumerate(entries):
        length = len(entry.data)
        struct.pack_into(
            ICO_DIRECTORY_ENTRY_FORMAT,
            buffer,
            ICO_HEADER_SIZE + ICO_DIRECTORY_ENTRY_SIZE * index,
            ico_size_byte(entry.size),
            ico_size_byte(entry.size),
            0,  # no palette
            0,
            ICO_COLOR_PLANES,
            ICO_BITS_PER_PIXEL,
            length,
            offset,
        )
        buffer[offset : offset + length] = entry.data
        offset += length

    return bytes(buffer)


def read_directory(data: bytes) -> list[IconDirectoryEntry]:
    """Parse the header and directory of an ICO container."""
    if len(data) < ICO_HEADER_SIZE:
        raise IcoFormatError(f"Buffer too short for ICO header ({len(data)} bytes)")

    reserved, image_type, count = struct.unpack_from(ICO_HEADER_FORMAT, data, 0)
    if reserved != 0:
        raise IcoFormatError(f"Reserved header field must be 0, got {reserved}")
    if image_type != ICO_TYPE_ICON:
        raise IcoFormatError(f"Header type must be {ICO_TYPE_ICON} (icon), got {image_type}")

    directory_end = ICO_HEADER_SIZE + ICO_DIRECTORY_ENTRY_SIZE * count
    if len(data) < directory_end:
        raise IcoFormatError(f"Directory for {count} images is truncated")

    return [
        IconDirectoryEntry(
            *struct.unpack_from(
                ICO_DIRECTORY_ENTRY_FORMAT,
                data,
                ICO_HEADER_SIZE + ICO_DIRECTORY_ENTRY_SIZE * index,
            )
        )
        for index in range(count)
    ]


def validate_ico(data: bytes) -> list[IconImage]:
    """Check an ICO container's bookkeeping and return its images in order.

    Beyond the header checks, every payload must lie inside the buffer and
    payloads must be packed without gaps, overlaps or trailing bytes, which
    is the layout encode_ico produces.
    """
    entries = read_directory(data)
    total_length = len(data)

    expected_offset = ICO_HEADER_SIZE + ICO_DIRECTORY_ENTRY_SIZE * len(entries)
    images = []
    for index, entry in enumerate(entries):
        if entry.end > total_length:
            raise IcoFormatError(
                f"Image {index} ends at byte {entry.end}, past buffer length {total_length}"
            )
        if entry.offset != expected_offset:
            raise IcoFormatError(
                f"Image {index} starts at byte {entry.offset}, expected {expected_offset}"
            )

        payload = data[entry.offset : entry.end]
        if len(payload) != entry.size_in_bytes:
            raise IcoFormatError(f"Image {index} payload length does not match its record")

        images.append(IconImage(size=entry.pixel_width, data=payload, entry=entry))
        expected_offset = entry.end

    if expected_offset != total_length:
        raise IcoFormatError(f"{total_length - expected_offset} trailing bytes after last image")

    return images
