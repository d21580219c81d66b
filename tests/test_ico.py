"""Tests for the ICO container encoder and validator."""

import io
import struct

import pytest
from PIL import Image

from favicon_studio.services.ico import (
    ICO_DIRECTORY_ENTRY_SIZE,
    ICO_HEADER_SIZE,
    EmptyInputError,
    IcoError,
    IcoFormatError,
    ImageEntry,
    InvalidEntryError,
    encode_ico,
    ico_size_byte,
    read_directory,
    validate_ico,
)


def make_entries(*sizes: int) -> list[ImageEntry]:
    """Entries whose payload length equals the size, filled with a marker byte."""
    return [ImageEntry(size=size, data=bytes([index + 1]) * size) for index, size in enumerate(sizes)]


class TestEncodeIcoLayout:
    """Byte-level layout of encoded containers."""

    def test_two_entry_scenario(self):
        """16 and 32 byte payloads should produce the exact documented layout."""
        first = bytes(range(16))
        second = bytes(range(100, 132))
        data = encode_ico([ImageEntry(16, first), ImageEntry(32, second)])

        assert len(data) == 86
        assert data[0:6] == bytes.fromhex("000001000200")

        assert data[6] == 16
        assert data[7] == 16
        assert data[8] == 0
        assert data[9] == 0
        assert struct.unpack_from("<HHII", data, 10) == (1, 32, 16, 38)

        assert data[22] == 32
        assert data[23] == 32
        assert struct.unpack_from("<HHII", data, 26) == (1, 32, 32, 54)

        assert data[38:54] == first
        assert data[54:86] == second

    def test_header_fields(self):
        """Header should be reserved=0, type=1, count=N, little-endian."""
        data = encode_ico(make_entries(16, 32, 48))
        assert struct.unpack_from("<HHH", data, 0) == (0, 1, 3)

    def test_total_length_has_no_padding(self):
        """Total length should be header + directory + payloads exactly."""
        entries = make_entries(16, 32, 48, 64, 128)
        data = encode_ico(entries)
        expected = 6 + 16 * len(entries) + sum(len(e.data) for e in entries)
        assert len(data) == expected

    def test_offsets_strictly_increasing_and_contiguous(self):
        """Offsets should follow input order with no gaps or overlaps."""
        entries = make_entries(48, 16, 256, 32)
        data = encode_ico(entries)
        records = read_directory(data)

        assert records[0].offset == ICO_HEADER_SIZE + ICO_DIRECTORY_ENTRY_SIZE * len(entries)
        for previous, current in zip(records, records[1:]):
            assert current.offset > previous.offset
            assert current.offset == previous.end
        assert records[-1].end == len(data)

    def test_size_256_written_as_zero(self):
        """Size 256 should be stored as 0 in width and height."""
        data = encode_ico([ImageEntry(256, b"\x89PNG")])
        assert data[6] == 0
        assert data[7] == 0

    def test_size_48_written_as_is(self):
        """Sizes below 256 should be stored unchanged."""
        data = encode_ico([ImageEntry(48, b"\x89PNG")])
        assert data[6] == 48
        assert data[7] == 48

    def test_directory_follows_input_order(self):
        """Entries should not be re-sorted by size."""
        data = encode_ico(make_entries(64, 16, 32))
        assert [record.width for record in read_directory(data)] == [64, 16, 32]

    def test_palette_planes_and_depth(self):
        """Every record should declare no palette, 1 plane and 32 bpp."""
        for record in read_directory(encode_ico(make_entries(16, 32, 256))):
            assert record.color_count == 0
            assert record.reserved == 0
            assert record.planes == 1
            assert record.bit_count == 32

    def test_encoding_is_deterministic(self):
        """Same ordered input should give byte-identical output."""
        entries = make_entries(16, 32, 48, 256)
        assert encode_ico(entries) == encode_ico(list(entries))

    def test_accepts_tuple_input(self):
        """Any sequence of entries should be accepted."""
        assert encode_ico(tuple(make_entries(16))) == encode_ico(make_entries(16))

    def test_ico_size_byte(self):
        """Only 256 maps to 0."""
        assert ico_size_byte(256) == 0
        assert ico_size_byte(255) == 255
        assert ico_size_byte(1) == 1


class TestEncodeIcoErrors:
    """Precondition failures."""

    def test_empty_input_rejected(self):
        """encode_ico([]) should raise EmptyInputError."""
        with pytest.raises(EmptyInputError):
            encode_ico([])

    @pytest.mark.parametrize("size", [0, -16, 257, 512])
    def test_out_of_range_size_rejected(self, size):
        """Sizes outside 1-256 should raise InvalidEntryError."""
        with pytest.raises(InvalidEntryError):
            encode_ico([ImageEntry(size, b"data")])

    def test_empty_payload_rejected(self):
        """An empty payload should raise InvalidEntryError."""
        with pytest.raises(InvalidEntryError):
            encode_ico([ImageEntry(16, b"")])

    def test_non_integer_size_rejected(self):
        """Non-integer sizes should raise InvalidEntryError."""
        with pytest.raises(InvalidEntryError):
            encode_ico([ImageEntry(16.0, b"data")])
        with pytest.raises(InvalidEntryError):
            encode_ico([ImageEntry(True, b"data")])

    def test_error_names_offending_entry(self):
        """The error should identify the bad entry's index and size."""
        entries = [ImageEntry(16, b"ok"), ImageEntry(32, b"ok"), ImageEntry(300, b"bad")]
        with pytest.raises(InvalidEntryError) as exc_info:
            encode_ico(entries)

        assert exc_info.value.index == 2
        assert exc_info.value.size == 300
        assert "2" in str(exc_info.value)
        assert "300" in str(exc_info.value)

    def test_bad_entry_after_good_ones_still_fails(self):
        """Validation should cover every entry before anything is written."""
        with pytest.raises(InvalidEntryError):
            encode_ico(make_entries(16, 32) + [ImageEntry(48, b"")])

    def test_errors_are_value_errors(self):
        """Callers handling ValueError should catch encoder errors."""
        assert issubclass(EmptyInputError, IcoError)
        assert issubclass(InvalidEntryError, IcoError)
        assert issubclass(IcoError, ValueError)


class TestValidateIco:
    """Round-trip validation of encoded containers."""

    def test_round_trip_recovers_sizes_and_payloads(self):
        """Validator should recover count, sizes and payloads in order."""
        entries = [
            ImageEntry(16, b"sixteen"),
            ImageEntry(256, b"two-five-six"),
            ImageEntry(48, b"forty-eight"),
        ]
        images = validate_ico(encode_ico(entries))

        assert len(images) == 3
        assert [image.size for image in images] == [16, 256, 48]
        assert [image.data for image in images] == [e.data for e in entries]
        assert images[1].entry.width == 0
        assert images[1].entry.pixel_height == 256

    def test_round_trip_single_entry(self):
        """A single-image container should validate."""
        images = validate_ico(encode_ico([ImageEntry(1, b"x")]))
        assert [(image.size, image.data) for image in images] == [(1, b"x")]

    def test_short_buffer(self):
        """Buffers shorter than the header are rejected."""
        with pytest.raises(IcoFormatError):
            validate_ico(b"\x00\x00\x01")

    def test_bad_reserved_field(self):
        """A non-zero reserved field is rejected."""
        data = bytearray(encode_ico(make_entries(16)))
        data[0] = 1
        with pytest.raises(IcoFormatError, match="Reserved"):
            validate_ico(bytes(data))

    def test_cursor_type_rejected(self):
        """Type 2 (cursor) is not an icon."""
        data = bytearray(encode_ico(make_entries(16)))
        struct.pack_into("<H", data, 2, 2)
        with pytest.raises(IcoFormatError, match="type"):
            validate_ico(bytes(data))

    def test_truncated_directory(self):
        """A count larger than the directory present is rejected."""
        data = encode_ico(make_entries(16))
        with pytest.raises(IcoFormatError, match="truncated"):
            validate_ico(data[:ICO_HEADER_SIZE + 8])

    def test_payload_past_end(self):
        """A record pointing past the buffer end is rejected."""
        data = encode_ico(make_entries(16, 32))
        with pytest.raises(IcoFormatError, match="past buffer length"):
            validate_ico(data[:-1])

    def test_gap_between_payloads(self):
        """Offsets that leave a gap are rejected."""
        data = bytearray(encode_ico(make_entries(16, 32)) + b"\x00")
        offset_field = ICO_HEADER_SIZE + ICO_DIRECTORY_ENTRY_SIZE + 12
        (offset,) = struct.unpack_from("<I", data, offset_field)
        struct.pack_into("<I", data, offset_field, offset + 1)
        with pytest.raises(IcoFormatError, match="expected"):
            validate_ico(bytes(data))

    def test_trailing_bytes(self):
        """Bytes after the last payload are rejected."""
        with pytest.raises(IcoFormatError, match="trailing"):
            validate_ico(encode_ico(make_entries(16)) + b"\x00\x00")


class TestPillowCompatibility:
    """Encoded containers should open in a real ICO reader."""

    def test_pillow_reads_png_entries(self, png_factory):
        """Pillow should list every size stored in the container."""
        entries = [ImageEntry(size, png_factory(size)) for size in (16, 32, 256)]
        icon = Image.open(io.BytesIO(encode_ico(entries)))

        assert icon.format == "ICO"
        assert icon.ico.sizes() == {(16, 16), (32, 32), (256, 256)}
        assert icon.size == (256, 256)
