# -*- coding: utf-8 -*-
#
# GPL License and Copyright Notice ============================================
#  This file is part of Wrye Bash.
#
#  Wrye Bash is free software: you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation, either version 3
#  of the License, or (at your option) any later version.
#
#  Wrye Bash is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with Wrye Bash.  If not, see <https://www.gnu.org/licenses/>.
#
#  Wrye Bash copyright (C) 2005-2009 Wrye, 2010-2023 Wrye Bash Team
#  https://github.com/wrye-bash
#
# =============================================================================
import struct
import zlib

import lz4.frame
import pytest

from ..bsa_compression import Codec, archive_codec, decompress_rec
from ..bsa_files import open as open_bsa
from ..exception import BSAContentError, BSADecompressionError, \
    BSADecompressionSizeError, UnknownCodecError
from .utils.bsa_builder import SAMPLE_FOLDERS, BsaAsset, build_bsa

_BUCKET = 'meshes\\clutter\\bucket.nif'
_BUCKET_DATA = SAMPLE_FOLDERS[0][1][0][1]

def _all_contents(raw):
    with open_bsa(raw) as bsa:
        return {f.path: f.read() for _folder, f in bsa.iter_files()}

def _expected_contents(folders=SAMPLE_FOLDERS):
    return {f'{folder}\\{name}': data for folder, assets in folders
            for name, data, *_rest in assets}

def _patch(raw, offset, fmt, *values):
    patched = bytearray(raw)
    struct.pack_into(fmt, patched, offset, *values)
    return bytes(patched)

class TestReadContent(object):
    @pytest.mark.parametrize('version', [103, 104, 105])
    @pytest.mark.parametrize('compressed', [False, True])
    def test_read_all(self, version, compressed):
        raw = build_bsa(SAMPLE_FOLDERS, version=version,
                        compressed=compressed).raw
        assert _all_contents(raw) == _expected_contents()

    @pytest.mark.parametrize('version', [104, 105])
    @pytest.mark.parametrize('compressed', [False, True])
    def test_read_embedded_names(self, version, compressed):
        """The embedded path in front of the data is skipped."""
        built = build_bsa(SAMPLE_FOLDERS, version=version,
                          compressed=compressed, embed_names=True)
        assert _all_contents(built.raw) == _expected_contents()
        # and it really is there
        bucket_start = built.data_offsets[_BUCKET]
        assert built.raw[bucket_start] == len(_BUCKET)
        assert built.raw[bucket_start + 1:bucket_start + 1 + len(
            _BUCKET)] == _BUCKET.encode('ascii')

    def test_embed_flag_ignored_for_oblivion(self):
        """v103 archives never have embedded names, even with the flag."""
        raw = build_bsa(SAMPLE_FOLDERS, version=103, embed_names=True).raw
        assert _all_contents(raw) == _expected_contents()

    @pytest.mark.parametrize('compressed', [False, True])
    def test_compression_toggle(self, compressed):
        """Toggled records invert the archive default."""
        folders = [('textures', [
            ('plain.dds', b'plain' * 100),
            BsaAsset('toggled.dds', b'toggled' * 100,
                     toggle_compression=True),
        ])]
        built = build_bsa(folders, compressed=compressed)
        with open_bsa(built.raw) as bsa:
            plain = bsa.find_file('textures\\plain.dds')
            toggled = bsa.find_file('textures\\toggled.dds')
            assert plain.compressed is compressed
            assert toggled.compressed is not compressed
            assert toggled.raw_size_field & 0x40000000
            assert toggled.stored_size == toggled.raw_size_field & 0x3FFFFFFF
            assert plain.read() == b'plain' * 100
            assert toggled.read() == b'toggled' * 100

    def test_big_endian_size_prefix(self):
        raw = build_bsa(SAMPLE_FOLDERS, compressed=True, big_endian=True).raw
        assert _all_contents(raw) == _expected_contents()

    def test_compressed_is_smaller(self):
        built = build_bsa(SAMPLE_FOLDERS, compressed=True)
        with open_bsa(built.raw) as bsa:
            bucket = bsa.find_file(_BUCKET)
            assert bucket.stored_size < len(_BUCKET_DATA)
            assert bucket.read() == _BUCKET_DATA

class TestCorruptContent(object):
    @pytest.mark.parametrize('version', [104, 105])
    def test_truncated_stream(self, version):
        """Shortening the size field of a compressed record cuts off the end
        of its stream."""
        built = build_bsa(SAMPLE_FOLDERS, version=version, compressed=True)
        size_offset = built.record_offsets[_BUCKET] + 8
        size, = struct.unpack_from('<I', built.raw, size_offset)
        raw = _patch(built.raw, size_offset, '<I', size - 1)
        with open_bsa(raw) as bsa:
            with pytest.raises(BSADecompressionError):
                bsa.find_file(_BUCKET).read()
            # other files are unaffected
            assert bsa.find_file('meshes\\clutter\\broom01.nif').read() == \
                   b'broom'

    def test_trailing_data(self):
        """A stream ending before the record does is corrupt as well."""
        folders = [('meshes', [('a.nif', b'abc' * 50)])]
        built = build_bsa(folders, compressed=True)
        # append garbage to the payload and grow the record to include it
        raw = built.raw + b'\x00\x01'
        size_offset = built.record_offsets['meshes\\a.nif'] + 8
        size, = struct.unpack_from('<I', raw, size_offset)
        raw = _patch(raw, size_offset, '<I', size + 2)
        with open_bsa(raw) as bsa:
            with pytest.raises(BSADecompressionError):
                bsa.find_file('meshes\\a.nif').read()

    def test_flipped_zlib_bit(self):
        """Flipping the final block bit of the deflate stream."""
        built = build_bsa(SAMPLE_FOLDERS, compressed=True)
        # size prefix, then the two bytes of the zlib header
        raw = built.flip_bit(built.data_offsets[_BUCKET] + 6, 0)
        with open_bsa(raw) as bsa:
            with pytest.raises(BSAContentError):
                bsa.find_file(_BUCKET).read()

    def test_flipped_lz4_magic(self):
        built = build_bsa(SAMPLE_FOLDERS, version=105, compressed=True)
        raw = built.flip_bit(built.data_offsets[_BUCKET] + 4, 3)
        with open_bsa(raw) as bsa:
            with pytest.raises(BSADecompressionError):
                bsa.find_file(_BUCKET).read()

    def test_flipped_uncompressed_bit(self):
        """Uncompressed records have no checksum - a flipped bit is only
        caught by comparing against a known checksum."""
        built = build_bsa(SAMPLE_FOLDERS)
        raw = built.flip_bit(built.data_offsets[_BUCKET] + 3, 5)
        with open_bsa(raw) as bsa:
            data = bsa.find_file(_BUCKET).read()
        assert len(data) == len(_BUCKET_DATA)
        assert zlib.crc32(data) != zlib.crc32(_BUCKET_DATA)

    def test_flipped_uncompressed_size_bit(self):
        """A flipped size bit that stays in bounds still opens and reads, it
        only shows up as a different length and checksum."""
        built = build_bsa(SAMPLE_FOLDERS)
        # lowest bit of the size field, clear for the 640 byte bucket
        raw = built.flip_bit(built.record_offsets[_BUCKET] + 8, 0)
        with open_bsa(raw) as bsa:
            data = bsa.find_file(_BUCKET).read()
        assert len(data) == len(_BUCKET_DATA) + 1
        assert zlib.crc32(data) != zlib.crc32(_BUCKET_DATA)

    @pytest.mark.parametrize('version', [104, 105])
    def test_size_mismatch(self, version):
        built = build_bsa(SAMPLE_FOLDERS, version=version, compressed=True)
        raw = _patch(built.raw, built.data_offsets[_BUCKET], '<I',
                     len(_BUCKET_DATA) + 1)
        with open_bsa(raw) as bsa:
            with pytest.raises(BSADecompressionSizeError) as exc_info:
                bsa.find_file(_BUCKET).read()
        assert exc_info.value.expected_size == len(_BUCKET_DATA) + 1
        assert exc_info.value.actual_size == len(_BUCKET_DATA)

    def test_record_too_small(self):
        """A compressed record too small to hold its size prefix."""
        built = build_bsa(SAMPLE_FOLDERS, compressed=True)
        raw = _patch(built.raw, built.record_offsets[_BUCKET] + 8, '<I', 2)
        with open_bsa(raw) as bsa:
            with pytest.raises(BSADecompressionError):
                bsa.find_file(_BUCKET).read()

    def test_xmem(self):
        """XMem archives can be listed, but compressed records can't be
        read."""
        folders = [('textures', [
            ('compressed.dds', b'c' * 64),
            BsaAsset('stored.dds', b's' * 64, toggle_compression=True),
        ])]
        raw = build_bsa(folders, compressed=True, xmem=True,
                        big_endian=True).raw
        with open_bsa(raw) as bsa:
            assert bsa.codec is Codec.XMEM
            assert bsa.file_count == 2
            with pytest.raises(UnknownCodecError):
                bsa.find_file('textures\\compressed.dds').read()
            assert bsa.find_file('textures\\stored.dds').read() == b's' * 64

class TestDecompressRec(object):
    def test_decompress_zlib(self):
        data = b'some record data' * 10
        assert decompress_rec(Codec.ZLIB, zlib.compress(data), len(data),
                              'test.bsa') == data

    def test_decompress_lz4(self):
        data = b'some record data' * 10
        assert decompress_rec(Codec.LZ4_FRAME, lz4.frame.compress(data),
                              len(data), 'test.bsa') == data

    def test_decompress_garbage(self):
        with pytest.raises(BSADecompressionError):
            decompress_rec(Codec.ZLIB, b'garbage!', 10, 'test.bsa')
        with pytest.raises(BSADecompressionError):
            decompress_rec(Codec.LZ4_FRAME, b'garbage!', 10, 'test.bsa')

    def test_decompress_xmem(self):
        with pytest.raises(UnknownCodecError):
            decompress_rec(Codec.XMEM, b'', 0, 'test.bsa')

@pytest.mark.parametrize('version, flags, expected', [
    (103, 0x7, Codec.ZLIB),
    (104, 0x7, Codec.ZLIB),
    (105, 0x7, Codec.LZ4_FRAME),
    (104, 0x247, Codec.XMEM),
])
def test_archive_codec(version, flags, expected):
    raw = bytearray(build_bsa([]).raw)
    struct.pack_into('<2I', raw, 4, version, 36)
    struct.pack_into('<I', raw, 12, flags)
    with open_bsa(bytes(raw)) as bsa:
        assert archive_codec(bsa.header) is expected
