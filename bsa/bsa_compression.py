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
"""Decoding of the stored payload of BSA file records.

Whether a record is compressed is the archive's compressed flag, inverted if
the record's compression toggle bit is set. Compressed payloads start with
their uncompressed size, followed by a zlib stream (Oblivion to Skyrim LE) or
an LZ4 frame (Skyrim SE)."""
from __future__ import annotations

import zlib
from enum import Enum

import lz4.frame

from .bolt import struct_error, unpack_many_from
from .bsa_headers import ArchiveVersion, BsaHeader
from .bsa_records import BSAFileRecord
from .exception import BSADecompressionError, BSADecompressionSizeError, \
    UnknownCodecError

class Codec(Enum):
    """The closed set of codecs BSAs use - see decompress_rec."""
    ZLIB = 'zlib'
    LZ4_FRAME = 'LZ4'
    XMEM = 'XMem' # Xbox 360 only, not supported

def archive_codec(header: BsaHeader) -> Codec:
    """The codec compressed records of this archive use."""
    if header.archive_flags.xmem_codec:
        return Codec.XMEM
    if header.version == ArchiveVersion.SKYRIM_SE:
        return Codec.LZ4_FRAME
    return Codec.ZLIB

def _finish_stream(decompressor, compressed_data, codec_name, bsa_name):
    """Feed compressed_data to a zlib/LZ4 decompressor object, insisting that
    the stream ends exactly at the end of the data."""
    decompressed_data = decompressor.decompress(compressed_data)
    if not decompressor.eof:
        raise BSADecompressionError(bsa_name, codec_name,
                                    'truncated compressed stream')
    if decompressor.unused_data:
        raise BSADecompressionError(bsa_name, codec_name,
            f'{len(decompressor.unused_data)} bytes of trailing data')
    return decompressed_data

def _decompress_zlib(compressed_data, bsa_name):
    try:
        return _finish_stream(zlib.decompressobj(), compressed_data, 'zlib',
                              bsa_name)
    except zlib.error as e:
        raise BSADecompressionError(bsa_name, 'zlib', e) from e

def _decompress_lz4(compressed_data, bsa_name):
    try:
        return _finish_stream(lz4.frame.LZ4FrameDecompressor(),
                              compressed_data, 'LZ4', bsa_name)
    except RuntimeError as e: # No custom lz4 exception for frames...
        raise BSADecompressionError(bsa_name, 'LZ4', e) from e

def decompress_rec(codec: Codec, compressed_data, decompressed_size,
                   bsa_name):
    """Decompresses the specified record data. Expects the specified number
    of bytes of decompressed data and raises a BSAContentError if a mismatch
    occurs or if the underlying compression library raises an error."""
    match codec:
        case Codec.ZLIB:
            decompressed_data = _decompress_zlib(compressed_data, bsa_name)
        case Codec.LZ4_FRAME:
            decompressed_data = _decompress_lz4(compressed_data, bsa_name)
        case _:
            raise UnknownCodecError(bsa_name, codec.value)
    if len(decompressed_data) != decompressed_size:
        raise BSADecompressionSizeError(bsa_name, codec.value,
            decompressed_size, len(decompressed_data))
    return decompressed_data

def is_compressed(header: BsaHeader, record: BSAFileRecord) -> bool:
    return header.is_compressed() ^ record.compression_toggle()

def read_content(record: BSAFileRecord, header: BsaHeader, source,
                 bsa_name='Unknown File') -> bytes:
    """Return the decoded bytes of the file record. Stateless - nothing is
    cached and the source is only read at the record's own offsets."""
    data_offset = record.raw_file_data_offset
    data_size = record.raw_data_size()
    stored = source.read_at(data_offset, data_size)
    if len(stored) != data_size:
        raise BSADecompressionError(bsa_name, 'raw',
            f'expected {data_size} bytes at {data_offset}, got '
            f'{len(stored)}')
    start = 0
    if header.embed_filenames():
        # the full path, prefixed by its length, precedes the data
        start = 1 + (stored[0] if stored else 0)
    if not is_compressed(header, record):
        if start > data_size:
            raise BSADecompressionError(bsa_name, 'raw',
                                        'embedded name runs past the record')
        return stored[start:]
    try:
        uncompressed_size, = unpack_many_from(header.byte_order.fmt('I'),
                                              stored, start)
    except struct_error as e:
        raise BSADecompressionError(bsa_name, archive_codec(header).value,
            f'record too small for its size prefix ({e})') from e
    return decompress_rec(archive_codec(header),
                          stored[start + 4:], uncompressed_size,
                          bsa_name)
