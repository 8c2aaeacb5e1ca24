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
"""BSA headers.

For the file format see:
http://www.uesp.net/wiki/Tes4Mod:BSA_File_Format
http://www.uesp.net/wiki/Tes5Mod:Archive_File_Format
"""
from __future__ import annotations

from enum import Enum, IntEnum

from .bolt import Flags, flag, struct_error, unpack_many_from
from .exception import CorruptDirectoryError, InvalidMagicError, \
    TruncatedHeaderError, UnsupportedVersionError

class ByteOrder(Enum):
    """Byte order of every multi-byte field after the archive flags. Passed
    explicitly to everything that unpacks archive data."""
    LITTLE = '<'
    BIG = '>'

    def fmt(self, struct_fmt: str) -> str:
        """Prefix struct_fmt with this byte order."""
        return self.value + struct_fmt

class ArchiveVersion(IntEnum):
    OBLIVION = 103
    FALLOUT3 = 104 # also New Vegas and Skyrim LE
    SKYRIM_SE = 105

class ArchiveFlags(Flags):
    include_directory_names: bool
    include_file_names: bool
    compressed_archive: bool
    retain_directory_names: bool
    retain_file_names: bool
    retain_file_name_offsets: bool
    xbox360_archive: bool
    retain_strings_during_startup: bool
    embed_file_names: bool
    xmem_codec: bool

class FileTypeFlags(Flags):
    meshes: bool
    textures: bool
    menus: bool
    sounds: bool
    voices: bool
    shaders: bool
    trees: bool
    fonts: bool
    miscellaneous: bool = flag(8)

class BsaHeader(object):
    __slots__ = ( # in the order encountered in the header
        'file_id', 'version', 'folder_records_offset', 'archive_flags',
        'folder_count', 'file_count', 'total_folder_name_length',
        'total_file_name_length', 'file_flags', 'byte_order')
    bsa_magic = b'BSA\x00'
    header_size = 36

    def __init__(self, file_id, version, folder_records_offset,
                 archive_flags, folder_count, file_count,
                 total_folder_name_length, total_file_name_length,
                 file_flags, byte_order):
        self.file_id = file_id
        self.version: ArchiveVersion = version
        self.folder_records_offset = folder_records_offset
        self.archive_flags: ArchiveFlags = archive_flags
        self.folder_count = folder_count
        self.file_count = file_count
        self.total_folder_name_length = total_folder_name_length
        self.total_file_name_length = total_file_name_length
        self.file_flags: FileTypeFlags = file_flags
        self.byte_order: ByteOrder = byte_order

    def is_compressed(self): return self.archive_flags.compressed_archive

    def embed_filenames(self):
        # Oblivion BSAs have no embedded names, whatever the flag says
        return (self.version != ArchiveVersion.OBLIVION and
                self.archive_flags.embed_file_names)

    def __repr__(self):
        return (f'BsaHeader<v{int(self.version)}, {self.folder_count} '
                f'folders, {self.file_count} files, flags '
                f'{self.archive_flags!r}>')

def parse_header(data, bsa_name='Unknown File') -> BsaHeader:
    """Decode the fixed size header at the start of data (a bytes-like
    object). Raises a BSAFormatError subclass if data is not the header of a
    supported BSA."""
    if len(data) < BsaHeader.header_size:
        # check the magic first, so that random short files are reported as
        # not being BSAs at all
        if len(data) >= 4 and bytes(data[:4]) != BsaHeader.bsa_magic:
            raise InvalidMagicError(bsa_name, bytes(data[:4]),
                                    BsaHeader.bsa_magic)
        raise TruncatedHeaderError(bsa_name, BsaHeader.header_size,
                                   len(data))
    try:
        file_id, version, folder_records_offset, raw_flags = \
            unpack_many_from('<4s3I', data)
        if file_id != BsaHeader.bsa_magic:
            raise InvalidMagicError(bsa_name, file_id, BsaHeader.bsa_magic)
        try:
            version = ArchiveVersion(version)
        except ValueError:
            raise UnsupportedVersionError(bsa_name, version) from None
        archive_flags = ArchiveFlags(raw_flags)
        byte_order = (ByteOrder.BIG if archive_flags.xbox360_archive
                      else ByteOrder.LITTLE)
        (folder_count, file_count, total_folder_name_length,
         total_file_name_length, file_flags) = unpack_many_from(
            byte_order.fmt('5I'), data, 16)
    except struct_error as e:
        raise TruncatedHeaderError(bsa_name, BsaHeader.header_size,
                                   len(data)) from e
    if folder_records_offset != BsaHeader.header_size:
        raise CorruptDirectoryError(bsa_name,
            f'Header size wrong: {folder_records_offset}. Should be '
            f'{BsaHeader.header_size}')
    return BsaHeader(file_id, version, folder_records_offset, archive_flags,
        folder_count, file_count, total_folder_name_length,
        total_file_name_length, FileTypeFlags(file_flags), byte_order)
