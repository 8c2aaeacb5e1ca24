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
"""Folder and file records of BSAs and the directory index built from them.

Layout after the header: all folder records, then for each folder its name
(if the archive has folder names) followed by its file records, then the block
of null-terminated file names (if the archive has file names). Folder -> file
grouping is only implied by the running totals of the folders' file counts."""
from __future__ import annotations

from typing import NamedTuple

from .bolt import deprint, struct_calcsize, structs_cache
from .bsa_hashes import hash_file, hash_folder, path_sep, split_file_name
from .bsa_headers import ArchiveVersion, BsaHeader, ByteOrder
from .exception import BSADecodingError, CorruptDirectoryError

# Records ---------------------------------------------------------------------
class _HashedRecord(object):
    __slots__ = ('record_hash', 'record_name')
    _fmt = 'Q'

    def load_record_from_buffer(self, memview, start, byte_order: ByteOrder):
        """Load this record from memview at start, returns the offset just
        past the record."""
        rec_struct = structs_cache[byte_order.fmt(self.__class__._fmt)]
        values = rec_struct.unpack_from(memview, start)
        for a, v in zip(self.__class__._all_slots(), values):
            setattr(self, a, v)
        self.record_name = None
        return start + rec_struct.size

    @classmethod
    def _all_slots(cls):
        return ('record_hash',)

    @classmethod
    def total_record_size(cls):
        return struct_calcsize(f'<{cls._fmt}')

    def __repr__(self):
        return f'{hex(self.record_hash)}: {self.record_name}'

class BSAFolderRecord(_HashedRecord):
    __slots__ = ('files_count', 'file_records_offset')
    _fmt = 'Q2I'

    @classmethod
    def _all_slots(cls):
        return 'record_hash', 'files_count', 'file_records_offset'

class BSASkyrimSEFolderRecord(BSAFolderRecord):
    __slots__ = ('unknown_int',)
    _fmt = 'Q2IQ'

    @classmethod
    def _all_slots(cls):
        return ('record_hash', 'files_count', 'unknown_int',
                'file_records_offset')

class BSAFileRecord(_HashedRecord):
    __slots__ = ('file_size_flags', 'raw_file_data_offset')
    _fmt = 'Q2I'

    @classmethod
    def _all_slots(cls):
        return 'record_hash', 'file_size_flags', 'raw_file_data_offset'

    def compression_toggle(self):
        return bool(self.file_size_flags & 0x40000000)

    def raw_data_size(self):
        return self.file_size_flags & 0x3FFFFFFF # negate all flags

def folder_record_type(version: ArchiveVersion) -> type[BSAFolderRecord]:
    if version == ArchiveVersion.SKYRIM_SE:
        return BSASkyrimSEFolderRecord
    return BSAFolderRecord

class HashMismatch(NamedTuple):
    """A name whose hash does not match its record - or, if duplicate_of is
    set, a name whose hash collides with the one of a different name."""
    kind: str # 'folder' or 'file'
    name: str
    stored_hash: int
    computed_hash: int
    duplicate_of: str | None = None

    def __str__(self):
        if self.duplicate_of is not None:
            return (f'{self.kind} {self.name!r} has the same hash '
                    f'{self.stored_hash:016x} as {self.duplicate_of!r}')
        return (f'{self.kind} {self.name!r}: stored hash '
                f'{self.stored_hash:016x}, computed {self.computed_hash:016x}')

# Directory -------------------------------------------------------------------
class _DirectoryReader(object):
    """Sequential reads over the directory region of a source. Every read is
    checked against the source size before anything is read, so bogus counts
    can't make us allocate huge buffers."""
    def __init__(self, source, start, bsa_name):
        self._source = source
        self.pos = start
        self._bsa_name = bsa_name

    def read(self, size, what):
        if size < 0 or self.pos + size > self._source.size:
            raise CorruptDirectoryError(self._bsa_name,
                f'{what} at offset {self.pos} ({size} bytes) runs past the '
                f'end of the archive ({self._source.size} bytes)')
        data = self._source.read_at(self.pos, size)
        if len(data) != size:
            raise CorruptDirectoryError(self._bsa_name,
                f'short read of {what} at offset {self.pos}')
        self.pos += size
        return data

def _decode_path(byte_path: bytes, bsa_name: str, encoding: str):
    try:
        return byte_path.decode(encoding).replace('/', path_sep)
    except UnicodeDecodeError:
        raise BSADecodingError(bsa_name, byte_path) from None

class DirectoryIndex(object):
    """The folder and file tables of an archive, in on-disk order. Files of
    folder i are file_records[folder_first_file[i]:folder_first_file[i + 1]].
    Never mutated after build_index returns it."""
    def __init__(self, folder_records, file_records, folder_first_file,
                 hash_mismatches, index_end):
        self.folder_records: list[BSAFolderRecord] = folder_records
        self.file_records: list[BSAFileRecord] = file_records
        self.folder_first_file: list[int] = folder_first_file
        self.hash_mismatches: list[HashMismatch] = hash_mismatches
        self.index_end = index_end
        # hash lookups - first record wins for duplicate hashes
        self.folder_by_hash: dict[int, int] = {}
        for folder_dex, folder_rec in enumerate(folder_records):
            self.folder_by_hash.setdefault(folder_rec.record_hash, folder_dex)
        self.file_by_hash: dict[tuple[int, int], int] = {}
        for folder_dex in range(len(folder_records)):
            for file_dex in self.folder_file_range(folder_dex):
                self.file_by_hash.setdefault(
                    (folder_dex, file_records[file_dex].record_hash), file_dex)

    def folder_file_range(self, folder_dex) -> range:
        return range(self.folder_first_file[folder_dex],
                     self.folder_first_file[folder_dex + 1])

    def is_consistent(self):
        return not self.hash_mismatches

def _check_duplicates(kind, records, hash_mismatches):
    """Record hash collisions between differently named records."""
    seen: dict[int, str] = {}
    for rec in records:
        if rec.record_name is None: continue
        prev_name = seen.setdefault(rec.record_hash, rec.record_name)
        if prev_name.lower() != rec.record_name.lower():
            mismatch = HashMismatch(kind, rec.record_name, rec.record_hash,
                                    rec.record_hash, duplicate_of=prev_name)
            deprint(f'Hash collision: {mismatch}')
            hash_mismatches.append(mismatch)

def build_index(header: BsaHeader, source, bsa_name='Unknown File',
                encoding='cp1252') -> DirectoryIndex:
    """Read the folder records, file records and name blocks following the
    header. Raises CorruptDirectoryError (or BSADecodingError for undecodable
    names) if anything is out of bounds - no partial index is ever returned.
    Hash mismatches are recorded on the index instead of raised."""
    byte_order = header.byte_order
    arch_flags = header.archive_flags
    reader = _DirectoryReader(source, header.folder_records_offset, bsa_name)
    hash_mismatches = []
    # load the folder records
    folder_rec_type = folder_record_type(header.version)
    folder_rec_size = folder_rec_type.total_record_size()
    folders_block = reader.read(header.folder_count * folder_rec_size,
                                'folder records')
    folder_records = []
    start = 0
    for __ in range(header.folder_count):
        rec = folder_rec_type()
        start = rec.load_record_from_buffer(folders_block, start, byte_order)
        folder_records.append(rec)
    total_files = sum(f.files_count for f in folder_records)
    if total_files != header.file_count:
        raise CorruptDirectoryError(bsa_name,
            f'folders hold {total_files} files, header declares '
            f'{header.file_count}')
    # load the file record blocks, each preceded by its folder's name
    file_records = []
    folder_first_file = [0]
    file_rec_size = BSAFileRecord.total_record_size()
    total_names_length = 0
    for folder_record in folder_records:
        if arch_flags.include_directory_names:
            name_size = reader.read(1, 'folder name length')[0]
            if not name_size:
                # Files sit at root level - read nothing
                raw_name = b''
                # Size is summed as strlen() + 1, so use +1 for root
                total_names_length += 1
            else:
                raw_name = reader.read(name_size, 'folder name')
                if raw_name[-1] != 0:
                    raise CorruptDirectoryError(bsa_name,
                        f'folder name {raw_name!r} is not null terminated')
                raw_name = raw_name[:-1]
                total_names_length += name_size
            folder_record.record_name = _decode_path(raw_name, bsa_name,
                                                     encoding)
            if (computed := hash_folder(raw_name)) != \
                    folder_record.record_hash:
                mismatch = HashMismatch('folder', folder_record.record_name,
                                        folder_record.record_hash, computed)
                deprint(f'Incorrect hash: {mismatch}')
                hash_mismatches.append(mismatch)
        files_block = reader.read(folder_record.files_count * file_rec_size,
                                  'file records')
        start = 0
        for __ in range(folder_record.files_count):
            rec = BSAFileRecord()
            start = rec.load_record_from_buffer(files_block, start,
                                                byte_order)
            file_records.append(rec)
        folder_first_file.append(len(file_records))
    if arch_flags.include_directory_names and \
            total_names_length != header.total_folder_name_length:
        deprint(f'{bsa_name} reports wrong folder names length '
                f'{header.total_folder_name_length:d} - actual: '
                f'{total_names_length:d} (number of folders is '
                f'{header.folder_count:d})')
    # load the file names block
    if arch_flags.include_file_names:
        names_block = reader.read(header.total_file_name_length,
                                  'file names')
        file_names = names_block.split(b'\x00')
        # a well formed block ends with a null, so split leaves an empty
        # string at the end
        if len(file_names) - 1 < len(file_records):
            raise CorruptDirectoryError(bsa_name,
                f'file names block holds {len(file_names) - 1} names for '
                f'{len(file_records)} files')
        if len(file_names) - 1 > len(file_records) or file_names[-1]:
            deprint(f'{bsa_name}: ignoring trailing data in file names block')
        for rec, raw_name in zip(file_records, file_names):
            rec.record_name = _decode_path(raw_name, bsa_name, encoding)
            if (computed := hash_file(*split_file_name(raw_name))) != \
                    rec.record_hash:
                mismatch = HashMismatch('file', rec.record_name,
                                        rec.record_hash, computed)
                deprint(f'Incorrect hash: {mismatch}')
                hash_mismatches.append(mismatch)
    index_end = reader.pos
    # all file data must lie in the data region
    for rec in file_records:
        data_offset, data_size = rec.raw_file_data_offset, rec.raw_data_size()
        if data_offset < index_end or \
                data_offset + data_size > source.size:
            raise CorruptDirectoryError(bsa_name,
                f'file {rec!r} data ({data_size} bytes at {data_offset}) '
                f'lies outside the data region ({index_end} to '
                f'{source.size})')
    _check_duplicates('folder', folder_records, hash_mismatches)
    for folder_dex in range(len(folder_records)):
        _check_duplicates('file', file_records[
            folder_first_file[folder_dex]:folder_first_file[folder_dex + 1]],
            hash_mismatches)
    return DirectoryIndex(folder_records, file_records, folder_first_file,
                          hash_mismatches, index_end)
