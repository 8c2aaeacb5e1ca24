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
"""Bsa files.

The Archive class is the read-only facade over an opened BSA: it owns the
parsed header and directory index and the byte source the data is read from.
Folders and files are handed out as lightweight views - an index into the
archive's tables - so nothing points back from the tables to the views.

For the file format see:
http://www.uesp.net/wiki/Tes4Mod:BSA_File_Format
http://www.uesp.net/wiki/Tes5Mod:Archive_File_Format
"""
from __future__ import annotations

__all__ = ['Archive', 'Folder', 'FileEntry', 'open', 'read']

from collections.abc import Iterable, Iterator

from . import bass
from .bsa_compression import archive_codec, is_compressed, read_content
from .bsa_hashes import hash_file, hash_folder, path_sep, split_file_name
from .bsa_headers import ArchiveFlags, ArchiveVersion, BsaHeader, \
    FileTypeFlags, parse_header
from .bsa_records import DirectoryIndex, HashMismatch, build_index
from .bsa_sources import ByteSource, open_source
from .exception import ArgumentError, UseAfterCloseError
from .extraction import ExtractionResult, extract_entries

def _split_asset_path(asset_path: str) -> tuple[str, str]:
    """Split 'folder\\sub\\file.ext' (either separator) into folder and file
    name. Files at root level have an empty folder."""
    asset_path = asset_path.replace('/', path_sep).strip(path_sep)
    folder, _sep, file_name = asset_path.rpartition(path_sep)
    return folder, file_name

# Views -----------------------------------------------------------------------
class Folder(object):
    """A folder of an open Archive - the index of its folder record."""
    __slots__ = ('_archive', '_folder_dex')

    def __init__(self, archive: Archive, folder_dex: int):
        self._archive = archive
        self._folder_dex = folder_dex

    @property
    def _record(self):
        return self._archive._index_checked().folder_records[self._folder_dex]

    @property
    def index(self) -> int: return self._folder_dex
    @property
    def name(self) -> str | None:
        """The folder path, or None if the archive has no folder names."""
        return self._record.record_name
    @property
    def name_hash(self) -> int: return self._record.record_hash
    @property
    def file_count(self) -> int: return self._record.files_count
    @property
    def first_file_index(self) -> int:
        return self._archive._index_checked().folder_first_file[
            self._folder_dex]

    @property
    def display_name(self) -> str:
        """The name, or the hash in hex for unnamed folders."""
        my_name = self.name
        return f'{self.name_hash:016x}' if my_name is None else my_name

    def files(self) -> Iterator[FileEntry]:
        """Iterate the files of this folder, in on-disk order."""
        index = self._archive._index_checked()
        for file_dex in index.folder_file_range(self._folder_dex):
            yield FileEntry(self._archive, file_dex, self._folder_dex)

    def __eq__(self, other):
        if isinstance(other, Folder):
            return (self._archive is other._archive and
                    self._folder_dex == other._folder_dex)
        return NotImplemented
    def __hash__(self): return hash((id(self._archive), self._folder_dex))

    def __repr__(self):
        return f'Folder<{self.display_name}, {self.file_count} files>'

class FileEntry(object):
    """A file of an open Archive - the index of its file record."""
    __slots__ = ('_archive', '_file_dex', '_folder_dex')

    def __init__(self, archive: Archive, file_dex: int, folder_dex: int):
        self._archive = archive
        self._file_dex = file_dex
        self._folder_dex = folder_dex

    @property
    def _record(self):
        return self._archive._index_checked().file_records[self._file_dex]

    @property
    def index(self) -> int: return self._file_dex
    @property
    def name(self) -> str | None:
        """The file name, or None if the archive has no file names."""
        return self._record.record_name
    @property
    def name_hash(self) -> int: return self._record.record_hash
    @property
    def raw_size_field(self) -> int: return self._record.file_size_flags
    @property
    def data_offset(self) -> int: return self._record.raw_file_data_offset
    @property
    def stored_size(self) -> int:
        """The size of the stored payload, flag bits masked out."""
        return self._record.raw_data_size()
    @property
    def compressed(self) -> bool:
        return is_compressed(self._archive.header, self._record)
    @property
    def folder(self) -> Folder:
        return Folder(self._archive, self._folder_dex)

    @property
    def display_name(self) -> str:
        my_name = self.name
        return f'{self.name_hash:016x}' if my_name is None else my_name

    @property
    def path(self) -> str:
        """Full path inside the archive, using backslashes. Unnamed parts are
        replaced by their hash in hex."""
        folder_name = self.folder.display_name
        if not folder_name: return self.display_name
        return f'{folder_name}{path_sep}{self.display_name}'

    def read(self, archive: Archive | None = None) -> bytes:
        """Read and decode the contents of this file. Passing the archive is
        optional, it must be the one this entry came from."""
        if archive is not None and archive is not self._archive:
            raise ArgumentError(f'{self!r} does not belong to {archive!r}')
        return self._archive.read_file(self)

    def __eq__(self, other):
        if isinstance(other, FileEntry):
            return (self._archive is other._archive and
                    self._file_dex == other._file_dex)
        return NotImplemented
    def __hash__(self): return hash((id(self._archive), self._file_dex))

    def __repr__(self):
        return f'FileEntry<{self.display_name}, {self.stored_size} bytes>'

# Archive ---------------------------------------------------------------------
class Archive(object):
    """An open BSA. Use open() or read() to get one - the constructor expects
    an already parsed header and index."""
    _assets: frozenset[str] = None

    def __init__(self, source: ByteSource, header: BsaHeader,
                 index: DirectoryIndex, owns_source=True):
        self._source = source
        self._owns_source = owns_source
        self.bsa_name = source.source_name
        self._header = header
        self._index = index

    # State -------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._index is None

    def _index_checked(self) -> DirectoryIndex:
        if (index := self._index) is None:
            raise UseAfterCloseError(self.bsa_name)
        return index

    def close(self):
        """Release the byte source. Any later operation on the archive, its
        folders or its files raises UseAfterCloseError."""
        if self._index is None: return
        source, self._source = self._source, None
        self._index = None
        if self._owns_source:
            source.close()

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_value, exc_traceback): self.close()

    # Header ------------------------------------------------------------------
    @property
    def header(self) -> BsaHeader:
        self._index_checked()
        return self._header
    @property
    def version(self) -> ArchiveVersion: return self.header.version
    @property
    def flags(self) -> ArchiveFlags: return self.header.archive_flags
    @property
    def file_type_flags(self) -> FileTypeFlags:
        return self.header.file_flags
    @property
    def codec(self):
        return archive_codec(self.header)

    # Enumeration -------------------------------------------------------------
    @property
    def folder_count(self) -> int:
        return len(self._index_checked().folder_records)
    @property
    def file_count(self) -> int:
        return len(self._index_checked().file_records)

    def folders(self) -> Iterator[Folder]:
        """Iterate the folders of this archive, in on-disk order."""
        for folder_dex in range(self.folder_count):
            yield Folder(self, folder_dex)

    def iter_files(self) -> Iterator[tuple[Folder, FileEntry]]:
        """Iterate (folder, file) pairs for all files, in on-disk order."""
        for folder in self.folders():
            for file_entry in folder.files():
                yield folder, file_entry

    # Lookup ------------------------------------------------------------------
    def find_folder(self, folder_path: str) -> Folder | None:
        """Find a folder by hashing its path - works without folder names."""
        index = self._index_checked()
        folder_path = folder_path.replace('/', path_sep).strip(path_sep)
        folder_dex = index.folder_by_hash.get(hash_folder(folder_path))
        return None if folder_dex is None else Folder(self, folder_dex)

    def find_file(self, asset_path: str) -> FileEntry | None:
        """Find a file by hashing its folder path and name, e.g.
        'meshes\\clutter\\bucket.nif' - works without any names stored."""
        index = self._index_checked()
        folder_path, file_name = _split_asset_path(asset_path)
        folder_dex = index.folder_by_hash.get(hash_folder(folder_path))
        if folder_dex is None: return None
        file_dex = index.file_by_hash.get(
            (folder_dex, hash_file(*split_file_name(file_name))))
        return None if file_dex is None else FileEntry(self, file_dex,
                                                       folder_dex)

    @property
    def assets(self) -> frozenset[str]:
        """Set of full paths in the bsa in lowercase, with backslashes."""
        self._index_checked()
        if (wanted_assets := self._assets) is None:
            self._assets = wanted_assets = frozenset(
                f.path.lower() for _folder, f in self.iter_files())
        return wanted_assets

    def has_assets(self, asset_paths: Iterable[str]) -> list[str]:
        """Checks if this BSA has the requested assets and returns a list of
        assets out of those that it contains. Either separator may be used."""
        cached_assets = self.assets
        return [a for a in asset_paths if
                a.replace('/', path_sep).lower() in cached_assets]

    # Consistency -------------------------------------------------------------
    def is_consistent(self) -> bool:
        """False if any stored name did not match its hash or two different
        names share a hash."""
        return self._index_checked().is_consistent()

    @property
    def hash_mismatches(self) -> list[HashMismatch]:
        return list(self._index_checked().hash_mismatches)

    # Content -----------------------------------------------------------------
    def read_file(self, file_entry: FileEntry) -> bytes:
        """Read and decode the contents of file_entry. Safe to call from
        several threads at once."""
        # close() may run on another thread, take both before checking
        index, source = self._index, self._source
        if index is None or source is None:
            raise UseAfterCloseError(self.bsa_name)
        if file_entry._archive is not self:
            raise ArgumentError(
                f'{file_entry!r} does not belong to {self!r}')
        return read_content(index.file_records[file_entry.index],
                            self._header, source, self.bsa_name)

    def extract_assets(self, dest_folder, asset_paths=None, workers=None,
                       progress=None) -> ExtractionResult:
        """Extract the files of this BSA (or only asset_paths, if given) into
        dest_folder - see extraction.extract_entries."""
        if asset_paths is None:
            entries = [f for _folder, f in self.iter_files()]
        else:
            wanted = {a.replace('/', path_sep).lower() for a in asset_paths}
            entries = [f for _folder, f in self.iter_files()
                       if f.path.lower() in wanted]
        if workers is None:
            workers = bass.inisettings['ExtractWorkers']
        return extract_entries(entries, dest_folder, workers=workers,
                               progress=progress, bsa_name=self.bsa_name)

    def __repr__(self):
        state = 'closed' if self.closed else repr(self._header)
        return f'Archive<{self.bsa_name}: {state}>'

# Factories -------------------------------------------------------------------
def open(source, encoding: str | None = None) -> Archive:
    """Open a BSA from a path, a bytes-like object or a seekable binary
    stream. The header and whole directory are parsed right away - raises a
    BSAFormatError subclass if that fails, OSError if the source can't be
    read. No Archive exists unless everything parsed."""
    owns_source = not isinstance(source, ByteSource)
    byte_source = open_source(source)
    if encoding is None:
        encoding = bass.inisettings['BsaEncoding']
    try:
        bsa_name = byte_source.source_name
        header = parse_header(
            byte_source.read_at(0, BsaHeader.header_size), bsa_name)
        index = build_index(header, byte_source, bsa_name, encoding)
    except Exception:
        if owns_source:
            byte_source.close()
        raise
    return Archive(byte_source, header, index, owns_source=owns_source)

def read(stream, encoding: str | None = None) -> Archive:
    """Open a BSA from an already open seekable binary stream. The stream
    stays owned by the caller."""
    if not (hasattr(stream, 'read') and hasattr(stream, 'seek')):
        raise TypeError(f'Expected a binary stream, got '
                        f'{type(stream).__name__}')
    return open(stream, encoding)
