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
"""Reading Bethesda Software Archives (BSA files, versions 103 to 105).

    import bsa

    with bsa.open('Skyrim - Misc.bsa') as archive:
        for folder in archive.folders():
            for file_entry in folder.files():
                print(folder.name, file_entry.name)
                contents = file_entry.read(archive)
"""
from .bsa_files import Archive, FileEntry, Folder, open, read
from .bsa_hashes import hash_file, hash_folder, hash_path
from .bsa_headers import ArchiveFlags, ArchiveVersion, ByteOrder, \
    FileTypeFlags
from .bsa_records import HashMismatch
from .exception import BSAContentError, BSADecodingError, \
    BSADecompressionError, BSADecompressionSizeError, BSAError, \
    BSAFormatError, BSAUnsafePathError, CorruptDirectoryError, \
    InvalidMagicError, TruncatedHeaderError, UnknownCodecError, \
    UnsupportedVersionError, UseAfterCloseError
