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
"""Name hashes used by BSA folder and file records.

Folder records are keyed by the hash of their full path, file records by the
hash of their name split into stem and extension. Both are the same algorithm,
folders simply have no extension. See:
https://en.uesp.net/wiki/Tes4Mod:Hash_Calculation
"""
from __future__ import annotations

__all__ = ['hash_folder', 'hash_file', 'hash_path', 'split_file_name']

path_sep = '\\'
_hash_encoding = 'cp1252'
_uint_mask = 0xFFFFFFFF

# A dictionary mapping file extensions to hash components
_bsa_ext_lookup = {b'.kf': 0x80, b'.nif': 0x8000, b'.dds': 0x8080,
                   b'.wav': 0x80000000}

def _normalize(name: str | bytes) -> bytes:
    if isinstance(name, str):
        name = name.encode(_hash_encoding, 'replace')
    # bytes.lower only touches ASCII, as the games do
    return name.replace(b'/', b'\\').lower()

def _fold(chars: bytes) -> int:
    folded = 0
    for char in chars:
        folded = ((folded * 0x1003F) + char) & _uint_mask
    return folded

def _calculate_hash(root: bytes, ext: bytes) -> int:
    if root:
        hash_part_1 = root[-1] | (len(root) > 2 and root[-2]) << 8 | (
            len(root) & 0xFF) << 16 | root[0] << 24
    else:
        hash_part_1 = 0
    hash_part_1 |= _bsa_ext_lookup.get(ext, 0)
    hash_part_2 = (_fold(root[1:-2]) + _fold(ext)) & _uint_mask
    return (hash_part_2 << 32) + hash_part_1

def hash_folder(path: str | bytes) -> int:
    """Return the 64-bit hash of a folder path, e.g. 'meshes\\clutter'.
    Case insensitive, forward slashes count as backslashes."""
    return _calculate_hash(_normalize(path), b'')

def hash_file(stem: str | bytes, extension: str | bytes) -> int:
    """Return the 64-bit hash of a file name given as stem and extension,
    e.g. ('iron sword', '.nif'). The leading dot of the extension is added if
    missing."""
    ext = _normalize(extension)
    if ext and not ext.startswith(b'.'):
        ext = b'.' + ext
    return _calculate_hash(_normalize(stem), ext)

def split_file_name(file_name: str | bytes):
    """Split a file name at its last dot into (stem, extension), keeping the
    dot on the extension. Names without a dot have an empty extension."""
    dot = '.' if isinstance(file_name, str) else b'.'
    ext_index = file_name.rfind(dot)
    if ext_index == -1:
        return file_name, file_name[:0]
    return file_name[:ext_index], file_name[ext_index:]

def hash_path(name: str | bytes) -> int:
    """Hash a bare file name (split at its last dot) or, if name contains a
    path separator, a folder path - dots in folder names are not extensions.
    """
    normalized = _normalize(name)
    if b'\\' in normalized:
        return _calculate_hash(normalized, b'')
    return _calculate_hash(*split_file_name(normalized))
