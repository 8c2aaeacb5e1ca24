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
"""This module contains all custom exceptions for the bsa package."""

# NO LOCAL IMPORTS! This has to be importable from any module/package.

class BoltError(Exception):
    """Generic error with a string message."""
    def __init__(self, message):
        super(BoltError, self).__init__(message)
        self.message = message
    def __str__(self):
        return self.message

# Code errors -----------------------------------------------------------------
class ArgumentError(BoltError):
    """Coding Error: Argument out of allowed range of values."""
    def __init__(self, message='Argument is out of allowed ranged of values.'):
        super(ArgumentError, self).__init__(message)

# File exceptions -------------------------------------------------------------
class FileError(BoltError):
    """An error that occurred while handling a file."""
    def __init__(self, in_name, message):
        ## type: (str, str) -> None
        super(FileError, self).__init__(message)
        self._in_name = (in_name and '%s' % in_name) or 'Unknown File'

    def __str__(self):
        return f'{self._in_name}: {self.message}'

# BSA exceptions --------------------------------------------------------------
class BSAError(FileError): pass

class UseAfterCloseError(BSAError):
    """An operation was attempted on a closed archive."""
    def __init__(self, in_name):
        super(UseAfterCloseError, self).__init__(in_name,
            'Archive has been closed')

# Structural errors - fatal to opening the archive
class BSAFormatError(BSAError): pass

class InvalidMagicError(BSAFormatError):
    def __init__(self, in_name, got_magic, expected_magic):
        # type: (str, bytes, bytes) -> None
        super(InvalidMagicError, self).__init__(in_name,
            f'Magic wrong: got {got_magic!r}, expected {expected_magic!r}')

class UnsupportedVersionError(BSAFormatError):
    def __init__(self, in_name, version):
        # type: (str, int) -> None
        super(UnsupportedVersionError, self).__init__(in_name,
            f'Unsupported BSA version {version}')
        self.version = version

class TruncatedHeaderError(BSAFormatError):
    def __init__(self, in_name, expected_size, actual_size):
        super(TruncatedHeaderError, self).__init__(in_name,
            f'Header truncated: need {expected_size} bytes, got '
            f'{actual_size}')

class CorruptDirectoryError(BSAFormatError):
    def __init__(self, in_name, message): # type: (str, str) -> None
        super(CorruptDirectoryError, self).__init__(in_name,
            f'Corrupt directory: {message}')

class BSADecodingError(BSAFormatError):
    def __init__(self, in_name, message): # type: (str, bytes) -> None
        super(BSADecodingError, self).__init__(
            in_name, f'Undecodable string {message!r}')

# Content errors - scoped to a single read
class BSAContentError(BSAError): pass

class UnknownCodecError(BSAContentError):
    def __init__(self, in_name, codec_name): # type: (str, str) -> None
        super(UnknownCodecError, self).__init__(in_name,
            f'Unsupported compression codec {codec_name}')

class BSADecompressionError(BSAContentError):
    def __init__(self, in_name, compression_type, orig_error):
        # type: (str, str, Exception | str) -> None
        super(BSADecompressionError, self).__init__(
            in_name, '{0} error while decompressing {0}-compressed record: '
                     '{1}'.format(compression_type, repr(orig_error)))

class BSADecompressionSizeError(BSAContentError):
    def __init__(self, in_name, compression_type, expected_size, actual_size):
        super(BSADecompressionSizeError, self).__init__(in_name,
            f'{compression_type}-decompressed record size incorrect - '
            f'expected {expected_size}, but got {actual_size}')
        self.expected_size = expected_size
        self.actual_size = actual_size

class BSAUnsafePathError(BSAError):
    """An archive path that would be extracted outside of the target
    folder."""
    def __init__(self, in_name, asset_path):
        super(BSAUnsafePathError, self).__init__(in_name,
            f'Refusing to extract unsafe path {asset_path!r}')
