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
"""The ls, cat, extract and validate commands of the bsa tool. All of them
only use the read-only Archive API."""
from __future__ import annotations

import os
import sys

from . import barg, bass
from .bolt import StreamProgress, deprint
from .bsa_files import open as open_bsa
from .exception import BoltError
from .initialization import init_settings

def ls(bsa_path, out=None):
    out = out or sys.stdout
    with open_bsa(bsa_path) as bsa:
        for _folder, file_entry in bsa.iter_files():
            out.write(f'{file_entry.path}\n')
    return 0

def cat(bsa_path, asset_path, out=None):
    """Write the contents of asset_path to out (the binary stdout by
    default). Returns 1 if the archive has no such file."""
    out = out or sys.stdout.buffer
    with open_bsa(bsa_path) as bsa:
        file_entry = bsa.find_file(asset_path)
        if file_entry is None:
            print(f'File {asset_path} does not exist in {bsa_path}',
                  file=sys.stderr)
            return 1
        out.write(file_entry.read())
        out.flush()
    return 0

def extract(bsa_path, into=None, workers=None, only=None,
            show_progress=False):
    dest_folder = into if into is not None else os.getcwd()
    progress = StreamProgress() if show_progress else None
    with open_bsa(bsa_path) as bsa:
        missing = []
        if only is not None:
            found = set(bsa.has_assets(only))
            missing = [a for a in only if a not in found]
        result = bsa.extract_assets(dest_folder, asset_paths=only,
                                    workers=workers, progress=progress)
    for written in result.extracted:
        print(f'Creating {written}')
    for asset_path in missing:
        print(f'File {asset_path} does not exist in {bsa_path}',
              file=sys.stderr)
    for asset_path, error in result.failed:
        print(f'Failed {asset_path}: {error.message}', file=sys.stderr)
    return 0 if result.ok and not missing else 1

def validate(bsa_path, out=None):
    """Print every hash mismatch, return 1 if there were any."""
    out = out or sys.stdout
    with open_bsa(bsa_path) as bsa:
        for mismatch in bsa.hash_mismatches:
            out.write(f'{mismatch}\n')
        if bsa.is_consistent():
            out.write(f'{bsa.bsa_name}: OK ({bsa.folder_count} folders, '
                      f'{bsa.file_count} files)\n')
            return 0
    return 1

def main(sys_argv=None) -> int:
    """Entry point of the bsa tool, returns the exit code."""
    opts = barg.parse(sys_argv)
    try:
        init_settings(opts.ini_path, BsaEncoding=opts.encoding,
                      Debug=opts.debug)
        match opts.command:
            case 'ls': return ls(opts.file)
            case 'cat': return cat(opts.file, opts.path)
            case 'extract':
                return extract(opts.file, opts.into, opts.workers, opts.only,
                               opts.progress)
            case 'validate': return validate(opts.file)
    except (BoltError, OSError) as e:
        if bass.inisettings['Debug']:
            deprint(f'{opts.command} failed', traceback=True)
        print(f'bsa {opts.command}: {e}', file=sys.stderr)
        return 1
    raise BoltError(f'Unknown command {opts.command}') # argparse prevents it

def run():
    sys.exit(main())
