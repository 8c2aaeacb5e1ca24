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
"""Writing archive entries out to the filesystem, one after the other or on a
pool of worker threads - each worker reads its own entry, archives need no
locking for that."""
from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from .bolt import Progress, deprint
from .bsa_hashes import path_sep
from .exception import BSAContentError, BSAError, BSAUnsafePathError

# errors local to one entry - anything else aborts the extraction
_ENTRY_ERRORS = (BSAContentError, BSAUnsafePathError)

@dataclass
class ExtractionResult:
    """What an extraction did: the paths written, in archive order, and the
    archive paths that failed along with their error."""
    extracted: list[str] = field(default_factory=list)
    failed: list[tuple[str, BSAError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

def target_path(dest_folder, entry, bsa_name='Unknown File') -> str:
    """The path entry gets written to below dest_folder. BSA paths always
    have backslashes, so we need to convert them to the platform's path
    separators. Raises BSAUnsafePathError for paths escaping dest_folder."""
    parts = [p for p in entry.path.split(path_sep) if p not in ('', '.')]
    # a colon would make a drive (or an NTFS stream) on Windows
    if not parts or any(p == '..' or ':' in p or os.path.isabs(p)
                        for p in parts):
        raise BSAUnsafePathError(bsa_name, entry.path)
    return os.path.join(dest_folder, *parts)

def _extract_one(entry, dest_folder, bsa_name):
    out_path = target_path(dest_folder, entry, bsa_name)
    raw_data = entry.read()
    os.makedirs(os.path.dirname(out_path), exist_ok=True)
    with open(out_path, 'wb') as out:
        out.write(raw_data)
    return out_path

def extract_entries(entries, dest_folder, workers=1,
                    progress: Progress | None = None,
                    bsa_name='Unknown File') -> ExtractionResult:
    """Extracts the given archive entries into dest_folder, recreating their
    folders. Entries failing to decode (or with unsafe paths) are reported in
    the result and do not stop the others; OSErrors while writing propagate.

    :param entries: The FileEntry objects to extract.
    :param dest_folder: The folder into which the results should be
        extracted.
    :param workers: Number of threads to extract with, 1 to stay on the
        calling thread.
    :param progress: The progress callback to use. None if unwanted."""
    entries = list(entries)
    if progress and entries:
        progress.setFull(len(entries))
    written: dict[int, str] = {}
    result = ExtractionResult()
    def _done(i, entry, done_count, out_path=None, error=None):
        if error is not None:
            deprint(f'Failed to extract {entry.path}: {error}')
            result.failed.append((entry.path, error))
        else:
            written[i] = out_path
        if progress:
            progress(done_count, f'Extracting {bsa_name}...\n{entry.path}')
    if workers <= 1:
        for i, entry in enumerate(entries):
            try:
                _done(i, entry, i + 1,
                      out_path=_extract_one(entry, dest_folder, bsa_name))
            except _ENTRY_ERRORS as e:
                _done(i, entry, i + 1, error=e)
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(_extract_one, entry, dest_folder,
                                       bsa_name): (i, entry)
                       for i, entry in enumerate(entries)}
            for done_count, future in enumerate(as_completed(futures), 1):
                i, entry = futures[future]
                try:
                    _done(i, entry, done_count, out_path=future.result())
                except _ENTRY_ERRORS as e:
                    _done(i, entry, done_count, error=e)
    result.extracted = [written[i] for i in sorted(written)]
    return result
