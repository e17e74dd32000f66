# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""Substring-based edits of the problem code.

Edits are plain substring substitutions rather than syntax-tree rewrites, so
every change can be reproduced and diffed mechanically. ``replace_all`` touches
every occurrence while ``replace_first`` and ``apply_patch`` only touch the
first one.
"""

from infprep_sandbox.exceptions import PatchApplicationError
from infprep_sandbox.models import PatchMode, PatchTarget

EMPTY_FILE_MARKER = "# Empty file"
PREVIEW_LENGTH = 60


def preview(snippet: str) -> str:
    """Single-line, truncated form of a snippet for messages."""
    flat = snippet.replace("\n", "\\n")
    if len(flat) > PREVIEW_LENGTH:
        return flat[: PREVIEW_LENGTH - 3] + "..."
    return flat


def _locate(code: str, needle: str, label: str, require_unique: bool = False) -> int:
    if not needle:
        raise PatchApplicationError(f"{label} must not be empty")
    index = code.find(needle)
    if index < 0:
        raise PatchApplicationError(f"{label} not found in the current code: '{preview(needle)}'")
    if require_unique:
        count = code.count(needle)
        if count > 1:
            raise PatchApplicationError(
                f"{label} matches {count} locations; include more surrounding code to make it unique"
            )
    return index


def replace_all(code: str, old: str, new: str) -> str:
    """Replace every occurrence of ``old``."""
    _locate(code, old, "old_string")
    return code.replace(old, new)


def replace_first(code: str, old: str, new: str, require_unique: bool = False) -> str:
    """Replace the first occurrence of ``old``."""
    index = _locate(code, old, "old_code", require_unique)
    return code[:index] + new + code[index + len(old) :]


def apply_patch(code: str, patch: PatchTarget, require_unique: bool = False) -> str:
    """Insert before/after, or replace, the first occurrence of ``patch.target``."""
    index = _locate(code, patch.target, "target", require_unique)
    end = index + len(patch.target)
    if patch.mode is PatchMode.BEFORE:
        edited = f"{patch.replacement}\n{patch.target}"
    elif patch.mode is PatchMode.AFTER:
        edited = f"{patch.target}\n{patch.replacement}"
    else:
        edited = patch.replacement
    return code[:index] + edited + code[end:]


class CodeBuffer:
    """The live text of the problem generator being edited.

    ``text`` is None while no code is loaded. Mutations either commit and bump
    ``revision`` or raise PatchApplicationError leaving the text untouched.
    Not safe for concurrent writers; callers serialize access.
    """

    def __init__(self, text: str | None = None):
        self.text = text
        self.revision = 0

    @property
    def is_empty(self) -> bool:
        return not self.text

    def read(self) -> str:
        return self.text if self.text else EMPTY_FILE_MARKER

    def load(self, text: str | None) -> None:
        """Replace the whole buffer, e.g. on load from the store or a direct user edit."""
        self.text = text
        self.revision += 1

    def replace_string(self, old: str, new: str) -> str:
        return self._commit(replace_all(self._require_text(), old, new))

    def update_code(self, old: str, new: str, require_unique: bool = False) -> str:
        return self._commit(replace_first(self._require_text(), old, new, require_unique))

    def patch(self, patch: PatchTarget, require_unique: bool = False) -> str:
        return self._commit(apply_patch(self._require_text(), patch, require_unique))

    def _require_text(self) -> str:
        if self.text is None:
            raise PatchApplicationError("No code is loaded in the editor")
        return self.text

    def _commit(self, text: str) -> str:
        self.text = text
        self.revision += 1
        return text
