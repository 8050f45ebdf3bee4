# rebase.py -- Interactive rebase entries generated from commit history
# Copyright (C) 2025 logrebase contributors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# logrebase is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Interactive rebase entries generated from commit history.

``git rebase -i`` writes a todo list with one ``pick`` line per commit it is
about to replay. For a linear history without autosquash markers that list
can be computed from the history index alone, which is what
``get_entries_using_log`` does. Anything else raises
``CantRebaseUsingLogException`` so that the caller can let git produce the
list instead.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from . import log_utils
from .errors import CantRebaseUsingLogException
from .graph import resolve_range
from .index import DEFAULT_MAX_COMMITS, CommitMetadata, HistoryIndex

logger = log_utils.getLogger(__name__)

# Subject prefixes that make git's autosquash move and meld commits.
AUTOSQUASH_PREFIXES = ("fixup!", "squash!", "amend!")


class RebaseAction(Enum):
    """Commands understood in a git-rebase-todo file."""

    PICK = "pick"
    REWORD = "reword"
    EDIT = "edit"
    SQUASH = "squash"
    FIXUP = "fixup"
    EXEC = "exec"
    BREAK = "break"
    DROP = "drop"
    LABEL = "label"
    RESET = "reset"
    MERGE = "merge"
    UPDATE_REF = "update-ref"

    @property
    def abbreviation(self) -> str:
        """One letter form used with rebase.abbreviateCommands."""
        return _ABBREVIATIONS.get(self, self.value)

    @property
    def takes_commit(self) -> bool:
        return self in _COMMIT_ACTIONS

    @classmethod
    def from_string(cls, s: str) -> "RebaseAction":
        """Parse a command, either spelled out or abbreviated.

        Raises:
          ValueError: If the command is not recognized
        """
        s = s.lower()
        for action, letter in _ABBREVIATIONS.items():
            if s == letter:
                return action
        try:
            return cls(s)
        except ValueError:
            raise ValueError(f"Unknown rebase command: {s}")


_ABBREVIATIONS = {
    RebaseAction.PICK: "p",
    RebaseAction.REWORD: "r",
    RebaseAction.EDIT: "e",
    RebaseAction.SQUASH: "s",
    RebaseAction.FIXUP: "f",
    RebaseAction.EXEC: "x",
    RebaseAction.BREAK: "b",
    RebaseAction.DROP: "d",
    RebaseAction.LABEL: "l",
    RebaseAction.RESET: "t",
    RebaseAction.MERGE: "m",
    RebaseAction.UPDATE_REF: "u",
}

_COMMIT_ACTIONS = frozenset(
    [
        RebaseAction.PICK,
        RebaseAction.REWORD,
        RebaseAction.EDIT,
        RebaseAction.SQUASH,
        RebaseAction.FIXUP,
        RebaseAction.DROP,
    ]
)

# "<command> [-C|-c] <commit>[ <subject>]"; the subject is kept verbatim.
_COMMIT_LINE_RE = re.compile(r"(\S+)[ \t]+(?:(-[cC])[ \t]+)?(\S+)(?: (.*))?\Z")


@dataclass(frozen=True)
class RebaseEntry:
    """A single line of an interactive rebase todo list.

    Entries read back from a todo file usually carry an abbreviated commit id;
    entries derived from history carry the full id and the metadata they were
    made from.
    """

    action: RebaseAction
    commit: Optional[bytes] = None
    subject: Optional[str] = None
    arguments: Optional[str] = None
    metadata: Optional[CommitMetadata] = field(
        default=None, compare=False, repr=False
    )

    def to_string(self, abbreviate: bool = False, abbrev: int = 7) -> str:
        """Format the entry the way git writes it to git-rebase-todo.

        Args:
          abbreviate: Use one letter command names
          abbrev: Number of hex digits of the commit id to write
        """
        cmd = self.action.abbreviation if abbreviate else self.action.value
        if not self.action.takes_commit:
            if self.arguments:
                return f"{cmd} {self.arguments}"
            return cmd
        parts = [cmd]
        if self.arguments:
            parts.append(self.arguments)
        if self.commit is not None:
            parts.append(self.commit[:abbrev].decode("ascii"))
        line = " ".join(parts)
        if self.subject is not None:
            line += " " + self.subject
        return line

    @classmethod
    def from_string(
        cls, line: str, comment_char: str = "#"
    ) -> Optional["RebaseEntry"]:
        """Parse a line of a git-rebase-todo file.

        Returns:
          RebaseEntry, or None for blank lines, comments and unknown commands
        """
        line = line.rstrip("\r\n")
        stripped = line.lstrip()
        if not stripped or stripped.startswith(comment_char):
            return None

        name, *rest = stripped.split(None, 1)
        try:
            action = RebaseAction.from_string(name)
        except ValueError:
            return None

        if not action.takes_commit:
            arguments = rest[0].strip() if rest else ""
            return cls(action=action, arguments=arguments or None)

        m = _COMMIT_LINE_RE.match(stripped)
        if m is None:
            return None
        _, flag, sha, subject = m.groups()
        # Newer git separates the subject with "# ".
        marker = comment_char + " "
        if subject is not None and subject.startswith(marker):
            subject = subject[len(marker) :]
        # Commits that change nothing are annotated with " # empty".
        empty = f" {comment_char} empty"
        if subject is not None and subject.endswith(empty):
            subject = subject[: -len(empty)]
        return cls(
            action=action,
            commit=sha.encode("ascii"),
            subject=subject,
            arguments=flag,
        )

    def equals_with_real(self, real: "RebaseEntry") -> bool:
        """Compare with an entry read back from git's own todo list.

        Commit ids match when one is an abbreviation of the other; subjects
        have to be identical.
        """
        if self.action != real.action or self.subject != real.subject:
            return False
        if self.commit is None or real.commit is None:
            return self.commit == real.commit
        n = min(len(self.commit), len(real.commit))
        return self.commit[:n] == real.commit[:n]


_HELP = """\
Commands:
p, pick <commit> = use commit
r, reword <commit> = use commit, but edit the commit message
e, edit <commit> = use commit, but stop for amending
s, squash <commit> = use commit, but meld into previous commit
f, fixup [-C | -c] <commit> = like "squash" but keep only the previous
                   commit's log message, unless -C is used, in which case
                   keep only this commit's message; -c is same as -C but
                   opens the editor
x, exec <command> = run command (the rest of the line) using shell
b, break = stop here (continue rebase later with 'git rebase --continue')
d, drop <commit> = remove commit
l, label <label> = label current HEAD with a name
t, reset <label> = reset HEAD to a label
m, merge [-C <commit> | -c <commit>] <label> [# <oneline>]
        create a merge commit using the original merge commit's
        message (or the oneline, if no original merge commit was
        specified); use -c <commit> to reword the commit message
u, update-ref <ref> = track a placeholder for the <ref> to be updated
                      to this position in the new commits. The <ref> is
                      updated at the end of the rebase

These lines can be re-ordered; they are executed from top to bottom.

If you remove a line here THAT COMMIT WILL BE LOST.

However, if you remove everything, the rebase will be aborted.
"""


class RebaseTodo:
    """An ordered list of rebase entries, as found in git-rebase-todo."""

    def __init__(self, entries: Optional[Sequence[RebaseEntry]] = None) -> None:
        self.entries = list(entries or [])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def to_string(
        self,
        include_comments: bool = True,
        comment_char: str = "#",
        abbreviate: bool = False,
        abbrev: int = 7,
        onto: Optional[bytes] = None,
        head: Optional[bytes] = None,
    ) -> str:
        """Render the todo file.

        Args:
          include_comments: Append the summary and command help
          comment_char: Prefix for comment lines
          abbreviate: Use one letter command names
          abbrev: Number of hex digits of commit ids
          onto: Commit the entries will be replayed on, for the summary line
          head: Branch tip being rebased, for the summary line
        """
        lines = [
            e.to_string(abbreviate=abbreviate, abbrev=abbrev) for e in self.entries
        ]
        if include_comments:
            lines.append("")
            count = len(self.entries)
            noun = "command" if count == 1 else "commands"
            summary = "Rebase"
            short_onto = onto[:abbrev].decode("ascii") if onto is not None else None
            if head is not None:
                short_head = head[:abbrev].decode("ascii")
                if short_onto is not None:
                    summary += f" {short_onto}..{short_head}"
                else:
                    summary += f" {short_head}"
            if short_onto is not None:
                summary += f" onto {short_onto}"
            summary += f" ({count} {noun})"
            lines.append(f"{comment_char} {summary}")
            lines.append(comment_char)
            for help_line in _HELP.splitlines():
                if help_line:
                    lines.append(f"{comment_char} {help_line}")
                else:
                    lines.append(comment_char)
        return "\n".join(lines) + "\n"

    @classmethod
    def from_string(cls, content: str, comment_char: str = "#") -> "RebaseTodo":
        entries = []
        for line in content.splitlines():
            entry = RebaseEntry.from_string(line, comment_char=comment_char)
            if entry is not None:
                entries.append(entry)
        return cls(entries)


def is_autosquash_subject(subject: str) -> bool:
    """Check whether a subject carries an autosquash marker like ``fixup! ``."""
    for prefix in AUTOSQUASH_PREFIXES:
        marker = subject[len(prefix) : len(prefix) + 1]
        if subject.startswith(prefix) and marker.isspace():
            return True
    return False


def _pick(commit: CommitMetadata) -> RebaseEntry:
    return RebaseEntry(
        action=RebaseAction.PICK,
        commit=commit.id,
        subject=commit.subject,
        metadata=commit,
    )


def derive_entries(commits: Sequence[CommitMetadata]) -> list[RebaseEntry]:
    """Turn a linear range of commits into the todo list git would write.

    Args:
      commits: Commits to replay, oldest first
    Returns: One ``pick`` entry per commit, in the same order
    Raises:
      CantRebaseUsingLogException: if the range contains a merge commit
        (``MERGE``, checked first and anywhere in the range) or a commit with
        an autosquash marker (``FIXUP_SQUASH``). The entries derived before
        the offending commit are attached.
    """
    for i, commit in enumerate(commits):
        if commit.is_merge:
            raise CantRebaseUsingLogException(
                CantRebaseUsingLogException.Reason.MERGE,
                [_pick(c) for c in commits[:i]],
                commit=commit.id,
            )

    entries: list[RebaseEntry] = []
    for commit in commits:
        if is_autosquash_subject(commit.subject):
            raise CantRebaseUsingLogException(
                CantRebaseUsingLogException.Reason.FIXUP_SQUASH,
                entries,
                commit=commit.id,
            )
        entries.append(_pick(commit))
    return entries


def get_entries_onto(
    repo_root: str,
    base: Optional[bytes],
    index: HistoryIndex,
    max_commits: int = DEFAULT_MAX_COMMITS,
    log: Optional[logging.Logger] = None,
) -> list[RebaseEntry]:
    """Derive the todo list for ``git rebase -i <base>``.

    Args:
      repo_root: Repository root as known to the index
      base: Commit to replay onto, or None for ``--root``
      index: History index that has fully loaded ``repo_root``
      max_commits: Maximum number of commits to walk
      log: Logger for diagnostics, defaults to this module's logger
    Raises:
      NotFoundError: if ``base`` is not an ancestor of the branch tip
      CantRebaseUsingLogException: if the list can't be derived safely
    """
    if log is None:
        log = logger
    try:
        entries = derive_entries(
            resolve_range(repo_root, index, base, max_commits=max_commits)
        )
    except CantRebaseUsingLogException as e:
        log.debug("Can't derive rebase entries for %s from history: %s", repo_root, e)
        raise
    log.debug("Derived %d rebase entries for %s", len(entries), repo_root)
    return entries


def get_entries_using_log(
    repo_root: str,
    commit_id: bytes,
    index: HistoryIndex,
    max_commits: int = DEFAULT_MAX_COMMITS,
    log: Optional[logging.Logger] = None,
) -> list[RebaseEntry]:
    """Derive the todo list for editing history starting at ``commit_id``.

    This is ``git rebase -i <commit_id>^``; a root commit rebases with
    ``--root``.

    Raises:
      NotFoundError: if ``commit_id`` is not an ancestor of the branch tip
      CantRebaseUsingLogException: if the list can't be derived safely, or
        ``commit_id`` is unknown to the index (``UNRESOLVED_HASH``)
    """
    commit = index.get_commit_metadata(commit_id)
    if commit is None:
        raise CantRebaseUsingLogException(
            CantRebaseUsingLogException.Reason.UNRESOLVED_HASH, commit=commit_id
        )
    base = commit.parents[0] if commit.parents else None
    return get_entries_onto(repo_root, base, index, max_commits=max_commits, log=log)
