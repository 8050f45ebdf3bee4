# errors.py -- errors for logrebase
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

"""Exception classes raised while deriving rebase entries from history."""

from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .rebase import RebaseEntry


def _describe(sha: Optional[bytes]) -> str:
    if sha is None:
        return "<root>"
    return sha.decode("ascii", "replace")


class NotFoundError(Exception):
    """The rebase base is not reachable from the branch tip.

    Callers are expected to fall back to a derivation that does not rely on
    the history index.
    """

    def __init__(
        self, base: Optional[bytes], head: Optional[bytes], msg: Optional[str] = None
    ) -> None:
        """Initialize a NotFoundError.

        Args:
            base: The commit that was expected below the tip (None for the root).
            head: The branch tip the walk started from, if known.
            msg: Optional message overriding the default one.
        """
        self.base = base
        self.head = head
        if msg is None:
            if head is None:
                msg = "No branch tip known to the history index"
            else:
                msg = f"{_describe(base)} is not reachable from {_describe(head)}"
        Exception.__init__(self, msg)


class CantRebaseUsingLogException(Exception):
    """Rebase entries can not be derived from the history index.

    The entries that were derived before the problem was found are kept in
    ``entries`` for diagnostics; they must never be used as a todo list.
    """

    class Reason(Enum):
        """Why the history can not be turned into a todo list."""

        MERGE = "merge"
        FIXUP_SQUASH = "fixup_squash"
        UNRESOLVED_HASH = "unresolved_hash"

    def __init__(
        self,
        reason: "CantRebaseUsingLogException.Reason",
        entries: Sequence["RebaseEntry"] = (),
        commit: Optional[bytes] = None,
    ) -> None:
        """Initialize a CantRebaseUsingLogException.

        Args:
            reason: The condition that made the derivation unsafe.
            entries: Entries derived before the condition was detected.
            commit: The offending commit, if there is one.
        """
        self.reason = reason
        self.entries = list(entries)
        self.commit = commit
        msg = reason.name
        if commit is not None:
            msg += f" at {_describe(commit)}"
        Exception.__init__(self, msg)


class RefreshTimeout(Exception):
    """The history index did not publish a full data pack in time."""

    def __init__(self, roots: Sequence[str], timeout: float) -> None:
        """Initialize a RefreshTimeout.

        Args:
            roots: Repository roots that were being refreshed.
            timeout: Seconds waited before giving up.
        """
        self.roots = list(roots)
        self.timeout = timeout
        Exception.__init__(
            self,
            f"History index did not finish refreshing {', '.join(self.roots)} "
            f"within {timeout:g} seconds",
        )
