# __init__.py -- Rebase todo lists derived from commit history
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

"""Derive interactive rebase todo lists from an in-memory commit history.

``get_entries_using_log`` computes the ``pick`` lines ``git rebase -i`` would
present, without running git, or raises ``CantRebaseUsingLogException`` when
the history can't be translated faithfully.
"""

__version__ = (0, 1, 0)

__all__ = [
    "CantRebaseUsingLogException",
    "CommitMetadata",
    "MemoryHistoryIndex",
    "NotFoundError",
    "RebaseAction",
    "RebaseEntry",
    "RebaseTodo",
    "RefreshTimeout",
    "RepoHistoryIndex",
    "__version__",
    "derive_entries",
    "get_entries_onto",
    "get_entries_using_log",
    "resolve_range",
    "wait_for_full_data_pack",
]

from .errors import CantRebaseUsingLogException, NotFoundError, RefreshTimeout
from .graph import resolve_range
from .index import (
    CommitMetadata,
    MemoryHistoryIndex,
    RepoHistoryIndex,
    wait_for_full_data_pack,
)
from .rebase import (
    RebaseAction,
    RebaseEntry,
    RebaseTodo,
    derive_entries,
    get_entries_onto,
    get_entries_using_log,
)
