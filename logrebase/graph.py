# graph.py -- Resolve the commits a rebase would replay
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

"""Read-only view of the commit graph held by a history index."""

import collections
from collections.abc import Iterable, Iterator
from typing import Optional

from .errors import CantRebaseUsingLogException, NotFoundError
from .index import DEFAULT_MAX_COMMITS, CommitMetadata, HistoryIndex


def _topo_reorder(commits: Iterable[CommitMetadata]) -> Iterator[CommitMetadata]:
    """Reorder commits so that no commit is yielded before any of its children.

    Args:
      commits: Commits in walk order, starting at the tip.
    Returns: iterator over commits in FIFO order, except where a parent would
        be yielded before any of its children.
    """
    todo: collections.deque[CommitMetadata] = collections.deque()
    pending: dict[bytes, CommitMetadata] = {}
    num_children: dict[bytes, int] = collections.defaultdict(int)
    for commit in commits:
        todo.append(commit)
        for parent_id in commit.parents:
            num_children[parent_id] += 1

    while todo:
        commit = todo.popleft()
        if num_children[commit.id]:
            pending[commit.id] = commit
            continue
        for parent_id in commit.parents:
            num_children[parent_id] -= 1
            if not num_children[parent_id]:
                parent = pending.pop(parent_id, None)
                if parent is not None:
                    todo.appendleft(parent)
        yield commit


def resolve_range(
    repo_root: str,
    index: HistoryIndex,
    base: Optional[bytes],
    max_commits: int = DEFAULT_MAX_COMMITS,
) -> list[CommitMetadata]:
    """Find the commits between ``base`` (exclusive) and the branch tip.

    All parents are followed, so merge commits and whatever they bring in end
    up in the range; it is up to the caller to reject them.

    Args:
      repo_root: Repository root as known to the index.
      index: History index to read from. It should have published a full
        data pack for ``repo_root``.
      base: Commit the range starts above, or None to go down to the root.
      max_commits: Maximum number of commits to visit.
    Returns: Commits in topological order, oldest first. Empty if the tip is
        the base.
    Raises:
      NotFoundError: if there is no tip, or ``base`` was not reached within
        ``max_commits`` commits.
      CantRebaseUsingLogException: with reason ``UNRESOLVED_HASH`` if a
        commit below the tip is missing from the index.
    """
    head = index.get_head(repo_root)
    if head is None:
        raise NotFoundError(base, None)
    if head == base:
        return []

    visited: list[CommitMetadata] = []
    seen = {head}
    queue = collections.deque([head])
    found_base = False
    while queue and len(visited) < max_commits:
        commit_id = queue.popleft()
        commit = index.get_commit_metadata(commit_id)
        if commit is None:
            raise CantRebaseUsingLogException(
                CantRebaseUsingLogException.Reason.UNRESOLVED_HASH, commit=commit_id
            )
        visited.append(commit)
        for parent_id in commit.parents:
            if parent_id == base:
                found_base = True
            elif parent_id not in seen:
                seen.add(parent_id)
                queue.append(parent_id)

    if base is None:
        # Only complete if every root was reached.
        found_base = not queue
    if not found_base:
        raise NotFoundError(base, head)

    ordered = list(_topo_reorder(visited))
    ordered.reverse()
    return ordered
