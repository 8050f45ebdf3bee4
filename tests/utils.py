# utils.py -- helpers for logrebase tests
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

"""Utility functions common to logrebase tests."""

import hashlib
import itertools
import shutil
import tempfile
from collections.abc import Sequence
from typing import Optional

from dulwich.objects import Blob, Commit, Tree
from dulwich.repo import Repo

from logrebase.index import CommitMetadata, MemoryHistoryIndex

# Plain files are very frequently used in tests, so let the mode be very short.
F = 0o100644

DEFAULT_TIME = 1262304000  # 2010-01-01

_ticks = itertools.count()


def make_metadata(
    message: bytes, parents: Sequence[bytes] = (), salt: bytes = b""
) -> CommitMetadata:
    """Make commit metadata with an id derived from its contents."""
    sha = hashlib.sha1(message + b"\0" + b"".join(parents) + salt)
    return CommitMetadata(
        id=sha.hexdigest().encode("ascii"),
        parents=tuple(parents),
        message=message,
        author=b"Test Author <test@nodomain.com>",
        commit_time=DEFAULT_TIME,
    )


class HistoryBuilder:
    """Grow a history in a MemoryHistoryIndex, moving the head along."""

    def __init__(
        self, index: Optional[MemoryHistoryIndex] = None, root: str = "repo"
    ) -> None:
        self.index = index if index is not None else MemoryHistoryIndex()
        self.root = root
        self.head: Optional[bytes] = None

    def commit(
        self, message: bytes, parents: Optional[Sequence[bytes]] = None
    ) -> CommitMetadata:
        if parents is None:
            parents = [self.head] if self.head is not None else []
        commit = make_metadata(message, parents)
        self.index.add_commit(commit)
        self.index.set_head(self.root, commit.id)
        self.head = commit.id
        return commit

    def commits(self, *messages: bytes) -> list[CommitMetadata]:
        return [self.commit(message) for message in messages]


def make_repo(test_case) -> Repo:
    """Create an empty on-disk repository that is removed after the test."""
    path = tempfile.mkdtemp()
    test_case.addCleanup(shutil.rmtree, path)
    repo = Repo.init(path)
    test_case.addCleanup(repo.close)
    repo.refs.set_symbolic_ref(b"HEAD", b"refs/heads/master")
    return repo


def commit_to_repo(
    repo: Repo,
    message: bytes,
    parents: Optional[Sequence[bytes]] = None,
    ref: bytes = b"refs/heads/master",
) -> bytes:
    """Add a commit with a single file to ``repo`` and point ``ref`` at it.

    Args:
      repo: Repository to add to
      message: Commit message
      parents: Parent commits, defaults to the current value of ``ref``
      ref: Ref to update
    Returns: The id of the new commit
    """
    if parents is None:
        try:
            parents = [repo.refs[ref]]
        except KeyError:
            parents = []
    blob = Blob.from_string(message + b"\n" + b"".join(parents))
    tree = Tree()
    tree.add(b"file.txt", F, blob.id)
    commit = Commit()
    commit.tree = tree.id
    commit.parents = list(parents)
    commit.author = commit.committer = b"Test User <test@example.com>"
    commit.author_time = commit.commit_time = DEFAULT_TIME + next(_ticks)
    commit.author_timezone = commit.commit_timezone = 0
    commit.message = message
    for obj in (blob, tree, commit):
        repo.object_store.add_object(obj)
    repo.refs[ref] = commit.id
    return commit.id
