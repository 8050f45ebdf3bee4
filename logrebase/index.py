# index.py -- Commit history index consumed by the rebase entry generator
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

"""Commit history index.

The history index holds commit metadata for one or more repositories and
publishes a ``DataPack`` to its listeners whenever a refresh makes progress.
Only a full pack guarantees that everything reachable from the published
heads is available; callers that derive rebase entries should wait for one
with ``wait_for_full_data_pack`` first.
"""

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from dulwich.objects import Commit
from dulwich.repo import Repo

from . import log_utils
from .errors import RefreshTimeout

logger = log_utils.getLogger(__name__)

DEFAULT_MAX_COMMITS = 10000
DEFAULT_BATCH_SIZE = 1000
DEFAULT_REFRESH_TIMEOUT = 5.0


@dataclass(frozen=True)
class CommitMetadata:
    """What the history index knows about a single commit."""

    id: bytes
    parents: tuple[bytes, ...]
    message: bytes
    author: bytes = b""
    commit_time: int = 0
    encoding: Optional[bytes] = None

    @classmethod
    def from_commit(cls, commit: Commit) -> "CommitMetadata":
        """Create metadata from a dulwich commit object."""
        return cls(
            id=commit.id,
            parents=tuple(commit.parents),
            message=commit.message,
            author=commit.author,
            commit_time=commit.commit_time,
            encoding=commit.encoding,
        )

    def _text(self) -> str:
        encoding = "utf-8"
        if self.encoding:
            encoding = self.encoding.decode("ascii", "replace")
        try:
            return self.message.decode(encoding, "replace")
        except LookupError:
            return self.message.decode("utf-8", "replace")

    def _split_message(self) -> tuple[list[str], list[str]]:
        """Split the message into its first paragraph and the rest."""
        lines = self._text().split("\n")
        start = 0
        while start < len(lines) and not lines[start].strip():
            start += 1
        end = start
        while end < len(lines) and lines[end].strip():
            end += 1
        rest = lines[end:]
        while rest and not rest[0].strip():
            rest.pop(0)
        return lines[start:end], rest

    @property
    def subject(self) -> str:
        """The subject as ``git log --format=%s`` shows it.

        This is the first paragraph of the message with its lines joined by
        a space. A single line subject is returned exactly as stored.
        """
        paragraph, _ = self._split_message()
        if len(paragraph) == 1:
            return paragraph[0]
        return " ".join(line.rstrip() for line in paragraph)

    @property
    def body(self) -> str:
        """Message text after the subject paragraph and the blank lines below it."""
        _, rest = self._split_message()
        return "\n".join(rest)

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def short_id(self, length: int = 7) -> bytes:
        return self.id[:length]


@dataclass(frozen=True)
class DataPack:
    """Notification published by a history index after (part of) a refresh.

    Attributes:
      roots: Repository roots this pack reports on.
      heads: Branch tips known to the index for those roots.
      is_full: Whether everything reachable from the heads has been loaded.
    """

    roots: frozenset[str]
    heads: Mapping[str, bytes] = field(default_factory=dict)
    is_full: bool = True


DataPackListener = Callable[[DataPack], None]


class HistoryIndex(Protocol):
    """The parts of a history index the rebase entry generator relies on."""

    def get_commit_metadata(self, commit_id: bytes) -> Optional[CommitMetadata]:
        """Look up a commit; None if the current snapshot doesn't have it."""
        ...

    def get_head(self, root: str) -> Optional[bytes]:
        """Return the branch tip of a repository root, if known."""
        ...

    def refresh(self, roots: Sequence[str]) -> object:
        """Start reloading the given roots."""
        ...

    def add_data_pack_listener(self, listener: DataPackListener) -> None: ...

    def remove_data_pack_listener(self, listener: DataPackListener) -> None: ...


class _ListenerRegistry:
    def __init__(self) -> None:
        self._listeners_lock = threading.Lock()
        self._listeners: list[DataPackListener] = []

    def add_data_pack_listener(self, listener: DataPackListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_data_pack_listener(self, listener: DataPackListener) -> None:
        with self._listeners_lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def _fire(self, pack: DataPack) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(pack)


class MemoryHistoryIndex(_ListenerRegistry):
    """History index kept entirely in memory.

    Refreshing is synchronous: listeners are told about a full pack before
    ``refresh`` returns.
    """

    def __init__(self, commits: Iterable[CommitMetadata] = ()) -> None:
        super().__init__()
        self._commits: dict[bytes, CommitMetadata] = {}
        self._heads: dict[str, bytes] = {}
        self.add_commits(commits)

    def add_commit(self, commit: CommitMetadata) -> None:
        self._commits[commit.id] = commit

    def add_commits(self, commits: Iterable[CommitMetadata]) -> None:
        for commit in commits:
            self.add_commit(commit)

    def set_head(self, root: str, commit_id: bytes) -> None:
        self._heads[root] = commit_id

    def get_commit_metadata(self, commit_id: bytes) -> Optional[CommitMetadata]:
        return self._commits.get(commit_id)

    def get_head(self, root: str) -> Optional[bytes]:
        return self._heads.get(root)

    def refresh(self, roots: Sequence[str]) -> None:
        heads = {root: self._heads[root] for root in roots if root in self._heads}
        self._fire(DataPack(frozenset(roots), heads, is_full=True))


def _log_refresh_failure(root: str, exc: BaseException) -> None:
    logger.error("Failed to refresh history of %s", root, exc_info=exc)


class RepoHistoryIndex(_ListenerRegistry):
    """History index loaded from on-disk repositories.

    Each refresh runs on a background thread. Commits reachable from HEAD are
    read with the dulwich walker; a partial pack is published once the first
    batch has been loaded, and a full pack once the walk is done.
    """

    def __init__(
        self,
        max_commits: int = DEFAULT_MAX_COMMITS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        fatal_error_handler: Optional[Callable[[str, BaseException], None]] = None,
        open_repo: Callable[[str], Repo] = Repo,
    ) -> None:
        """Create an empty index.

        Args:
          max_commits: Maximum number of commits loaded per root.
          batch_size: Number of commits after which a partial pack is published.
          fatal_error_handler: Called with the root and exception when a
            refresh fails; defaults to logging the error.
          open_repo: Callable opening a repository for a root.
        """
        super().__init__()
        self.max_commits = max_commits
        self.batch_size = batch_size
        self._fatal_error_handler = fatal_error_handler or _log_refresh_failure
        self._open_repo = open_repo
        self._lock = threading.Lock()
        self._commits: dict[bytes, CommitMetadata] = {}
        self._heads: dict[str, bytes] = {}

    def get_commit_metadata(self, commit_id: bytes) -> Optional[CommitMetadata]:
        with self._lock:
            return self._commits.get(commit_id)

    def get_head(self, root: str) -> Optional[bytes]:
        with self._lock:
            return self._heads.get(root)

    def refresh(self, roots: Sequence[str]) -> threading.Thread:
        """Reload the given roots in the background.

        Returns:
          The thread doing the work, mostly useful for joining in tests.
        """
        thread = threading.Thread(
            target=self._refresh, args=(list(roots),), name="logrebase-refresh"
        )
        thread.daemon = True
        thread.start()
        return thread

    def _refresh(self, roots: list[str]) -> None:
        for root in roots:
            try:
                self._load(root)
            except Exception as e:
                self._fatal_error_handler(root, e)

    def _load(self, root: str) -> None:
        logger.debug("Loading history of %s", root)
        commits: dict[bytes, CommitMetadata] = {}
        repo = self._open_repo(root)
        try:
            try:
                head: Optional[bytes] = repo.head()
            except KeyError:
                # Unborn branch
                head = None
            if head is not None:
                walker = repo.get_walker(include=[head], max_entries=self.max_commits)
                for entry in walker:
                    commits[entry.commit.id] = CommitMetadata.from_commit(entry.commit)
                    if len(commits) == self.batch_size:
                        self._publish(root, None, dict(commits), is_full=False)
        finally:
            repo.close()
        self._publish(root, head, commits, is_full=True)
        logger.debug("Loaded %d commits of %s", len(commits), root)

    def _publish(
        self,
        root: str,
        head: Optional[bytes],
        commits: dict[bytes, CommitMetadata],
        is_full: bool,
    ) -> None:
        with self._lock:
            self._commits.update(commits)
            if is_full:
                if head is None:
                    self._heads.pop(root, None)
                else:
                    self._heads[root] = head
            heads = {root: self._heads[root]} if root in self._heads else {}
        self._fire(DataPack(frozenset([root]), heads, is_full=is_full))


def wait_for_full_data_pack(
    index: HistoryIndex,
    roots: Sequence[str],
    timeout: float = DEFAULT_REFRESH_TIMEOUT,
) -> HistoryIndex:
    """Refresh ``roots`` and block until the index has fully loaded them.

    Args:
      index: History index to refresh.
      roots: Repository roots to wait for.
      timeout: Maximum number of seconds to wait.
    Returns: The index, ready for use.
    Raises:
      RefreshTimeout: if no full pack arrived for every root in time.
    """
    pending = set(roots)
    pending_lock = threading.Lock()
    done = threading.Event()
    if not pending:
        done.set()

    def listener(pack: DataPack) -> None:
        if not pack.is_full:
            return
        with pending_lock:
            pending.difference_update(pack.roots)
            if not pending:
                done.set()

    index.add_data_pack_listener(listener)
    try:
        index.refresh(roots)
        if not done.wait(timeout):
            with pending_lock:
                missing = sorted(pending)
            raise RefreshTimeout(missing, timeout)
    finally:
        index.remove_data_pack_listener(listener)
    return index
