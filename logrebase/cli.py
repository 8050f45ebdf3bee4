# cli.py -- Command line interface for logrebase
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

"""Command line interface to logrebase.

Prints the interactive rebase todo list for the current branch, or explains
why it can't be derived from history alone.
"""

__all__ = [
    "EXIT_CANT_REBASE",
    "EXIT_NOT_FOUND",
    "EXIT_TIMEOUT",
    "Command",
    "ConfigError",
    "main",
]

import argparse
import signal
import sys
import types
from collections.abc import Sequence
from typing import Optional

from dulwich.errors import NotGitRepository
from dulwich.objects import Commit
from dulwich.objectspec import AmbiguousShortId, parse_commit
from dulwich.repo import Repo

from . import log_utils
from .config import LogRebaseConfig
from .errors import CantRebaseUsingLogException, NotFoundError, RefreshTimeout
from .index import RepoHistoryIndex, wait_for_full_data_pack
from .rebase import RebaseEntry, RebaseTodo, get_entries_onto, get_entries_using_log

logger = log_utils.getLogger(__name__)

EXIT_NOT_FOUND = 1
EXIT_CANT_REBASE = 2
EXIT_TIMEOUT = 3


def signal_int(signal: int, frame: Optional[types.FrameType]) -> None:
    """Handle interrupt signal by exiting.

    Args:
      signal: Signal number
      frame: Current stack frame
    """
    sys.exit(1)


class ConfigError(Exception):
    """Raised when the repository configuration can't be interpreted."""


def _parse_commit(repo: Repo, committish: str) -> Commit:
    try:
        return parse_commit(repo, committish)
    except (AmbiguousShortId, KeyError, ValueError):
        raise NotFoundError(None, None, msg=f"Not a valid commit: {committish}")


class Command:
    """A logrebase subcommand."""

    def run(self, args: Sequence[str]) -> Optional[int]:
        """Run the command."""
        raise NotImplementedError(self.run)


class _EntriesCommand(Command):
    """Shared argument handling for commands that derive rebase entries."""

    def _parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser()
        parser.add_argument(
            "--repo", type=str, default=".", help="Path to the repository"
        )
        parser.add_argument(
            "--onto",
            type=str,
            help="Rebase base; defaults to the parent of COMMIT",
        )
        parser.add_argument(
            "commit",
            nargs="?",
            help="First commit to edit (default: HEAD)",
        )
        return parser

    def _derive(
        self, parsed_args: argparse.Namespace
    ) -> tuple[
        LogRebaseConfig, Optional[bytes], Optional[bytes], list[RebaseEntry]
    ]:
        """Load history and derive the entries.

        Returns:
          Tuple of (config, onto, head, entries)
        """
        root = parsed_args.repo
        with Repo(root) as repo:
            try:
                config = LogRebaseConfig.from_repo(repo)
            except ValueError as e:
                raise ConfigError(str(e)) from e
            if parsed_args.onto is not None:
                onto: Optional[bytes] = _parse_commit(repo, parsed_args.onto).id
                commit_id = None
            else:
                commit = _parse_commit(repo, parsed_args.commit or "HEAD")
                commit_id = commit.id
                onto = commit.parents[0] if commit.parents else None

        index = RepoHistoryIndex(max_commits=config.max_commits)
        wait_for_full_data_pack(index, [root], timeout=config.refresh_timeout)
        if commit_id is None:
            entries = get_entries_onto(
                root, onto, index, max_commits=config.max_commits
            )
        else:
            entries = get_entries_using_log(
                root, commit_id, index, max_commits=config.max_commits
            )
        return config, onto, index.get_head(root), entries

    def run(self, args: Sequence[str]) -> Optional[int]:
        parser = self._parser()
        parsed_args = parser.parse_args(args)
        if parsed_args.onto is not None and parsed_args.commit is not None:
            parser.error("--onto and COMMIT can not be combined")
        try:
            return self._run(parsed_args)
        except NotGitRepository:
            logger.error("Not a git repository: %s", parsed_args.repo)
            return EXIT_NOT_FOUND
        except NotFoundError as e:
            logger.error("%s", e)
            return EXIT_NOT_FOUND
        except ConfigError as e:
            logger.error("Invalid configuration: %s", e)
            return 1
        except CantRebaseUsingLogException as e:
            return self._cant_rebase(e)
        except RefreshTimeout as e:
            logger.error("%s", e)
            return EXIT_TIMEOUT

    def _run(self, parsed_args: argparse.Namespace) -> Optional[int]:
        raise NotImplementedError(self._run)

    def _cant_rebase(self, e: CantRebaseUsingLogException) -> int:
        logger.error("Can't derive rebase entries from history: %s", e)
        return EXIT_CANT_REBASE


class cmd_todo(_EntriesCommand):
    """Print the interactive rebase todo list."""

    def _parser(self) -> argparse.ArgumentParser:
        parser = super()._parser()
        parser.add_argument(
            "--no-comments",
            action="store_true",
            help="Leave out the summary and help text",
        )
        return parser

    def _run(self, parsed_args: argparse.Namespace) -> int:
        config, onto, head, entries = self._derive(parsed_args)
        todo = RebaseTodo(entries)
        sys.stdout.write(
            todo.to_string(
                include_comments=not parsed_args.no_comments,
                comment_char=config.comment_char,
                abbreviate=config.abbreviate_commands,
                abbrev=config.abbrev,
                onto=onto,
                head=head,
            )
        )
        return 0


class cmd_check(_EntriesCommand):
    """Check whether the todo list can be derived from history."""

    def _run(self, parsed_args: argparse.Namespace) -> int:
        _config, _onto, _head, entries = self._derive(parsed_args)
        sys.stdout.write(f"ok {len(entries)}\n")
        return 0

    def _cant_rebase(self, e: CantRebaseUsingLogException) -> int:
        sys.stdout.write(f"cannot-rebase {e.reason.name}\n")
        return EXIT_CANT_REBASE


commands = {
    "check": cmd_check,
    "todo": cmd_todo,
}


def main(argv: Optional[Sequence[str]] = None) -> Optional[int]:
    """Main entry point for the logrebase CLI.

    Args:
      argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
      Exit code or None
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        parser = argparse.ArgumentParser(
            prog="logrebase",
            description="Derive interactive rebase todo lists from commit history",
        )
        parser.add_argument(
            "command",
            nargs="?",
            help=f"Command to run. Available: {', '.join(sorted(commands))}",
        )
        parser.print_help()
        return 1

    log_utils.default_logging_config()

    cmd = argv[0]
    try:
        cmd_kls = commands[cmd]
    except KeyError:
        logger.fatal("No such subcommand: %s", cmd)
        return 1
    return cmd_kls().run(argv[1:])


def _main() -> None:
    signal.signal(signal.SIGINT, signal_int)
    sys.exit(main())


if __name__ == "__main__":
    _main()
