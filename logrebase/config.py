# config.py -- Settings read from git configuration
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

"""Settings read from git configuration.

Recognized keys:

* ``rebase.abbreviateCommands``: write one letter commands
* ``core.commentChar``: prefix of comment lines in the todo file
* ``core.abbrev``: length of abbreviated commit ids
* ``logrebase.maxCommits``: how many commits to load and walk
* ``logrebase.refreshTimeout``: seconds to wait for the history index
"""

from dataclasses import dataclass
from typing import Optional

from dulwich.config import Config
from dulwich.repo import BaseRepo

from .index import DEFAULT_MAX_COMMITS, DEFAULT_REFRESH_TIMEOUT

DEFAULT_ABBREV = 7
MIN_ABBREV = 4
MAX_ABBREV = 40

# Spellings git accepts for booleans.
_TRUE_VALUES = ("true", "yes", "on", "1")
_FALSE_VALUES = ("false", "no", "off", "0")


def _get(config: Config, section: bytes, name: bytes) -> Optional[str]:
    try:
        value = config.get((section,), name)
    except KeyError:
        return None
    return value.decode("utf-8").strip()


@dataclass(frozen=True)
class LogRebaseConfig:
    """Settings that influence how todo lists are derived and written."""

    abbreviate_commands: bool = False
    comment_char: str = "#"
    abbrev: int = DEFAULT_ABBREV
    max_commits: int = DEFAULT_MAX_COMMITS
    refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT

    @classmethod
    def from_config(cls, config: Config) -> "LogRebaseConfig":
        """Read settings from a dulwich config object.

        Raises:
          ValueError: if a setting has a value that can't be interpreted
        """
        abbreviate_commands = False
        value = _get(config, b"rebase", b"abbreviateCommands")
        if value is not None:
            if value.lower() in _TRUE_VALUES:
                abbreviate_commands = True
            elif value.lower() not in _FALSE_VALUES:
                raise ValueError(
                    f"rebase.abbreviateCommands: not a valid boolean string: {value!r}"
                )

        comment_char = _get(config, b"core", b"commentChar")
        if not comment_char or comment_char == "auto":
            comment_char = "#"

        abbrev = DEFAULT_ABBREV
        value = _get(config, b"core", b"abbrev")
        if value is not None and value.lower() not in ("auto", ""):
            if value.lower() in ("false", "no", "off"):
                abbrev = MAX_ABBREV
            else:
                try:
                    abbrev = int(value)
                except ValueError:
                    raise ValueError(f"core.abbrev: invalid value {value!r}")
                abbrev = max(MIN_ABBREV, min(abbrev, MAX_ABBREV))

        max_commits = DEFAULT_MAX_COMMITS
        value = _get(config, b"logrebase", b"maxCommits")
        if value is not None:
            try:
                max_commits = int(value)
            except ValueError:
                raise ValueError(f"logrebase.maxCommits: invalid value {value!r}")
            if max_commits <= 0:
                raise ValueError(f"logrebase.maxCommits: must be positive, got {value}")

        refresh_timeout = DEFAULT_REFRESH_TIMEOUT
        value = _get(config, b"logrebase", b"refreshTimeout")
        if value is not None:
            try:
                refresh_timeout = float(value)
            except ValueError:
                raise ValueError(f"logrebase.refreshTimeout: invalid value {value!r}")

        return cls(
            abbreviate_commands=abbreviate_commands,
            comment_char=comment_char,
            abbrev=abbrev,
            max_commits=max_commits,
            refresh_timeout=refresh_timeout,
        )

    @classmethod
    def from_repo(cls, repo: BaseRepo) -> "LogRebaseConfig":
        return cls.from_config(repo.get_config_stack())
