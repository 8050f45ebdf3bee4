# log_utils.py -- Logging utilities for logrebase
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

"""Logging utilities for logrebase.

logrebase is mostly used as a library, so nothing is printed unless the
application configures logging. A no-op handler is attached to the
``logrebase`` logger to keep the logging module from complaining about
missing handlers.

Modules only need ``getLogger``, which is re-exported here. The command line
calls ``default_logging_config`` which honours ``GIT_TRACE`` the same way git
does.
"""

import logging
import os
import sys
from typing import Optional, Union

getLogger = logging.getLogger

TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """Handler that drops every record."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_LOGREBASE_LOGGER = getLogger("logrebase")
_LOGREBASE_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> Optional[Union[str, int]]:
    """Work out where GIT_TRACE output should go.

    Returns:
        None when tracing is off, 2 for stderr, a file descriptor between 3
        and 9, or an absolute path (file or directory).
    """
    value = os.environ.get("GIT_TRACE", "")
    if value.lower() in ("", "0", "false"):
        return None
    if value.lower() in ("1", "2", "true"):
        return 2
    if value.isdigit() and 3 <= int(value) <= 9:
        return int(value)
    if os.path.isabs(value):
        return value
    return None


def _configure_logging_from_trace() -> bool:
    """Configure debug logging from GIT_TRACE.

    Returns:
        True if a trace destination was set up.
    """
    target = _get_trace_target()
    if target is None:
        return False
    if target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=TRACE_FORMAT)
        return True
    try:
        if isinstance(target, int):
            stream = os.fdopen(target, "w", buffering=1)
            logging.basicConfig(level=logging.DEBUG, stream=stream, format=TRACE_FORMAT)
            return True
        if os.path.isdir(target):
            target = os.path.join(target, f"trace.{os.getpid()}")
        logging.basicConfig(
            level=logging.DEBUG, filename=target, filemode="a", format=TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open GIT_TRACE target {target}: {e}\n")
        return False
    return True


def default_logging_config() -> None:
    """Set up logging for command line use.

    GIT_TRACE selects a debug destination; otherwise INFO and above go to
    stderr.
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(level=logging.INFO, stream=sys.stderr, format="%(message)s")


def remove_null_handler() -> None:
    """Remove the no-op handler from the logrebase logger."""
    _LOGREBASE_LOGGER.removeHandler(_NULL_HANDLER)
