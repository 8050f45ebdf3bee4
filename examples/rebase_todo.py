#!/usr/bin/python3
# Example printing the todo list "git rebase -i <commit>^" would start with

import sys

from dulwich.objectspec import parse_commit
from dulwich.repo import Repo

from logrebase import (
    CantRebaseUsingLogException,
    RepoHistoryIndex,
    get_entries_using_log,
    wait_for_full_data_pack,
)

if len(sys.argv) < 2:
    print(f"usage: {sys.argv[0]} commit")
    sys.exit(1)

with Repo(".") as r:
    commit_id = parse_commit(r, sys.argv[1]).id

index = wait_for_full_data_pack(RepoHistoryIndex(), ["."])
try:
    entries = get_entries_using_log(".", commit_id, index)
except CantRebaseUsingLogException as e:
    print(f"Can't derive the todo list from history: {e.reason.name}")
    sys.exit(2)

for entry in entries:
    print(entry.to_string())
