#!/usr/bin/env python3
"""Command line access to saved journals.

Usage:
  python devjournal.py files
  python devjournal.py show [FILE]
  python devjournal.py add-task FILE PROJECT SUBPROJECT DESC
  python devjournal.py merge TARGET SOURCE

Relative file names are looked up in the data directory. The password is
read from ``--password`` or prompted for.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import journal_store
from journal_crypto import CryptoError
from journal_model import Journal, Task
from journal_store import StoreError


class CommandError(Exception):
    """Raised for bad command arguments that argparse cannot catch."""


def _resolve(datadir: Path, name: str) -> Path:
    path = Path(name).expanduser()
    return path if path.is_absolute() else datadir / path


def _password(args: argparse.Namespace, prompt: str = "Password: ") -> str:
    if args.password is not None:
        return args.password
    return getpass.getpass(prompt)


def format_journal(journal: Journal) -> List[str]:
    """Render a journal as indented lines; ``>`` marks the selection."""
    lines = [f"Journal: {journal.name}"]
    for p_index, project in enumerate(journal.projects):
        marker = ">" if p_index == journal.projects.selection else " "
        lines.append(f"{marker} {project.name}")
        for s_index, subproject in enumerate(project.subprojects):
            marker = ">" if s_index == project.subprojects.selection else " "
            lines.append(f"    {marker} [{subproject.name}]")
            for t_index, task in enumerate(subproject.tasks):
                marker = ">" if t_index == subproject.tasks.selection else " "
                check = "x" if task.completed else " "
                lines.append(f"        {marker} [{check}] {task.desc}")
    return lines


def cmd_files(args: argparse.Namespace, datadir: Path) -> int:
    for name in journal_store.list_data_files(datadir):
        print(name)
    return 0


def cmd_show(args: argparse.Namespace, datadir: Path) -> int:
    if args.file:
        path = _resolve(datadir, args.file)
    else:
        last_path = journal_store.read_last_path(datadir)
        if last_path is None:
            raise CommandError("No file given and no last used file recorded")
        path = last_path
    journal = journal_store.load_journal(path, _password(args))
    print("\n".join(format_journal(journal)))
    return 0


def cmd_add_task(args: argparse.Namespace, datadir: Path) -> int:
    path = _resolve(datadir, args.file)
    password = _password(args)
    journal = journal_store.load_journal(path, password)

    project = next((p for p in journal.projects if p.name == args.project), None)
    if project is None:
        raise CommandError(f"Project not found: {args.project}")
    subproject = next((s for s in project.subprojects if s.name == args.subproject), None)
    if subproject is None:
        raise CommandError(f"Subproject not found: {args.subproject}")

    subproject.tasks.push_item(Task(desc=args.desc))
    project.dirty = True
    journal_store.save(journal, path, password)
    journal_store.write_last_path(datadir, path)
    print(f"Added task to {project.name}/{subproject.name}: {args.desc}")
    return 0


def cmd_merge(args: argparse.Namespace, datadir: Path) -> int:
    target = _resolve(datadir, args.target)
    source = _resolve(datadir, args.source)
    password = _password(args, "Password for target: ")
    if args.source_password is not None:
        source_password = args.source_password
    elif args.password is not None:
        source_password = args.password
    else:
        source_password = getpass.getpass("Password for source: ")

    journal = journal_store.load_journal(target, password)
    merged = journal_store.load_merge(journal, source, source_password)
    journal_store.save(merged, target, password)
    print(f"Merged {source.name} into {target.name} ({len(merged.projects)} projects)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="devjournal", description="Inspect and edit encrypted journals.")
    parser.add_argument("--data-dir", help="Data directory (default: per-user data directory).")
    parser.add_argument("--password", help="File password (prompted for when omitted).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log file operations.")
    sub = parser.add_subparsers(dest="command", required=True)

    files = sub.add_parser("files", help="List files in the data directory, newest first.")
    files.set_defaults(func=cmd_files)

    show = sub.add_parser("show", help="Print a journal's projects and tasks.")
    show.add_argument("file", nargs="?", help="Journal file (default: last used file).")
    show.set_defaults(func=cmd_show)

    add_task = sub.add_parser("add-task", help="Append a task to a subproject and save.")
    add_task.add_argument("file")
    add_task.add_argument("project")
    add_task.add_argument("subproject")
    add_task.add_argument("desc")
    add_task.set_defaults(func=cmd_add_task)

    merge = sub.add_parser("merge", help="Merge SOURCE into TARGET and save TARGET.")
    merge.add_argument("target")
    merge.add_argument("source")
    merge.add_argument("--source-password", help="Password for SOURCE (default: --password).")
    merge.set_defaults(func=cmd_merge)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        datadir = Path(args.data_dir).expanduser() if args.data_dir else journal_store.data_dir()
        return args.func(args, datadir)
    except (StoreError, CryptoError, CommandError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
