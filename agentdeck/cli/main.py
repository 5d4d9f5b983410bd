"""agentdeck command line.

Without a subcommand the curses panel starts. The other commands edit the
session store directly or write hook status files for agent hook scripts.
"""

from __future__ import annotations

import argparse
import curses
import queue
import sys
from pathlib import Path

from loguru import logger

from agentdeck.cli.tui.projector import project_items
from agentdeck.cli.tui.types import ItemType
from agentdeck.config import DeckConfig, get_config, hooks_dir_for, storage_path_for
from agentdeck.constants import MAX_NAME_LENGTH
from agentdeck.core.errors import ConfigError, DeckError
from agentdeck.core.hook_status import status_for_event, write_hook_status
from agentdeck.core.messages import UiMessage
from agentdeck.core.storage import SessionStorage
from agentdeck.logging_config import setup_logging
from agentdeck.paths import UI_STATE_PATH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agentdeck", description="Terminal panel for AI coding-agent sessions.")
    parser.add_argument("--store", type=Path, help="Session store file (default from config)")
    parser.add_argument("--hooks-dir", type=Path, help="Hook status directory (default from config)")
    parser.add_argument("--log-level", help="Log level for the file log")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("tui", help="Run the session panel")
    sub.add_parser("ls", help="Print the session tree")

    group = sub.add_parser("group", help="Manage groups")
    group_sub = group.add_subparsers(dest="group_command", required=True)
    group_add = group_sub.add_parser("add", help="Create a group")
    group_add.add_argument("path", help="Group path, e.g. work/backend")
    group_add.add_argument("--name", help="Display name (defaults to the last path segment)")
    group_rm = group_sub.add_parser("rm", help="Delete a group")
    group_rm.add_argument("path")
    group_rm.add_argument("--cascade", action="store_true", help="Also delete subgroups and sessions")
    group_rename = group_sub.add_parser("rename", help="Change a group's display name")
    group_rename.add_argument("path")
    group_rename.add_argument("name")

    add = sub.add_parser("add", help="Create a session")
    add.add_argument("title")
    add.add_argument("-g", "--group", default="", help="Group path (default: ungrouped)")
    add.add_argument("-t", "--tool", help="Agent tool (default from config)")
    add.add_argument("--project", default="", help="Project directory")
    add.add_argument("--worktree", help="Worktree directory backing the session")
    add.add_argument("--command", dest="session_command", default="", help="Launch command")
    add.add_argument("--yolo", action="store_true", help="Mark the session as running in yolo mode")

    fork = sub.add_parser("fork", help="Fork a session into a sub-session")
    fork.add_argument("session_id")
    fork.add_argument("title", nargs="?")

    rm = sub.add_parser("rm", help="Delete a session")
    rm.add_argument("session_id")

    hook = sub.add_parser("hook", help="Write a hook status file")
    hook.add_argument("session_id")
    hook.add_argument("status", nargs="?", help="running, waiting, idle, starting, dead or error")
    hook.add_argument("--event", default="", help="Agent hook event name; derives the status when none is given")
    hook.add_argument("--matcher", help="Notification matcher, e.g. permission_prompt")
    hook.add_argument("--agent-session-id", default="")
    hook.add_argument("--tool")
    return parser


def _storage(args: argparse.Namespace, cfg: DeckConfig) -> SessionStorage:
    return SessionStorage(args.store or storage_path_for(cfg), custom_tools=cfg.custom_tools)


def _hooks_dir(args: argparse.Namespace, cfg: DeckConfig) -> Path:
    return args.hooks_dir or hooks_dir_for(cfg)


def _cmd_ls(args: argparse.Namespace, cfg: DeckConfig) -> int:
    tree = _storage(args, cfg).load()
    for item in project_items(tree):
        indent = "  " * item.level
        if item.type is ItemType.GROUP:
            assert item.group is not None
            marker = "▾" if item.group.expanded else "▸"
            print(f"{indent}{marker} {item.group.name} [{item.path}] ({tree.recursive_session_count(item.path)})")
        else:
            assert item.session is not None
            session = item.session
            fork = "↳ " if item.is_sub_session else ""
            print(f"{indent}{fork}{session.title}  {session.tool.get()}  {session.status.get().value}  {session.session_id}")
    return 0


def _cmd_group(args: argparse.Namespace, cfg: DeckConfig) -> int:
    storage = _storage(args, cfg)
    tree = storage.load()
    if args.group_command == "add":
        name = args.name or args.path.rsplit("/", 1)[-1]
        group = tree.create_group(args.path, name)
        storage.save(tree)
        print(group.path)
    elif args.group_command == "rename":
        tree.rename_group(args.path, args.name)
        storage.save(tree)
        print(tree.groups[args.path].name)
    else:
        removed = tree.delete_group(args.path, cascade=args.cascade)
        storage.save(tree)
        print(f"Deleted {args.path} ({len(removed)} sessions)")
    return 0


def _cmd_add(args: argparse.Namespace, cfg: DeckConfig) -> int:
    storage = _storage(args, cfg)
    tree = storage.load()
    session = tree.create_session(
        args.group,
        args.title,
        args.tool or cfg.default_tool,
        project_path=args.project,
        worktree_path=args.worktree,
        command=args.session_command,
        yolo_mode=args.yolo,
    )
    storage.save(tree)
    print(session.session_id)
    return 0


def _cmd_fork(args: argparse.Namespace, cfg: DeckConfig) -> int:
    storage = _storage(args, cfg)
    tree = storage.load()
    parent = tree.get_session(args.session_id)
    fork = tree.fork_session(parent.session_id, args.title or f"{parent.title} (fork)"[:MAX_NAME_LENGTH])
    storage.save(tree)
    print(fork.session_id)
    return 0


def _cmd_rm(args: argparse.Namespace, cfg: DeckConfig) -> int:
    storage = _storage(args, cfg)
    tree = storage.load()
    tree.delete_session(args.session_id)
    storage.save(tree)
    return 0


def _cmd_hook(args: argparse.Namespace, cfg: DeckConfig) -> int:
    status = args.status or (status_for_event(args.event, args.matcher) if args.event else None)
    if status is None:
        # Events without a status mapping are not an error for hook scripts
        logger.debug("Hook event {} carries no status", args.event)
        return 0
    write_hook_status(
        _hooks_dir(args, cfg),
        args.session_id,
        status,
        event=args.event,
        agent_session_id=args.agent_session_id,
        tool=args.tool,
    )
    return 0


def _cmd_tui(args: argparse.Namespace, cfg: DeckConfig) -> int:
    from agentdeck.cli.tui.app import DeckApp
    from agentdeck.cli.tui.controller import DeckController
    from agentdeck.cli.tui.theme import Theme
    from agentdeck.core.pr_cache import PRCache
    from agentdeck.core.status_sync import start_status_sync
    from agentdeck.core.store_watcher import start_store_watch

    storage = _storage(args, cfg)
    tree = storage.load()
    inbox: queue.Queue[UiMessage] = queue.Queue()
    hooks_dir = _hooks_dir(args, cfg) if cfg.watcher.enabled else None
    synchronizer = start_status_sync(hooks_dir, inbox, debounce_s=cfg.watcher.debounce_seconds)
    store_watcher = start_store_watch(storage.path, inbox)
    controller = DeckController(
        tree,
        synchronizer,
        storage=storage,
        store_watcher=store_watcher,
        pr_cache=PRCache(cfg.pr_cache.ttl_seconds),
        default_tool=cfg.default_tool,
        ui_state_path=UI_STATE_PATH,
    )
    app = DeckApp(
        controller,
        inbox,
        Theme.for_mode(cfg.ui.theme),
        confirm_delete=cfg.ui.confirm_delete,
        show_hotkeys=cfg.ui.show_hotkeys,
    )
    try:
        curses.wrapper(app.run)
    finally:
        controller.close()
    return 0


_COMMANDS = {
    None: _cmd_tui,
    "tui": _cmd_tui,
    "ls": _cmd_ls,
    "group": _cmd_group,
    "add": _cmd_add,
    "fork": _cmd_fork,
    "rm": _cmd_rm,
    "hook": _cmd_hook,
}


def run(argv: list[str] | None = None, cfg: DeckConfig | None = None) -> int:
    """Parse argv and execute one command. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        cfg = cfg or get_config()
    except ConfigError as exc:
        # Logging is not set up yet
        sys.stderr.write(f"agentdeck error: {exc}\n")
        return 1
    setup_logging(args.log_level or cfg.log_level)
    handler = _COMMANDS[args.command]
    try:
        return handler(args, cfg)
    except DeckError as exc:
        logger.warning("agentdeck {} failed: {}", args.command, exc)
        sys.stderr.write(f"agentdeck error: {exc}\n")
        return 1


def main() -> None:
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
