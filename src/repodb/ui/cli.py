"""Command-line interface router for repodb."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Final

import yaml

from repodb.config import dump_redacted, load_config
from repodb.config.loader import build_store
from repodb.observability import correlation_scope, setup_logging
from repodb.query import COMPARISONS, QueryLiteral, QueryNode, all_of, comparison, ref
from repodb.utils.json_paths import lookup_path

if TYPE_CHECKING:
    from repodb.store import GitStore

OUTPUT_FORMATS: Final[tuple[str, ...]] = ("json", "yaml")
_MISSING: Final = object()


class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="repodb",
        description=(
            "repodb: JSON documents stored in a git repository.\n\n"
            "Common workflows:\n"
            "  repodb init                          Clone or repair the working copy\n"
            "  repodb get users/alice.json          Print a document\n"
            "  repodb set users/alice.json age 31   Update one key\n"
            "  repodb commit 'update alice'         Commit all changes\n"
            "  repodb find --where age '>=' 18      Query documents\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to repodb TOML config (default: ./repodb.toml if present).",
    )
    common.add_argument(
        "--store",
        default=None,
        help="Configured store name (optional when exactly one store is configured).",
    )
    common.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="json",
        help="Output format (default: json).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        parents=[common],
        help="Clone the store, or re-clone an invalid working directory",
    )
    init_parser.set_defaults(handler=_cmd_init)

    pull_parser = subparsers.add_parser(
        "pull", parents=[common], help="Integrate remote changes"
    )
    pull_parser.add_argument(
        "--rebase", action="store_true", help="Rebase local commits instead of merging"
    )
    pull_parser.set_defaults(handler=_cmd_pull)

    commit_parser = subparsers.add_parser(
        "commit", parents=[common], help="Stage and commit every change"
    )
    commit_parser.add_argument("message", help="Commit message")
    commit_parser.set_defaults(handler=_cmd_commit)

    push_parser = subparsers.add_parser("push", parents=[common], help="Push local commits")
    push_parser.set_defaults(handler=_cmd_push)

    clean_parser = subparsers.add_parser(
        "clean", parents=[common], help="Discard all uncommitted state"
    )
    clean_parser.set_defaults(handler=_cmd_clean)

    get_parser = subparsers.add_parser(
        "get", parents=[common], help="Print a document or one of its keys"
    )
    get_parser.add_argument("document", help="Document path relative to the store root")
    get_parser.add_argument("key", nargs="?", default=None, help="Optional dotted key")
    get_parser.set_defaults(handler=_cmd_get)

    set_parser = subparsers.add_parser(
        "set",
        parents=[common],
        help="Set a dotted key in a document",
        description=(
            "Set KEY to VALUE. VALUE is parsed as JSON when possible, otherwise it is\n"
            "stored as a string.\n\n"
            "Examples:\n"
            "  repodb set users/alice.json age 31\n"
            "  repodb set users/alice.json address.city Berlin --create\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    set_parser.add_argument("document", help="Document path relative to the store root")
    set_parser.add_argument("key", help="Dotted key")
    set_parser.add_argument("value", help="JSON value or plain string")
    set_parser.add_argument(
        "--create", action="store_true", help="Create the document when it does not exist"
    )
    set_parser.set_defaults(handler=_cmd_set)

    unset_parser = subparsers.add_parser(
        "unset", parents=[common], help="Remove a dotted key from a document"
    )
    unset_parser.add_argument("document", help="Document path relative to the store root")
    unset_parser.add_argument("key", help="Dotted key")
    unset_parser.set_defaults(handler=_cmd_unset)

    find_parser = subparsers.add_parser(
        "find",
        parents=[common],
        help="Find documents matching every --where clause",
        description=(
            "Scan JSON documents and print those matching all clauses.\n\n"
            "Examples:\n"
            "  repodb find --where name == '\"alice\"'\n"
            "  repodb find --collection users --where age '>=' 18 --where active == true\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    find_parser.add_argument(
        "--where",
        nargs=3,
        action="append",
        default=[],
        metavar=("FIELD", "OP", "VALUE"),
        help=f"Clause; OP is one of {' '.join(COMPARISONS)}",
    )
    find_parser.add_argument(
        "--collection", default=None, help="Restrict the scan to a sub-directory"
    )
    find_parser.add_argument(
        "--one", action="store_true", help="Print only the first match (or null)"
    )
    find_parser.set_defaults(handler=_cmd_find)

    config_parser = subparsers.add_parser(
        "config", parents=[common], help="Print the effective (redacted) configuration"
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        config = load_config(namespace.config_path)
        setup_logging(config.get("observability"))
        with correlation_scope(store=namespace.store, operation=namespace.command):
            result = handler(namespace, config)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_init(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    store = _store(args, config)
    result = store.initialize()
    _emit(
        args,
        {
            "command": "init",
            "store": store.name,
            "path": result.repo_path.as_posix(),
            "cloned": result.cloned,
            "recreated": result.recreated,
        },
    )
    return 0


def _cmd_pull(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    store = _store(args, config)
    store.pull(rebase=bool(args.rebase))
    _emit(args, {"command": "pull", "store": store.name, "rebase": bool(args.rebase)})
    return 0


def _cmd_commit(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    store = _store(args, config)
    sha = store.commit(args.message)
    _emit(args, {"command": "commit", "store": store.name, "commit": sha})
    return 0


def _cmd_push(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    store = _store(args, config)
    store.push()
    _emit(args, {"command": "push", "store": store.name})
    return 0


def _cmd_clean(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    store = _store(args, config)
    store.clean()
    _emit(args, {"command": "clean", "store": store.name})
    return 0


def _cmd_get(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    document = _store(args, config).document(args.document)
    with correlation_scope(document=document.path):
        content = document.read()
    if args.key is None:
        _emit(args, content)
        return 0

    value = lookup_path(content, args.key, _MISSING)
    if value is _MISSING:
        raise CLIError(f"key not found in {document.path}: {args.key}")
    _emit(args, value)
    return 0


def _cmd_set(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    document = _store(args, config).document(args.document)
    with correlation_scope(document=document.path):
        if args.create and not document.exists():
            document.create({})
        content = document.update(args.key, parse_value(args.value))
    _emit(args, content)
    return 0


def _cmd_unset(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    document = _store(args, config).document(args.document)
    with correlation_scope(document=document.path):
        content = document.delete(args.key)
    _emit(args, content)
    return 0


def _cmd_find(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    store = _store(args, config)
    query = build_query(args.where)
    if args.one:
        _emit(args, store.find_one(query, collection=args.collection))
    else:
        _emit(args, store.find_many(query, collection=args.collection))
    return 0


def _cmd_config(args: argparse.Namespace, config: Mapping[str, object]) -> int:
    _emit(args, {"command": "config", "config": dump_redacted(config)})
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_value(raw: str) -> Any:
    """Parse a command-line value as JSON, falling back to the raw string."""

    try:
        return json.loads(raw)
    except ValueError:
        return raw


def build_query(clauses: Sequence[Sequence[str]]) -> QueryNode:
    """Conjunction of ``(field, op, value)`` clauses; no clauses matches everything."""

    nodes: list[QueryNode] = []
    for field_name, symbol, raw_value in clauses:
        if symbol not in COMPARISONS:
            expected = ", ".join(COMPARISONS)
            raise CLIError(f"unsupported operator {symbol!r}; expected one of: {expected}", 2)
        literal = QueryLiteral.from_python(parse_value(raw_value))
        if literal is None:
            raise CLIError(f"query value must be a JSON scalar: {raw_value}", exit_code=2)
        nodes.append(comparison(symbol, ref(field_name), literal))
    return all_of(*nodes)


def _store(args: argparse.Namespace, config: Mapping[str, object]) -> GitStore:
    return build_store(config, args.store)


def _emit(args: argparse.Namespace, payload: object) -> None:
    """Write a payload to stdout in the selected output format."""

    if args.output_format == "yaml":
        sys.stdout.write(yaml.safe_dump(payload, sort_keys=True, allow_unicode=True))
        return
    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


__all__ = ["CLIError", "build_parser", "build_query", "parse_value", "run_cli"]
