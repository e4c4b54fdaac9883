"""Command-line family tree viewer.

Usage:
    python -m src.cli seed
    python -m src.cli list
    python -m src.cli tree <member-id>
    python -m src.cli add-relative child <parent-id> Neha --gender female
"""

import argparse
import asyncio
import sys
from typing import Optional

from src.config import Settings, StorageBackend
from src.graph.errors import FamilyGraphError
from src.graph.family.ego import specific_label
from src.graph.family.graph import FamilyGraph
from src.graph.storage import create_storage
from src.logging_setup import configure_logging
from src.models import Member


def _describe(member: Member) -> str:
    nick = f" \"{member.nickname}\"" if member.nickname else ""
    return f"{member.full_name}{nick} [{member.id}] gen {member.generation}"


def _print_group(title: str, members: list[Member]) -> None:
    if not members:
        return
    print(f"   {title}:")
    for member in members:
        print(f"      • {_describe(member)}")


async def _run(args: argparse.Namespace, config: Settings) -> int:
    graph = await FamilyGraph.open(create_storage(config), config)
    async with graph:
        if args.command == "seed":
            created = await graph.seed_sample_family()
            print(f"Seeded {len(created)} members" if created else "Graph already has members, nothing seeded")

        elif args.command == "list":
            members = await graph.get_all_members()
            print(f"{len(members)} member(s)")
            for member in members:
                print(f"   {_describe(member)}")

        elif args.command == "search":
            for member in await graph.search_members(args.query):
                print(f"   {_describe(member)}")

        elif args.command == "tree":
            tree = await graph.get_rooted_tree(args.member_id)
            if tree.focus is None:
                print(f"No member with id {args.member_id}")
                return 1
            print(f"👤 {_describe(tree.focus)}")
            _print_group("Grandparents", tree.grandparents)
            _print_group("Parents", tree.parents)
            _print_group("Aunts/Uncles", tree.aunts_uncles)
            _print_group("Spouses", tree.spouses)
            _print_group("Siblings", tree.siblings)
            _print_group("Cousins", tree.cousins)
            _print_group("Children", tree.children)

        elif args.command == "path":
            label = await graph.get_relationship_path(args.from_id, args.to_id)
            if label is None:
                print("No relationship within two hops")
            else:
                other = await graph.get_member(args.to_id)
                print(f"{other.full_name} is {specific_label(label, other.gender)} ({label.value})")

        elif args.command == "add-member":
            member = await graph.add_member(given_name=args.name, family_name=args.family_name,
                                            gender=args.gender)
            print(f"Added {_describe(member)}")

        elif args.command == "add-relative":
            result = await graph.add_relative(args.kind, args.anchor_id, given_name=args.name,
                                              family_name=args.family_name, gender=args.gender,
                                              share_parents=not args.no_shared_parents)
            print(f"Added {_describe(result.member)} with {len(result.edges)} edge(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="family-graph",
        description="Inspect and edit a family relationship graph",
    )
    parser.add_argument("--backend", choices=[b.value for b in StorageBackend],
                        help="Storage backend (or set FAMILY_STORAGE_BACKEND)")
    parser.add_argument("--path", metavar="PATH", help="Data file for the json or sqlite backend")
    parser.add_argument("--log-level", metavar="LEVEL", help="Logging level (default: settings)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("seed", help="Load the sample family into an empty graph")
    sub.add_parser("list", help="List all members")

    search = sub.add_parser("search", help="Search members by name")
    search.add_argument("query")

    tree = sub.add_parser("tree", help="Show a member's rooted tree")
    tree.add_argument("member_id")

    path = sub.add_parser("path", help="How one member is related to another")
    path.add_argument("from_id")
    path.add_argument("to_id")

    for name, help_text in (("add-member", "Add an unconnected member"),
                            ("add-relative", "Add a relative to an existing member")):
        cmd = sub.add_parser(name, help=help_text)
        if name == "add-relative":
            cmd.add_argument("kind", choices=["parent", "spouse", "sibling", "child"])
            cmd.add_argument("anchor_id")
            cmd.add_argument("--no-shared-parents", action="store_true",
                             help="For siblings: do not link to the member's parents")
        cmd.add_argument("name")
        cmd.add_argument("--family-name")
        cmd.add_argument("--gender", choices=["male", "female", "other", "unknown"], default="unknown")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    config = Settings()
    if args.backend:
        config.storage.backend = StorageBackend(args.backend)
    if args.path:
        if config.storage.backend is StorageBackend.JSON:
            config.storage.json_path = args.path
        else:
            config.storage.sqlite_path = args.path
    config.storage.ensure_dirs()

    try:
        return asyncio.run(_run(args, config))
    except FamilyGraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
