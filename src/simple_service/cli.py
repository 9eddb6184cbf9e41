#!/usr/bin/env python3
"""simple-service CLI for managing resources."""

import argparse
import asyncio
import sys

import psycopg
import questionary
from rich.console import Console
from rich.table import Table

from simple_service.config import config
from simple_service.db import PooledDB
from simple_service.errors import RepositoryError
from simple_service.log import configure_logging
from simple_service.resource import Resource, ResourceRepository

console = Console()


async def init_db(args) -> None:
    """Create the schema."""
    from simple_service.schema import apply_migrations

    applied = await apply_migrations(config.database_url)
    console.print(f"[green]Applied {applied} migration(s).[/]")


async def create_resource(repo: ResourceRepository, args) -> None:
    await repo.create(Resource(name=args.name))
    console.print(f"[green]Created resource [bold]{args.name}[/].[/]")


async def get_resource(repo: ResourceRepository, args) -> None:
    resource = await repo.read(args.id)
    console.print(f"{resource.id}\t{resource.name}")


async def list_resources(repo: ResourceRepository, args) -> None:
    resources = await repo.read_all()
    if not resources:
        console.print("[dim]No resources found.[/]")
        return
    table = Table("ID", "Name")
    for resource in resources:
        table.add_row(str(resource.id), resource.name)
    console.print(table)


async def update_resource(repo: ResourceRepository, args) -> None:
    affected = await repo.update(Resource(id=args.id, name=args.name))
    if not affected:
        console.print(f"[yellow]No resource with id {args.id}; nothing updated.[/]")
        return
    console.print(f"[green]Renamed resource {args.id} to [bold]{args.name}[/].[/]")


async def delete_resource(repo: ResourceRepository, args) -> None:
    affected = await repo.delete(args.id)
    if not affected:
        console.print(f"[yellow]No resource with id {args.id}; nothing deleted.[/]")
        return
    console.print(f"[green]Deleted resource {args.id}.[/]")


async def with_repository(handler, args) -> None:
    """Open the pool, run one repository command, and close the pool."""
    async with PooledDB.from_config(config) as database:
        await handler(ResourceRepository(database), args)


REPOSITORY_COMMANDS = {
    "create": create_resource,
    "get": get_resource,
    "list": list_resources,
    "update": update_resource,
    "delete": delete_resource,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="simple-service CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the resources table")

    create = subparsers.add_parser("create", help="Create a resource")
    create.add_argument("name")

    get = subparsers.add_parser("get", help="Show one resource")
    get.add_argument("id", type=int)

    subparsers.add_parser("list", help="List all resources")

    update = subparsers.add_parser("update", help="Rename a resource")
    update.add_argument("id", type=int)
    update.add_argument("name")

    delete = subparsers.add_parser("delete", help="Delete a resource")
    delete.add_argument("id", type=int)
    delete.add_argument("--yes", action="store_true", help="Skip confirmation")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "delete" and not args.yes:
        if not questionary.confirm(f"Delete resource {args.id}?").ask():
            console.print("[dim]Cancelled.[/]")
            return 0

    try:
        if args.command == "init-db":
            asyncio.run(init_db(args))
        else:
            asyncio.run(with_repository(REPOSITORY_COMMANDS[args.command], args))
    except (RepositoryError, psycopg.Error, FileNotFoundError) as e:
        console.print(f"[red]{e}[/]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
