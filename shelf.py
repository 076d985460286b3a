#!/usr/bin/env python3
"""Bookshelf CLI - manage a personal book collection."""
import argparse
import asyncio
import inspect
import sys
import json
from tabulate import tabulate
from bookshelf.config import Config
from bookshelf.database import Database
from bookshelf.errors import BookshelfError, ConfigError, ErrorKind, StoreError
from bookshelf.gateway import AsyncBookGateway, BookGateway
from bookshelf.rest_store import RestStore
from bookshelf.staleness import LIST_VIEW
from bookshelf.view import derive_view
import logging

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Could not complete this action, try again."


def setup_gateway(config: Config):
    """Build the gateway for the configured backend."""
    if config.BACKEND == "rest":
        store = RestStore(
            config.SUPABASE_URL,
            config.SUPABASE_ANON_KEY,
            timeout=config.DEFAULT_TIMEOUT
        )
        return AsyncBookGateway(store)

    db = Database(config.DATABASE_URL, config.DB_MIN_CONN, config.DB_MAX_CONN)
    return BookGateway(db)


async def resolve(value):
    """Await gateway results from the async gateway; pass sync ones through."""
    if inspect.isawaitable(value):
        return await value
    return value


async def close_gateway(gateway):
    await resolve(gateway.store.close())


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Author", "Tags", "Cover"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author[:30] + "..." if len(book.author) > 30 else book.author,
                book.tags_str[:30] + "..." if len(book.tags_str) > 30 else book.tags_str,
                "yes" if book.cover_url else ""
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author}")


async def list_books(args, gateway):
    """Fetch the collection and print the filtered, sorted view."""
    books = (await resolve(gateway.list_books())).unwrap()
    view = derive_view(books, args.search, args.tag, args.sort)

    if view.is_empty:
        print(view.empty_message)
        return

    display_books(view.books, args.format)
    if args.format != "json":
        print(f"\n{view.summary}")
        if view.tags:
            print(f"Tags: {', '.join(view.tags)}")


async def list_tags(args, gateway):
    books = (await resolve(gateway.list_books())).unwrap()
    for tag in derive_view(books).tags:
        print(tag)


async def show_book(args, gateway):
    book = (await resolve(gateway.get_book(args.id))).unwrap()
    if book is None:
        print("Book not found")
        return 1
    display_books([book], args.format)


async def add_book(args, gateway):
    result = await resolve(gateway.create_book({
        "title": args.title,
        "author": args.author,
        "tags": args.tags,
        "cover_url": args.cover_url,
    }))
    book = result.unwrap()
    print(f"✅ Added {book.title} ({book.id})")
    await refresh(gateway, result.stale)


async def edit_book(args, gateway):
    """Prefill from the stored record, overlay the given flags, update."""
    current = (await resolve(gateway.get_book(args.id))).unwrap()
    if current is None:
        print("Book not found")
        return 1

    form = {
        "title": current.title,
        "author": current.author,
        "tags": current.tags_str,
        "cover_url": current.cover_url or "",
    }
    for field in form:
        value = getattr(args, field)
        if value is not None:
            form[field] = value

    result = await resolve(gateway.update_book(args.id, form))
    book = result.unwrap()
    print(f"✅ Updated {book.title} ({book.id})")
    await refresh(gateway, result.stale)


async def delete_book(args, gateway):
    result = await resolve(gateway.delete_book(args.id))
    result.unwrap()
    print(f"✅ Deleted {args.id}")
    await refresh(gateway, result.stale)


async def refresh(gateway, stale):
    """Re-fetch the list after a mutation marked it stale."""
    if LIST_VIEW not in stale:
        return
    books = (await resolve(gateway.list_books())).unwrap()
    print(f"Collection now holds {len(books)} book{'s' if len(books) != 1 else ''}")


async def init_db(args, gateway):
    if not isinstance(gateway.store, Database):
        print("init-db only applies to the postgres backend")
        return 1
    gateway.store.init_schema()
    print("✅ Schema ready")


COMMANDS = {
    "init-db": init_db,
    "list": list_books,
    "tags": list_tags,
    "show": show_book,
    "add": add_book,
    "edit": edit_book,
    "delete": delete_book,
}


async def run_command(args, config: Config) -> int:
    try:
        gateway = setup_gateway(config)
    except StoreError:
        print(f"❌ Could not connect to the database. {GENERIC_FAILURE}")
        return 1

    try:
        return await COMMANDS[args.command](args, gateway) or 0
    except BookshelfError as e:
        if e.kind is ErrorKind.STORE_UNAVAILABLE:
            print(f"❌ {e}. {GENERIC_FAILURE}")
        else:
            print(f"❌ {e}")
        return 1
    except StoreError:
        print(f"❌ {GENERIC_FAILURE}")
        return 1
    finally:
        await close_gateway(gateway)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookshelf - personal book collection manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a book
  %(prog)s add --title "Dune" --author "Frank Herbert" --tags "sci-fi, classic"

  # Search and filter
  %(prog)s list --search dune --tag classic --sort desc

  # Edit only the tags
  %(prog)s edit <id> --tags "sci-fi, favourite"
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create the books table (postgres backend)")

    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--search", default="", help="Case-insensitive title search")
    list_parser.add_argument("--tag", help="Only books with this exact tag")
    list_parser.add_argument("--sort", choices=["asc", "desc"], default="asc", help="Title order")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    subparsers.add_parser("tags", help="List all tags in use")

    show_parser = subparsers.add_parser("show", help="Show one book")
    show_parser.add_argument("id", help="Book ID")
    show_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    add_parser = subparsers.add_parser("add", help="Add a book")
    add_parser.add_argument("--title", required=True, help="Title")
    add_parser.add_argument("--author", required=True, help="Author")
    add_parser.add_argument("--tags", default="", help="Comma-separated tags")
    add_parser.add_argument("--cover-url", dest="cover_url", default="", help="Cover image URL")

    edit_parser = subparsers.add_parser("edit", help="Edit a book")
    edit_parser.add_argument("id", help="Book ID")
    edit_parser.add_argument("--title", help="New title")
    edit_parser.add_argument("--author", help="New author")
    edit_parser.add_argument("--tags", help="New comma-separated tags")
    edit_parser.add_argument("--cover-url", dest="cover_url", help="New cover image URL (empty to clear)")

    delete_parser = subparsers.add_parser("delete", help="Delete a book")
    delete_parser.add_argument("id", help="Book ID")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = Config().validate()
    except ConfigError as e:
        logger.error(f"❌ Configuration error: {e}")
        sys.exit(2)

    try:
        sys.exit(asyncio.run(run_command(args, config)))
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
