"""
REPL - Interactive command shell for RecDB

Provides a command-line interface for managing databases, tables and
rows through DatabaseService. Arguments that carry data (columns, rows,
filters) are written as JSON.
"""

import json
import logging
import shlex
import sys
from typing import Any, Dict, List, Optional, Tuple

from .errors import RecDBError
from .service import DatabaseService


class REPL:
    """
    Interactive REPL (Read-Eval-Print Loop) for RecDB.

    Features:
    - One current database selected with .use
    - JSON arguments for columns, rows and filters
    - Pretty-printed row listings
    """

    BANNER = """
RecDB - typed tables stored as JSON files
Type .help for commands.
"""

    HELP = """
Databases:
  .databases                        List databases with size and table count
  .create <db>                      Create an empty database
  .dropdb <db>                      Delete a database and all its tables
  .use <db>                         Select the current database

Tables (current database):
  .tables                           List tables with size and row count
  .schema <table>                   Show columns of a table
  .createtable <table> <columns>    Columns as JSON list, e.g.
                                    [{"name": "id", "type": "integer", "autoIncrement": true}]
  .droptable <table>                Delete a table

Rows (current database):
  .rows <table> [page] [size]       Show one page of rows (default 1, 10)
  .insert <table> <row>             Row as JSON object
  .delete <table> <filter>          Delete first row matching JSON filter
  .update <table> <filter> <values> Update all rows matching JSON filter
  .project <table> <col> [col...]   Show a projection onto the given columns

  .help                             Show this help message
  .quit / .exit                     Exit the REPL

Types: integer, real, char, string, complexInteger, complexReal
"""

    def __init__(self, data_dir: Optional[str] = None, service: Optional[DatabaseService] = None):
        """Initialize REPL with a service over data_dir."""
        self.service = service or DatabaseService(data_dir)
        self.current_db: Optional[str] = None
        self.running = False

    def run(self) -> None:
        """Start the REPL loop."""
        self.running = True
        print(self.BANNER)

        while self.running:
            try:
                line = input(self._get_prompt())
            except KeyboardInterrupt:
                print("\n(Use .quit to exit)")
                continue
            except EOFError:
                print()
                self._quit()
                continue
            self.execute(line)

    def _get_prompt(self) -> str:
        return f"recdb:{self.current_db}> " if self.current_db else "recdb> "

    def execute(self, line: str) -> None:
        """Run a single shell command line and print its outcome."""
        line = line.strip()
        if not line:
            return

        parts = line.split(None, 1)
        command = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ''

        handler = self.COMMANDS.get(command)
        if handler is None:
            print(f"Unknown command: {command}")
            print("Type .help for available commands.")
            return

        try:
            handler(self, args)
        except (RecDBError, ValueError) as e:
            print(f"Error: {e}")

    def _quit(self, args: str = '') -> None:
        print("Goodbye!")
        self.running = False

    def _help(self, args: str) -> None:
        print(self.HELP)

    def _require_db(self) -> str:
        if not self.current_db:
            raise ValueError("No database selected. Use .use <db> first.")
        return self.current_db

    @staticmethod
    def _split_name(args: str, usage: str) -> Tuple[str, str]:
        parts = args.split(None, 1)
        if not parts:
            raise ValueError(f"Usage: {usage}")
        return parts[0], parts[1] if len(parts) > 1 else ''

    @staticmethod
    def _parse_json_values(text: str, count: int, usage: str) -> List[Any]:
        """Read `count` JSON documents written one after another."""
        decoder = json.JSONDecoder()
        values = []
        pos = 0
        text = text.strip()
        for _ in range(count):
            while pos < len(text) and text[pos].isspace():
                pos += 1
            if pos >= len(text):
                raise ValueError(f"Usage: {usage}")
            try:
                value, pos = decoder.raw_decode(text, pos)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON argument: {e.msg}") from None
            values.append(value)
        if text[pos:].strip():
            raise ValueError(f"Usage: {usage}")
        return values

    @staticmethod
    def _parse_object(value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise ValueError("Expected a JSON object")
        return value

    # Databases

    def _databases(self, args: str) -> None:
        databases = self.service.list_databases()
        if not databases:
            print("No databases found.")
            return
        self._print_results(['name', 'size_bytes', 'table_count'], databases)

    def _create(self, args: str) -> None:
        name, _ = self._split_name(args, ".create <db>")
        self.service.create_database(name)
        print(f"Database '{name}' created.")

    def _dropdb(self, args: str) -> None:
        name, _ = self._split_name(args, ".dropdb <db>")
        self.service.drop_database(name)
        if self.current_db == name:
            self.current_db = None
        print(f"Database '{name}' dropped.")

    def _use(self, args: str) -> None:
        name, _ = self._split_name(args, ".use <db>")
        if not self.service.storage.database_exists(name):
            raise ValueError(f"Database '{name}' does not exist. Use .create {name} first.")
        self.current_db = name
        print(f"Using database '{name}'.")

    # Tables

    def _tables(self, args: str) -> None:
        tables = self.service.list_tables(self._require_db())
        if not tables:
            print("No tables found.")
            return
        self._print_results(['name', 'size_bytes', 'row_count'], tables)

    def _schema(self, args: str) -> None:
        table_name, _ = self._split_name(args, ".schema <table>")
        info = self.service.describe_table(self._require_db(), table_name)
        print(f"\nTable: {info['name']} ({info['row_count']} rows)")
        print("-" * 60)
        for col in info['columns']:
            flags = 'AUTO_INCREMENT' if col.get('autoIncrement') else ''
            print(f"  {col['name']:20} {col['type']:15} {flags}")
        print()

    def _createtable(self, args: str) -> None:
        usage = ".createtable <table> <columns-json>"
        table_name, rest = self._split_name(args, usage)
        columns, = self._parse_json_values(rest, 1, usage)
        if not isinstance(columns, list):
            raise ValueError("Columns must be a JSON list")
        self.service.create_table(self._require_db(), table_name, columns)
        print(f"Table '{table_name}' created.")

    def _droptable(self, args: str) -> None:
        table_name, _ = self._split_name(args, ".droptable <table>")
        self.service.drop_table(self._require_db(), table_name)
        print(f"Table '{table_name}' dropped.")

    # Rows

    def _rows(self, args: str) -> None:
        parts = shlex.split(args)
        if not parts or len(parts) > 3:
            raise ValueError("Usage: .rows <table> [page] [size]")
        page = int(parts[1]) if len(parts) > 1 else 1
        size = int(parts[2]) if len(parts) > 2 else 10
        result = self.service.get_rows_paginated(self._require_db(), parts[0], page, size)
        columns = [col['name'] for col in result['columns']]
        self._print_results(columns, result['rows'])
        meta = result['meta']
        print(f"page {meta['current_page']}/{meta['total_pages']}, "
              f"{meta['total_items']} row(s) total")

    def _insert(self, args: str) -> None:
        usage = ".insert <table> <row-json>"
        table_name, rest = self._split_name(args, usage)
        row, = self._parse_json_values(rest, 1, usage)
        stored = self.service.insert_row(self._require_db(), table_name, self._parse_object(row))
        print(f"Inserted: {json.dumps(stored, ensure_ascii=False)}")

    def _delete(self, args: str) -> None:
        usage = ".delete <table> <filter-json>"
        table_name, rest = self._split_name(args, usage)
        criteria, = self._parse_json_values(rest, 1, usage)
        result = self.service.delete_rows(self._require_db(), table_name, self._parse_object(criteria))
        print(f"({result['deleted_count']} row(s) deleted)")

    def _update(self, args: str) -> None:
        usage = ".update <table> <filter-json> <values-json>"
        table_name, rest = self._split_name(args, usage)
        criteria, values = self._parse_json_values(rest, 2, usage)
        result = self.service.update_rows(
            self._require_db(), table_name,
            self._parse_object(criteria), self._parse_object(values),
        )
        print(f"({result['updated_count']} row(s) updated)")

    def _project(self, args: str) -> None:
        parts = args.split()
        if len(parts) < 2:
            raise ValueError("Usage: .project <table> <col> [col...]")
        projected = self.service.project_table(self._require_db(), parts[0], parts[1:])
        self._print_results([col['name'] for col in projected['columns']], projected['rows'])

    def _print_results(self, columns: List[str], rows: List[Dict[str, Any]]) -> None:
        """Pretty-print rows as a table."""
        if not rows:
            print("(0 rows)")
            return

        # Calculate column widths
        widths = {col: len(col) for col in columns}
        for row in rows:
            for col in columns:
                widths[col] = max(widths[col], len(str(row.get(col))))

        # Limit column width for readability
        max_width = 40
        widths = {col: min(w, max_width) for col, w in widths.items()}

        header = " | ".join(col.ljust(widths[col])[:widths[col]] for col in columns)
        separator = "-+-".join("-" * widths[col] for col in columns)

        print()
        print(header)
        print(separator)
        for row in rows:
            values = [str(row.get(col)).ljust(widths[col])[:widths[col]] for col in columns]
            print(" | ".join(values))
        print(f"\n({len(rows)} row(s))")

    COMMANDS = {
        '.quit': _quit,
        '.exit': _quit,
        '.q': _quit,
        '.help': _help,
        '.databases': _databases,
        '.create': _create,
        '.dropdb': _dropdb,
        '.use': _use,
        '.tables': _tables,
        '.schema': _schema,
        '.createtable': _createtable,
        '.droptable': _droptable,
        '.rows': _rows,
        '.insert': _insert,
        '.delete': _delete,
        '.update': _update,
        '.project': _project,
    }


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the REPL."""
    import argparse

    parser = argparse.ArgumentParser(
        description="RecDB - typed tables stored as JSON files"
    )
    parser.add_argument(
        '-d', '--data-dir',
        default=None,
        help='Directory to store databases (default: $RECDB_DATA_DIR or ./databases)'
    )
    parser.add_argument(
        '-b', '--database',
        help='Database to select on startup'
    )
    parser.add_argument(
        '-c', '--command',
        action='append',
        help='Run a shell command and exit (may be repeated)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log storage activity to stderr'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    repl = REPL(args.data_dir)
    if args.database:
        repl.execute(f".use {args.database}")

    # Run commands and exit
    if args.command:
        for command in args.command:
            repl.execute(command)
        return

    repl.run()


if __name__ == '__main__':
    main()
