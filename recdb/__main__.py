#!/usr/bin/env python3
"""
RecDB - A minimal record store
Entry point script

Run the shell:
    python -m recdb

Or use as a library:
    from recdb import DatabaseService
    service = DatabaseService("./databases")
    service.create_database("shop")
"""

from recdb.core.repl import main

if __name__ == '__main__':
    main()
