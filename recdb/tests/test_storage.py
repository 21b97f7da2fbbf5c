#!/usr/bin/env python3
"""
Storage engine tests for RecDB

Tests:
- Save / load round trip of schema, rows and auto-increment state
- Removal of dropped table files on save
- Loading a database that was never saved
- Dropping databases and listing them with sizes

Run: python -m pytest recdb/tests/test_storage.py -v
"""

import json
import os
import shutil
import sys
import tempfile
import unittest
from unittest import mock

# Add parent directories to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from recdb.core.database import Database
from recdb.core.errors import InvalidIdentifierError, NotFoundError, StorageError
from recdb.storage.engine import StorageEngine


COLUMNS = [
    {'name': 'id', 'type': 'integer', 'autoIncrement': True},
    {'name': 'title', 'type': 'string'},
    {'name': 'grade', 'type': 'char'},
    {'name': 'z', 'type': 'complexReal'},
]


class StorageTestCase(unittest.TestCase):

    def setUp(self):
        """Create a temporary storage root for each test"""
        self.test_dir = tempfile.mkdtemp()
        self.storage = StorageEngine(self.test_dir)

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def make_database(self):
        db = Database('library')
        books = db.create_table('books', COLUMNS)
        books.insert_row({'title': 'Dune', 'grade': 'A', 'z': '1.5-2.25i'})
        books.insert_row({'title': 'Emma', 'grade': 'B', 'z': '3.14i'})
        books.insert_row({'title': 'Ulysses', 'grade': 'C', 'z': '-0.5'})
        books.delete_row({'id': 3})
        db.create_table('empty', [{'name': 'name', 'type': 'string'}])
        return db


class TestSaveLoad(StorageTestCase):
    """Test save() / load() round trips"""

    def test_file_layout(self):
        self.storage.save(self.make_database())
        db_dir = os.path.join(self.test_dir, 'library')
        self.assertEqual(sorted(os.listdir(db_dir)), ['books.json', 'empty.json'])

        with open(os.path.join(db_dir, 'books.json')) as f:
            data = json.load(f)
        self.assertEqual(data['name'], 'books')
        self.assertEqual(data['nextId'], 4)
        self.assertEqual(data['columns'][0], {'name': 'id', 'type': 'integer', 'autoIncrement': True})
        self.assertEqual(data['columns'][1], {'name': 'title', 'type': 'string'})
        self.assertEqual(data['rows'][1], {'id': 2, 'title': 'Emma', 'grade': 'B', 'z': '3.14i'})

    def test_round_trip(self):
        original = self.make_database()
        self.storage.save(original)
        loaded = self.storage.load('library')

        self.assertEqual(sorted(loaded.list_tables()), ['books', 'empty'])
        books = loaded.get_table('books')
        source = original.get_table('books')
        self.assertEqual(books.columns, source.columns)
        self.assertEqual(books.get_rows(), source.get_rows())
        self.assertEqual(books.next_id, 4)

        # Next id must not reuse the deleted id 3
        row = books.insert_row({'title': 'Ada', 'grade': 'A', 'z': '5'})
        self.assertEqual(row['id'], 4)

    def test_counter_recovered_without_next_id(self):
        self.storage.save(self.make_database())
        path = self.storage.table_path('library', 'books')
        with open(path) as f:
            data = json.load(f)
        del data['nextId']
        with open(path, 'w') as f:
            json.dump(data, f)

        books = self.storage.load('library').get_table('books')
        self.assertEqual(books.next_id, 3)

    def test_load_missing_database_is_empty(self):
        db = self.storage.load('nothing_here')
        self.assertEqual(db.name, 'nothing_here')
        self.assertEqual(db.list_tables(), [])
        self.assertFalse(os.path.exists(os.path.join(self.test_dir, 'nothing_here')))

    def test_save_removes_dropped_tables(self):
        db = self.make_database()
        self.storage.save(db)
        db.drop_table('empty')
        self.storage.save(db)

        self.assertFalse(os.path.exists(self.storage.table_path('library', 'empty')))
        self.assertEqual(self.storage.load('library').list_tables(), ['books'])

    def test_save_leaves_other_files(self):
        db = self.make_database()
        self.storage.save(db)
        note = os.path.join(self.test_dir, 'library', 'README.txt')
        with open(note, 'w') as f:
            f.write('keep me')
        self.storage.save(db)
        self.assertTrue(os.path.exists(note))

    def test_corrupt_file(self):
        os.makedirs(os.path.join(self.test_dir, 'broken'))
        with open(os.path.join(self.test_dir, 'broken', 't.json'), 'w') as f:
            f.write('{not json')
        with self.assertRaises(StorageError):
            self.storage.load('broken')

    def test_write_failure_is_storage_error(self):
        with mock.patch('recdb.storage.engine.os.replace', side_effect=OSError('disk full')):
            with self.assertRaises(StorageError):
                self.storage.save(self.make_database())

    def test_invalid_name_never_touches_disk(self):
        with self.assertRaises(InvalidIdentifierError):
            self.storage.load('../outside')
        with self.assertRaises(InvalidIdentifierError):
            self.storage.drop_database('../outside')


class TestDatabaseFiles(StorageTestCase):
    """Test drop, listing and size helpers"""

    def test_drop_database(self):
        self.storage.save(self.make_database())
        self.assertTrue(self.storage.database_exists('library'))
        self.storage.drop_database('library')
        self.assertFalse(self.storage.database_exists('library'))

    def test_drop_missing_database_is_tolerated(self):
        self.storage.drop_database('never_created')

    def test_drop_failure(self):
        self.storage.save(self.make_database())
        with mock.patch('recdb.storage.engine.shutil.rmtree', side_effect=PermissionError('denied')):
            with self.assertRaises(StorageError) as ctx:
                self.storage.drop_database('library')
        self.assertIn('library', str(ctx.exception))

    def test_list_databases(self):
        self.storage.save(self.make_database())
        self.storage.save(Database('archive'))
        os.makedirs(os.path.join(self.test_dir, 'not a db'))
        with open(os.path.join(self.test_dir, 'stray.txt'), 'w') as f:
            f.write('x')
        self.assertEqual(self.storage.list_databases(), ['archive', 'library'])

    def test_sizes(self):
        self.storage.save(self.make_database())
        books_size = os.path.getsize(self.storage.table_path('library', 'books'))
        empty_size = os.path.getsize(self.storage.table_path('library', 'empty'))

        self.assertEqual(self.storage.table_size('library', 'books'), books_size)
        self.assertEqual(
            self.storage.database_stats('library'),
            {'size_bytes': books_size + empty_size, 'table_count': 2},
        )

    def test_sizes_of_missing(self):
        with self.assertRaises(NotFoundError):
            self.storage.table_size('library', 'books')
        with self.assertRaises(NotFoundError):
            self.storage.database_stats('library')

    def test_data_dir_from_environment(self):
        env_dir = os.path.join(self.test_dir, 'from_env')
        with mock.patch.dict(os.environ, {'RECDB_DATA_DIR': env_dir}):
            storage = StorageEngine()
        self.assertEqual(storage.data_dir, env_dir)
        self.assertTrue(os.path.isdir(env_dir))


if __name__ == '__main__':
    unittest.main()
