#!/usr/bin/env python3
"""
Demo Web Application - RecDB JSON API

A thin HTTP layer over DatabaseService. Request bodies and responses
are JSON; row filters for delete/update come from the query string.

Routes:
    GET    /databases                                  list databases
    POST   /databases/<db>                             create database
    DELETE /databases/<db>                             drop database
    GET    /databases/<db>/stats                       database size
    GET    /databases/<db>/tables                      list tables
    POST   /databases/<db>/tables                      create table
    GET    /databases/<db>/tables/<table>              describe table
    DELETE /databases/<db>/tables/<table>              drop table
    GET    /databases/<db>/tables/<table>/stats        table size
    GET    /databases/<db>/tables/<table>/rows         page of rows
    POST   /databases/<db>/tables/<table>/rows         insert row
    DELETE /databases/<db>/tables/<table>/rows?k=v     delete first match
    PATCH  /databases/<db>/tables/<table>/rows?k=v     update all matches
    POST   /databases/<db>/tables/<table>/projection   project columns

Run:
    pip install flask
    python app.py

Then visit: http://localhost:5000/databases
"""

import logging
import os
import sys

from flask import Flask, jsonify, request

# Add parent directory to path to import recdb
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recdb import DatabaseService
from recdb.core.errors import AlreadyExistsError, NotFoundError, RecDBError, StorageError

logger = logging.getLogger(__name__)

DATA_DIR = os.environ.get('RECDB_DATA_DIR', os.path.join(os.path.dirname(__file__), 'databases'))


class InvalidRequest(ValueError):
    """Request body or query string has the wrong shape"""


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'"""
    if size == 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB', 'TB']
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    return f"{round(value, decimals):g} {units[idx]}"


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object")
    return body


def _positive_int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidRequest(f"Query parameter '{name}' must be an integer") from None
    if value < 1:
        raise InvalidRequest(f"Query parameter '{name}' must be >= 1")
    return value


def create_app(data_dir: str = None) -> Flask:
    """Build the API app over a storage directory."""
    app = Flask(__name__)
    app.json.sort_keys = False
    app.config['DATA_DIR'] = data_dir or DATA_DIR
    service = DatabaseService(app.config['DATA_DIR'])
    app.extensions['recdb'] = service

    @app.errorhandler(RecDBError)
    def handle_recdb_error(error):
        if isinstance(error, NotFoundError):
            status = 404
        elif isinstance(error, AlreadyExistsError):
            status = 409
        elif isinstance(error, StorageError):
            logger.error("Storage failure: %s", error)
            status = 500
        else:
            status = 400
        return jsonify({'error': str(error)}), status

    @app.errorhandler(InvalidRequest)
    def handle_bad_request(error):
        return jsonify({'error': str(error)}), 400

    @app.route('/databases', methods=['GET'])
    def list_databases():
        return jsonify([
            {
                'name': db['name'],
                'stats': {
                    'sizeBytes': db['size_bytes'],
                    'formattedSize': format_bytes(db['size_bytes']),
                    'tableCount': db['table_count'],
                },
            }
            for db in service.list_databases()
        ])

    @app.route('/databases/<db_name>', methods=['POST'])
    def create_database(db_name):
        service.create_database(db_name)
        return jsonify({'message': f"Database '{db_name}' created."}), 201

    @app.route('/databases/<db_name>', methods=['DELETE'])
    def drop_database(db_name):
        service.drop_database(db_name)
        return jsonify({'message': f"Database '{db_name}' and all its contents were deleted."})

    @app.route('/databases/<db_name>/stats', methods=['GET'])
    def database_stats(db_name):
        stats = service.storage.database_stats(db_name)
        return jsonify({
            'sizeBytes': stats['size_bytes'],
            'formattedSize': format_bytes(stats['size_bytes']),
            'tableCount': stats['table_count'],
        })

    @app.route('/databases/<db_name>/tables', methods=['GET'])
    def list_tables(db_name):
        return jsonify([
            {
                'name': table['name'],
                'rowCount': table['row_count'],
                'stats': {
                    'sizeBytes': table['size_bytes'],
                    'formattedSize': format_bytes(table['size_bytes']),
                },
            }
            for table in service.list_tables(db_name)
        ])

    @app.route('/databases/<db_name>/tables', methods=['POST'])
    def create_table(db_name):
        body = _json_body()
        table_name = body.get('tableName')
        columns = body.get('columns')
        if not isinstance(table_name, str) or not table_name:
            raise InvalidRequest("'tableName' must be a non-empty string")
        if not isinstance(columns, list) or not all(isinstance(c, dict) for c in columns):
            raise InvalidRequest("'columns' must be a list of column objects")
        service.create_table(db_name, table_name, columns)
        return jsonify({'message': f"Table '{table_name}' created in database '{db_name}'."}), 201

    @app.route('/databases/<db_name>/tables/<table_name>', methods=['GET'])
    def describe_table(db_name, table_name):
        return jsonify(service.describe_table(db_name, table_name))

    @app.route('/databases/<db_name>/tables/<table_name>', methods=['DELETE'])
    def drop_table(db_name, table_name):
        service.drop_table(db_name, table_name)
        return jsonify({'message': f"Table '{table_name}' deleted from database '{db_name}'."})

    @app.route('/databases/<db_name>/tables/<table_name>/stats', methods=['GET'])
    def table_stats(db_name, table_name):
        size = service.storage.table_size(db_name, table_name)
        return jsonify({'sizeBytes': size, 'formattedSize': format_bytes(size)})

    @app.route('/databases/<db_name>/tables/<table_name>/rows', methods=['GET'])
    def list_rows(db_name, table_name):
        page = _positive_int_arg('page', 1)
        limit = _positive_int_arg('limit', 10)
        result = service.get_rows_paginated(db_name, table_name, page, limit)
        meta = result['meta']
        return jsonify({
            'columns': result['columns'],
            'data': result['rows'],
            'meta': {
                'totalItems': meta['total_items'],
                'itemCount': meta['item_count'],
                'itemsPerPage': meta['items_per_page'],
                'totalPages': meta['total_pages'],
                'currentPage': meta['current_page'],
            },
        })

    @app.route('/databases/<db_name>/tables/<table_name>/rows', methods=['POST'])
    def insert_row(db_name, table_name):
        row = service.insert_row(db_name, table_name, _json_body())
        return jsonify({'message': f"Row added to table '{table_name}'.", 'row': row}), 201

    @app.route('/databases/<db_name>/tables/<table_name>/rows', methods=['DELETE'])
    def delete_rows(db_name, table_name):
        result = service.delete_rows(db_name, table_name, request.args.to_dict())
        return jsonify({'message': 'The row was deleted.', 'deletedCount': result['deleted_count']})

    @app.route('/databases/<db_name>/tables/<table_name>/rows', methods=['PATCH'])
    def update_rows(db_name, table_name):
        result = service.update_rows(db_name, table_name, request.args.to_dict(), _json_body())
        return jsonify({'message': 'Update finished.', 'updatedCount': result['updated_count']})

    @app.route('/databases/<db_name>/tables/<table_name>/projection', methods=['POST'])
    def project_table(db_name, table_name):
        columns = _json_body().get('columns')
        if not isinstance(columns, list) or not columns:
            raise InvalidRequest("'columns' must be a non-empty list")
        if not all(isinstance(c, str) for c in columns):
            raise InvalidRequest("Each element in 'columns' must be a string")
        return jsonify(service.project_table(db_name, table_name, columns))

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    print("\n" + "="*60)
    print("RecDB Demo - JSON API")
    print("="*60)
    print(f"\nDatabase location: {DATA_DIR}")
    print("Starting server at http://localhost:5000")
    print("\nPress Ctrl+C to stop the server.\n")

    create_app().run(debug=True, host='0.0.0.0', port=5000)
