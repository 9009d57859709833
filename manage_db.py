#!/usr/bin/env python3
"""
Database management for GymRate.

    python manage_db.py init      # create missing tables
    python manage_db.py drop      # drop all GymRate tables (asks first)
    python manage_db.py status    # row count per table
"""

import argparse
import sys

from colorama import Fore, init
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

import database
import gymrate

init(autoreset=True)


def cmd_init(engine) -> int:
    print("Creating tables...")
    if not database.init_db(engine):
        print(f"{Fore.RED}✗ Failed to create tables (see log)")
        return 1
    print(f"{Fore.GREEN}✓ Tables ready: {', '.join(database.TABLES)}")
    return 0


def cmd_drop(engine, assume_yes: bool = False) -> int:
    if not assume_yes:
        answer = input(f"{Fore.YELLOW}Drop tables {', '.join(database.TABLES)}? [y/N] ")
        if answer.strip().lower() not in ('y', 'yes'):
            print("Aborted")
            return 1
    if not database.drop_db(engine):
        print(f"{Fore.RED}✗ Failed to drop tables (see log)")
        return 1
    print(f"{Fore.GREEN}✓ Tables dropped")
    return 0


def cmd_status(engine) -> int:
    existing = set(inspect(engine).get_table_names())
    with engine.connect() as conn:
        for table in database.TABLES:
            if table not in existing:
                print(f"{Fore.YELLOW}{table}: missing")
                continue
            count = conn.execute(text(f"SELECT count(*) FROM {table}")).scalar()
            print(f"{table}: {count}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='GymRate database management')
    parser.add_argument('--env-file', default=None, help='Path to a .env file')
    sub = parser.add_subparsers(dest='command', required=True)
    sub.add_parser('init', help='Create missing tables')
    drop = sub.add_parser('drop', help='Drop all tables')
    drop.add_argument('-y', '--yes', action='store_true', help='Do not ask for confirmation')
    sub.add_parser('status', help='Show row counts')
    args = parser.parse_args(argv)

    config = gymrate.Config.from_env(args.env_file)
    gymrate.setup_logging(config.log_level, config.log_file)
    engine = database.create_engine_from_config(config)
    print(f"Database URL: {engine.url.render_as_string(hide_password=True)}")

    try:
        if args.command == 'init':
            return cmd_init(engine)
        if args.command == 'drop':
            return cmd_drop(engine, assume_yes=args.yes)
        return cmd_status(engine)
    except SQLAlchemyError as e:
        print(f"{Fore.RED}✗ Error: Cannot reach database: {e}")
        return 1
    finally:
        engine.dispose()


if __name__ == '__main__':
    sys.exit(main())
