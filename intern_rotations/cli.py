"""
Intern rotation scheduler CLI.

Usage:
  # Create tables and load the default unit catalog
  intern-rotations init-db
  intern-rotations seed-units

  # Rebuild automatic rotations from a date (default today)
  intern-rotations generate --start 2026-01-01

  # Advance every intern whose rotation has ended
  intern-rotations advance --today 2026-03-01

  # Run the API server
  intern-rotations serve --port 8000
"""

import argparse
import sys

from . import dates
from .config import config, configure_logging
from .database import SessionLocal, init_db


def _day_arg(value):
    day = dates.parse_day(value)
    if day is None:
        raise argparse.ArgumentTypeError(f"not a date (YYYY-MM-DD): {value}")
    return day


def cmd_init_db(args):
    """Create all tables."""
    init_db()
    print(f"Database ready: {config.DATABASE_URL}")


def cmd_seed_units(args):
    """Insert the default unit catalog (existing names are kept)."""
    from .units import seed_default_units

    init_db()
    db = SessionLocal()
    try:
        created = seed_default_units(db)
        db.commit()
    finally:
        db.close()
    print(f"Seeded {len(created)} unit(s)")
    for unit in created:
        print(f"  {unit.position:>2}. {unit.name} ({unit.duration_days} days, {unit.workload})")


def cmd_generate(args):
    """Regenerate automatic rotations for all active interns."""
    from .generation import generate_rotations

    db = SessionLocal()
    try:
        summary = generate_rotations(db, start=args.start)
        db.commit()
    finally:
        db.close()
    print(f"Generated {summary['rotations']} rotation(s) for {summary['interns']} intern(s) "
          f"from {summary['start_date']}")


def cmd_advance(args):
    """Append the next rotation for every intern whose latest one has ended."""
    from .advance import advance_all

    db = SessionLocal()
    try:
        created = advance_all(db, today=args.today)
        db.commit()
    finally:
        db.close()
    if not created:
        print("Nothing to advance")
        return
    for intern_id, count in sorted(created.items()):
        print(f"  intern {intern_id}: {count} rotation(s) added")


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("intern_rotations.main:app", host=args.host, port=args.port, log_level=config.LOG_LEVEL.lower())


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Intern rotation scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", help="Command")

    sub.add_parser("init-db", help="Create database tables")
    sub.add_parser("seed-units", help="Load the default unit catalog")

    p_gen = sub.add_parser("generate", help="Regenerate automatic rotations")
    p_gen.add_argument("--start", type=_day_arg, default=None, help="First day to regenerate (YYYY-MM-DD)")

    p_adv = sub.add_parser("advance", help="Run auto-advance for all interns")
    p_adv.add_argument("--today", type=_day_arg, default=None, help="Reference day (YYYY-MM-DD)")

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=config.HOST)
    p_serve.add_argument("--port", type=int, default=config.PORT)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging()
    dispatch = {
        "init-db": cmd_init_db,
        "seed-units": cmd_seed_units,
        "generate": cmd_generate,
        "advance": cmd_advance,
        "serve": cmd_serve,
    }
    dispatch[args.command](args)


if __name__ == "__main__":
    main()
