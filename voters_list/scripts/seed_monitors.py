"""
Create or reset local monitor accounts (DATA_BACKEND=local only).

Usage:
    python -m voters_list.scripts.seed_monitors ann@example.org 's3cret' --name "Ann"
    python -m voters_list.scripts.seed_monitors --demo
"""

from __future__ import annotations

import argparse
from typing import Dict, List, Optional

from sqlmodel import select

from voters_list.auth.local import create_monitor
from voters_list.config import settings
from voters_list.database import engine, init_db, session_scope
from voters_list.models.monitor import Monitor

DEMO_MONITORS: List[Dict[str, str]] = [
    {"email": "monitor1@example.org", "password": "monitor1-pass", "name": "Monitor One"},
    {"email": "monitor2@example.org", "password": "monitor2-pass", "name": "Monitor Two"},
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create or reset local monitor accounts.")
    p.add_argument("email", nargs="?", help="monitor email (sign-in name)")
    p.add_argument("password", nargs="?", help="monitor password")
    p.add_argument("--name", default=None, help="display name")
    p.add_argument("--demo", action="store_true", help="seed the two demo monitors")
    args = p.parse_args(argv)
    if not args.demo and not (args.email and args.password):
        p.error("email and password are required unless --demo is given")
    return args


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    if settings.uses_supabase:
        raise SystemExit("DATA_BACKEND=supabase: manage monitors in the hosted auth service instead.")

    # Ensure tables exist (local dev)
    init_db()

    rows = DEMO_MONITORS if args.demo else [{"email": args.email, "password": args.password, "name": args.name}]
    for row in rows:
        m = create_monitor(engine, email=row["email"], password=row["password"], name=row.get("name"))
        print(f"monitor ready: {m.email} (id={m.id})")

    with session_scope() as session:
        total = session.exec(select(Monitor)).all()
        print(f"Monitors in database: {len(total)}")


if __name__ == "__main__":
    main()
