#!/usr/bin/env python3
from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from repairshop.core.config import load_settings  # noqa: E402
from repairshop.core.database import Base, build_engine, build_session_factory  # noqa: E402
from repairshop.core.errors import AppError  # noqa: E402
from repairshop.services.identity import bootstrap_superadmin  # noqa: E402
import repairshop.models  # noqa: E402,F401


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the one-time super-administrator account.")
    parser.add_argument("--email", required=True, help="Super-administrator email")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    parser.add_argument("--first-name", help="First name")
    parser.add_argument("--last-name", help="Last name")
    parser.add_argument("--telephone-number", help="Telephone number")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    password = args.password or getpass.getpass("Password: ")
    if not password:
        print("password_is_required")
        return 1

    settings = load_settings()
    engine = build_engine(settings.database_url)
    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    db = build_session_factory(engine)()
    try:
        user = bootstrap_superadmin(
            db,
            email=args.email,
            password=password,
            first_name=args.first_name,
            last_name=args.last_name,
            telephone_number=args.telephone_number,
        )
    except AppError as exc:
        print(exc.message)
        return 1
    finally:
        db.close()
        engine.dispose()

    print(f"Superadmin created: id={user.id} email={user.email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
