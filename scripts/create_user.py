"""Create a user in the configured database.

Usage:
  python scripts/create_user.py --email alice@example.com --password '...' --full-name 'Alice' --role it_staff

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from itkit.auth.crud import create_user
from itkit.config import load_config
from itkit.models import USER_ROLES
from itkit.store import Database


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--full-name", required=True)
    ap.add_argument("--role", choices=list(USER_ROLES), default="user")
    args = ap.parse_args()

    cfg = load_config()
    db = Database(cfg.DB_DSN)
    db.init()

    try:
        u = create_user(db, email=args.email, password=args.password, full_name=args.full_name, role=args.role)
    except ValueError as e:
        print(f"Could not create user: {e}")
        sys.exit(1)

    print("Created user:")
    print(u.public())


if __name__ == "__main__":
    main()
