"""Insert the default help-center categories (idempotent: existing slugs are skipped).

Usage:
  python scripts/seed_categories.py
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from itkit.config import load_config
from itkit.store import Database
from itkit.util.text import slugify


DEFAULT_CATEGORIES = [
    ("Network & VPN", "🌐", "Wi-Fi, VPN and connectivity issues"),
    ("Email & Calendar", "📧", "Mailbox, calendar and shared inbox help"),
    ("Accounts & Passwords", "🔐", "Sign-in problems, password resets and MFA"),
    ("Hardware", "💻", "Laptops, monitors, docks and peripherals"),
    ("Software", "🧩", "Installing and troubleshooting applications"),
    ("Printers", "🖨️", "Printing, scanning and printer setup"),
]


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--dry-run", action="store_true", help="Print what would be inserted")
    args = ap.parse_args()

    cfg = load_config()
    db = Database(cfg.DB_DSN)
    db.init()

    inserted = 0
    for name, icon, description in DEFAULT_CATEGORIES:
        slug = slugify(name)
        if db.table("categories").select().eq("slug", slug).limit(1).execute().first() is not None:
            print(f"skip {slug} (exists)")
            continue
        if args.dry_run:
            print(f"would insert {slug}")
            continue
        db.table("categories").insert({"name": name, "slug": slug, "icon": icon, "description": description}).execute()
        inserted += 1
        print(f"inserted {slug}")

    print(f"Done. inserted={inserted}")


if __name__ == "__main__":
    main()
