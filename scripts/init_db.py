import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from itkit.auth.crud import bootstrap_admin_if_needed
from itkit.config import load_config
from itkit.store import Database


def main() -> None:
    cfg = load_config()
    db = Database(cfg.DB_DSN)
    db.init()

    boot = bootstrap_admin_if_needed(cfg, db)
    if boot:
        print(f"Bootstrapped admin: {boot['email']}")

    print(f"DB initialized: {cfg.DB_DSN} ({db.dialect})")


if __name__ == "__main__":
    main()
