import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import uvicorn

from itkit.config import load_config


def main() -> None:
    cfg = load_config()
    uvicorn.run("itkit.web.app:app", host=cfg.WEB_HOST, port=cfg.WEB_PORT, reload=False)


if __name__ == "__main__":
    main()
