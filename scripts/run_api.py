# Use postponed evaluation of annotations so type hints don't require importing types at runtime.
from __future__ import annotations

# Allow running scripts without requiring an editable install (`pip install -e .`).
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

# `uvicorn` serves the FastAPI app during local development.
import uvicorn
import os

from ridershipatlas.api.app import create_app
from ridershipatlas.config.loader import load_config


def main() -> None:
    # Read the typed application config (encodings, index keys, station order, feed path).
    config = load_config()

    app = create_app(config)

    host = os.getenv("RIDERSHIPATLAS_HOST", "127.0.0.1")
    port = int(os.getenv("RIDERSHIPATLAS_PORT", "8000"))
    timeout_keep_alive = int(os.getenv("RIDERSHIPATLAS_TIMEOUT_KEEP_ALIVE", "75"))

    uvicorn.run(app, host=host, port=port, timeout_keep_alive=timeout_keep_alive)


if __name__ == "__main__":
    main()
