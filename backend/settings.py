"""
Receiver configuration.

Values come from the environment, with a local `.env` file loaded first
through `python-dotenv`. They are exposed as the `settings` instance of
the Pydantic `Settings` model.

Environment variables used:
- `PORT` / `HOST` — where uvicorn listens (default 0.0.0.0:3000).
- `DATA_DIR` — directory holding the collection file. Created at startup.
- `DATA_FILE_NAME` — name of the collection file inside `DATA_DIR`.
- `STATIC_DIR` — directory served at `/` when it exists.
- `SERVER_NAME` — reported by `/api/health`.
- `LATEST_LIMIT` — size of the `/api/mdb/data/latest` slice.
- `MAX_BODY_BYTES` — requests with a larger body are rejected with 413.
- `LOG_LEVEL` — root logging level.

Example `.env`:
PORT=3000
DATA_DIR=/var/lib/mdb-receiver
LOG_LEVEL=DEBUG

"""

from pydantic import BaseModel
import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings(BaseModel):
    """Receiver configuration, read once at import time.

    Modules read values through the shared `settings` instance, which
    lets tests override a single field with `monkeypatch.setattr`.
    """

    port: int = int(os.getenv("PORT", "3000"))
    host: str = os.getenv("HOST", "0.0.0.0")
    data_dir: str = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
    data_file_name: str = os.getenv("DATA_FILE_NAME", "mdb_data.json")
    static_dir: str = os.getenv("STATIC_DIR", os.path.join(BASE_DIR, "public"))
    server_name: str = os.getenv("SERVER_NAME", "MDB Receiver")
    latest_limit: int = int(os.getenv("LATEST_LIMIT", "10"))
    max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024)))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def data_file(self) -> str:
        return os.path.join(self.data_dir, self.data_file_name)


settings = Settings()
