"""Run the health insights API locally.

Run with:  python3 serve.py
"""

from __future__ import annotations

import os

import uvicorn

API_PORT = int(os.getenv("PORT", "8000"))


if __name__ == "__main__":
    from api.main import create_app

    uvicorn.run(create_app(), host=os.getenv("HOST", "127.0.0.1"), port=API_PORT, log_level="warning")
