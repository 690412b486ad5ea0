"""
main.py - Server launcher and entry point.

    python main.py

This file does NOT contain application logic. See app.py for the FastAPI
application and service wiring.

Direct uvicorn usage:
    uvicorn app:app --reload
"""

from __future__ import annotations

import os

import uvicorn


HOST = os.getenv("HOUSEKEEPING_HOST", "127.0.0.1")
PORT = int(os.getenv("HOUSEKEEPING_PORT", "8000"))


def main() -> None:
    """Start the optimizer API server."""
    print("=" * 60)
    print("  Housekeeping Assignment Optimizer")
    print("=" * 60)
    print(f"  Server  : http://{HOST}:{PORT}")
    print(f"  API docs: http://{HOST}:{PORT}/docs")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
