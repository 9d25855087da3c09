"""
Run the exports API with uvicorn.

Usage:
  HOST=0.0.0.0 PORT=8000 python scripts/run_api.py [--reload]
"""

import argparse
import os

import uvicorn


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--reload", action="store_true", help="Restart on code changes (dev only)")
    args = ap.parse_args()
    uvicorn.run(
        "apps.exports_api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
