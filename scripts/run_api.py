#!/usr/bin/env python
"""
Run the storefront pricing API under uvicorn.

Usage:
    python scripts/run_api.py [--no-reload]

STOREFRONT_API_HOST / STOREFRONT_API_PORT choose the bind address and
STOREFRONT_LOG_LEVEL is passed on to uvicorn.
"""
import os
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent

    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)

    cmd = [
        sys.executable, "-m", "uvicorn",
        "storefront_pricing.api.main:app",
        "--host", env.get("STOREFRONT_API_HOST", "127.0.0.1"),
        "--port", env.get("STOREFRONT_API_PORT", "8000"),
        "--log-level", env.get("STOREFRONT_LOG_LEVEL", "info").lower(),
    ]
    if "--no-reload" not in sys.argv[1:]:
        cmd.append("--reload")

    print(f"Starting Storefront Pricing API: {' '.join(cmd)}")
    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
