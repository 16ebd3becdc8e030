#!/usr/bin/env python
"""
Run the storefront pricing desk (streamlit).

Usage:
    python scripts/run_app.py

STOREFRONT_UI_PORT picks the port (default 8501).
"""
import os
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent
    desk = project_root / 'src' / 'storefront_pricing' / 'ui' / 'app_streamlit.py'

    if not desk.exists():
        print(f"ERROR: desk app not found at {desk}")
        sys.exit(1)

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(project_root / "src"), env.get("PYTHONPATH")) if p)

    cmd = [
        sys.executable, '-m', 'streamlit', 'run', str(desk),
        '--server.port', env.get('STOREFRONT_UI_PORT', '8501'),
    ]
    print(f"Starting pricing desk: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nDesk stopped.")


if __name__ == "__main__":
    main()
