#!/usr/bin/env python3
"""Cross-platform install script for sms-assistant.

Usage:
    python install.py          # Production install
    python install.py --dev    # Development install (includes test tools)
"""

import os
import platform
import shutil
import subprocess
import sys

MIN_PYTHON = (3, 11)


def main() -> None:
    # 1. Check Python version
    if sys.version_info < MIN_PYTHON:
        sys.exit(
            f"Error: Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+ is required. "
            f"You have {sys.version_info.major}.{sys.version_info.minor}."
        )

    print(f"Python {sys.version_info.major}.{sys.version_info.minor} detected. OK.")

    dev = "--dev" in sys.argv
    project_dir = os.path.dirname(os.path.abspath(__file__))
    venv_dir = os.path.join(project_dir, ".venv")
    is_windows = platform.system() == "Windows"

    bin_dir = "Scripts" if is_windows else "bin"
    pip = os.path.join(venv_dir, bin_dir, "pip")

    # 2. Create virtual environment
    if not os.path.isdir(venv_dir):
        print("Creating virtual environment...")
        subprocess.check_call([sys.executable, "-m", "venv", venv_dir])
    else:
        print("Virtual environment already exists.")

    # 3. Upgrade pip
    print("Upgrading pip...")
    subprocess.check_call([pip, "install", "--upgrade", "pip"])

    # 4. Install project
    if dev:
        print("Installing sms-assistant in development mode...")
        subprocess.check_call([pip, "install", "-e", ".[dev]"], cwd=project_dir)
    else:
        print("Installing sms-assistant...")
        subprocess.check_call([pip, "install", "."], cwd=project_dir)

    # 5. Create data directory for the history database
    data_dir = os.path.join(project_dir, "data")
    os.makedirs(data_dir, exist_ok=True)

    # 6. Copy config files if missing
    for src, dst in [("config.example.yaml", "config.yaml"), (".env.example", ".env")]:
        src_path = os.path.join(project_dir, src)
        dst_path = os.path.join(project_dir, dst)
        if not os.path.exists(dst_path) and os.path.exists(src_path):
            shutil.copy(src_path, dst_path)
            print(f"Created {dst} from {src}")
        elif os.path.exists(dst_path):
            print(f"{dst} already exists, skipping.")

    # 7. Print instructions
    if is_windows:
        activate_cmd = r".\.venv\Scripts\activate"
    else:
        activate_cmd = "source .venv/bin/activate"

    print()
    print("=" * 50)
    print("  sms-assistant installation complete!")
    print("=" * 50)
    print()
    print("Next steps:")
    print("  1. Edit .env - set your keys:")
    print("       GOOGLE_API_KEY=...")
    print("       GOOGLE_SEARCH_API_KEY=...      (optional, enables web search)")
    print("       GOOGLE_SEARCH_ENGINE_ID=...    (optional)")
    print("       ALLOWED_FROM_NUMBERS=+14155551234,+14155550000")
    print("  2. Review config.yaml")
    print("  3. Activate the virtual environment:")
    print(f"       {activate_cmd}")
    print("  4. Check config:")
    print("       python -m sms_assistant config-check")
    print("  5. Start the webhook server and point your SMS gateway at POST /sms:")
    print("       python -m sms_assistant")
    print()


if __name__ == "__main__":
    main()
