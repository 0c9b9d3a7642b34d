"""Issue Folder Hooks - command line entry point.

Runs setup, the GitHub issues webhook server that provisions Google Drive
folders, or config get/set. See src/cli.py for the commands.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.cli import main

if __name__ == "__main__":
    main()
