#!/usr/bin/env python3
"""Print signed bearer tokens for each access level, for manual API testing.

Run with:
    python scripts/generate_test_token.py
    python scripts/generate_test_token.py --level trainer --user trainer-42
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.api.deps import issue_smoke_token  # noqa: E402
from src.core.auth import AccessLevel  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate test JWT tokens")
    parser.add_argument("--level", choices=[level.value for level in AccessLevel])
    parser.add_argument("--user", help="Token subject; defaults to '<level>-test'")
    args = parser.parse_args()

    levels = [AccessLevel(args.level)] if args.level else list(AccessLevel)
    for level in levels:
        token = issue_smoke_token(args.user or f"{level.value}-test", level=level)
        print(f"{level.value.title()} Token:\n{token}\n")


if __name__ == "__main__":
    main()
