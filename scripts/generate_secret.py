#!/usr/bin/env python3
"""Generate a random HMAC secret that passes the strength checks."""

import argparse
import secrets
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hubsend.delivery.validation import MIN_SECRET_LENGTH, validate_secret


def main():
    parser = argparse.ArgumentParser(description="Generate an HMAC secret for webhook signing")
    parser.add_argument(
        "--bytes", "-b",
        type=int,
        default=32,
        help="Random bytes to draw; the hex secret is twice as long (default: 32)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Write the secret to this file instead of stdout"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite an existing output file"
    )

    args = parser.parse_args()

    if args.bytes * 2 < MIN_SECRET_LENGTH:
        print(f"Error: at least {MIN_SECRET_LENGTH // 2} bytes are required.")
        sys.exit(1)

    secret = secrets.token_hex(args.bytes)
    validate_secret(secret)

    if not args.output:
        print(secret)
        return

    output_path = Path(args.output)
    if output_path.exists() and not args.force:
        print(f"Error: {output_path} already exists. Use --force to overwrite.")
        sys.exit(1)

    output_path.write_text(secret + "\n")
    output_path.chmod(0o600)

    print(f"Secret saved to: {output_path}")
    print("\n⚠️  Store it as a repository secret and never commit it to version control!")


if __name__ == "__main__":
    main()
