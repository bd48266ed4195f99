"""Print SAML Service Provider metadata XML to stdout.

Usage:
    python -m sales_calendar.print_sp_metadata [--output FILE]
"""
import argparse
import sys
from pathlib import Path

from sales_calendar.auth.saml import generate_sp_metadata


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print the SAML SP metadata for the scheduling system.")
    parser.add_argument("--output", type=Path, help="Write the metadata to this file instead of stdout.")
    args = parser.parse_args(argv)

    metadata, errors = generate_sp_metadata()
    if errors:
        print("Metadata validation errors:", errors, file=sys.stderr)
        return 1

    payload = metadata if isinstance(metadata, bytes) else metadata.encode("utf-8")
    if args.output:
        args.output.write_bytes(payload)
    else:
        sys.stdout.buffer.write(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
