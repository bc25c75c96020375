#!/usr/bin/env python3
"""kmsjwk command line interface.

Converts public key bytes exported by a key manager into JWKs, and
creates keys through the configured backend.

Usage:
    kmsjwk types
    kmsjwk convert ED25519 key.bin
    kmsjwk convert ECDSAP256IEEEP1363 --input-format hex < key.hex
    kmsjwk create SECP256K1DER --format yaml

Exit Codes:
    0 - Success
    1 - Conversion or backend error
    2 - File error
    3 - Invalid arguments
"""

import argparse
import base64
import binascii
import json
import sys
import uuid
from typing import Any

import yaml

from kmsjwk.core.errors import KeyConversionError
from kmsjwk.core.jwk_adapter import pub_key_bytes_to_jwk
from kmsjwk.core.key_creator import KeyCreator
from kmsjwk.core.key_types import KeyType, list_key_types, to_key_type
from kmsjwk.core.kms import BackendError, get_key_manager
from kmsjwk.core.logging import log_context, setup_logging

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FILE_ERROR = 2
EXIT_INVALID_ARGS = 3


class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls):
        for attr in ["RED", "GREEN", "CYAN", "BOLD", "RESET"]:
            setattr(cls, attr, "")


def colored(text: str, color: str) -> str:
    return f"{color}{text}{Colors.RESET}"


def error(message: str) -> None:
    print(colored(f"error: {message}", Colors.RED), file=sys.stderr)


def decode_input(data: bytes, input_format: str) -> bytes:
    """Turn raw, hex or base64 input into key bytes."""
    if input_format == "raw":
        return data
    text = b"".join(data.split())
    if input_format == "hex":
        return binascii.unhexlify(text)
    return base64.b64decode(text, validate=True)


def render(document: dict[str, Any], output_format: str) -> str:
    if output_format == "yaml":
        return yaml.safe_dump(document, sort_keys=False).rstrip("\n")
    return json.dumps(document, indent=2)


def parse_key_type(value: str) -> KeyType | None:
    try:
        return to_key_type(value)
    except KeyConversionError as e:
        error(f"{e} (run 'kmsjwk types' for the list)")
        return None


# =============================================================================
# Commands
# =============================================================================

def cmd_types(args) -> int:
    """List registered key types."""
    specs = list_key_types()

    if args.format == "json":
        rows = [
            {
                "key_type": spec.key_type.value,
                "family": spec.family.value,
                "curve": spec.curve.name if spec.curve else None,
                "encoding": spec.encoding.value,
            }
            for spec in specs
        ]
        print(json.dumps(rows, indent=2))
        return EXIT_OK

    print(colored(f"{'KEY TYPE':<22} {'FAMILY':<10} {'CURVE':<14} ENCODING", Colors.BOLD))
    for spec in specs:
        curve = spec.curve.name if spec.curve else "-"
        print(f"{colored(f'{spec.key_type.value:<22}', Colors.CYAN)} "
              f"{spec.family.value:<10} {curve:<14} {spec.encoding.value}")
    return EXIT_OK


def cmd_convert(args) -> int:
    """Convert exported public key bytes to a JWK."""
    key_type = parse_key_type(args.key_type)
    if key_type is None:
        return EXIT_INVALID_ARGS

    try:
        if args.file and args.file != "-":
            with open(args.file, "rb") as f:
                data = f.read()
        else:
            data = sys.stdin.buffer.read()
    except OSError as e:
        error(f"cannot read {args.file}: {e.strerror}")
        return EXIT_FILE_ERROR

    try:
        key_bytes = decode_input(data, args.input_format)
    except (binascii.Error, ValueError) as e:
        error(f"input is not valid {args.input_format}: {e}")
        return EXIT_ERROR

    try:
        jwk = pub_key_bytes_to_jwk(key_bytes, key_type, kid=args.kid)
    except KeyConversionError as e:
        error(str(e))
        return EXIT_ERROR

    print(render(jwk.to_dict(), args.format))
    return EXIT_OK


def cmd_create(args) -> int:
    """Create a key with the configured backend and print its JWK."""
    key_type = parse_key_type(args.key_type)
    if key_type is None:
        return EXIT_INVALID_ARGS

    try:
        jwk = KeyCreator(get_key_manager()).create(key_type)
    except (KeyConversionError, BackendError) as e:
        error(str(e))
        return EXIT_ERROR

    print(render(jwk.to_dict(), args.format))
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kmsjwk",
        description="Convert key-manager public key bytes to JSON Web Keys",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List key types and their encodings
  kmsjwk types

  # Convert a DER secp256k1 public key
  kmsjwk convert SECP256K1DER pub.der

  # Convert hex from stdin, with a key id
  echo 04ab... | kmsjwk convert ECDSAP256IEEEP1363 --input-format hex --kid k1

  # Create a key with the configured backend
  kmsjwk create ED25519 --format yaml
        """
    )

    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log conversion details")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # types command
    types_parser = subparsers.add_parser("types", help="List supported key types")
    types_parser.add_argument("--format", choices=["text", "json"], default="text")

    # convert command
    convert_parser = subparsers.add_parser("convert", help="Convert public key bytes to a JWK")
    convert_parser.add_argument("key_type", metavar="KEY_TYPE", help="Key type the bytes were exported as")
    convert_parser.add_argument("file", metavar="FILE", nargs="?", help="Input file (default: stdin)")
    convert_parser.add_argument(
        "--input-format", choices=["raw", "hex", "base64"], default="raw",
        help="How the key bytes are written",
    )
    convert_parser.add_argument("--format", choices=["json", "yaml"], default="json")
    convert_parser.add_argument("--kid", help="Key id to set on the JWK")

    # create command
    create_parser_ = subparsers.add_parser("create", help="Create a key and print its JWK")
    create_parser_.add_argument("key_type", metavar="KEY_TYPE", help="Key type to create")
    create_parser_.add_argument("--format", choices=["json", "yaml"], default="json")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_INVALID_ARGS if e.code else EXIT_OK

    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    setup_logging(level="DEBUG" if args.verbose else None)

    commands = {"types": cmd_types, "convert": cmd_convert, "create": cmd_create}
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return EXIT_OK if not args.command else EXIT_INVALID_ARGS

    with log_context(correlation_id=str(uuid.uuid4())):
        return command(args)


if __name__ == "__main__":
    sys.exit(main())
