"""
ZipSig CLI - Verify Command
Usage: python -m cli.commands.verify signed.zip [--private-key key.pem]
"""
import argparse
import sys
from pathlib import Path
from zipsig.unpacker.verifier import Verifier
from zipsig.utils.logger import logger, set_verbose


def main():
    parser = argparse.ArgumentParser(description="Verify the signature of a ZipSig archive")
    parser.add_argument("input", help="Path to the signed .zip archive")
    parser.add_argument("-k", "--private-key",
                        help="Also check that this private key belongs to the signer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")

    args = parser.parse_args()
    set_verbose(args.verbose)

    path = Path(args.input)
    if not path.exists():
        logger.error(f"Archive not found: {path}")
        sys.exit(1)

    try:
        verifier = Verifier()
        result = verifier.verify_file(str(path))

        if result.manifest:
            print(f"\n   Creator:   {result.manifest.creator_id}")
            print(f"   Signed at: {result.manifest.timestamp}")
            print(f"   Hash:      {result.manifest.content_digest}")

        if not result.is_valid:
            print(f"\n❌ {result.message}")
            sys.exit(2)

        print(f"\n✅ {result.message} ({result.scheme} format)")

        if args.private_key:
            pem = Path(args.private_key).read_text(encoding='utf-8')
            check = verifier.check_private_key(pem, result.manifest)
            print(f"{'✅' if check.matched else '❌'} {check.message}")
            if not check.matched:
                sys.exit(2)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=args.verbose)
        sys.exit(1)


if __name__ == "__main__":
    main()
