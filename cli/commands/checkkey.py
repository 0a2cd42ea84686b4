"""
ZipSig CLI - Private Key Check
Usage: python -m cli.commands.checkkey signed.zip files_private_key.pem
"""
import argparse
import sys
from pathlib import Path
from zipsig.unpacker.verifier import Verifier
from zipsig.utils.logger import logger


def main():
    parser = argparse.ArgumentParser(
        description="Check that a private key is the signing half of an archive's key"
    )
    parser.add_argument("input", help="Path to the signed .zip archive")
    parser.add_argument("key", help="Path to the private key .pem file")

    args = parser.parse_args()

    for item in (args.input, args.key):
        if not Path(item).exists():
            logger.error(f"File not found: {item}")
            sys.exit(1)

    verifier = Verifier()
    result = verifier.verify_file(args.input)
    if result.manifest is None:
        logger.error(result.message)
        sys.exit(2)
    if not result.is_valid:
        logger.warning(f"Archive did not verify: {result.message}")

    check = verifier.check_private_key(Path(args.key).read_text(encoding='utf-8'), result.manifest)
    print(f"\n{'✅' if check.matched else '❌'} {check.message}")
    sys.exit(0 if check.matched else 2)


if __name__ == "__main__":
    main()
