"""
ZipSig CLI - Sign Command
Usage: python -m cli.commands.sign folder/ -c "Alice" -o out/ [--encrypt]
"""
import argparse
import getpass
import sys
from pathlib import Path
from zipsig.errors import ZipSigError
from zipsig.packager.signer import Signer
from zipsig.utils.files import collect_members
from zipsig.utils.logger import logger, set_verbose
from zipsig.utils.passwords import generate_secure_password


def main():
    parser = argparse.ArgumentParser(description="Bundle files into a signed ZIP archive")
    parser.add_argument("inputs", nargs='+', help="Files or directories to sign")
    parser.add_argument("-c", "--creator", required=True, help="Creator ID stored in the signature")
    parser.add_argument("-o", "--output", default='.', help="Directory for the archive and key files")
    parser.add_argument("-n", "--name", help="Base name for output files (default: first folder name)")
    parser.add_argument("-e", "--encrypt", action="store_true", help="Encrypt every file with a password")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-p", "--password", help="Encryption password (prompted if omitted)")
    group.add_argument("-g", "--generate-password", action="store_true",
                       help="Generate a random encryption password")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")

    args = parser.parse_args()
    set_verbose(args.verbose)
    if (args.password or args.generate_password) and not args.encrypt:
        parser.error("--password and --generate-password require --encrypt")

    for item in args.inputs:
        if not Path(item).exists():
            logger.error(f"Input not found: {item}")
            sys.exit(1)

    password = confirm = None
    if args.encrypt:
        if args.generate_password:
            password = confirm = generate_secure_password()
        elif args.password:
            password = confirm = args.password
        else:
            password = getpass.getpass("Encryption password: ")
            confirm = getpass.getpass("Confirm password: ")

    try:
        members, folder_name = collect_members(args.inputs)
        name = args.name or folder_name

        result = Signer().sign_members(
            members,
            args.creator,
            encrypt=args.encrypt,
            password=password,
            password_confirm=confirm,
        )
        saved = result.save(args.output, name)

        print(f"\n✅ Success! Signed archive saved to: {saved['archive']}")
        print(f"   Private key: {saved['private_key']}  (keep it secret)")
        if 'password' in saved:
            print(f"   Password:    {saved['password']}")
        print(f"   Hash:        {result.manifest.content_digest}")

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(130)
    except (ZipSigError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=args.verbose)
        sys.exit(1)


if __name__ == "__main__":
    main()
