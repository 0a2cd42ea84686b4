"""
ZipSig CLI - Extract Command
Usage: python -m cli.commands.extract signed.zip -o output_folder [--zip]
"""
import argparse
import getpass
import shutil
import sys
from pathlib import Path
from zipsig.errors import DecryptionError, ZipSigError
from zipsig.tools.inspector import Inspector
from zipsig.unpacker.extractor import Extractor
from zipsig.utils.logger import logger, set_verbose


def main():
    parser = argparse.ArgumentParser(description="Decrypt and extract the files of a ZipSig archive")
    parser.add_argument("input", help="Path to the signed .zip archive")
    parser.add_argument("-o", "--output", help="Directory to save the extracted files")
    parser.add_argument("-p", "--password", help="Decryption password (prompted if needed)")
    parser.add_argument("-z", "--zip", action="store_true",
                        help="Write a plain ZIP of the decrypted files instead of a folder")
    parser.add_argument("-f", "--force", action="store_true", help="Write into an existing directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")

    args = parser.parse_args()
    set_verbose(args.verbose)

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Archive not found: {input_path}")
        sys.exit(1)

    if args.output:
        out_dir = Path(args.output)
    else:
        # e.g. docs/report_signed.zip -> ./report_signed_extracted/
        out_dir = Path.cwd() / f"{input_path.stem}_extracted"

    if not args.zip and out_dir.exists() and any(out_dir.iterdir()) and not args.force:
        logger.error(f"Output directory is not empty: {out_dir}")
        print("Use -f or --force to write into it.")
        sys.exit(1)

    password = args.password
    created = not out_dir.exists()

    try:
        extractor = Extractor()
        if password is None and _needs_password(input_path):
            password = getpass.getpass("Decryption password: ")

        if args.zip:
            out_path = extractor.extract_to_zip(str(input_path), str(out_dir), password)
            print(f"\n✅ Success! Decrypted archive saved to: {out_path}")
        else:
            result = extractor.extract_file(str(input_path), str(out_dir), password)
            print(f"\n✅ Success! {len(result['files'])} file(s) extracted to: {result['output_dir']}")

    except KeyboardInterrupt:
        print("\n❌ Operation cancelled by user.")
        if created:
            shutil.rmtree(out_dir, ignore_errors=True)
        sys.exit(130)
    except DecryptionError as e:
        logger.error(f"Decryption failed for {e.member_path} (wrong password?)")
        sys.exit(1)
    except (ZipSigError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=args.verbose)
        sys.exit(1)


def _needs_password(archive_path: Path) -> bool:
    info = Inspector().inspect(str(archive_path), show=False)
    return info['encrypted']


if __name__ == "__main__":
    main()
