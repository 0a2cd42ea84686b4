"""
ZipSig CLI - Inspect Command
Usage: python -m cli.commands.inspect signed.zip [--json]
"""
import argparse
import json
import sys
from pathlib import Path
from zipsig.errors import ZipSigError
from zipsig.tools.inspector import Inspector
from zipsig.utils.logger import logger


def _as_json(info: dict) -> str:
    members = []

    def flatten(node):
        for name in sorted(node):
            child = node[name]
            if isinstance(child, dict):
                flatten(child)
            else:
                members.append(child.to_dict())

    flatten(info['tree'])
    report = {key: value for key, value in info.items() if key != 'tree'}
    report['files'] = members
    return json.dumps(report, indent=2, ensure_ascii=False)


def main():
    parser = argparse.ArgumentParser(
        description="Show a ZipSig archive's manifest without verifying or decrypting"
    )
    parser.add_argument("input", help="Path to the signed .zip archive or a .zipsig file")
    parser.add_argument("-j", "--json", action="store_true", help="Print the report as JSON")

    args = parser.parse_args()

    source = Path(args.input)
    if not source.is_file():
        logger.error(f"No such file: {source}")
        sys.exit(1)

    try:
        info = Inspector().inspect(str(source), show=not args.json)
        if args.json:
            print(_as_json(info))
    except (ZipSigError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Inspection failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
