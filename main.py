#!/usr/bin/env python3
# Arch Linux btrfs Installer
# Main entry point for the installer

import argparse
import logging
import os
import sys

from archbtrfs import config
from archbtrfs.installer import Installer


def setup_logging(debug=False):
    """Command tracing goes to stderr; progress output is printed directly"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Arch Linux btrfs Installer")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--target", default=config.TARGET_MOUNT,
                        help=f"Mountpoint the new system is assembled under (default: {config.TARGET_MOUNT})")
    parser.add_argument("--yes", action="store_true",
                        help="Do not ask for confirmation before formatting")
    args = parser.parse_args(argv)
    # /proc/self/mounts only holds absolute paths
    args.target = os.path.abspath(args.target)
    return args


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.debug)

    print("=" * 80)
    print("Arch Linux btrfs Installer")
    print("=" * 80)
    print("\nWARNING: This installer will format the partitions you select. Make sure")
    print("you have a backup of all important data before proceeding.\n")

    installer = Installer(target=args.target, assume_yes=args.yes)

    try:
        installer.run()
    except KeyboardInterrupt:
        print(f"\nInstallation cancelled by user during {installer.stage}.")
        return 130
    except Exception as e:
        print(f"\nError during {installer.stage}: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1

    print("\nInstallation completed successfully!")
    print("You can now reboot into your new Arch Linux system.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
