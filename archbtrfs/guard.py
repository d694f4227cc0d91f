#!/usr/bin/env python3
# Guard Module
# Preconditions checked before the installer touches anything

import os

from . import config
from .command import run_command
from .errors import FirmwareModeError, NetworkError, PrivilegeError


def check_privileges(geteuid=os.geteuid):
    """Fail unless running as root"""
    if geteuid() != 0:
        raise PrivilegeError(
            "This installer must be run with root privileges. "
            "Please run it with sudo or as the root user."
        )


def check_firmware(efi_dir=config.EFI_FIRMWARE_DIR):
    """Fail unless the machine booted in UEFI mode, systemd-boot needs it"""
    if not os.path.isdir(efi_dir):
        raise FirmwareModeError(
            f"{efi_dir} not found; reboot the installation medium in UEFI mode"
        )


def check_network(host=config.NETWORK_CHECK_HOST, runner=run_command):
    """Fail unless the package mirrors are reachable"""
    result = runner(["ping", "-c", "1", host], check=False)
    if not result.ok:
        raise NetworkError(f"Cannot reach {host}; check the network connection")
