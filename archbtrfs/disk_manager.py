#!/usr/bin/env python3
# Disk Manager Module
# Discovers partitions and lets the operator pick the boot and root devices

from InquirerPy import inquirer

from . import config
from .controllers import SystemDeviceProbe
from .errors import InstallerError, InvalidSelection, NoCandidateFound


def classify_devices(devices, boot_types=config.BOOT_FS_TYPES, root_types=config.ROOT_FS_TYPES):
    """Split devices into boot-capable and root-capable candidates, keeping input order"""
    boot_candidates = [d for d in devices if d.fstype in boot_types]
    root_candidates = [d for d in devices if d.fstype in root_types]

    if not boot_candidates:
        raise NoCandidateFound("No EFI (FAT32) partition found. Cannot continue.")
    if not root_candidates:
        names = ", ".join(t.value for t in root_types)
        raise NoCandidateFound(f"No root partition ({names}) found. Cannot continue.")

    return boot_candidates, root_candidates


def parse_selection(raw, candidates):
    """Resolve a 1-based index typed by the operator to a candidate"""
    text = (raw or "").strip()
    if not text.isdecimal():
        raise InvalidSelection(f"'{raw}' is not a number between 1 and {len(candidates)}")
    index = int(text)
    if not 1 <= index <= len(candidates):
        raise InvalidSelection(f"{index} is out of range, choose between 1 and {len(candidates)}")
    return candidates[index - 1]


class DiskManager:
    def __init__(self, probe=None):
        self.probe = probe or SystemDeviceProbe()
        self.boot_device = None
        self.root_device = None

    def get_candidates(self):
        """Re-read the device topology and classify it"""
        return classify_devices(self.probe.list_block_devices())

    def show_devices(self):
        """Print every block device with its filesystem"""
        print("\nAvailable disks and partitions:")
        for device in self.probe.list_block_devices():
            print(f"  {device.describe()}")
        print()

    def select_partitions(self):
        """Interactive boot and root partition selection"""
        self.show_devices()
        boot_candidates, root_candidates = self.get_candidates()

        self.boot_device = self._select("EFI partition", boot_candidates).path
        self.root_device = self._select("root partition", root_candidates).path

        print(f"\nBoot partition: {self.boot_device}")
        print(f"Root partition: {self.root_device}")
        return self.boot_device, self.root_device

    def _select(self, label, candidates):
        print(f"Available {label}s:")
        for i, device in enumerate(candidates, 1):
            print(f"{i}) {device.describe()}")

        while True:
            raw = inquirer.text(
                message=f"Select {label} (1-{len(candidates)}):",
            ).execute()
            try:
                return parse_selection(raw, candidates)
            except InvalidSelection as e:
                print(f"Invalid selection: {e}. Please try again.")

    def confirm_format(self, boot_device, root_device):
        """Last chance to back out before anything is erased"""
        confirm = inquirer.confirm(
            message=f"WARNING: This will erase ALL data on {boot_device} and {root_device}. Continue?",
            default=False
        ).execute()

        if not confirm:
            raise InstallerError("Formatting cancelled by user.")
