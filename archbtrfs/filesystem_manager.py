#!/usr/bin/env python3
# Filesystem Manager Module
# Formats the selected partitions and creates the btrfs subvolumes

import os
import tempfile
import time

from . import config
from .controllers import (
    SystemDeviceProbe,
    SystemFormatter,
    SystemMountController,
    SystemSwapController,
)
from .errors import DeviceBusy, ToolFailure, UnexpectedMountState
from .models import FsType
from .mount_manager import unmount_order


class FilesystemManager:
    def __init__(self, formatter=None, mounts=None, swap=None, probe=None,
                 target=config.TARGET_MOUNT, sleep=time.sleep):
        self.formatter = formatter or SystemFormatter()
        self.mounts = mounts or SystemMountController()
        self.swap = swap or SystemSwapController()
        self.probe = probe or SystemDeviceProbe()
        self.target = target
        self.sleep = sleep

    def format_partitions(self, boot_device, root_device):
        """Wipe boot as FAT32 and root as btrfs; refuses while either is mounted"""
        print("\nFormatting partitions...")

        self._release_devices(boot_device, root_device)

        for device in (root_device, boot_device):
            busy = self.mounts.mounts_of(device)
            if busy:
                raise DeviceBusy(device, [r.target for r in busy])

        print(f"Formatting EFI partition {boot_device}")
        self.formatter.format_fat32(boot_device)

        print(f"Formatting root partition {root_device}")
        self.formatter.format_btrfs(root_device)

        print("Partitions formatted successfully.")

    def create_subvolumes(self, root_device):
        """Create every subvolume at the top level of the fresh btrfs filesystem"""
        print("\nCreating btrfs subvolumes...")

        scratch = tempfile.mkdtemp(prefix="archbtrfs-")
        released = True
        try:
            try:
                self.mounts.mount(root_device, scratch)
            except ToolFailure as e:
                raise UnexpectedMountState(f"Failed to mount {root_device} at {scratch}: {e}") from e

            try:
                created = []
                for spec in config.SUBVOLUMES:
                    try:
                        self.formatter.create_subvolume(os.path.join(scratch, spec.subvolume))
                    except ToolFailure as e:
                        raise UnexpectedMountState(
                            f"Failed to create subvolume {spec.subvolume} on {root_device}: {e}"
                        ) from e
                    print(f"Created subvolume {spec.subvolume}")
                    created.append(spec.subvolume)
            finally:
                released = self._release_scratch(scratch)
        finally:
            # a directory that is still a mountpoint cannot be removed
            if released:
                os.rmdir(scratch)

        print("Subvolumes created successfully.")
        return created

    def _release_scratch(self, scratch):
        try:
            self.mounts.unmount(scratch)
        except ToolFailure as e:
            print(f"Warning: Failed to unmount {scratch}: {e}")
            print("You may need to manually unmount it.")
            return False
        return True

    def _release_devices(self, boot_device, root_device):
        for device in (boot_device, root_device):
            self._unmount_quietly(device)

        # subvolumes from an earlier run may still be mounted anywhere
        if self.probe.filesystem_type(root_device) == FsType.BTRFS:
            for record in unmount_order(self.mounts.mounts_of(root_device)):
                print(f"Unmounting {record.target}")
                self._unmount_quietly(record.target)

        self.sleep(config.SETTLE_DELAY_SECONDS)

        if self.mounts.is_mountpoint(self.target):
            print(f"Unmounting {self.target}")
            try:
                self.mounts.unmount_recursive(self.target)
            except ToolFailure as e:
                print(f"Warning: Failed to unmount {self.target}: {e}")
            self.sleep(config.REMOUNT_SETTLE_SECONDS)

        try:
            self.swap.swapoff_all()
        except ToolFailure as e:
            print(f"Warning: Failed to deactivate swap: {e}")

    def _unmount_quietly(self, target):
        try:
            self.mounts.unmount(target, force=True)
        except ToolFailure as e:
            print(f"Warning: Failed to unmount {target}: {e}")
