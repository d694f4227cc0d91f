#!/usr/bin/env python3
# Mount Manager Module
# Tears down whatever is mounted under the target before formatting, and
# builds the final subvolume layout after it

import os
from pathlib import Path

from . import config
from .controllers import SystemMountController, SystemSwapController, same_device
from .errors import ToolFailure, UnexpectedMountState


def is_beneath(path, root):
    """True if path is root itself or lies inside it"""
    path = os.path.normpath(path)
    root = os.path.normpath(root)
    if root == "/":
        return path.startswith("/")
    return path == root or path.startswith(root + "/")


def mounts_under(records, target):
    return [r for r in records if is_beneath(r.target, target)]


def unmount_order(records):
    """Deepest mounts first; at equal depth the most recent mount goes first"""
    return sorted(reversed(list(records)), key=lambda r: r.depth, reverse=True)


class MountManager:
    def __init__(self, mounts=None, swap=None, target=config.TARGET_MOUNT):
        self.mounts = mounts or SystemMountController()
        self.swap = swap or SystemSwapController()
        self.target = target

    def current_mounts(self):
        return mounts_under(self.mounts.list_mounts(), self.target)

    def reconcile(self):
        """Unmount everything at or below the target and turn off all swap"""
        print(f"\nUnmounting everything under {self.target}...")

        unmounted = []
        for record in unmount_order(self.current_mounts()):
            print(f"Unmounting {record.target}")
            try:
                if self.mounts.unmount(record.target, force=True):
                    unmounted.append(record.target)
            except ToolFailure as e:
                print(f"Warning: Failed to unmount {record.target}: {e}")

        try:
            self.swap.swapoff_all()
        except ToolFailure as e:
            print(f"Warning: Failed to deactivate swap: {e}")

        return unmounted

    def mount_layout(self, plan):
        """Mount the root subvolume, every secondary subvolume, then the boot partition"""
        print("\nMounting filesystems...")
        compression = config.COMPRESSION
        root_spec, secondary = self._split_subvolumes()

        Path(self.target).mkdir(parents=True, exist_ok=True)
        self._mount(plan.root_device, self.target, root_spec.mount_options(compression))

        boot_dir = Path(self.target) / config.BOOT_MOUNT_PATH
        for spec in secondary:
            Path(spec.target(self.target)).mkdir(parents=True, exist_ok=True)
        boot_dir.mkdir(parents=True, exist_ok=True)

        for spec in secondary:
            self._mount(plan.root_device, spec.target(self.target), spec.mount_options(compression))

        self._mount(plan.boot_device, str(boot_dir))
        os.chmod(boot_dir, config.BOOT_MODE)

        print("Filesystems mounted successfully.")
        return self.verify_layout(plan)

    def verify_layout(self, plan):
        """Check that each subvolume and the boot partition are mounted exactly once"""
        records = self.current_mounts()
        expected = [(spec.target(self.target), plan.root_device) for spec in config.SUBVOLUMES]
        expected.append((os.path.join(self.target, config.BOOT_MOUNT_PATH), plan.boot_device))

        for path, device in expected:
            path = os.path.normpath(path)
            matching = [r for r in records if os.path.normpath(r.target) == path]
            if len(matching) != 1:
                raise UnexpectedMountState(
                    f"Expected exactly one mount at {path}, found {len(matching)}"
                )
            if not same_device(matching[0].source, device):
                raise UnexpectedMountState(
                    f"{path} is backed by {matching[0].source}, expected {device}"
                )
        return records

    def unmount_all(self):
        """Recursively unmount the target"""
        print(f"Unmounting {self.target}...")
        return self.mounts.unmount_recursive(self.target)

    def _split_subvolumes(self):
        root_spec = next(s for s in config.SUBVOLUMES if not s.mount_path)
        secondary = [s for s in config.SUBVOLUMES if s is not root_spec]
        return root_spec, secondary

    def _mount(self, device, target, options=None):
        try:
            self.mounts.mount(device, target, options)
        except ToolFailure as e:
            raise UnexpectedMountState(f"Failed to mount {device} at {target}: {e}") from e
        print(f"Mounted {device} at {target}" + (f" ({options})" if options else ""))
