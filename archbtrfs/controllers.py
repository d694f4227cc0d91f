#!/usr/bin/env python3
# Controllers Module
# Capability interfaces over the OS utilities the installer drives, and
# their real implementations. Tests substitute in-memory fakes.

import json
import os
import re
from abc import ABC, abstractmethod

from .command import run_command
from .errors import ToolFailure
from .models import BlockDevice, FsType, MountRecord

PROC_MOUNTS = "/proc/self/mounts"
PROC_SWAPS = "/proc/swaps"

_NOT_MOUNTED_MARKERS = ("not mounted", "no mount point specified")
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape(field):
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_proc_mounts(text):
    """Parse /proc/mounts content into MountRecords, in mount order"""
    records = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 4:
            continue
        source, target, fstype, options = fields[:4]
        records.append(MountRecord(_unescape(source), _unescape(target), fstype, options))
    return records


def parse_proc_swaps(text):
    """Return the active swap area paths listed in /proc/swaps"""
    swaps = []
    for line in text.splitlines()[1:]:
        fields = line.split()
        if fields:
            swaps.append(_unescape(fields[0]))
    return swaps


def same_device(a, b):
    if a == b:
        return True
    return os.path.realpath(a) == os.path.realpath(b)


class DeviceProbe(ABC):
    @abstractmethod
    def list_block_devices(self):
        """Return every block device with its filesystem signature"""

    @abstractmethod
    def filesystem_type(self, device):
        """Return the FsType currently on a device"""


class Formatter(ABC):
    @abstractmethod
    def format_fat32(self, device):
        pass

    @abstractmethod
    def format_btrfs(self, device):
        pass

    @abstractmethod
    def create_subvolume(self, path):
        pass


class MountController(ABC):
    @abstractmethod
    def list_mounts(self):
        """Return the live mount table as MountRecords in mount order"""

    @abstractmethod
    def mount(self, source, target, options=None):
        pass

    @abstractmethod
    def unmount(self, target, force=False):
        """Unmount a mountpoint or device; return False if it was not mounted"""

    @abstractmethod
    def unmount_recursive(self, target):
        """Unmount target and everything below it; return False if nothing was mounted"""

    def mounts_of(self, device):
        return [r for r in self.list_mounts() if same_device(r.source, device)]

    def is_mountpoint(self, path):
        path = os.path.normpath(path)
        return any(os.path.normpath(r.target) == path for r in self.list_mounts())


class SwapController(ABC):
    @abstractmethod
    def active_swaps(self):
        pass

    @abstractmethod
    def swapoff_all(self):
        pass

    @abstractmethod
    def swapoff(self, path):
        pass

    @abstractmethod
    def truncate(self, path, size):
        pass

    @abstractmethod
    def disable_cow(self, path):
        pass

    @abstractmethod
    def allocate(self, path, size_gib):
        pass

    @abstractmethod
    def protect(self, path, mode):
        pass

    @abstractmethod
    def make_swap(self, path):
        pass

    @abstractmethod
    def swapon(self, path):
        pass

    def is_active(self, path):
        return any(same_device(s, path) for s in self.active_swaps())


class SystemDeviceProbe(DeviceProbe):
    def list_block_devices(self):
        result = run_command(["lsblk", "-J", "-b", "-p", "-o", "NAME,SIZE,FSTYPE,TYPE"])
        try:
            tree = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ToolFailure(result.argv, result.returncode, f"unreadable lsblk output: {e}") from e

        devices = []
        pending = list(tree.get("blockdevices", []))
        while pending:
            node = pending.pop(0)
            pending[0:0] = node.get("children") or []
            if node.get("type") == "rom":
                continue
            devices.append(BlockDevice(
                path=node["name"],
                fstype=FsType.from_lsblk(node.get("fstype")),
                size=int(node.get("size") or 0),
            ))
        return devices

    def filesystem_type(self, device):
        result = run_command(["lsblk", "-dno", "FSTYPE", device], check=False)
        if not result.ok:
            return FsType.NONE
        return FsType.from_lsblk(result.stdout.strip())


class SystemFormatter(Formatter):
    def format_fat32(self, device):
        run_command(["mkfs.fat", "-F32", device])

    def format_btrfs(self, device):
        run_command(["mkfs.btrfs", "-f", device])

    def create_subvolume(self, path):
        run_command(["btrfs", "subvolume", "create", path])


class SystemMountController(MountController):
    def list_mounts(self):
        with open(PROC_MOUNTS, "r") as f:
            return parse_proc_mounts(f.read())

    def mount(self, source, target, options=None):
        cmd = ["mount"]
        if options:
            cmd.extend(["-o", options])
        cmd.extend([source, target])
        run_command(cmd)

    def _umount(self, cmd):
        try:
            # messages are matched in English
            run_command(cmd, env=dict(os.environ, LC_ALL="C"))
        except ToolFailure as e:
            if any(marker in e.stderr for marker in _NOT_MOUNTED_MARKERS):
                return False
            raise
        return True

    def unmount(self, target, force=False):
        cmd = ["umount"]
        if force:
            cmd.append("-f")
        cmd.append(target)
        return self._umount(cmd)

    def unmount_recursive(self, target):
        return self._umount(["umount", "-R", target])


class SystemSwapController(SwapController):
    def active_swaps(self):
        try:
            with open(PROC_SWAPS, "r") as f:
                return parse_proc_swaps(f.read())
        except FileNotFoundError:
            return []

    def swapoff_all(self):
        run_command(["swapoff", "-a"])

    def swapoff(self, path):
        run_command(["swapoff", path])

    def truncate(self, path, size):
        run_command(["truncate", "-s", str(size), path])

    def disable_cow(self, path):
        run_command(["chattr", "+C", path])

    def allocate(self, path, size_gib):
        run_command(["fallocate", "-l", f"{size_gib}G", path])

    def protect(self, path, mode):
        os.chmod(path, mode)

    def make_swap(self, path):
        run_command(["mkswap", path])

    def swapon(self, path):
        run_command(["swapon", path])
