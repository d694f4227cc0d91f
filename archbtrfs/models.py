#!/usr/bin/env python3
# Models Module
# Plain value types passed between installer stages

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath


class FsType(Enum):
    FAT32 = "fat32"
    EXT4 = "ext4"
    BTRFS = "btrfs"
    XFS = "xfs"
    F2FS = "f2fs"
    SWAP = "swap"
    OTHER = "other"
    NONE = "none"

    @classmethod
    def from_lsblk(cls, fstype):
        """Map an lsblk FSTYPE column value onto the closed set"""
        if not fstype:
            return cls.NONE
        fstype = fstype.lower()
        if fstype == "vfat":
            return cls.FAT32
        for member in cls:
            if member.value == fstype and member not in (cls.OTHER, cls.NONE):
                return member
        return cls.OTHER


@dataclass(frozen=True)
class BlockDevice:
    path: str
    fstype: FsType
    size: int = 0

    def describe(self):
        """Human readable one-line summary used in selection lists"""
        gib = self.size / (1024 ** 3)
        return f"{self.path} ({gib:.1f} GiB, {self.fstype.value})"


@dataclass(frozen=True)
class InstallPlan:
    """Operator choices, resolved once before anything touches the disk"""
    boot_device: str
    root_device: str
    username: str
    password: str = field(repr=False)
    hostname: str
    microcode: str
    memory_kib: int


@dataclass(frozen=True)
class SubvolumeSpec:
    name: str
    subvolume: str
    mount_path: str
    compress: bool = True

    def mount_options(self, compression):
        options = [f"subvol={self.subvolume}"]
        if self.compress:
            options += [f"compress={compression}", "noatime"]
        else:
            options.append("compress=no")
        return ",".join(options)

    def target(self, root):
        """Absolute mount target of this subvolume under root"""
        if not self.mount_path:
            return str(PurePosixPath(root))
        return str(PurePosixPath(root) / self.mount_path)


@dataclass(frozen=True)
class MountRecord:
    source: str
    target: str
    fstype: str = ""
    options: str = ""

    @property
    def depth(self):
        return len(PurePosixPath(self.target).parts)
