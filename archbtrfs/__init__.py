#!/usr/bin/env python3
# Arch btrfs Installer
# Package initialization file

from .disk_manager import DiskManager
from .mount_manager import MountManager
from .filesystem_manager import FilesystemManager
from .swap_manager import SwapManager
from .package_manager import PackageManager
from .system_config import SystemConfig
from .boot_manager import BootManager
from .installer import Installer
