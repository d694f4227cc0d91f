#!/usr/bin/env python3
# Swap Manager Module
# Sizes, creates and activates the swap file inside the @swap subvolume

import os

from . import config
from .controllers import SystemSwapController
from .errors import InstallerError, ToolFailure


def swap_size_gib(mem_kib):
    """Physical memory in KiB rounded half-up to whole GiB"""
    return (mem_kib + config.KIB_PER_GIB // 2) // config.KIB_PER_GIB


def read_memory_kib(meminfo_path="/proc/meminfo"):
    """Get total physical memory in KiB"""
    try:
        with open(meminfo_path, "r") as f:
            for line in f:
                if line.startswith("MemTotal:"):
                    return int(line.split()[1])
    except (OSError, ValueError, IndexError) as e:
        raise InstallerError(f"Could not read memory size from {meminfo_path}: {e}") from e
    raise InstallerError(f"MemTotal missing from {meminfo_path}")


class SwapManager:
    def __init__(self, swap=None, target=config.TARGET_MOUNT):
        self.swap = swap or SystemSwapController()
        self.target = target

    @property
    def swapfile(self):
        return os.path.join(self.target, config.SWAPFILE_PATH)

    def create_swapfile(self, mem_kib):
        """Create a no-CoW swap file as large as physical memory and turn it on"""
        size = swap_size_gib(mem_kib)
        path = self.swapfile
        print(f"\nSystem memory: {size}GB")
        print(f"Creating {size}G swap file at {path}...")

        self.swap.truncate(path, 0)
        self.swap.disable_cow(path)
        self.swap.allocate(path, size)
        self.swap.protect(path, config.SWAPFILE_MODE)
        self.swap.make_swap(path)
        self.swap.swapon(path)

        print("Swap file activated.")
        return size

    def deactivate(self):
        """Turn the swap file off if it is active"""
        if not self.swap.is_active(self.swapfile):
            return False
        self.swap.swapoff(self.swapfile)
        return True

    def deactivate_quietly(self):
        try:
            return self.deactivate()
        except (ToolFailure, OSError) as e:
            print(f"Warning: Failed to deactivate {self.swapfile}: {e}")
            return False
