#!/usr/bin/env python3
# Boot Manager Module
# Installs systemd-boot and writes the loader entry for the btrfs root

import os

from . import config
from .command import run_command


class BootManager:
    def __init__(self, root_mount=config.TARGET_MOUNT, runner=run_command):
        self.root_mount = root_mount
        self.runner = runner

    def get_uuid(self, device):
        """Filesystem UUID of a device"""
        result = self.runner(["blkid", "-s", "UUID", "-o", "value", device])
        return result.stdout.strip()

    def install_bootloader(self, plan):
        """Install systemd-boot to the ESP mounted at /boot"""
        print("\nInstalling systemd-boot bootloader...")
        self.runner(["arch-chroot", self.root_mount, "bootctl", "install"])

        loader_dir = os.path.join(self.root_mount, "boot/loader")
        os.makedirs(loader_dir, exist_ok=True)
        with open(os.path.join(loader_dir, "loader.conf"), "w") as f:
            f.write("default arch\n")
            f.write(f"timeout {config.LOADER_TIMEOUT}\n")
            f.write("console-mode keep\n")
            f.write("editor no\n")

        root_uuid = self.get_uuid(plan.root_device)
        root_spec = next(s for s in config.SUBVOLUMES if not s.mount_path)

        entries_dir = os.path.join(loader_dir, "entries")
        os.makedirs(entries_dir, exist_ok=True)
        with open(os.path.join(entries_dir, "arch.conf"), "w") as f:
            f.write("title Arch Linux\n")
            f.write("linux /vmlinuz-linux\n")
            f.write(f"initrd /{plan.microcode}.img\n")
            f.write("initrd /initramfs-linux.img\n")
            f.write(
                f"options root=UUID={root_uuid} rootflags=subvol={root_spec.subvolume} "
                f"{config.KERNEL_PARAMETERS}\n"
            )

        print("systemd-boot installed successfully.")
        return root_uuid
