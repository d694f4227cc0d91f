#!/usr/bin/env python3
# Package Manager Module
# Mirror setup, base system installation and fstab generation

import os
import re

from . import config
from .command import run_command


def uncomment_option(path, option, value=None):
    """Enable a commented-out '#Option' line in a pacman-style config file"""
    with open(path, "r") as f:
        lines = f.readlines()

    pattern = re.compile(rf"^#\s*{re.escape(option)}\b.*$")
    replacement = option if value is None else f"{option} = {value}"
    found = False
    for i, line in enumerate(lines):
        if pattern.match(line):
            lines[i] = replacement + "\n"
            found = True

    with open(path, "w") as f:
        f.writelines(lines)
    return found


def write_mirrorlist(path, server=config.MIRROR_SERVER):
    with open(path, "w") as f:
        f.write(f"Server = {server}\n")


class PackageManager:
    def __init__(self, root_mount=config.TARGET_MOUNT, runner=run_command,
                 mirrorlist_path=config.MIRRORLIST_PATH, pacman_conf=config.PACMAN_CONF_PATH):
        self.root_mount = root_mount
        self.runner = runner
        self.mirrorlist_path = mirrorlist_path
        self.pacman_conf = pacman_conf

    def setup_mirrors(self):
        """Pin the live environment to a single mirror and enable parallel downloads"""
        print("\nConfiguring mirrors...")

        # reflector would overwrite the mirrorlist behind our back
        for unit in config.MASKED_SERVICES:
            self.runner(["systemctl", "stop", unit], check=False)
            self.runner(["systemctl", "disable", unit], check=False)

        write_mirrorlist(self.mirrorlist_path)
        uncomment_option(self.pacman_conf, "ParallelDownloads", config.PARALLEL_DOWNLOADS)

        self.runner(["pacman", "-Syy"])
        print("Mirrorlist updated.")

    def install_base_system(self, microcode):
        """Install the base package set into the target root"""
        print("\nInstalling base system...")
        packages = list(config.BASE_PACKAGES)
        packages.insert(5, microcode)

        print(f"Installing packages: {', '.join(packages)}")
        self.runner(["pacstrap", self.root_mount] + packages)
        print("Base system installed successfully.")
        return packages

    def generate_fstab(self):
        """Append UUID-based entries for the live mount tree to the target fstab"""
        print("Generating fstab...")
        result = self.runner(["genfstab", "-U", self.root_mount])

        etc_dir = os.path.join(self.root_mount, "etc")
        os.makedirs(etc_dir, exist_ok=True)
        with open(os.path.join(etc_dir, "fstab"), "a") as f:
            f.write(result.stdout)

        print("Fstab generated successfully.")
