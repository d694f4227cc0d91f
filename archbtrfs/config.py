#!/usr/bin/env python3
# Configuration Module
# Fixed installation policy; none of these values are asked for interactively

from .models import FsType, SubvolumeSpec

TARGET_MOUNT = "/mnt"
EFI_FIRMWARE_DIR = "/sys/firmware/efi"
NETWORK_CHECK_HOST = "archlinux.org"

# Filesystem signatures offered to the operator
BOOT_FS_TYPES = (FsType.FAT32,)
ROOT_FS_TYPES = (FsType.EXT4, FsType.BTRFS, FsType.XFS, FsType.F2FS)

# btrfs layout
COMPRESSION = "zstd:3"
SUBVOLUMES = (
    SubvolumeSpec("root", "@", ""),
    SubvolumeSpec("home", "@home", "home"),
    SubvolumeSpec("srv", "@srv", "srv"),
    SubvolumeSpec("var-log", "@var_log", "var/log"),
    SubvolumeSpec("var-cache", "@var_cache", "var/cache"),
    SubvolumeSpec("snapshots", "@snapshots", ".snapshots"),
    SubvolumeSpec("swap", "@swap", "swap", compress=False),
)
BOOT_MOUNT_PATH = "boot"
BOOT_MODE = 0o700

# Pauses after unmounting, the kernel finishes detaching asynchronously
SETTLE_DELAY_SECONDS = 2
REMOUNT_SETTLE_SECONDS = 1

# Swap file, sized to physical memory rounded half-up to whole GiB
SWAPFILE_PATH = "swap/swapfile"
SWAPFILE_MODE = 0o600
KIB_PER_GIB = 1024 * 1024

# Package installation
MIRROR_SERVER = "https://mirrors.bfsu.edu.cn/archlinux/$repo/os/$arch"
MIRRORLIST_PATH = "/etc/pacman.d/mirrorlist"
PACMAN_CONF_PATH = "/etc/pacman.conf"
PARALLEL_DOWNLOADS = 10
BASE_PACKAGES = [
    "base", "base-devel", "linux", "linux-headers", "linux-firmware",
    "btrfs-progs",
    "nano", "sudo", "networkmanager",
    "terminus-font", "man-db", "man-pages",
    "git", "wget", "curl",
]
DESKTOP_PACKAGES = [
    "plasma-meta", "sddm", "konsole", "kate", "dolphin",
    "firefox", "firefox-i18n-zh-cn",
    "fcitx5", "fcitx5-configtool", "fcitx5-chinese-addons", "fcitx5-qt", "fcitx5-gtk",
    "noto-fonts-cjk", "noto-fonts-emoji", "ttf-dejavu",
]
MICROCODE_PACKAGES = {
    "GenuineIntel": "intel-ucode",
    "AuthenticAMD": "amd-ucode",
}
DEFAULT_MICROCODE = "amd-ucode"

# System configuration
TIMEZONE = "Asia/Shanghai"
LOCALES = ["en_US.UTF-8", "zh_CN.UTF-8"]
LANG = "zh_CN.UTF-8"
KEYMAP = "us"
CONSOLE_FONT = "ter-132n"
CONSOLE_FONT_MAP = "8859-2"
USER_GROUPS = ["wheel"]
USER_SHELL = "/bin/bash"
ENABLED_SERVICES = ["NetworkManager", "sddm", "fstrim.timer"]
MASKED_SERVICES = ["reflector.service", "reflector.timer"]

# Bootloader
LOADER_TIMEOUT = 2
KERNEL_PARAMETERS = "rw quiet splash"

# Input validation
USERNAME_PATTERN = r"^[a-z0-9]+$"
HOSTNAME_PATTERN = r"^[a-zA-Z0-9-]+$"
MIN_PASSWORD_LENGTH = 4
