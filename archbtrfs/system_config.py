#!/usr/bin/env python3
# System Configuration Module
# Configures the installed system from inside an arch-chroot

import os

from . import config
from .command import run_command
from .package_manager import uncomment_option, write_mirrorlist


class SystemConfig:
    def __init__(self, root_mount=config.TARGET_MOUNT, runner=run_command):
        self.root_mount = root_mount
        self.runner = runner

    def configure_system(self, plan):
        """Apply every system setting derived from the install plan"""
        print("\nSystem Configuration")
        print("===================")

        self._configure_pacman()
        self._configure_timezone()
        self._configure_locale()
        self._configure_console()
        self._configure_network(plan.hostname)
        self._configure_users(plan.username, plan.password)
        self._install_desktop()
        self._configure_services()
        self._configure_desktop_session(plan.username)

        print("\nSystem configuration completed.")

    def _path(self, *parts):
        return os.path.join(self.root_mount, *parts)

    def _chroot(self, *cmd, input_text=None):
        return self.runner(["arch-chroot", self.root_mount] + list(cmd), input_text=input_text)

    def _write(self, relpath, content, mode=None):
        path = self._path(relpath)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
        if mode is not None:
            os.chmod(path, mode)
        return path

    def _configure_pacman(self):
        """Same mirror and pacman tweaks as the live environment, minus reflector"""
        for unit in config.MASKED_SERVICES:
            self._chroot("systemctl", "mask", unit)

        write_mirrorlist(self._path(config.MIRRORLIST_PATH.lstrip("/")))

        pacman_conf = self._path(config.PACMAN_CONF_PATH.lstrip("/"))
        uncomment_option(pacman_conf, "ParallelDownloads", config.PARALLEL_DOWNLOADS)
        uncomment_option(pacman_conf, "Color")
        uncomment_option(pacman_conf, "VerbosePkgLists")

    def _configure_timezone(self):
        self._chroot("ln", "-sf", f"/usr/share/zoneinfo/{config.TIMEZONE}", "/etc/localtime")
        self._chroot("hwclock", "--systohc")
        print(f"Timezone set to {config.TIMEZONE}.")

    def _configure_locale(self):
        """Enable the configured locales and generate them"""
        locale_gen_path = self._path("etc/locale.gen")
        locale_lines = []
        if os.path.exists(locale_gen_path):
            with open(locale_gen_path, "r") as f:
                locale_lines = f.readlines()

        for locale in config.LOCALES:
            found = False
            for i, line in enumerate(locale_lines):
                if line.lstrip("#").startswith(locale + " "):
                    locale_lines[i] = line.lstrip("#")
                    found = True
            if not found:
                locale_lines.append(f"{locale} UTF-8\n")

        with open(locale_gen_path, "w") as f:
            f.writelines(locale_lines)

        self._chroot("locale-gen")
        self._write("etc/locale.conf", f"LANG={config.LANG}\n")
        print(f"Locale set to {config.LANG}.")

    def _configure_console(self):
        self._write(
            "etc/vconsole.conf",
            f"KEYMAP={config.KEYMAP}\n"
            f"FONT={config.CONSOLE_FONT}\n"
            f"FONT_MAP={config.CONSOLE_FONT_MAP}\n",
        )

    def _configure_network(self, hostname):
        self._write("etc/hostname", f"{hostname}\n")
        self._write(
            "etc/hosts",
            "127.0.0.1\tlocalhost\n"
            "::1\t\tlocalhost\n"
            f"127.0.1.1\t{hostname}.localdomain\t{hostname}\n",
        )
        print(f"Network configured with hostname: {hostname}")

    def _configure_users(self, username, password):
        """Create the user, set its password and grant wheel sudo rights"""
        self._chroot("useradd", "-m", "-G", ",".join(config.USER_GROUPS), "-s", config.USER_SHELL, username)
        self._chroot("chpasswd", input_text=f"{username}:{password}\n")

        self._write("etc/sudoers.d/wheel", "%wheel ALL=(ALL:ALL) ALL\n", mode=0o440)
        print(f"User {username} created successfully.")

    def _install_desktop(self):
        print("Installing desktop environment...")
        self._chroot("pacman", "-Syu", "--noconfirm", *config.DESKTOP_PACKAGES)

    def _configure_services(self):
        for service in config.ENABLED_SERVICES:
            self._chroot("systemctl", "enable", service)
            print(f"Enabled {service} service.")

    def _configure_desktop_session(self, username):
        """Plasma language for the user and SDDM autologin"""
        home_config = f"home/{username}/.config"
        self._write(f"{home_config}/plasma-localerc", f"[Formats]\nLANG={config.LANG}\n")
        self._chroot("chown", "-R", f"{username}:{username}", f"/{home_config}")

        self._write(
            "etc/sddm.conf.d/kde_settings.conf",
            "[Autologin]\n"
            f"User={username}\n"
            "Session=plasma.desktop\n"
            "Relogin=false\n"
            "\n"
            "[Theme]\n"
            "Current=breeze\n"
            "\n"
            "[General]\n"
            "Numlock=on\n",
        )
