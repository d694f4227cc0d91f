#!/usr/bin/env python3
# Installer Module
# Runs the installation stages in order and guarantees the target is
# unmounted on the way out

from contextlib import contextmanager

from . import config
from .boot_manager import BootManager
from .controllers import SystemMountController, SystemSwapController
from .disk_manager import DiskManager
from .errors import InstallerError
from .filesystem_manager import FilesystemManager
from .guard import check_firmware, check_network, check_privileges
from .models import InstallPlan
from .mount_manager import MountManager
from .package_manager import PackageManager
from .swap_manager import SwapManager, read_memory_kib
from .system_config import SystemConfig
from .user_input import collect_credentials, detect_microcode


class Installer:
    def __init__(self, target=config.TARGET_MOUNT, disk_manager=None, mount_manager=None,
                 filesystem_manager=None, swap_manager=None, package_manager=None,
                 system_config=None, boot_manager=None, assume_yes=False):
        self.target = target
        self.assume_yes = assume_yes

        mounts = SystemMountController()
        swap = SystemSwapController()
        self.disk_manager = disk_manager or DiskManager()
        self.mount_manager = mount_manager or MountManager(mounts, swap, target)
        self.filesystem_manager = filesystem_manager or FilesystemManager(
            mounts=mounts, swap=swap, target=target
        )
        self.swap_manager = swap_manager or SwapManager(swap, target)
        self.package_manager = package_manager or PackageManager(target)
        self.system_config = system_config or SystemConfig(target)
        self.boot_manager = boot_manager or BootManager(target)

        self.stage = "startup"
        self.installation_complete = False

    def _enter(self, stage):
        self.stage = stage

    def preflight(self):
        """Root, UEFI and network checks"""
        self._enter("privilege check")
        check_privileges()
        self._enter("firmware check")
        check_firmware()
        self._enter("network check")
        check_network()

    def collect_plan(self):
        """Gather every operator choice into an InstallPlan"""
        self._enter("user input")
        username, password, hostname = collect_credentials()

        self._enter("mirror setup")
        self.package_manager.setup_mirrors()

        self._enter("device discovery")
        boot_device, root_device = self.disk_manager.select_partitions()
        if not self.assume_yes:
            self.disk_manager.confirm_format(boot_device, root_device)

        self._enter("hardware detection")
        return InstallPlan(
            boot_device=boot_device,
            root_device=root_device,
            username=username,
            password=password,
            hostname=hostname,
            microcode=detect_microcode(),
            memory_kib=read_memory_kib(),
        )

    def install(self, plan):
        """Partition-to-bootloader sequence; the target is cleaned up on every exit path"""
        with self.cleanup_scope():
            self._enter("mount reconciliation")
            self.mount_manager.reconcile()

            self._enter(f"formatting {plan.boot_device} and {plan.root_device}")
            self.filesystem_manager.format_partitions(plan.boot_device, plan.root_device)

            self._enter(f"subvolume creation on {plan.root_device}")
            self.filesystem_manager.create_subvolumes(plan.root_device)

            self._enter("layout mounting")
            self.mount_manager.mount_layout(plan)

            self._enter("swap setup")
            self.swap_manager.create_swapfile(plan.memory_kib)

            self._enter("base system installation")
            self.package_manager.install_base_system(plan.microcode)

            self._enter("fstab generation")
            self.package_manager.generate_fstab()

            self._enter("system configuration")
            self.system_config.configure_system(plan)

            self._enter("bootloader installation")
            self.boot_manager.install_bootloader(plan)

            self._enter("finalization")
            self.finalize_installation()

    def run(self):
        self.preflight()
        plan = self.collect_plan()
        self.install(plan)
        return plan

    def finalize_installation(self):
        """Swap off first, an active swap file keeps its filesystem busy"""
        print("\nFinalizing installation...")
        self.swap_manager.deactivate()
        self.mount_manager.unmount_all()
        self.installation_complete = True

        print("\n" + "=" * 80)
        print("Arch Linux installation completed!")
        print("=" * 80)

    @contextmanager
    def cleanup_scope(self):
        try:
            yield
        finally:
            self.cleanup()

    def cleanup(self):
        """Best-effort teardown of anything left under the target"""
        try:
            if not self.mount_manager.current_mounts():
                return
        except OSError as e:
            print(f"Warning: Could not read the mount table: {e}")

        print("Cleaning up...")
        self.swap_manager.deactivate_quietly()
        try:
            self.mount_manager.unmount_all()
        except (InstallerError, OSError) as e:
            print(f"Warning: Error unmounting {self.target}: {e}")
            print("You may need to manually unmount it before rebooting.")
