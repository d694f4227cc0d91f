import os

import pytest

from archbtrfs.command import CommandResult
from archbtrfs.controllers import (
    DeviceProbe,
    Formatter,
    MountController,
    SwapController,
    same_device,
)
from archbtrfs.errors import ToolFailure
from archbtrfs.models import BlockDevice, FsType, MountRecord
from archbtrfs.mount_manager import is_beneath


class FakeProbe(DeviceProbe):
    def __init__(self, devices=()):
        self.devices = list(devices)

    def list_block_devices(self):
        return list(self.devices)

    def filesystem_type(self, device):
        for d in self.devices:
            if d.path == device:
                return d.fstype
        return FsType.NONE


class FakeFormatter(Formatter):
    def __init__(self, fail_subvolume=None):
        self.calls = []
        self.fail_subvolume = fail_subvolume

    def format_fat32(self, device):
        self.calls.append(("mkfs.fat", device))

    def format_btrfs(self, device):
        self.calls.append(("mkfs.btrfs", device))

    def create_subvolume(self, path):
        name = os.path.basename(path)
        if name == self.fail_subvolume:
            raise ToolFailure(["btrfs", "subvolume", "create", path], 1, "File exists")
        self.calls.append(("subvolume", name))


class FakeMountController(MountController):
    """In-memory mount table; targets in `stuck` refuse to unmount silently"""

    def __init__(self, records=(), stuck=(), fail_mount=(), fail_unmount=()):
        self.records = list(records)
        self.stuck = set(stuck)
        self.fail_mount = set(fail_mount)
        self.fail_unmount = set(fail_unmount)
        self.unmount_calls = []
        self.mount_calls = []

    def list_mounts(self):
        return list(self.records)

    def mount(self, source, target, options=None):
        self.mount_calls.append((source, target, options))
        if target in self.fail_mount:
            raise ToolFailure(["mount", source, target], 32, "wrong fs type")
        self.records.append(MountRecord(source, target, "btrfs", options or ""))

    def unmount(self, target, force=False):
        self.unmount_calls.append(target)
        if target in self.fail_unmount:
            raise ToolFailure(["umount", target], 32, "target is busy")
        for record in reversed(self.records):
            if record.target == target or same_device(record.source, target):
                if record.target not in self.stuck:
                    self.records.remove(record)
                return True
        return False

    def unmount_recursive(self, target):
        self.unmount_calls.append(("-R", target))
        before = len(self.records)
        self.records = [r for r in self.records if not is_beneath(r.target, target)]
        return len(self.records) != before


class FakeSwapController(SwapController):
    def __init__(self, active=(), fail_swapoff_all=False):
        self.active = list(active)
        self.fail_swapoff_all = fail_swapoff_all
        self.files = {}
        self.calls = []

    def active_swaps(self):
        return list(self.active)

    def swapoff_all(self):
        self.calls.append(("swapoff", "-a"))
        if self.fail_swapoff_all:
            raise ToolFailure(["swapoff", "-a"], 255, "swapoff failed")
        self.active = []

    def swapoff(self, path):
        self.calls.append(("swapoff", path))
        self.active.remove(path)

    def truncate(self, path, size):
        self.calls.append(("truncate", path, size))
        self.files[path] = size

    def disable_cow(self, path):
        self.calls.append(("chattr", path))

    def allocate(self, path, size_gib):
        self.calls.append(("fallocate", path, size_gib))
        self.files[path] = size_gib

    def protect(self, path, mode):
        self.calls.append(("chmod", path, mode))

    def make_swap(self, path):
        self.calls.append(("mkswap", path))

    def swapon(self, path):
        self.calls.append(("swapon", path))
        self.active.append(path)


class FakeRunner:
    """Stands in for run_command; replies are keyed by the program name"""

    def __init__(self, replies=None):
        self.replies = replies or {}
        self.calls = []

    def __call__(self, argv, check=True, input_text=None, env=None):
        argv = [str(a) for a in argv]
        self.calls.append((argv, input_text))
        program = argv[0] if argv[0] != "arch-chroot" else argv[2]
        stdout, returncode = self.replies.get(program, ("", 0))
        if check and returncode != 0:
            raise ToolFailure(argv, returncode, "failed")
        return CommandResult(argv, returncode, stdout, "")

    def commands(self):
        return [argv for argv, _ in self.calls]


class ScriptedPrompt:
    """Replaces InquirerPy's inquirer object, answering prompts in order"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.messages = []

    def _next(self, message=None, **kwargs):
        self.messages.append(message)
        answer = self.answers.pop(0)
        return type("Prompt", (), {"execute": lambda self: answer})()

    text = _next
    secret = _next
    confirm = _next


@pytest.fixture
def target(tmp_path):
    path = tmp_path / "mnt"
    path.mkdir()
    return str(path)


@pytest.fixture
def sda_devices():
    return [
        BlockDevice("/dev/sda", FsType.NONE, 64 * 1024 ** 3),
        BlockDevice("/dev/sda1", FsType.FAT32, 512 * 1024 ** 2),
        BlockDevice("/dev/sda2", FsType.EXT4, 60 * 1024 ** 3),
    ]
