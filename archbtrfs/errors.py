#!/usr/bin/env python3
# Errors Module
# Exception hierarchy shared by every installer stage


class InstallerError(Exception):
    """Base class for all installer errors"""


class PrivilegeError(InstallerError):
    """The installer is not running as root"""


class FirmwareModeError(InstallerError):
    """The machine did not boot in UEFI mode"""


class NetworkError(InstallerError):
    """The package mirrors cannot be reached"""


class NoCandidateFound(InstallerError):
    """No partition carries a usable filesystem signature"""


class InvalidSelection(InstallerError):
    """The operator picked an index outside the offered list"""


class DeviceBusy(InstallerError):
    """A device about to be formatted is still mounted"""

    def __init__(self, device, mountpoints=()):
        self.device = device
        self.mountpoints = list(mountpoints)
        where = ", ".join(self.mountpoints) or "unknown location"
        super().__init__(
            f"{device} is still mounted at {where}; unmount it manually and retry"
        )


class UnexpectedMountState(InstallerError):
    """A mount or subvolume operation failed on a filesystem assumed clean"""


class ToolFailure(InstallerError):
    """An external utility exited with a non-zero status"""

    def __init__(self, argv, returncode, stderr=""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"'{' '.join(self.argv)}' exited with status {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)
