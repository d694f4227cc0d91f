#!/usr/bin/env python3
# User Input Module
# Collects account details and detects hardware facts for the install plan

import re

from InquirerPy import inquirer

from . import config


def valid_username(text):
    return re.match(config.USERNAME_PATTERN, text or "") is not None


def valid_hostname(text):
    return re.match(config.HOSTNAME_PATTERN, text or "") is not None


def valid_password(text):
    return len(text or "") >= config.MIN_PASSWORD_LENGTH


def detect_microcode(cpuinfo_path="/proc/cpuinfo"):
    """Pick the microcode package matching the CPU vendor"""
    try:
        with open(cpuinfo_path, "r") as f:
            for line in f:
                if line.startswith("vendor_id"):
                    vendor = line.split(":", 1)[1].strip()
                    return config.MICROCODE_PACKAGES.get(vendor, config.DEFAULT_MICROCODE)
    except OSError:
        return config.DEFAULT_MICROCODE
    return config.DEFAULT_MICROCODE


def collect_credentials():
    """Ask for username, password and hostname"""
    print("\nUser Configuration")
    print("==================")

    username = inquirer.text(
        message="Enter username (lowercase letters and digits only):",
        validate=valid_username,
        invalid_message="Invalid username, please try again",
    ).execute()

    password = _ask_password()

    hostname = inquirer.text(
        message="Enter hostname:",
        validate=valid_hostname,
        invalid_message="Invalid hostname, please try again",
    ).execute()

    return username, password, hostname


def _ask_password():
    while True:
        password = inquirer.secret(
            message=f"Enter password (at least {config.MIN_PASSWORD_LENGTH} characters):",
            validate=valid_password,
            invalid_message="Password too short, please try again",
        ).execute()

        confirm_password = inquirer.secret(
            message="Confirm password:"
        ).execute()

        if confirm_password == password:
            return password
        print("Passwords do not match. Please try again.")
