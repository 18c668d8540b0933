"""Environment checks that run before any command is resolved or parsed."""

from __future__ import annotations

import os
import subprocess
from typing import Callable

from pod_dispatch.errors import InformativeError, UsageError
from pod_dispatch.spec import CliSpec

LICENSE_MARKER = "license"


def effective_uid() -> int:
    geteuid = getattr(os, "geteuid", None)
    return geteuid() if geteuid is not None else -1


def verify_not_root(spec: CliSpec, uid_getter: Callable[[], int] = effective_uid) -> None:
    if uid_getter() == 0:
        raise UsageError(f"You cannot run {spec.app_display_name} as root.")


def verify_toolchain_license_approved(spec: CliSpec) -> None:
    """Fail when the toolchain reports a pending licence agreement.

    This is a heuristic: the check command's merged output is searched for
    the word ``license`` and only counts when the command also failed. A
    missing command means no toolchain is installed, which passes. A check
    that outlives ``spec.license_check_timeout`` raises TimeoutExpired.
    """
    if not spec.license_check_command:
        return
    try:
        proc = subprocess.run(
            list(spec.license_check_command),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=spec.license_check_timeout,
        )
    except FileNotFoundError:
        return
    if LICENSE_MARKER in (proc.stdout or "") and proc.returncode != 0:
        raise InformativeError(
            "You have not agreed to the Xcode license, which you must do to use "
            f"{spec.app_display_name}. Agree to the license by running: "
            "`xcodebuild -license`."
        )


def run_preconditions(
    spec: CliSpec,
    uid_getter: Callable[[], int] = effective_uid,
) -> None:
    """Superuser rejection first, then the licence check."""
    verify_not_root(spec, uid_getter)
    verify_toolchain_license_approved(spec)
