"""Probe the host and summarize GPU, driver and CUDA state."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from gpusetup import system
from gpusetup.configuration.schema import GpuSetupConfig
from gpusetup.events import NullReporter, ProgressUpdate, Reporter, StatusType, log

UNKNOWN = "Unknown"


@dataclass
class SystemInfo:
    gpu_detected: bool = False
    gpu_info: str = UNKNOWN
    driver_installed: bool = False
    driver_info: str = UNKNOWN
    driver_version: Optional[str] = None
    cuda_installed: bool = False
    cuda_info: str = UNKNOWN
    cuda_version: Optional[str] = None
    distro_codename: Optional[str] = None
    compute_capability: Optional[Tuple[int, int]] = None

    def to_dict(self) -> dict:
        return {
            "gpu": {"detected": self.gpu_detected, "info": self.gpu_info},
            "driver": {
                "installed": self.driver_installed,
                "info": self.driver_info,
                "version": self.driver_version,
            },
            "cuda": {
                "installed": self.cuda_installed,
                "info": self.cuda_info,
                "version": self.cuda_version,
            },
            "distro_codename": self.distro_codename,
            "compute_capability": (
                ".".join(str(part) for part in self.compute_capability)
                if self.compute_capability
                else None
            ),
        }


@dataclass(frozen=True)
class StatusCard:
    title: str
    icon: str
    text: str
    status: StatusType


def status_cards(info: SystemInfo) -> List[StatusCard]:
    """GPU, driver and CUDA cards in display order."""
    return [
        StatusCard(
            "NVIDIA GPU Detection",
            "[OK]" if info.gpu_detected else "[FAIL]",
            info.gpu_info,
            StatusType.SUCCESS if info.gpu_detected else StatusType.ERROR,
        ),
        StatusCard(
            "Driver Status",
            "[OK]" if info.driver_installed else "[WARN]",
            info.driver_info,
            StatusType.SUCCESS if info.driver_installed else StatusType.WARNING,
        ),
        StatusCard(
            "CUDA Status",
            "[OK]" if info.cuda_installed else "[INFO]",
            info.cuda_info,
            StatusType.SUCCESS if info.cuda_installed else StatusType.INFO,
        ),
    ]


def apply_gpu(info: SystemInfo, found: bool, detail: str) -> None:
    info.gpu_detected = found
    info.gpu_info = f"Detected: {detail.strip()}" if found else "No NVIDIA GPU detected"


def apply_driver(info: SystemInfo, installed: bool, detail: str) -> None:
    info.driver_installed = installed
    info.driver_version = detail.strip() if installed else None
    info.driver_info = (
        f"Installed: Version {info.driver_version}" if installed else "Not installed"
    )


def apply_cuda(info: SystemInfo, installed: bool, detail: str) -> None:
    info.cuda_installed = installed
    info.cuda_version = detail.strip() if installed else None
    info.cuda_info = f"Installed: CUDA {info.cuda_version}" if installed else "Not installed"


class SystemDetector:
    """Runs every probe in order, narrating progress to a reporter."""

    def __init__(
        self,
        config: GpuSetupConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._sleep = sleep

    def _pause(self) -> None:
        delay = self.config.detection.step_delay
        if delay > 0:
            self._sleep(delay)

    def run(self, reporter: Optional[Reporter] = None) -> SystemInfo:
        reporter = reporter or NullReporter()
        info = SystemInfo()

        log(reporter, "Detecting system components...")

        log(reporter, "Detecting Linux distribution...")
        codename = system.detect_distro_codename()
        if codename:
            info.distro_codename = codename
            log(reporter, f"Distribution codename: {codename}")
        else:
            info.distro_codename = "unknown"
            log(reporter, "Unable to detect distribution codename", StatusType.WARNING)

        self._pause()
        log(reporter, "Checking for NVIDIA GPU...")
        apply_gpu(info, *system.detect_gpu())

        self._pause()
        log(reporter, "Checking driver status...")
        apply_driver(info, *system.detect_driver())
        if info.driver_installed:
            ok, _name, compute_cap = system.detect_compute_capability()
            if ok:
                info.compute_capability = compute_cap

        self._pause()
        log(reporter, "Checking CUDA status...")
        apply_cuda(info, *system.detect_cuda())

        reporter.post(
            ProgressUpdate(
                progress=0.0,
                log_message="System detection completed.",
                log_type=StatusType.INFO,
            )
        )
        return info
