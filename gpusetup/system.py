from __future__ import annotations

import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union


OS_RELEASE = Path("/etc/os-release")
PROC_VERSION = Path("/proc/version")

EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124

_CUDA_RELEASE = re.compile(r"release\s+(\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    command: Union[str, Sequence[str]],
    *,
    shell: bool = False,
    input_text: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run a command, capturing stdout and stderr together.

    Never raises for missing binaries or timeouts; those surface as exit codes
    127 and 124 respectively.
    """
    args = command if shell or isinstance(command, str) else list(command)
    try:
        proc = subprocess.run(
            args,
            shell=shell,
            input=input_text,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        return CommandResult(EXIT_NOT_FOUND, str(exc))
    except subprocess.TimeoutExpired as exc:
        output = exc.output if isinstance(exc.output, str) else ""
        return CommandResult(EXIT_TIMEOUT, output or f"timed out after {timeout}s")
    return CommandResult(proc.returncode, proc.stdout or "")


def _run_probe(args: List[str]) -> Tuple[bool, str]:
    if shutil.which(args[0]) is None:
        return False, f"{args[0]} not found"
    result = run_command(args)
    return result.ok, result.output.strip()


def read_os_release(path: Path = OS_RELEASE) -> dict[str, str]:
    """Parse an os-release file into a dict; missing files yield ``{}``."""
    data: dict[str, str] = {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return data
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip('"').strip("'")
    return data


def detect_distro_codename() -> Optional[str]:
    """Return the release codename (``jammy``, ``bookworm``...) or None."""
    ok, output = _run_probe(["lsb_release", "-cs"])
    if ok and output:
        return output.splitlines()[0].strip()
    info = read_os_release()
    codename = info.get("UBUNTU_CODENAME") or info.get("VERSION_CODENAME")
    return codename or None


def detect_gpu() -> Tuple[bool, str]:
    """Look for an NVIDIA device on the PCI bus; fail softly."""
    ok, output = _run_probe(["lspci"])
    if not ok:
        return False, output or "lspci failed"
    matches = [line.strip() for line in output.splitlines() if "nvidia" in line.lower()]
    if not matches:
        return False, "no NVIDIA device on PCI bus"
    return True, matches[0]


def detect_driver() -> Tuple[bool, str]:
    """Return (installed, version) from nvidia-smi; fail softly."""
    ok, output = _run_probe(
        [
            "nvidia-smi",
            "--query-gpu=driver_version",
            "--format=csv,noheader,nounits",
        ]
    )
    if not ok:
        return False, output or "nvidia-smi failed"
    versions = [line.strip() for line in output.splitlines() if line.strip()]
    if not versions:
        return False, "no driver version reported"
    return True, versions[0]


def parse_nvcc_release(output: str) -> Optional[str]:
    """Extract ``12.6`` from ``Cuda compilation tools, release 12.6, V12.6.77``."""
    match = _CUDA_RELEASE.search(output)
    return match.group(1) if match else None


def detect_cuda() -> Tuple[bool, str]:
    """Return (installed, release) from nvcc; fail softly."""
    nvcc = shutil.which("nvcc")
    if nvcc is None:
        # nvcc is rarely on PATH before /etc/profile.d/cuda.sh is sourced
        fallback = Path("/usr/local/cuda/bin/nvcc")
        if not fallback.exists():
            return False, "nvcc not found"
        nvcc = str(fallback)
    result = run_command([nvcc, "--version"])
    if not result.ok:
        return False, "nvcc failed"
    release = parse_nvcc_release(result.output)
    if release is None:
        return False, "unable to parse nvcc output"
    return True, release


def detect_compute_capability() -> Tuple[bool, str, Optional[Tuple[int, int]]]:
    """Detect NVIDIA GPU compute capability via nvidia-smi; fail softly.

    Returns:
        (has_gpu, gpu_name, compute_capability)

        has_gpu: True if GPU detected and query succeeded
        gpu_name: Name of the first GPU, or error message if failed
        compute_capability: (major, minor) tuple like (7, 5) for compute 7.5, or None if failed
    """
    ok, output = _run_probe(
        ["nvidia-smi", "--query-gpu=name,compute_cap", "--format=csv,noheader,nounits"]
    )
    if not ok:
        return False, "nvidia-smi failed", None

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return False, "no GPUs detected", None

    # "NVIDIA GeForce GTX 1650, 7.5"
    try:
        gpu_name, compute_cap_str = lines[0].split(", ", 1)
        major_str, minor_str = compute_cap_str.strip().split(".", 1)
        return True, gpu_name.strip(), (int(major_str), int(minor_str))
    except (ValueError, IndexError) as exc:
        gpu_name = lines[0].split(",")[0].strip()
        return False, f"{gpu_name} (compute capability parse failed: {exc})", None


def is_wsl(path: Path = PROC_VERSION) -> bool:
    try:
        return "microsoft" in path.read_text(encoding="utf-8").lower()
    except OSError:
        return False


def check_internet(host: str = "8.8.8.8", *, timeout: float = 5.0) -> bool:
    result = run_command(
        ["ping", "-c", "1", "-W", str(max(1, int(timeout))), host],
        timeout=timeout + 5,
    )
    return result.ok


def free_disk_kb(path: str = "/") -> Optional[int]:
    try:
        return shutil.disk_usage(path).free // 1024
    except OSError:
        return None


def secure_boot_enabled() -> bool:
    ok, output = _run_probe(["mokutil", "--sb-state"])
    return ok and "enabled" in output.lower()


def is_root() -> bool:
    return os.geteuid() == 0
