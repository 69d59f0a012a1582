"""CUDA toolkit, repository and distribution helpers."""

from __future__ import annotations

from typing import Dict, Iterable, Literal, Mapping, Optional, Tuple


# Compute capability → newest CUDA release that still targets it
# Based on NVIDIA CUDA compatibility: https://developer.nvidia.com/cuda-gpus
CUDA_COMPATIBILITY_MAP: Dict[Tuple[int, int], str] = {
    # Kepler / Maxwell: dropped after 11.8 (3.x) and 12.x (5.x)
    (3, 5): "11.8",
    (3, 7): "11.8",
    (5, 0): "12.9",
    (5, 2): "12.9",
    (5, 3): "12.9",
    # Pascal / Volta
    (6, 0): "12.9",
    (6, 1): "12.9",
    (6, 2): "12.9",
    (7, 0): "12.9",
    (7, 2): "12.9",
    # Turing and newer
    (7, 5): "13.0",
    (8, 0): "13.0",
    (8, 6): "13.0",
    (8, 7): "13.0",
    (8, 9): "13.0",
    (9, 0): "13.0",
}

# Codename → NVIDIA CUDA repository directory
DEFAULT_REPO_DISTROS: Dict[str, str] = {
    "focal": "ubuntu2004",
    "jammy": "ubuntu2204",
    "noble": "ubuntu2404",
    "bullseye": "debian11",
    "bookworm": "debian12",
}

DistroSupport = Literal["supported", "eol", "unsupported"]


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts = []
    for piece in version.strip().split("."):
        if not piece.isdigit():
            raise ValueError(f"invalid CUDA version: {version!r}")
        parts.append(int(piece))
    return tuple(parts)


def cuda_version_newer(version1: str, version2: str) -> bool:
    """Return True if version1 is newer than version2."""
    try:
        return _version_tuple(version1) > _version_tuple(version2)
    except ValueError:
        return False


def max_cuda_for_compute(compute_cap: Optional[Tuple[int, int]]) -> Optional[str]:
    """Newest CUDA release supporting ``compute_cap``; None if unknown or too old."""
    if not compute_cap:
        return None
    if compute_cap in CUDA_COMPATIBILITY_MAP:
        return CUDA_COMPATIBILITY_MAP[compute_cap]

    # Unmapped capability: take the closest entry at or below it
    candidates = [cap for cap in CUDA_COMPATIBILITY_MAP if cap <= compute_cap]
    if not candidates:
        return None
    return CUDA_COMPATIBILITY_MAP[max(candidates)]


def toolkit_package(version: str) -> str:
    """``12.6`` → ``cuda-toolkit-12-6``."""
    parts = _version_tuple(version)
    return "cuda-toolkit-" + "-".join(str(p) for p in parts[:2])


def repo_distro(
    codename: Optional[str], mapping: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    """Translate a codename to NVIDIA's repository slug; unknown names pass through."""
    if not codename or codename == "unknown":
        return None
    table = DEFAULT_REPO_DISTROS if mapping is None else mapping
    return table.get(codename, codename)


def distro_support(
    codename: Optional[str],
    supported: Iterable[str],
    eol: Iterable[str],
) -> DistroSupport:
    """Codenames in neither list, including the "unknown" fallback, are unsupported."""
    if codename in set(eol):
        return "eol"
    if codename in set(supported):
        return "supported"
    return "unsupported"


def toolkit_supported_by_gpu(
    toolkit_version: str, compute_cap: Optional[Tuple[int, int]]
) -> Optional[bool]:
    """False when the GPU is too old for ``toolkit_version``; None if unknown."""
    if compute_cap is None:
        return None
    ceiling = max_cuda_for_compute(compute_cap)
    if ceiling is None:
        return False
    return not cuda_version_newer(toolkit_version, ceiling)


def get_cuda_info_display(
    installed: bool, release: str, compute_cap: Optional[Tuple[int, int]]
) -> str:
    """Human-readable CUDA line, e.g. ``CUDA 12.6 (GPU supports up to 13.0)``."""
    base = f"CUDA {release}" if installed else "not installed"
    ceiling = max_cuda_for_compute(compute_cap)
    if compute_cap is None or ceiling is None:
        return base
    major, minor = compute_cap
    return f"{base} (compute {major}.{minor}, supports up to CUDA {ceiling})"
