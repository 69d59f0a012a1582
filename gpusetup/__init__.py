"""Detect NVIDIA GPUs and install the proprietary driver and CUDA toolkit."""

__version__ = "1.1.0"
__description__ = (
    "NVIDIA GPU Setup Tool: detect GPUs and install drivers and the CUDA toolkit "
    "on Debian/Ubuntu."
)
