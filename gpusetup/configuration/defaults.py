"""Built-in default configuration for gpusetup."""

from __future__ import annotations

DEFAULT_CONFIG_DICT = {
    "meta": {
        "version": "1.0",
    },
    "detection": {
        "step_delay": 0.5,
    },
    "network": {
        "ping_host": "8.8.8.8",
        "ping_timeout": 5.0,
    },
    "repository": {
        "base_url": "https://developer.download.nvidia.com/compute/cuda/repos",
        "arch": "x86_64",
        "keyring_version": "1.1-1",
        "keyring_file": "cuda-keyring_{{repository.keyring_version}}_all.deb",
        "keyring_url": (
            "{{repository.base_url}}/{{system.repo_distro}}/"
            "{{repository.arch}}/{{repository.keyring_file}}"
        ),
        "distro_map": {
            "focal": "ubuntu2004",
            "jammy": "ubuntu2204",
            "noble": "ubuntu2404",
            "bullseye": "debian11",
            "bookworm": "debian12",
        },
    },
    "installer": {
        "use_sudo": True,
        "driver_package": "cuda-drivers",
        "cuda_version": "12.6",
        "cuda_package": "",
        "prerequisites": [
            "software-properties-common",
            "apt-transport-https",
            "ca-certificates",
            "curl",
            "wget",
            "gnupg",
            "lsb-release",
            "build-essential",
            "dkms",
        ],
        "profile_script": "/etc/profile.d/cuda.sh",
        "cuda_home": "/usr/local/cuda",
        "min_free_kb": 2000000,
        "supported_distros": ["bookworm", "jammy", "noble"],
        "eol_distros": ["bullseye"],
        "command_timeout": 3600,
        "cleanup_on_failure": True,
    },
    "gui": {
        "max_log_lines": 1000,
        "width": 800,
        "height": 600,
    },
}
