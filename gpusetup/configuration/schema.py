"""Pydantic models describing the configuration schema."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gpusetup import cuda

_CUDA_VERSION = re.compile(r"^\d+\.\d+$")
_PACKAGE_NAME = re.compile(r"^[a-z0-9][a-z0-9+.-]+$")


class MetaConfig(BaseModel):
    version: str = "1.0"


class DetectionConfig(BaseModel):
    step_delay: float = Field(default=0.5, ge=0.0, le=10.0)


class NetworkConfig(BaseModel):
    ping_host: str = "8.8.8.8"
    ping_timeout: float = Field(default=5.0, ge=0.5, le=60.0)

    @field_validator("ping_host")
    @classmethod
    def validate_host(cls, value: str) -> str:
        if not value or value.isspace() or " " in value.strip():
            raise ValueError("ping_host must be a single host name or address")
        return value.strip()


class RepositoryConfig(BaseModel):
    base_url: str = "https://developer.download.nvidia.com/compute/cuda/repos"
    arch: str = "x86_64"
    keyring_version: str = "1.1-1"
    keyring_file: str = "cuda-keyring_{{repository.keyring_version}}_all.deb"
    keyring_url: str = (
        "{{repository.base_url}}/{{system.repo_distro}}/"
        "{{repository.arch}}/{{repository.keyring_file}}"
    )
    distro_map: Dict[str, str] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("https://", "http://")):
            raise ValueError("base_url must be an http(s) URL")
        return value.rstrip("/")


class InstallerConfig(BaseModel):
    use_sudo: bool = True
    driver_package: str = "cuda-drivers"
    cuda_version: str = "12.6"
    cuda_package: str = ""
    prerequisites: List[str] = Field(default_factory=list)
    profile_script: str = "/etc/profile.d/cuda.sh"
    cuda_home: str = "/usr/local/cuda"
    min_free_kb: int = Field(default=2000000, ge=0)
    supported_distros: List[str] = Field(
        default_factory=lambda: ["bookworm", "jammy", "noble"]
    )
    eol_distros: List[str] = Field(default_factory=lambda: ["bullseye"])
    command_timeout: Optional[int] = Field(default=3600, ge=10)
    cleanup_on_failure: bool = True

    @field_validator("cuda_version")
    @classmethod
    def validate_cuda_version(cls, value: str) -> str:
        if not _CUDA_VERSION.match(value):
            raise ValueError("cuda_version must look like '12.6'")
        return value

    @field_validator("driver_package", "cuda_package")
    @classmethod
    def validate_package(cls, value: str) -> str:
        if value and not _PACKAGE_NAME.match(value):
            raise ValueError(f"'{value}' is not a valid Debian package name")
        return value

    @field_validator("profile_script", "cuda_home")
    @classmethod
    def validate_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("Path must be absolute")
        return value

    @model_validator(mode="after")
    def check_distro_lists(self) -> "InstallerConfig":
        overlap = sorted(set(self.supported_distros) & set(self.eol_distros))
        if overlap:
            raise ValueError(
                f"Distros listed as both supported and EOL: {', '.join(overlap)}"
            )
        return self

    @property
    def toolkit_package(self) -> str:
        if self.cuda_package:
            return self.cuda_package
        return cuda.toolkit_package(self.cuda_version)


class GUIConfig(BaseModel):
    max_log_lines: int = Field(default=1000, ge=10, le=100000)
    width: int = Field(default=800, ge=400)
    height: int = Field(default=600, ge=300)


class GpuSetupConfig(BaseModel):
    meta: MetaConfig = Field(default_factory=MetaConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    installer: InstallerConfig = Field(default_factory=InstallerConfig)
    gui: GUIConfig = Field(default_factory=GUIConfig)

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_dict(cls, data: dict) -> "GpuSetupConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
