"""The fixed driver/CUDA installation sequence and the runner that executes it."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from gpusetup import state, system
from gpusetup.configuration.resolver import render_template
from gpusetup.configuration.schema import GpuSetupConfig
from gpusetup.cuda import distro_support, repo_distro, toolkit_supported_by_gpu
from gpusetup.detection import SystemInfo
from gpusetup.events import Reporter, StatusType, log, progress
from gpusetup.system import CommandResult

SUDO_PREFIX = ("sudo", "-S", "-k", "-p", "")
SUDO_NONINTERACTIVE = ("sudo", "-n")

WSL_GUIDANCE = (
    "This tool is designed for live boot Linux systems or native installations.",
    "To use this tool:",
    "1. Create a live USB with Ubuntu/Debian",
    "2. Boot from the USB on the target system",
    "3. Run this tool on the live system",
)


class InstallError(RuntimeError):
    """Raised when an installation cannot be planned or started."""


@dataclass(frozen=True)
class InstallOptions:
    driver: bool = True
    cuda: bool = False

    def validate(self) -> None:
        if not (self.driver or self.cuda):
            raise InstallError("Please select at least one installation option.")

    def components(self) -> List[str]:
        selected = []
        if self.driver:
            selected.append("NVIDIA Driver")
        if self.cuda:
            selected.append("CUDA Toolkit")
        return selected

    def confirmation_text(self) -> str:
        lines = ["This will install:", ""]
        lines.extend(f"• {name}" for name in self.components())
        lines.extend(
            [
                "",
                "The installation may take several minutes and require a reboot.",
                "Continue?",
            ]
        )
        return "\n".join(lines)


@dataclass(frozen=True)
class Command:
    """One process invocation; ``staged_file`` is written locally beforehand."""

    args: Tuple[str, ...]
    privileged: bool = False
    staged_file: Optional[Tuple[Path, str]] = None

    def display(self) -> str:
        text = shlex.join(self.args)
        return f"sudo {text}" if self.privileged else text


@dataclass(frozen=True)
class InstallStep:
    message: str
    log_message: str
    commands: Tuple[Command, ...]


@dataclass
class InstallResult:
    success: bool
    failed_command: Optional[str] = None
    exit_code: Optional[int] = None
    reason: Optional[str] = None
    completed_steps: int = 0

    @property
    def reboot_recommended(self) -> bool:
        return self.success


def _apt(*args: str) -> Command:
    return Command(("apt-get",) + args, privileged=True)


def profile_script_content(cuda_home: str) -> str:
    return (
        f"export PATH={cuda_home}/bin${{PATH:+:$PATH}}\n"
        f"export LD_LIBRARY_PATH={cuda_home}/lib64${{LD_LIBRARY_PATH:+:$LD_LIBRARY_PATH}}\n"
    )


def keyring_path(config: GpuSetupConfig, workdir: Path) -> Path:
    return workdir / config.repository.keyring_file


def keyring_url(config: GpuSetupConfig, info: SystemInfo) -> str:
    slug = repo_distro(info.distro_codename, config.repository.distro_map)
    if slug is None:
        raise InstallError(
            "Unable to determine the Linux distribution; cannot add the NVIDIA repository."
        )
    return render_template(
        config.repository.keyring_url, {"system": {"repo_distro": slug}}
    )


def _keyring_commands(
    config: GpuSetupConfig, info: SystemInfo, workdir: Path
) -> Tuple[Command, ...]:
    target = keyring_path(config, workdir)
    return (
        Command(("wget", "-q", "-O", str(target), keyring_url(config, info))),
        Command(("dpkg", "-i", str(target)), privileged=True),
    )


def build_plan(
    options: InstallOptions,
    info: SystemInfo,
    config: GpuSetupConfig,
    workdir: Optional[Path] = None,
) -> List[InstallStep]:
    """Return the ordered steps for ``options``."""
    options.validate()
    workdir = workdir or state.downloads_dir()
    installer = config.installer

    steps = [
        InstallStep(
            "Updating package lists...",
            "Updating package repositories...",
            (_apt("update"),),
        ),
        InstallStep(
            "Installing prerequisites...",
            "Installing required packages...",
            (_apt("install", "-y", *installer.prerequisites),),
        ),
    ]

    if options.driver:
        steps.extend(
            [
                InstallStep(
                    "Adding NVIDIA repository...",
                    "Adding NVIDIA repository...",
                    _keyring_commands(config, info, workdir),
                ),
                InstallStep(
                    "Updating package lists...",
                    "Updating package lists with NVIDIA repository...",
                    (_apt("update"),),
                ),
                InstallStep(
                    "Installing NVIDIA driver...",
                    "Installing NVIDIA proprietary driver...",
                    (_apt("install", "-y", installer.driver_package),),
                ),
            ]
        )

    if options.cuda:
        repo_commands: Tuple[Command, ...] = ()
        if not options.driver:
            repo_commands = _keyring_commands(config, info, workdir)
        staged = workdir / Path(installer.profile_script).name
        steps.extend(
            [
                InstallStep(
                    "Verifying CUDA repository...",
                    "Ensuring NVIDIA CUDA repository...",
                    repo_commands + (_apt("update"),),
                ),
                InstallStep(
                    "Installing CUDA toolkit...",
                    "Installing CUDA toolkit...",
                    (_apt("install", "-y", installer.toolkit_package),),
                ),
                InstallStep(
                    "Setting up environment variables...",
                    "Configuring CUDA environment...",
                    (
                        Command(
                            (
                                "install",
                                "-m",
                                "0644",
                                str(staged),
                                installer.profile_script,
                            ),
                            privileged=True,
                            staged_file=(
                                staged,
                                profile_script_content(installer.cuda_home),
                            ),
                        ),
                    ),
                ),
            ]
        )

    return steps


RunFunc = Callable[..., CommandResult]


class CommandRunner:
    """Executes plan commands, elevating privileged ones through sudo."""

    def __init__(
        self,
        *,
        use_sudo: bool = True,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        run: Optional[RunFunc] = None,
        is_root: Optional[Callable[[], bool]] = None,
    ):
        self.use_sudo = use_sudo and not (is_root or system.is_root)()
        self._password = password
        self.timeout = timeout
        self._run = run or system.run_command

    @classmethod
    def from_config(
        cls, config: GpuSetupConfig, password: Optional[str] = None
    ) -> "CommandRunner":
        return cls(
            use_sudo=config.installer.use_sudo,
            password=password,
            timeout=config.installer.command_timeout,
        )

    def argv(self, command: Command) -> List[str]:
        if not (command.privileged and self.use_sudo):
            return list(command.args)
        prefix = SUDO_PREFIX if self._password else SUDO_NONINTERACTIVE
        return list(prefix) + list(command.args)

    def run(self, command: Command) -> CommandResult:
        if command.staged_file is not None:
            path, content = command.staged_file
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        input_text = None
        if command.privileged and self.use_sudo and self._password:
            input_text = f"{self._password}\n"
        return self._run(self.argv(command), input_text=input_text, timeout=self.timeout)


def verify_sudo_access(password: Optional[str], run: Optional[RunFunc] = None) -> bool:
    """Validate ``password`` with ``sudo -v`` without running anything else."""
    if not password:
        return False
    run = run or system.run_command
    result = run(
        ["sudo", "-S", "-k", "-v", "-p", ""],
        input_text=f"{password}\n",
        timeout=30,
    )
    return result.ok


class Installer:
    def __init__(
        self,
        config: GpuSetupConfig,
        runner: CommandRunner,
        *,
        workdir: Optional[Path] = None,
    ):
        self.config = config
        self.runner = runner
        self._workdir = workdir

    @property
    def workdir(self) -> Path:
        if self._workdir is None:
            self._workdir = state.downloads_dir()
        return self._workdir

    def check_compatibility(
        self, info: SystemInfo, options: InstallOptions, reporter: Reporter
    ) -> bool:
        """Log warnings about the host; only WSL is fatal."""
        if system.is_wsl():
            log(
                reporter,
                "ERROR: Running in WSL. NVIDIA driver installation requires native Linux.",
                StatusType.ERROR,
            )
            for line in WSL_GUIDANCE:
                log(reporter, line)
            return False

        if system.is_root():
            log(
                reporter,
                "WARNING: Running as root. This is not recommended for security reasons.",
                StatusType.WARNING,
            )

        free_kb = system.free_disk_kb("/")
        if free_kb is not None and free_kb < self.config.installer.min_free_kb:
            log(
                reporter,
                "WARNING: Low disk space detected. Installation may fail.",
                StatusType.WARNING,
            )

        if system.secure_boot_enabled():
            log(
                reporter,
                "WARNING: Secure Boot is enabled. Driver installation may require additional steps.",
                StatusType.WARNING,
            )

        support = distro_support(
            info.distro_codename,
            self.config.installer.supported_distros,
            self.config.installer.eol_distros,
        )
        if support == "eol":
            log(
                reporter,
                f"WARNING: {info.distro_codename} is EOL. Upgrade recommended.",
                StatusType.WARNING,
            )
        elif support == "unsupported":
            log(
                reporter,
                "WARNING: Unsupported distro. Installation may fail.",
                StatusType.WARNING,
            )

        if options.cuda:
            version = self.config.installer.cuda_version
            if toolkit_supported_by_gpu(version, info.compute_capability) is False:
                major, minor = info.compute_capability  # type: ignore[misc]
                log(
                    reporter,
                    f"WARNING: CUDA {version} does not support compute capability "
                    f"{major}.{minor}. Consider an older toolkit.",
                    StatusType.WARNING,
                )

        return True

    def check_internet(self, reporter: Reporter) -> bool:
        network = self.config.network
        if not system.check_internet(network.ping_host, timeout=network.ping_timeout):
            log(
                reporter,
                "No internet connection detected. Installation requires internet access.",
                StatusType.ERROR,
            )
            return False
        return True

    def _run_command(self, command: Command, reporter: Reporter) -> CommandResult:
        log(reporter, f"Running: {command.display()}")
        result = self.runner.run(command)
        if result.ok:
            log(reporter, "Command completed successfully", StatusType.SUCCESS)
        else:
            log(
                reporter,
                f"Command failed with exit code {result.returncode}",
                StatusType.ERROR,
            )
            for line in result.output.strip().splitlines()[-5:]:
                log(reporter, line, StatusType.ERROR)
        return result

    def _cleanup_failure(self, reporter: Reporter) -> None:
        if not self.config.installer.cleanup_on_failure:
            return
        log(reporter, "Cleaning up partial installation...", StatusType.WARNING)
        self.runner.run(_apt("autoremove", "-y"))

    def _cleanup_downloads(self) -> None:
        keyring_path(self.config, self.workdir).unlink(missing_ok=True)
        (self.workdir / Path(self.config.installer.profile_script).name).unlink(
            missing_ok=True
        )

    def run(
        self, options: InstallOptions, info: SystemInfo, reporter: Reporter
    ) -> InstallResult:
        if not self.check_compatibility(info, options, reporter):
            return InstallResult(success=False, reason="incompatible")
        if not self.check_internet(reporter):
            return InstallResult(success=False, reason="offline")

        plan = build_plan(options, info, self.config, self.workdir)

        total = len(plan)
        for index, step in enumerate(plan, start=1):
            progress(reporter, index / total * 100.0, step.message, step.log_message)
            for command in step.commands:
                result = self._run_command(command, reporter)
                if not result.ok:
                    self._cleanup_failure(reporter)
                    return InstallResult(
                        success=False,
                        failed_command=command.display(),
                        exit_code=result.returncode,
                        reason="command",
                        completed_steps=index - 1,
                    )

        progress(
            reporter,
            100.0,
            "Installation completed successfully!",
            "Installation completed successfully!",
            StatusType.SUCCESS,
        )
        self._cleanup_downloads()
        return InstallResult(success=True, completed_steps=total)


def describe_plan(plan: Sequence[InstallStep]) -> List[Tuple[int, str, str]]:
    """Flatten a plan into ``(step number, step message, command)`` rows."""
    rows = []
    for index, step in enumerate(plan, start=1):
        for command in step.commands:
            rows.append((index, step.message, command.display()))
    return rows


def run_and_notify(
    installer: Installer,
    options: InstallOptions,
    info: SystemInfo,
    reporter: Reporter,
    on_done: Callable[[InstallResult], object],
) -> None:
    """Run ``installer`` on a worker thread; ``on_done`` always gets a result."""
    result = InstallResult(success=False, reason="error")
    try:
        result = installer.run(options, info, reporter)
    except (InstallError, OSError) as exc:
        log(reporter, str(exc), StatusType.ERROR)
    finally:
        on_done(result)
