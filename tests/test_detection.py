from __future__ import annotations

from unittest.mock import patch

import pytest

from gpusetup.configuration import get_config
from gpusetup.detection import SystemDetector, SystemInfo, status_cards
from gpusetup.events import QueueReporter, StatusType


@pytest.fixture
def host_checks():
    """Patch every host check with a healthy Ubuntu + RTX 3060 machine."""
    with patch("gpusetup.system.detect_distro_codename", return_value="jammy") as distro, patch(
        "gpusetup.system.detect_gpu",
        return_value=(True, "01:00.0 VGA compatible controller: NVIDIA Corporation GA106"),
    ) as gpu, patch(
        "gpusetup.system.detect_driver", return_value=(True, "550.54.14")
    ) as driver, patch(
        "gpusetup.system.detect_compute_capability",
        return_value=(True, "NVIDIA GeForce RTX 3060", (8, 6)),
    ) as compute, patch(
        "gpusetup.system.detect_cuda", return_value=(False, "nvcc not found")
    ) as cuda:
        yield {
            "distro": distro,
            "gpu": gpu,
            "driver": driver,
            "compute": compute,
            "cuda": cuda,
        }


def _detector(sleeps=None):
    return SystemDetector(get_config(), sleep=(sleeps.append if sleeps is not None else lambda _s: None))


def test_detection_fills_system_info(host_checks):
    info = _detector().run()

    assert info.distro_codename == "jammy"
    assert info.gpu_detected
    assert info.gpu_info == "Detected: 01:00.0 VGA compatible controller: NVIDIA Corporation GA106"
    assert info.driver_installed
    assert info.driver_info == "Installed: Version 550.54.14"
    assert info.compute_capability == (8, 6)
    assert not info.cuda_installed
    assert info.cuda_info == "Not installed"


def test_detection_log_sequence(host_checks):
    reporter = QueueReporter()
    _detector().run(reporter)

    updates = list(reporter.drain())
    messages = [update.log_message for update in updates]
    assert messages == [
        "Detecting system components...",
        "Detecting Linux distribution...",
        "Distribution codename: jammy",
        "Checking for NVIDIA GPU...",
        "Checking driver status...",
        "Checking CUDA status...",
        "System detection completed.",
    ]
    assert all(not update.moves_bar for update in updates)


def test_detection_pauses_between_checks(host_checks):
    sleeps = []
    _detector(sleeps).run()
    assert sleeps == [0.5, 0.5, 0.5]


def test_unknown_distro_warns(host_checks):
    host_checks["distro"].return_value = None
    reporter = QueueReporter()
    info = _detector().run(reporter)

    assert info.distro_codename == "unknown"
    warning = [u for u in reporter.drain() if u.log_type is StatusType.WARNING]
    assert [u.log_message for u in warning] == ["Unable to detect distribution codename"]


def test_compute_capability_skipped_without_driver(host_checks):
    host_checks["driver"].return_value = (False, "nvidia-smi not found")
    info = _detector().run()

    assert info.driver_info == "Not installed"
    assert info.compute_capability is None
    host_checks["compute"].assert_not_called()


def test_no_gpu(host_checks):
    host_checks["gpu"].return_value = (False, "no NVIDIA device on PCI bus")
    info = _detector().run()
    assert not info.gpu_detected
    assert info.gpu_info == "No NVIDIA GPU detected"


def test_status_cards_for_fresh_system():
    cards = status_cards(SystemInfo())
    assert [(card.title, card.icon, card.status) for card in cards] == [
        ("NVIDIA GPU Detection", "[FAIL]", StatusType.ERROR),
        ("Driver Status", "[WARN]", StatusType.WARNING),
        ("CUDA Status", "[INFO]", StatusType.INFO),
    ]
    assert all(card.text == "Unknown" for card in cards)


def test_status_cards_when_everything_installed():
    info = SystemInfo(
        gpu_detected=True,
        gpu_info="Detected: NVIDIA",
        driver_installed=True,
        driver_info="Installed: Version 550.54.14",
        cuda_installed=True,
        cuda_info="Installed: CUDA 12.6",
    )
    cards = status_cards(info)
    assert [card.icon for card in cards] == ["[OK]", "[OK]", "[OK]"]
    assert {card.status for card in cards} == {StatusType.SUCCESS}


def test_to_dict_is_json_friendly():
    info = SystemInfo(gpu_detected=True, compute_capability=(7, 5), distro_codename="noble")
    data = info.to_dict()
    assert data["gpu"]["detected"] is True
    assert data["compute_capability"] == "7.5"
    assert data["distro_codename"] == "noble"
