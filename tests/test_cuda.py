"""Tests for CUDA, repository and distribution helpers."""

from __future__ import annotations

import pytest

from gpusetup.cuda import (
    CUDA_COMPATIBILITY_MAP,
    cuda_version_newer,
    distro_support,
    get_cuda_info_display,
    max_cuda_for_compute,
    repo_distro,
    toolkit_package,
    toolkit_supported_by_gpu,
)


class TestMaxCudaForCompute:
    def test_direct_lookup(self):
        assert max_cuda_for_compute((3, 5)) == "11.8"
        assert max_cuda_for_compute((6, 1)) == "12.9"
        assert max_cuda_for_compute((8, 6)) == "13.0"

    def test_unmapped_capability_uses_closest_lower_entry(self):
        assert max_cuda_for_compute((8, 8)) == CUDA_COMPATIBILITY_MAP[(8, 7)]
        assert max_cuda_for_compute((12, 0)) == "13.0"

    def test_too_old_or_unknown(self):
        assert max_cuda_for_compute((3, 0)) is None
        assert max_cuda_for_compute(None) is None


class TestVersions:
    def test_version_comparison(self):
        assert cuda_version_newer("13.0", "12.9")
        assert cuda_version_newer("12.10", "12.9")
        assert not cuda_version_newer("12.6", "12.6")
        assert not cuda_version_newer("11.8", "12.0")

    def test_invalid_versions_never_compare_newer(self):
        assert not cuda_version_newer("latest", "12.0")

    def test_toolkit_package_name(self):
        assert toolkit_package("12.6") == "cuda-toolkit-12-6"
        assert toolkit_package("13.0.1") == "cuda-toolkit-13-0"

    def test_toolkit_package_rejects_garbage(self):
        with pytest.raises(ValueError):
            toolkit_package("twelve")


class TestDistro:
    def test_known_codenames_map_to_repo_slugs(self):
        assert repo_distro("jammy") == "ubuntu2204"
        assert repo_distro("bookworm") == "debian12"

    def test_unknown_codename_passes_through(self):
        assert repo_distro("trixie") == "trixie"

    def test_missing_codename(self):
        assert repo_distro(None) is None
        assert repo_distro("unknown") is None

    def test_custom_mapping(self):
        assert repo_distro("jammy", {"jammy": "mirror2204"}) == "mirror2204"

    @pytest.mark.parametrize(
        "codename, expected",
        [
            ("jammy", "supported"),
            ("bullseye", "eol"),
            ("trixie", "unsupported"),
            ("unknown", "unsupported"),
            (None, "unsupported"),
        ],
    )
    def test_distro_support(self, codename, expected):
        assert (
            distro_support(codename, ["bookworm", "jammy", "noble"], ["bullseye"])
            == expected
        )


class TestToolkitSupport:
    def test_new_toolkit_on_old_gpu(self):
        assert toolkit_supported_by_gpu("12.6", (3, 5)) is False

    def test_supported_combination(self):
        assert toolkit_supported_by_gpu("12.6", (8, 6)) is True

    def test_unknown_capability(self):
        assert toolkit_supported_by_gpu("12.6", None) is None

    def test_capability_older_than_any_toolkit(self):
        assert toolkit_supported_by_gpu("11.8", (2, 1)) is False


class TestInfoDisplay:
    def test_installed_with_capability(self):
        assert (
            get_cuda_info_display(True, "12.6", (8, 6))
            == "CUDA 12.6 (compute 8.6, supports up to CUDA 13.0)"
        )

    def test_not_installed_without_capability(self):
        assert get_cuda_info_display(False, "", None) == "not installed"
