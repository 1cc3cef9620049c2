"""
Tests for NDK provisioning — host detection, download/extract, symlinks.
"""

import logging
from pathlib import Path

import pytest

from busybox_ndk.core.config.loader import resolve_config
from busybox_ndk.core.engine.executor import StepRunner
from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.action import Receipt
from busybox_ndk.core.models.build import BuildConfig, ToolchainPaths
from busybox_ndk.core.services.ndk import (
    LLVM_TOOLS,
    detect_host_tag,
    ndk_archive_name,
    ndk_download_url,
    provision_ndk,
    setup_toolchain_symlinks,
)
from tests.conftest import FakeToolchain, make_fake_ndk


# ── Host detection ───────────────────────────────────────────────────


class TestHostTag:
    @pytest.mark.parametrize(
        "system, machine, tag",
        [
            ("Linux", "x86_64", "linux-x86_64"),
            ("Linux", "aarch64", "linux-aarch64"),
            ("Darwin", "x86_64", "darwin-x86_64"),
            ("Darwin", "arm64", "darwin-arm64"),
        ],
    )
    def test_known_hosts(self, system: str, machine: str, tag: str):
        assert detect_host_tag(system, machine) == tag

    def test_unknown_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert detect_host_tag("FreeBSD", "riscv64") == "linux-x86_64"
        assert "Unknown platform: freebsd-riscv64" in caplog.text

    def test_archive_name(self):
        assert ndk_archive_name("r25c", "Linux") == "android-ndk-r25c-linux.zip"
        assert ndk_download_url("r25c", "Darwin") == (
            "https://dl.google.com/android/repository/android-ndk-r25c-darwin.zip"
        )


# ── provision_ndk ────────────────────────────────────────────────────


class TestProvisionNdk:
    def test_existing_ndk_is_trusted(self, build_config: BuildConfig, fake_tools: FakeToolchain):
        runner = StepRunner(registry=fake_tools.registry, work_dir=build_config.work_dir)
        paths = provision_ndk(build_config, runner)
        assert fake_tools.action_ids == []
        assert paths.ndk_path == build_config.ndk_path

    def test_missing_ndk_downloaded_and_extracted(self, tmp_path: Path, fake_tools: FakeToolchain):
        config = resolve_config(work_dir=tmp_path, env={})
        runner = StepRunner(registry=fake_tools.registry, work_dir=config.work_dir)

        paths = provision_ndk(config, runner)

        assert fake_tools.download.action_ids == ["ndk:download"]
        assert fake_tools.shell.action_ids == ["ndk:extract"]
        download = fake_tools.download.call_log[0].action.params
        assert download["url"].endswith(ndk_archive_name("r25c"))
        extract = fake_tools.shell.call_log[0].action.params
        assert extract["command"][:3] == ["unzip", "-q", "-o"]
        assert paths.bin_dir.is_dir()

    def test_custom_ndk_path_moved_into_place(self, tmp_path: Path, fake_tools: FakeToolchain):
        target = tmp_path / "toolchains" / "ndk"
        config = resolve_config(work_dir=tmp_path, env={"NDK_PATH": str(target)})
        runner = StepRunner(registry=fake_tools.registry, work_dir=config.work_dir)

        provision_ndk(config, runner)

        assert target.is_dir()
        assert not (tmp_path / "android-ndk-r25c").exists()

    def test_download_failure_raises(self, tmp_path: Path, fake_tools: FakeToolchain):
        fake_tools.download.set_failure("ndk:download", error="404 Not Found")
        config = resolve_config(work_dir=tmp_path, env={})
        runner = StepRunner(registry=fake_tools.registry, work_dir=config.work_dir)

        with pytest.raises(StepError, match="404 Not Found"):
            provision_ndk(config, runner)
        assert fake_tools.shell.action_ids == []

    def test_extract_leaves_nothing(self, tmp_path: Path, fake_tools: FakeToolchain):
        # extraction "succeeds" but produces no tree
        fake_tools.shell.set_response(
            "ndk:extract", Receipt.success(adapter="shell", action_id="ndk:extract"),
        )
        config = resolve_config(work_dir=tmp_path, env={})
        runner = StepRunner(registry=fake_tools.registry, work_dir=config.work_dir)

        with pytest.raises(StepError, match="NDK not found"):
            provision_ndk(config, runner)

    def test_dry_run_only_validates(self, tmp_path: Path, fake_tools: FakeToolchain):
        config = resolve_config(work_dir=tmp_path, env={})
        runner = StepRunner(registry=fake_tools.registry, work_dir=config.work_dir, dry_run=True)

        provision_ndk(config, runner)

        assert [r.action_id for r in runner.receipts] == ["ndk:download", "ndk:extract"]
        assert all(r.status == "skipped" for r in runner.receipts)
        assert fake_tools.action_ids == []
        assert not config.ndk_path.exists()


# ── Symlinks ─────────────────────────────────────────────────────────


class TestToolchainSymlinks:
    def _paths(self, tmp_path: Path) -> ToolchainPaths:
        ndk = tmp_path / "ndk"
        make_fake_ndk(ndk)
        return ToolchainPaths(ndk_path=ndk, host_tag=detect_host_tag())

    def test_creates_links_for_every_triple(self, tmp_path: Path):
        paths = self._paths(tmp_path)
        created = setup_toolchain_symlinks(paths, 21)

        assert len(created) == len(LLVM_TOOLS) * 4
        link = paths.bin_dir / "aarch64-linux-android21-strip"
        assert link.is_symlink()
        assert link.resolve() == (paths.bin_dir / "llvm-strip").resolve()
        assert (paths.bin_dir / "armv7a-linux-androideabi21-ar").is_symlink()

    def test_existing_names_left_alone(self, tmp_path: Path):
        paths = self._paths(tmp_path)
        existing = paths.bin_dir / "i686-linux-android21-nm"
        existing.write_text("real tool\n")

        created = setup_toolchain_symlinks(paths, 21)

        assert existing not in created
        assert not existing.is_symlink()
        assert existing.read_text() == "real tool\n"

    def test_second_run_creates_nothing(self, tmp_path: Path):
        paths = self._paths(tmp_path)
        setup_toolchain_symlinks(paths, 21)
        assert setup_toolchain_symlinks(paths, 21) == []

    def test_missing_bin_dir(self, tmp_path: Path):
        paths = ToolchainPaths(ndk_path=tmp_path / "nothing", host_tag="linux-x86_64")
        with pytest.raises(StepError, match="bin directory not found"):
            setup_toolchain_symlinks(paths, 21)
