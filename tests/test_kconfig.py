"""
Tests for the .config mutator.
"""

from pathlib import Path

import pytest

from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.build import ToolchainPaths
from busybox_ndk.core.services.kconfig import (
    config_overrides,
    extra_cflags,
    mutate_config,
    read_config_value,
    write_build_config,
)
from tests.conftest import BASELINE_CONFIG


@pytest.fixture
def toolchain(tmp_path: Path) -> ToolchainPaths:
    return ToolchainPaths(ndk_path=tmp_path / "ndk", host_tag="linux-x86_64")


# ── mutate_config ────────────────────────────────────────────────────


class TestMutateConfig:
    def test_rewrites_set_value(self):
        text = 'CONFIG_SYSROOT=""\n'
        assert mutate_config(text, {"CONFIG_SYSROOT": '"/s"'}) == 'CONFIG_SYSROOT="/s"\n'

    def test_unsets_value(self):
        assert mutate_config("CONFIG_STATIC=y\n", {"CONFIG_STATIC": None}) == (
            "# CONFIG_STATIC is not set\n"
        )

    def test_sets_previously_unset(self):
        text = "# CONFIG_SYSROOT is not set\n"
        assert mutate_config(text, {"CONFIG_SYSROOT": '"/s"'}) == 'CONFIG_SYSROOT="/s"\n'

    def test_prefix_keys_not_confused(self):
        text = "CONFIG_STATIC=y\nCONFIG_STATIC_LIBGCC=y\n"
        out = mutate_config(text, {"CONFIG_STATIC": None})
        assert out == "# CONFIG_STATIC is not set\nCONFIG_STATIC_LIBGCC=y\n"

    def test_absent_key_not_appended(self):
        text = "CONFIG_LS=y\n"
        assert mutate_config(text, {"CONFIG_SYSROOT": '"/s"'}) == text

    def test_unrelated_lines_untouched(self):
        overrides = {"CONFIG_STATIC": None, "CONFIG_SYSROOT": '"/s"'}
        before = BASELINE_CONFIG.splitlines()
        after = mutate_config(BASELINE_CONFIG, overrides).splitlines()
        assert len(before) == len(after)
        for old, new in zip(before, after):
            if old.startswith(("CONFIG_STATIC=", "CONFIG_SYSROOT=")):
                continue
            assert old == new

    def test_preserves_line_endings(self):
        text = "CONFIG_STATIC=y\r\nCONFIG_LS=y\r\n"
        out = mutate_config(text, {"CONFIG_STATIC": None})
        assert out == "# CONFIG_STATIC is not set\r\nCONFIG_LS=y\r\n"

    def test_idempotent(self, toolchain: ToolchainPaths):
        overrides = config_overrides(toolchain, "arm64", 21)
        once = mutate_config(BASELINE_CONFIG, overrides)
        assert mutate_config(once, overrides) == once


# ── Overrides ────────────────────────────────────────────────────────


class TestConfigOverrides:
    def test_cross_prefix(self, toolchain: ToolchainPaths):
        overrides = config_overrides(toolchain, "arm", 21)
        assert overrides["CONFIG_CROSS_COMPILER_PREFIX"] == (
            f'"{toolchain.bin_dir}/armv7a-linux-androideabi21-"'
        )

    def test_static_disabled(self, toolchain: ToolchainPaths):
        overrides = config_overrides(toolchain, "x86", 21)
        assert overrides["CONFIG_STATIC"] is None
        assert overrides["CONFIG_STATIC_LIBGCC"] is None

    def test_flags(self, toolchain: ToolchainPaths):
        overrides = config_overrides(toolchain, "x86_64", 24)
        assert "-D__ANDROID_API__=24" in overrides["CONFIG_EXTRA_CFLAGS"]
        assert overrides["CONFIG_EXTRA_LDFLAGS"] == '"-Wl,-z,max-page-size=16384"'
        assert overrides["CONFIG_SYSROOT"] == f'"{toolchain.sysroot}"'

    def test_extra_cflags(self):
        assert extra_cflags(21) == "-DANDROID -D__ANDROID__ -D__ANDROID_API__=21 -Os"


# ── write_build_config ───────────────────────────────────────────────


class TestWriteBuildConfig:
    def test_writes_dot_config(self, tmp_path: Path, toolchain: ToolchainPaths):
        baseline = tmp_path / "base.config"
        baseline.write_text(BASELINE_CONFIG)
        source = tmp_path / "busybox"
        source.mkdir()

        target = write_build_config(baseline, source, config_overrides(toolchain, "arm64", 21))

        assert target == source / ".config"
        text = target.read_text()
        assert "# CONFIG_STATIC is not set" in text
        assert "CONFIG_STATIC=y" not in text
        assert read_config_value(text, "CONFIG_CROSS_COMPILER_PREFIX") == (
            f'"{toolchain.bin_dir}/aarch64-linux-android21-"'
        )
        assert read_config_value(text, "CONFIG_LS") == "y"
        # baseline is left alone
        assert baseline.read_text() == BASELINE_CONFIG

    def test_missing_baseline(self, tmp_path: Path, toolchain: ToolchainPaths):
        with pytest.raises(StepError, match="Baseline config not found"):
            write_build_config(tmp_path / "nope.config", tmp_path, {})

    def test_read_value_unset(self):
        assert read_config_value("# CONFIG_STATIC is not set\n", "CONFIG_STATIC") is None
