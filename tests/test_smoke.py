"""
Smoke tests — verify the bootstrap is healthy.

These tests ensure the basic scaffolding works:
- Package imports successfully
- CLI entrypoint responds
- Version is set
"""

from click.testing import CliRunner

from busybox_ndk import __version__
from busybox_ndk.main import cli


class TestBootstrap:
    """Verify the project bootstrap is healthy."""

    def test_version_is_set(self):
        """Version string should be defined and non-empty."""
        assert __version__
        assert isinstance(__version__, str)

    def test_cli_help(self):
        """CLI --help should exit cleanly with usage info."""
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "build" in result.output

    def test_build_help(self):
        result = CliRunner().invoke(cli, ["build", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output

    def test_core_package_imports(self):
        """Core sub-packages should be importable."""
        import busybox_ndk.core
        import busybox_ndk.core.config
        import busybox_ndk.core.engine
        import busybox_ndk.core.models
        import busybox_ndk.core.observability
        import busybox_ndk.core.services
        import busybox_ndk.core.use_cases

        assert busybox_ndk.core.models.BuildConfig
