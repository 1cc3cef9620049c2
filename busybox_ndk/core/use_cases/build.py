"""
Build use case — the full pipeline from resolved config to module zip.

This is the top-level orchestrator:

    preflight → clean → NDK → (per arch: source → .config → patches → make → stage)
          → assemble module → zip

Architectures are built one at a time in the order given. The first
failing step stops the run; whatever was already written stays in the
output directory until the next run cleans it.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from busybox_ndk.adapters.registry import AdapterRegistry, default_registry
from busybox_ndk.core.engine.executor import StepRunner
from busybox_ndk.core.errors import StepError
from busybox_ndk.core.models.arch import get_arch
from busybox_ndk.core.models.build import BuildConfig, ToolchainPaths
from busybox_ndk.core.services.compiler import compile_busybox, stage_install, staging_dir
from busybox_ndk.core.services.kconfig import config_overrides, write_build_config
from busybox_ndk.core.services.magisk_module import assemble_module
from busybox_ndk.core.services.ndk import provision_ndk, setup_toolchain_symlinks
from busybox_ndk.core.services.packager import package_module
from busybox_ndk.core.services.patches import PatchReport, apply_patches, discover_patches
from busybox_ndk.core.services.source import acquire_source

logger = logging.getLogger(__name__)


@dataclass
class ArchBuild:
    """Outcome of one architecture's build."""

    arch: str
    build_dir: Path
    staged_binary: Path | None = None
    patches: PatchReport = field(default_factory=PatchReport)

    def to_dict(self) -> dict:
        return {
            "arch": self.arch,
            "build_dir": str(self.build_dir),
            "staged_binary": str(self.staged_binary) if self.staged_binary else None,
            "patches": self.patches.to_dict(),
        }


@dataclass
class BuildResult:
    """Result of a pipeline run."""

    config: BuildConfig
    arch_builds: list[ArchBuild] = field(default_factory=list)
    zip_path: Path | None = None
    runner: StepRunner | None = None
    dry_run: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {
            "ok": self.ok,
            "dry_run": self.dry_run,
            "config": self.config.to_dict(),
            "archs": [b.to_dict() for b in self.arch_builds],
            "zip_path": str(self.zip_path) if self.zip_path else None,
        }
        if self.error:
            result["error"] = self.error
        if self.runner:
            result["actions"] = self.runner.to_dict()
        return result


def required_adapters(config: BuildConfig) -> list[str]:
    """Adapters this run will dispatch to."""
    required = ["shell", "download"]
    if config.source_method == "git" or discover_patches(config.patches_dir):
        required.append("git")
    return required


def clean_output(out_dir: Path) -> None:
    """Remove the previous run's output directory entirely."""
    if out_dir.exists():
        logger.info("Cleaning up %s...", out_dir)
        shutil.rmtree(out_dir)


def build_arch(
    config: BuildConfig,
    arch: str,
    toolchain: ToolchainPaths,
    runner: StepRunner,
) -> ArchBuild:
    """Source → .config → patches → make → stage, for one architecture."""
    get_arch(arch)  # unknown names stop the run here
    logger.info("Building BusyBox for %s...", arch)
    result = ArchBuild(arch=arch, build_dir=config.build_dir(arch))

    source_dir = acquire_source(config, arch, runner)

    if not runner.dry_run:
        write_build_config(
            config.baseline_config,
            source_dir,
            config_overrides(toolchain, arch, config.api_level),
        )

    result.patches = apply_patches(config.patches_dir, source_dir, arch, runner)

    compile_busybox(source_dir, arch, toolchain, config.api_level, config.jobs, runner)

    if not runner.dry_run:
        result.staged_binary = stage_install(source_dir, config.module_dir, arch)
    else:
        result.staged_binary = staging_dir(config.module_dir, arch) / "busybox"

    logger.info("Completed %s build", arch)
    return result


def run_build(
    config: BuildConfig,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
    clean: bool = True,
    verbose: bool = False,
) -> BuildResult:
    """Run the whole pipeline.

    Args:
        config: Resolved build configuration.
        registry: Optional pre-configured adapter registry.
        dry_run: If True, validate every action without running it and
            write nothing to disk.
        clean: If True, delete ``out_dir`` before doing anything else.
        verbose: If True, log the output of every tool that runs.

    Returns:
        BuildResult. ``error`` is set (and ``zip_path`` is None) when a
        step failed; reporting it is left to the caller.
    """
    if registry is None:
        registry = default_registry()

    runner = StepRunner(
        registry=registry, work_dir=config.work_dir, dry_run=dry_run, verbose=verbose,
    )
    result = BuildResult(config=config, runner=runner, dry_run=dry_run)

    try:
        missing = registry.missing_tools(required_adapters(config))
        if missing:
            raise StepError("Preflight", f"Required tools not available: {', '.join(missing)}")

        if clean and not dry_run:
            clean_output(config.out_dir)

        toolchain = provision_ndk(config, runner)
        if not dry_run:
            setup_toolchain_symlinks(toolchain, config.api_level)
            config.out_dir.mkdir(parents=True, exist_ok=True)

        for arch in config.archs:
            result.arch_builds.append(build_arch(config, arch, toolchain, runner))

        if dry_run:
            return result

        assemble_module(config)
        result.zip_path = package_module(config.module_dir, config.zip_path)

    except StepError as e:
        result.error = str(e)
        return result
    except OSError as e:
        result.error = f"Filesystem error: {e}"
        return result

    logger.info("Build complete!")
    return result
