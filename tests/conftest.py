"""
Shared test fixtures and configuration.

External tools are never run: the ``fake_registry`` fixture registers
mock ``shell``, ``git`` and ``download`` adapters whose side effects
produce the files make, unzip, git and the network would have produced.
"""

from __future__ import annotations

import io
import re
import tarfile
import textwrap
from pathlib import Path

import pytest

from busybox_ndk.adapters.base import ExecutionContext
from busybox_ndk.adapters.mock import MockAdapter
from busybox_ndk.adapters.registry import AdapterRegistry
from busybox_ndk.core.config.loader import resolve_config
from busybox_ndk.core.models.build import BuildConfig
from busybox_ndk.core.services.ndk import LLVM_TOOLS, detect_host_tag

BASELINE_CONFIG = textwrap.dedent("""\
    #
    # Automatically generated make config: don't edit
    # Busybox version: 1.36.1
    #
    CONFIG_HAVE_DOT_CONFIG=y

    #
    # Settings
    #
    CONFIG_DESKTOP=y
    # CONFIG_EXTRA_COMPAT is not set
    CONFIG_STATIC=y
    CONFIG_STATIC_LIBGCC=y
    CONFIG_CROSS_COMPILER_PREFIX=""
    CONFIG_SYSROOT=""
    CONFIG_EXTRA_CFLAGS=""
    CONFIG_EXTRA_LDFLAGS=""
    CONFIG_EXTRA_LDLIBS=""
    # CONFIG_USE_PORTABLE_CODE is not set
    CONFIG_INSTALL_APPLET_SYMLINKS=y
    CONFIG_PREFIX="./_install"
    CONFIG_LS=y
    CONFIG_GREP=y
""")

FAKE_BUSYBOX = textwrap.dedent("""\
    #!/bin/sh
    if [ "$1" = "--list" ]; then
      printf 'busybox\\nls\\ngrep\\nsed\\nvi\\n'
    fi
""")


def make_busybox_tarball(version: str) -> bytes:
    """A minimal bzip2 release tarball with ``busybox-<version>/Makefile``."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:bz2") as tar:
        data = b"# BusyBox Makefile\n"
        info = tarfile.TarInfo(f"busybox-{version}/Makefile")
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_fake_ndk(ndk_path: Path) -> Path:
    """Create an NDK tree with the llvm-* tools the symlinker looks for."""
    bin_dir = ndk_path / "toolchains" / "llvm" / "prebuilt" / detect_host_tag() / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir.parent / "sysroot").mkdir()
    for tool in LLVM_TOOLS:
        (bin_dir / tool).write_text("#!/bin/sh\n")
    return bin_dir


# ── Fake tool side effects ───────────────────────────────────────────


def _download_effect(ctx: ExecutionContext) -> None:
    dest = Path(ctx.action.params["dest"])
    if not dest.is_absolute():
        dest = Path(ctx.working_dir) / dest
    dest.parent.mkdir(parents=True, exist_ok=True)
    m = re.match(r"busybox-(.+)\.tar\.bz2$", dest.name)
    if m:
        dest.write_bytes(make_busybox_tarball(m.group(1)))
    else:
        dest.write_bytes(b"PK\x05\x06" + b"\x00" * 18)


def _shell_effect(ctx: ExecutionContext) -> None:
    cwd = Path(ctx.working_dir)
    if ctx.action.id.endswith(":make-install"):
        bin_dir = cwd / "_install" / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        busybox = bin_dir / "busybox"
        busybox.write_text(FAKE_BUSYBOX)
        busybox.chmod(0o755)
        link = bin_dir / "ls"
        if not link.is_symlink():
            link.symlink_to("busybox")
    elif ctx.action.id == "ndk:extract":
        archive = ctx.action.params["command"][-1]
        version = re.match(r"android-ndk-(.+?)-\w+\.zip$", archive).group(1)
        make_fake_ndk(cwd / f"android-ndk-{version}")


def _git_effect(ctx: ExecutionContext) -> None:
    if ctx.action.params.get("operation") == "clone":
        dest = Path(ctx.working_dir) / ctx.action.params["dest"]
        dest.mkdir(parents=True)
        (dest / "Makefile").write_text("# BusyBox Makefile\n")


class FakeToolchain:
    """The three mock adapters, kept together for assertions."""

    def __init__(self) -> None:
        self.shell = MockAdapter(adapter_name="shell", side_effect=_shell_effect)
        self.git = MockAdapter(adapter_name="git", side_effect=_git_effect)
        self.download = MockAdapter(adapter_name="download", side_effect=_download_effect)
        self.registry = AdapterRegistry()
        for adapter in (self.shell, self.git, self.download):
            self.registry.register(adapter)

    @property
    def action_ids(self) -> list[str]:
        ids = []
        for adapter in (self.shell, self.git, self.download):
            ids.extend(adapter.action_ids)
        return ids


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def project_root() -> Path:
    """Return the repository root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_tools() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def fake_registry(fake_tools: FakeToolchain) -> AdapterRegistry:
    return fake_tools.registry


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """A project directory with a baseline config and an installed NDK."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "osm0sis-basic-unified.config").write_text(BASELINE_CONFIG)
    make_fake_ndk(root / "android-ndk-r25c")
    return root


@pytest.fixture
def build_config(work_dir: Path) -> BuildConfig:
    """Config for a single-arch arm64 build inside ``work_dir``."""
    return resolve_config(
        busybox_version="1.36.1",
        archs="arm64",
        work_dir=work_dir,
        env={},
        jobs=2,
    )
