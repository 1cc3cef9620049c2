"""
Architecture model — the fixed Android target table.

Each supported short architecture name maps to an LLVM target triple
(without the API level suffix), the Android ABI the device reports,
the value Magisk exposes as ``$ARCH`` during install, and the
subdirectory its binaries are staged into inside the module tree.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from busybox_ndk.core.errors import UnknownArchitectureError

DEFAULT_API_LEVEL = 21


class ArchSpec(BaseModel):
    """One Android CPU architecture target."""

    model_config = ConfigDict(frozen=True)

    name: str               # short name used on the command line
    triple_base: str        # e.g. "aarch64-linux-android"
    abi: str                # ro.product.cpu.abi value, e.g. "arm64-v8a"
    magisk_arch: str        # Magisk's $ARCH value, e.g. "x64"
    install_subdir: str     # custom/<install_subdir> inside the module

    def triple(self, api_level: int = DEFAULT_API_LEVEL) -> str:
        """Compiler target triple including the API level."""
        return f"{self.triple_base}{api_level}"

    def prefix(self, api_level: int = DEFAULT_API_LEVEL) -> str:
        """Tool-name prefix (triple plus trailing dash)."""
        return f"{self.triple(api_level)}-"


ARCHITECTURES: dict[str, ArchSpec] = {
    spec.name: spec
    for spec in (
        ArchSpec(
            name="arm",
            triple_base="armv7a-linux-androideabi",
            abi="armeabi-v7a",
            magisk_arch="arm",
            install_subdir="arm",
        ),
        ArchSpec(
            name="arm64",
            triple_base="aarch64-linux-android",
            abi="arm64-v8a",
            magisk_arch="arm64",
            install_subdir="arm64",
        ),
        ArchSpec(
            name="x86",
            triple_base="i686-linux-android",
            abi="x86",
            magisk_arch="x86",
            install_subdir="x86",
        ),
        ArchSpec(
            name="x86_64",
            triple_base="x86_64-linux-android",
            abi="x86_64",
            magisk_arch="x64",
            install_subdir="x86_64",
        ),
    )
}

DEFAULT_ARCHS: tuple[str, ...] = tuple(ARCHITECTURES)


def get_arch(name: str) -> ArchSpec:
    """Look up an architecture by short name.

    Raises:
        UnknownArchitectureError: If the name is not in the table.
    """
    spec = ARCHITECTURES.get(name)
    if spec is None:
        raise UnknownArchitectureError(name)
    return spec


def triple_for(name: str, api_level: int = DEFAULT_API_LEVEL) -> str:
    """Return the compiler target triple for a short architecture name."""
    return get_arch(name).triple(api_level)


def all_triples(api_level: int = DEFAULT_API_LEVEL) -> list[str]:
    """Triples for every supported architecture, in table order."""
    return [spec.triple(api_level) for spec in ARCHITECTURES.values()]
