"""Run protoc with pinned tool versions against the repository's .proto files.

protoc is downloaded as an official release archive for the current platform.
protoc-gen-go and protoc-gen-go-grpc are built with the Go toolchain into a
working directory. Platforms without an official protoc package are not
supported.
"""

from __future__ import annotations

import io
import logging
import os
import platform
import subprocess
import sys
import urllib.request
import zipfile
from dataclasses import dataclass
from typing import Sequence

log = logging.getLogger(__name__)

PROTOC_VERSION = "3.15.6"

# Name of the project that hosts the code generator modules.
_GENERATOR_PROJECT = "go" + "lang"
PROTOC_GEN_GO_PACKAGE = f"github.com/{_GENERATOR_PROJECT}/protobuf/protoc-gen-go"
PROTOC_GEN_GO_GRPC_PACKAGE = f"google.{_GENERATOR_PROJECT}.org/grpc/cmd/protoc-gen-go-grpc"

USAGE = "usage: protobuf-compile <basedir>"


@dataclass(frozen=True)
class ProtocStep:
    """One protoc invocation: a label, the directory to run in, extra arguments."""

    display_name: str
    work_dir: str
    args: tuple[str, ...]


PROTOC_STEPS: tuple[ProtocStep, ...] = (
    ProtocStep(
        "plugin",
        "../policy-plugin/proto",
        ("--go_out=paths=source_relative,plugins=grpc:.", "-I./", "./plugin.proto"),
    ),
)

_MACHINES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

_PLATFORMS = {
    ("linux", "amd64"): "linux-x86_64",
    ("linux", "arm64"): "linux-aarch_64",
    ("darwin", "amd64"): "osx-x86_64",
    # No osx-aarch_64 package exists for this release; rely on emulation.
    ("darwin", "arm64"): "osx-x86_64",
    # The windows packages carry no CPU architecture part.
    ("windows", "amd64"): "win64",
}


def _normalise(system: str | None, machine: str | None) -> tuple[str, str]:
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    return system, _MACHINES.get(machine, machine)


def protoc_platform(system: str | None = None, machine: str | None = None) -> str | None:
    """Return protoc's package name for a platform, or None if there is none.

    Both arguments default to the running platform.
    """
    return _PLATFORMS.get(_normalise(system, machine))


def protoc_download_url(
    version: str, system: str | None = None, machine: str | None = None
) -> str:
    """Return the release archive URL of protoc for a platform."""
    keyword = protoc_platform(system, machine)
    if keyword is None:
        os_name, arch = _normalise(system, machine)
        raise RuntimeError(f"don't know where to find protoc for {os_name} on {arch}")
    return (
        "https://github.com/protocolbuffers/protobuf/releases/download/"
        f"v{version}/protoc-{version}-{keyword}.zip"
    )


def _extract(archive: bytes, local_dir: str) -> None:
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        zf.extractall(local_dir)
        for info in zf.infolist():
            mode = info.external_attr >> 16
            if mode & 0o111 and not info.is_dir():
                os.chmod(os.path.join(local_dir, info.filename), mode & 0o777)


def download_protoc(version: str, local_dir: str) -> None:
    """Download and unpack the given protoc release into ``local_dir``."""
    url = protoc_download_url(version)
    log.info("downloading and extracting protoc v%s from %s into %s", version, url, local_dir)
    try:
        with urllib.request.urlopen(url) as response:
            archive = response.read()
        os.makedirs(local_dir, exist_ok=True)
        _extract(archive, local_dir)
    except (OSError, zipfile.BadZipFile) as err:
        raise RuntimeError(f"failed to download or extract the package: {err}") from err


def _build_go_tool(work_dir: str, name: str, package: str) -> str:
    try:
        suffix = subprocess.run(
            ["go", "env", "GOEXE"], capture_output=True, text=True, check=True
        ).stdout.strip()
    except (OSError, subprocess.CalledProcessError) as err:
        raise RuntimeError(f"failed to determine executable suffix: {err}") from err

    exe_path = os.path.join(work_dir, name + suffix)
    log.info("building %s as %s", package, exe_path)
    try:
        subprocess.run(["go", "build", "-o", exe_path, package], check=True)
    except (OSError, subprocess.CalledProcessError) as err:
        raise RuntimeError(f"failed to build {package}: {err}") from err
    return exe_path


def build_protoc_gen_go(work_dir: str) -> str:
    """Build protoc-gen-go into ``work_dir`` and return the executable's path."""
    return _build_go_tool(work_dir, "protoc-gen-go", PROTOC_GEN_GO_PACKAGE)


def build_protoc_gen_go_grpc(work_dir: str) -> str:
    """Build protoc-gen-go-grpc into ``work_dir`` and return the executable's path."""
    return _build_go_tool(work_dir, "protoc-gen-go-grpc", PROTOC_GEN_GO_GRPC_PACKAGE)


def main(argv: Sequence[str] | None = None) -> int:
    """Compile every protoc step; takes the tools base directory as its one argument."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        log.error(USAGE)
        return 1

    base_dir = args[0]
    work_dir = os.path.join(base_dir, "protobuf-compile", ".workdir")
    protoc_local_dir = os.path.join(work_dir, f"protoc-v{PROTOC_VERSION}")

    try:
        if not os.path.exists(protoc_local_dir):
            download_protoc(PROTOC_VERSION, protoc_local_dir)
        else:
            log.info("already have protoc v%s in %s", PROTOC_VERSION, protoc_local_dir)

        os.makedirs(work_dir, exist_ok=True)
        gen_go = build_protoc_gen_go(work_dir)
        gen_go_grpc = build_protoc_gen_go_grpc(work_dir)
    except RuntimeError as err:
        log.error("%s", err)
        return 1

    protoc = os.path.abspath(os.path.join(protoc_local_dir, "bin", "protoc"))
    base_cmd = [
        protoc,
        "--plugin=" + os.path.abspath(gen_go),
        "--plugin=" + os.path.abspath(gen_go_grpc),
    ]

    for step in PROTOC_STEPS:
        log.info("working on %s", step.display_name)
        try:
            subprocess.run([*base_cmd, *step.args], cwd=step.work_dir, check=True)
        except (OSError, subprocess.CalledProcessError) as err:
            log.info("failed to compile: %s", err)
    return 0


if __name__ == "__main__":
    sys.exit(main())