import io
import os
import subprocess
import zipfile
from unittest import mock

import pytest

from tfpolicy import protobuf_compile as pc


@pytest.mark.parametrize(
    "system, machine, expected",
    [
        ("Linux", "x86_64", "linux-x86_64"),
        ("linux", "amd64", "linux-x86_64"),
        ("Linux", "aarch64", "linux-aarch_64"),
        ("Darwin", "x86_64", "osx-x86_64"),
        ("Darwin", "arm64", "osx-x86_64"),
        ("Windows", "AMD64", "win64"),
    ],
)
def test_protoc_platform_known(system, machine, expected):
    assert pc.protoc_platform(system, machine) == expected


def test_protoc_platform_unknown():
    assert pc.protoc_platform("plan9", "mips") is None


def test_download_url():
    url = pc.protoc_download_url("3.15.6", "linux", "amd64")
    assert url == (
        "https://github.com/protocolbuffers/protobuf/releases/download/"
        "v3.15.6/protoc-3.15.6-linux-x86_64.zip"
    )


def test_download_url_unknown_platform():
    with pytest.raises(RuntimeError, match="don't know where to find protoc"):
        pc.protoc_download_url("3.15.6", "plan9", "mips")


def _zip_bytes():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        info = zipfile.ZipInfo("bin/protoc")
        info.external_attr = 0o755 << 16
        zf.writestr(info, b"binary")
        zf.writestr("include/a.proto", b"syntax")
    return buf.getvalue()


def test_download_protoc_extracts(tmp_path):
    target = tmp_path / "protoc"
    with mock.patch("platform.system", return_value="Linux"), mock.patch(
        "platform.machine", return_value="x86_64"
    ), mock.patch(
        "urllib.request.urlopen", return_value=io.BytesIO(_zip_bytes())
    ) as urlopen:
        pc.download_protoc("3.15.6", str(target))
    assert urlopen.call_args[0][0] == pc.protoc_download_url("3.15.6", "linux", "amd64")
    assert (target / "bin" / "protoc").read_bytes() == b"binary"
    assert (target / "include" / "a.proto").read_bytes() == b"syntax"


def test_download_protoc_bad_archive(tmp_path):
    with mock.patch("platform.system", return_value="Linux"), mock.patch(
        "platform.machine", return_value="x86_64"
    ), mock.patch("urllib.request.urlopen", return_value=io.BytesIO(b"nope")):
        with pytest.raises(RuntimeError, match="failed to download or extract"):
            pc.download_protoc("3.15.6", str(tmp_path / "p"))


def _fake_run(calls, suffix=""):
    def run(cmd, *args, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, stdout=suffix + "\n")

    return run


def test_build_protoc_gen_go(tmp_path):
    calls = []
    with mock.patch("subprocess.run", side_effect=_fake_run(calls, ".exe")):
        path = pc.build_protoc_gen_go(str(tmp_path))
    assert path == os.path.join(str(tmp_path), "protoc-gen-go.exe")
    assert calls[0][0] == ["go", "env", "GOEXE"]
    assert calls[1][0] == ["go", "build", "-o", path, pc.PROTOC_GEN_GO_PACKAGE]


def test_build_protoc_gen_go_grpc(tmp_path):
    calls = []
    with mock.patch("subprocess.run", side_effect=_fake_run(calls)):
        path = pc.build_protoc_gen_go_grpc(str(tmp_path))
    assert path == os.path.join(str(tmp_path), "protoc-gen-go-grpc")
    assert calls[1][0][-1] == pc.PROTOC_GEN_GO_GRPC_PACKAGE


def test_build_suffix_failure(tmp_path):
    err = subprocess.CalledProcessError(1, ["go"])
    with mock.patch("subprocess.run", side_effect=err):
        with pytest.raises(RuntimeError, match="failed to determine executable suffix"):
            pc.build_protoc_gen_go(str(tmp_path))


def test_build_failure(tmp_path):
    def run(cmd, *args, **kwargs):
        if cmd[1] == "build":
            raise subprocess.CalledProcessError(2, cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="\n")

    with mock.patch("subprocess.run", side_effect=run):
        with pytest.raises(RuntimeError, match="failed to build"):
            pc.build_protoc_gen_go_grpc(str(tmp_path))


@pytest.mark.parametrize("argv", [[], ["a", "b"]])
def test_main_usage(argv):
    assert pc.main(argv) == 1


def test_main_runs_protoc(tmp_path):
    work_dir = tmp_path / "protobuf-compile" / ".workdir"
    protoc_dir = work_dir / f"protoc-v{pc.PROTOC_VERSION}"
    protoc_dir.mkdir(parents=True)
    calls = []
    with mock.patch("subprocess.run", side_effect=_fake_run(calls)):
        assert pc.main([str(tmp_path)]) == 0
    cmd, kwargs = calls[-1]
    step = pc.PROTOC_STEPS[0]
    assert step.display_name == "plugin"
    assert cmd == [
        os.path.abspath(os.path.join(str(protoc_dir), "bin", "protoc")),
        "--plugin=" + os.path.abspath(os.path.join(str(work_dir), "protoc-gen-go")),
        "--plugin=" + os.path.abspath(os.path.join(str(work_dir), "protoc-gen-go-grpc")),
        *step.args,
    ]
    assert cmd[-1] == "./plugin.proto"
    assert kwargs["cwd"] == step.work_dir
    assert kwargs["cwd"] == "../policy-plugin/proto"


def test_main_build_failure(tmp_path):
    protoc_dir = tmp_path / "protobuf-compile" / ".workdir" / f"protoc-v{pc.PROTOC_VERSION}"
    protoc_dir.mkdir(parents=True)
    with mock.patch("subprocess.run", side_effect=OSError("no go")):
        assert pc.main([str(tmp_path)]) == 1


def test_main_protoc_failure_is_not_fatal(tmp_path):
    protoc_dir = tmp_path / "protobuf-compile" / ".workdir" / f"protoc-v{pc.PROTOC_VERSION}"
    protoc_dir.mkdir(parents=True)

    def run(cmd, *args, **kwargs):
        if cmd[0] != "go":
            raise subprocess.CalledProcessError(1, cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="\n")

    with mock.patch("subprocess.run", side_effect=run):
        assert pc.main([str(tmp_path)]) == 0