import textwrap

import pytest

from cleo.io.outputs.output import Verbosity
from cleo.testers.command_tester import CommandTester

from conftest import make_tar, read_tar
from pkgen import app as pkgen_app
from pkgen import commands as pkgen_commands


DESCRIPTOR = textwrap.dedent(
    """\
    version: "8.5.0"
    build: 1
    builder: debian
    sources:
      - file:curl.patch
    script:
      - '{{ extract("curl", "xz") }}'
      - '(cd src/curl && ./configure --host={{ hostarch() }})'
    packages:
      zlib:
      curl:
        dependencies: [zlib, openssl]
    builddependencies: [gcc, make, perl]
    """
)


@pytest.fixture
def application():
    return pkgen_app.App()


def test_app_registers_commands(application):
    for cmd in pkgen_commands.commands:
        assert application.has(cmd.name)
    assert application.find("src").name == "source"
    assert application.find("bd").name == "builddeps"


@pytest.fixture
def desc_path(tmp_path):
    (tmp_path / "curl.patch").write_text("patch\n")
    path = tmp_path / "pkgen.yaml"
    path.write_text(DESCRIPTOR)
    return path


def _run(application, name, args):
    tester = CommandTester(application.find(name))
    return tester, tester.execute(args)


def test_builddeps(application, desc_path, tmp_path):
    out = tmp_path / "out.txt"
    _, code = _run(application, "builddeps", f"-i {desc_path} -o {out}")
    assert code == 0
    assert out.read_text() == "gcc\nmake\nperl"


def test_builddeps_separator(application, desc_path, tmp_path):
    out = tmp_path / "out.txt"
    _, code = _run(
        application, "builddeps", f"-i {desc_path} -o {out} -s ,"
    )
    assert code == 0
    assert out.read_text() == "gcc,make,perl"


def test_pkgs(application, desc_path, tmp_path):
    out = tmp_path / "out.txt"
    _, code = _run(application, "pkgs", f"-i {desc_path} -o {out} -s +")
    assert code == 0
    assert out.read_text() == "curl+zlib"


def test_deps(application, desc_path, tmp_path):
    out = tmp_path / "out.txt"
    _, code = _run(
        application, "deps", f"-i {desc_path} -o {out} --package curl"
    )
    assert code == 0
    assert out.read_text() == "zlib\nopenssl"


def test_deps_requires_package(application, desc_path, tmp_path):
    out = tmp_path / "out.txt"
    tester, code = _run(application, "deps", f"-i {desc_path} -o {out}")
    assert code == 65
    assert "Missing flag: --package" in tester.io.fetch_error()


def test_builder(application, desc_path, tmp_path):
    out = tmp_path / "out.txt"
    _, code = _run(application, "builder", f"-i {desc_path} -o {out}")
    assert code == 0
    assert out.read_text() == "debian"


def test_build(application, desc_path, tmp_path):
    out = tmp_path / "Makefile"
    _, code = _run(
        application, "build", f"-i {desc_path} -o {out} --host aarch64"
    )
    assert code == 0
    text = out.read_text()
    assert "PKGS = curl zlib\n" in text
    assert text.endswith(
        "build: outs sources\n"
        "\ttar -xf src/curl-8.5.0.tar.xz -C src\n"
        "\tmv src/curl-8.5.0 src/curl\n"
        "\t(cd src/curl && ./configure --host=aarch64)\n"
    )


def test_build_arch_from_environment(
    application, desc_path, tmp_path, monkeypatch
):
    monkeypatch.setenv("HOSTARCH", "riscv64")
    out = tmp_path / "Makefile"
    _, code = _run(application, "build", f"-i {desc_path} -o {out}")
    assert code == 0
    assert "--host=riscv64" in out.read_text()


def test_source(application, desc_path, tmp_path):
    out = tmp_path / "src.tar"
    _, code = _run(application, "source", f"-i {desc_path} -o {out}")
    assert code == 0
    members, contents = read_tar(out.read_bytes())
    assert [m.name for m in members] == [
        "curl.patch",
        "pkgen.yaml",
        ".pkginfo",
        ".pkginfo/curl.pkginfo",
        ".pkginfo/zlib.pkginfo",
        "manifest.txt",
    ]
    assert contents["manifest.txt"] == b"file:curl.patch"
    assert contents["pkgen.yaml"] == DESCRIPTOR.encode("utf-8")


def test_source_unsupported_scheme(application, tmp_path):
    path = tmp_path / "pkgen.yaml"
    path.write_text("version: '1'\nsources: ['ftp://example.org/a.tar']\n")
    out = tmp_path / "src.tar"
    tester, code = _run(application, "source", f"-i {path} -o {out}")
    assert code == 65
    assert "unsupported source URL scheme" in tester.io.fetch_error()
    assert out.read_bytes() == b""


def test_bad_descriptor(application, tmp_path):
    path = tmp_path / "pkgen.yaml"
    path.write_text("version: [unclosed\n")
    tester, code = _run(
        application, "pkgs", f"-i {path} -o {tmp_path / 'out'}"
    )
    assert code == 65
    assert "cannot parse descriptor" in tester.io.fetch_error()


def test_bad_template(application, tmp_path):
    path = tmp_path / "pkgen.yaml"
    path.write_text("version: '1'\nscript: ['{{ nosuchfunc() }}']\n")
    tester, code = _run(
        application, "build", f"-i {path} -o {tmp_path / 'Makefile'}"
    )
    assert code == 65
    assert "template" in tester.io.fetch_error()


def test_merge(application, tmp_path):
    alt = "./etc/lpkg.d/alt.d/editor/"
    a = tmp_path / "a.tar"
    a.write_bytes(make_tar([(alt + ".target", b"/usr/bin/editor")]))
    b = tmp_path / "b.tar"
    b.write_bytes(make_tar([(alt + "vim.provider", b"")]))
    out = tmp_path / "merged.tar"

    _, code = _run(application, "merge", f"-o {out} {a} {b}")
    assert code == 0
    members, _ = read_tar(out.read_bytes())
    assert [(m.name, m.issym()) for m in members] == [
        (alt + ".target", False),
        (alt + "vim.provider", False),
        ("/usr/bin/editor", True),
    ]


def test_merge_missing_input(application, tmp_path):
    out = tmp_path / "merged.tar"
    tester, code = _run(
        application, "merge", f"-o {out} {tmp_path / 'missing.tar'}"
    )
    assert code == 65
    assert "cannot merge archives" in tester.io.fetch_error()


def test_verbose_logging(application, desc_path, tmp_path):
    out = tmp_path / "Makefile"
    tester = CommandTester(application.find("build"))
    code = tester.execute(
        f"-i {desc_path} -o {out}", verbosity=Verbosity.VERBOSE
    )
    assert code == 0
    assert "Generated build script for 2 packages" in tester.io.fetch_error()
