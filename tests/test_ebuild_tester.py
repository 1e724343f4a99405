import pytest

from conftest import FakeRunner, add_ebuild
import overlay
from overlay.ebuild_tester import FAILED, PASSED, SKIPPED, WARNING, EbuildTester, VerificationReport
from overlay.errors import (
    BuildFailure,
    DependencyMissingError,
    InstallFailure,
    InvalidVersionError,
    ManifestToolMissingError,
    NoArtifactError,
    PrivilegeError,
    SyntaxValidationError,
)

ALL_TOOLS = {"emerge", "ebuild", "pkgdev", "pkgcheck", "opencode"}


def make_tester(config, console, runner, euid=0):
    return EbuildTester(config, runner=runner, console=console, geteuid=lambda: euid)


def test_full_run(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    report = make_tester(config, console, runner).run()

    assert report.success
    assert report.version == "0.5.29"
    assert report.stage_names == ["setup", "syntax", "manifest", "qa", "compile"]
    assert all(s.status == PASSED for s in report.stages)

    atom = "=dev-util/opencode-0.5.29"
    expected_order = [
        ("ebuild", "opencode-0.5.29.ebuild", "clean"),
        ("pkgdev", "manifest"),
        ("pkgcheck", "scan", "."),
        ("emerge", "--pretend", "--verbose", atom),
        ("emerge", "--oneshot", "--verbose", atom),
        ("opencode", "--version"),
    ]
    positions = [runner.index_of(*step) for step in expected_order]
    assert positions == sorted(positions)
    # unmerged before and after the build
    assert runner.calls[-1] == ["emerge", "--unmerge", "dev-util/opencode"]
    assert runner.calls.count(["emerge", "--unmerge", "dev-util/opencode"]) == 2


def test_requires_root(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    with pytest.raises(PrivilegeError):
        make_tester(config, console, runner, euid=1000).run()
    assert runner.calls == []
    assert not config.repos_conf_file.exists()


def test_requires_emerge_and_ebuild(config, console):
    with pytest.raises(DependencyMissingError) as exc:
        make_tester(config, console, FakeRunner(tools={"pkgcheck"})).run()
    assert exc.value.missing == ["emerge", "ebuild"]


def test_setup_only(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    report = make_tester(config, console, runner).run(setup_only=True)

    assert report.success
    assert report.stage_names == ["setup"]
    assert runner.calls == []
    assert config.repos_conf_file.read_text() == (
        "[opencode-overlay]\n"
        f"location = {config.overlay_dir}\n"
        "masters = gentoo\n"
        "priority = 50\n"
        "auto-sync = no\n"
    )


def test_setup_is_idempotent(config, console):
    tester = make_tester(config, console, FakeRunner(tools=ALL_TOOLS))
    tester.setup_overlay()
    first = config.repos_conf_file.read_text()
    tester.setup_overlay()
    assert config.repos_conf_file.read_text() == first
    assert list(config.repos_conf_dir.iterdir()) == [config.repos_conf_file]


def test_auto_select_uses_version_order(config, console):
    add_ebuild(config, "0.5.9")
    runner = FakeRunner(tools=ALL_TOOLS)
    report = make_tester(config, console, runner).run(skip_compile=True, skip_qa=True)
    assert report.version == "0.5.29"


def test_no_ebuilds_fails_before_validation(config, console):
    for path in config.package_dir.glob("*.ebuild"):
        path.unlink()
    runner = FakeRunner(tools=ALL_TOOLS)
    with pytest.raises(NoArtifactError):
        make_tester(config, console, runner).run()
    assert runner.calls == []


def test_only_live_ebuild_fails(config, console):
    config.template_path().unlink()
    with pytest.raises(NoArtifactError):
        make_tester(config, console, FakeRunner(tools=ALL_TOOLS)).run()


def test_explicit_missing_version(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    with pytest.raises(NoArtifactError):
        make_tester(config, console, runner).run(version="1.2.3")
    assert runner.calls == []


def test_explicit_version_strips_v_prefix(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    report = make_tester(config, console, runner).run(version="v0.5.29", skip_compile=True)
    assert report.success
    assert report.version == "0.5.29"
    assert runner.calls[0] == ["ebuild", "opencode-0.5.29.ebuild", "clean"]


def test_explicit_version_must_parse(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    with pytest.raises(InvalidVersionError):
        make_tester(config, console, runner).run(version="../../etc/passwd")
    assert runner.calls == []


def test_malformed_ebuild_stops_everything(config, console):
    runner = FakeRunner(tools=ALL_TOOLS, results={("ebuild",): 1})
    tester = make_tester(config, console, runner)
    with pytest.raises(SyntaxValidationError):
        tester.run()

    assert runner.calls == [["ebuild", "opencode-0.5.29.ebuild", "clean"]]
    assert tester.report.status_of("syntax") == FAILED
    assert tester.report.status_of("manifest") is None


def test_manifest_falls_back_to_ebuild(config, console):
    runner = FakeRunner(tools={"emerge", "ebuild", "pkgcheck"})
    report = make_tester(config, console, runner).run(skip_compile=True)
    assert ["ebuild", "opencode-0.5.29.ebuild", "manifest"] in runner.calls
    assert report.status_of("manifest") == PASSED


def test_missing_manifest_tool_is_fatal(config, console):
    tester = make_tester(config, console, FakeRunner(tools={"emerge"}))
    with pytest.raises(ManifestToolMissingError):
        tester.generate_manifest()


def test_qa_issues_are_warnings(config, console):
    runner = FakeRunner(tools=ALL_TOOLS, results={("pkgcheck",): 1})
    report = make_tester(config, console, runner).run()
    assert report.success
    assert report.status_of("qa") == WARNING
    assert any("pkgcheck scan found issues" in w for w in report.warnings)
    assert runner.called("emerge", "--oneshot")


def test_repoman_legacy_qa(config, console):
    runner = FakeRunner(tools={"emerge", "ebuild", "repoman"})
    make_tester(config, console, runner).run(skip_compile=True)
    assert ["repoman", "scan"] in runner.calls
    assert ["repoman", "full"] in runner.calls


def test_no_qa_tool_is_warning(config, console):
    runner = FakeRunner(tools={"emerge", "ebuild"})
    report = make_tester(config, console, runner).run(skip_compile=True)
    assert report.success
    assert report.status_of("qa") == WARNING


def test_skip_flags(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    report = make_tester(config, console, runner).run(skip_compile=True, skip_qa=True)
    assert report.status_of("qa") == SKIPPED
    assert report.status_of("compile") == SKIPPED
    assert not runner.called("pkgcheck")
    assert not runner.called("emerge")


def test_pretend_failure_skips_build(config, console):
    runner = FakeRunner(tools=ALL_TOOLS, results={("emerge", "--pretend"): 1})
    tester = make_tester(config, console, runner)
    with pytest.raises(BuildFailure):
        tester.run()
    assert not runner.called("emerge", "--oneshot")
    assert tester.report.status_of("compile") == FAILED


def test_build_failure(config, console):
    runner = FakeRunner(tools=ALL_TOOLS, results={("emerge", "--oneshot"): 1})
    with pytest.raises(InstallFailure):
        make_tester(config, console, runner).run()
    assert not runner.called("opencode")


def test_unmerge_errors_before_build_ignored(config, console):
    runner = FakeRunner(tools=ALL_TOOLS, results={("emerge", "--unmerge"): 1})
    report = make_tester(config, console, runner).run()
    assert report.success
    assert runner.called("emerge", "--oneshot")


def test_smoke_test_failure_is_warning(config, console):
    runner = FakeRunner(tools=ALL_TOOLS, results={("opencode",): 1})
    report = make_tester(config, console, runner).run()
    assert report.success
    assert report.status_of("compile") == WARNING
    assert any("version check failed" in w for w in report.warnings)


def test_missing_binary_is_warning(config, console):
    runner = FakeRunner(tools=ALL_TOOLS - {"opencode"})
    report = make_tester(config, console, runner).run()
    assert report.success
    assert not runner.called("opencode")
    assert any("not found in PATH" in w for w in report.warnings)


def test_keep_installed(config, console):
    runner = FakeRunner(tools=ALL_TOOLS)
    make_tester(config, console, runner).run(keep_installed=True)
    assert runner.calls.count(["emerge", "--unmerge", "dev-util/opencode"]) == 1
    assert runner.calls[-1] == ["opencode", "--version"]


def test_list_ebuilds(config, console, log_stream):
    add_ebuild(config, "0.6.0")
    versions = make_tester(config, console, FakeRunner()).list_ebuilds()
    assert versions == ["0.5.29", "0.6.0", "9999"]
    assert "  - 0.6.0" in log_stream.getvalue()


def test_report_type_exported():
    assert overlay.VerificationReport is VerificationReport
    assert "VerificationReport" in overlay.__all__
