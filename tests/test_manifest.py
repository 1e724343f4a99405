import pytest

from conftest import FakeRunner, add_ebuild
from overlay.commands import first_available
from overlay.ebuilds import EbuildDirectory
from overlay.errors import ManifestError, ManifestToolMissingError
from overlay.manifest import (
    EBUILD,
    PKGDEV,
    REPOMAN,
    UPDATE_CHAIN,
    VERIFY_CHAIN,
    ManifestGenerator,
)


def generator(config, console, runner, **kwargs):
    return ManifestGenerator(EbuildDirectory(config), runner, console, **kwargs)


def test_first_available_respects_order():
    runner = FakeRunner(tools={"repoman", "ebuild"})
    assert first_available(VERIFY_CHAIN, runner) is REPOMAN
    assert first_available((EBUILD, REPOMAN), runner) is EBUILD
    assert first_available(VERIFY_CHAIN, FakeRunner()) is None


def test_verify_prefers_pkgdev(config, console):
    runner = FakeRunner(tools={"pkgdev", "repoman", "ebuild"})
    probe = generator(config, console, runner, chain=VERIFY_CHAIN).generate()
    assert probe is PKGDEV
    assert runner.calls == [["pkgdev", "manifest"]]
    assert runner.cwds == [str(config.package_dir)]


def test_update_chain_skips_pkgdev(config, console):
    runner = FakeRunner(tools={"pkgdev", "repoman", "ebuild"})
    generator(config, console, runner, chain=UPDATE_CHAIN).generate()
    assert runner.calls == [["repoman", "manifest"]]


def test_ebuild_fallback_uses_newest_non_live(config, console):
    add_ebuild(config, "0.5.9")
    runner = FakeRunner(tools={"ebuild"})
    generator(config, console, runner, chain=VERIFY_CHAIN).generate()
    assert runner.calls == [["ebuild", "opencode-0.5.29.ebuild", "manifest"]]


def test_missing_tool_tolerated(config, console, log_stream):
    runner = FakeRunner()
    assert generator(config, console, runner, required=False).generate() is None
    assert runner.calls == []
    assert "No manifest generation tool found" in log_stream.getvalue()


def test_missing_tool_required(config, console):
    with pytest.raises(ManifestToolMissingError) as exc:
        generator(config, console, FakeRunner(), required=True).generate()
    assert exc.value.fatal


@pytest.mark.parametrize("required", [True, False])
def test_tool_failure_is_fatal(config, console, required):
    runner = FakeRunner(tools={"repoman"}, results={("repoman", "manifest"): 1})
    with pytest.raises(ManifestError):
        generator(config, console, runner, required=required).generate()


def test_ebuild_fallback_without_stable_ebuild(config, console, log_stream):
    config.template_path().unlink()
    runner = FakeRunner(tools={"ebuild"})
    assert generator(config, console, runner, chain=VERIFY_CHAIN, required=True).generate() is None
    assert runner.calls == []
    assert "No non-live ebuilds" in log_stream.getvalue()
