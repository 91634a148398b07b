"""Tests for the system information report."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

import pytest

from rtdiag.apps import StaticAppRegistry
from rtdiag.dependencies import DependencyDescriptor, StaticDependencySource
from rtdiag.plugins import ClassPluginIndex
from rtdiag.process import StaticProcess
from rtdiag.report import DEFAULT_SECTION_ORDER, SystemInformation
from rtdiag_common.errors import ErrorCode, ManifestReadError, RegistryUnavailableError

Factory = Callable[..., DependencyDescriptor]


class Codec:
    pass


class GzipCodec:
    pass


def _lookup(container: str) -> Mapping[str, str]:
    return {"Implementation-Build": f"build-of-{container}"}


def _broken_lookup(container: str) -> Mapping[str, str]:
    message = f"unreadable {container}"
    raise ManifestReadError(message)


@pytest.fixture
def descriptors(make_descriptor: Factory) -> list[DependencyDescriptor]:
    return [
        make_descriptor("core", "1.0", scm_tag="HEAD", location_path="/libs/core.jar!/pom.xml"),
        make_descriptor("util", "0.5", project_name="Demo Util", scm_tag="v0.5"),
        make_descriptor("core", "2.0", location_path="/libs/core2.jar!/pom.xml"),
    ]


@pytest.fixture
def build(
    descriptors: list[DependencyDescriptor],
    demo_apps: StaticAppRegistry,
    demo_process: StaticProcess,
) -> Callable[..., SystemInformation]:
    def _build(**kwargs: object) -> SystemInformation:
        plugins = ClassPluginIndex()
        plugins.register(Codec, GzipCodec)
        options: dict[str, object] = {"manifest_lookup": _lookup, "path_separator": ":"}
        options.update(kwargs)
        return SystemInformation(
            StaticDependencySource(descriptors),
            plugins,
            demo_apps,
            demo_process,
            **options,  # type: ignore[arg-type]
        )

    return _build


def test_full_report_text(build: Callable[..., SystemInformation]) -> None:
    report = build().run()
    codec = f"{__name__}.Codec"
    gzip = f"{__name__}.GzipCodec"
    assert report.text == (
        "Demo 2.1.0\n"
        "\n-- Application: demo --\n"
        "Title = Demo\n"
        "Version = 2.1.0\n"
        "groupId = org.demo\n"
        "artifactId = demo-app\n"
        "Implementation-Build = abc123\n"
        "[WARNING] Version clash for org.demo:core: 2.0 shadows 1.0\n"
        "\n-- Library: org.demo:core --\n"
        "path = /libs/core.jar!/pom.xml\n"
        "groupId = org.demo\n"
        "artifactId = core\n"
        "version = 1.0\n"
        "source ref = build-of-/libs/core.jar\n"
        "\n-- Library: org.demo:core --\n"
        "path = /libs/core2.jar!/pom.xml\n"
        "groupId = org.demo\n"
        "artifactId = core\n"
        "version = 2.0\n"
        "source ref = build-of-/libs/core2.jar\n"
        "\n-- Library: Demo Util --\n"
        "groupId = org.demo\n"
        "artifactId = util\n"
        "version = 0.5\n"
        "source ref = v0.5\n"
        f"\n-- 1 {codec} plugins --\n"
        f"{gzip}\n"
        "\n-- System properties --\n"
        "python.version = 3.12.1\n"
        "sys.path = {\n\t/a\n\t/b\n}\n"
        "\n-- Environment variables --\n"
        "HOME = /home/demo\n"
        "\n-- Additional miscellany --\n"
        "C compiler = (null)\n"
        "pip installer = /site/pip/__init__.py\n"
    )
    assert report.warnings == ("Version clash for org.demo:core: 2.0 shadows 1.0",)
    assert [s.heading for s in report.sections] == list(DEFAULT_SECTION_ORDER)


def test_report_is_idempotent(build: Callable[..., SystemInformation]) -> None:
    """Unchanged collaborators yield identical text."""
    info = build()
    assert info.run().text == info.run().text


def test_progress_reaches_maximum(
    build: Callable[..., SystemInformation], descriptors: list[DependencyDescriptor]
) -> None:
    """Progress is monotonic with max = 10 + descriptor count, ending at max."""
    calls: list[tuple[int, int]] = []
    build().run(progress=lambda current, maximum: calls.append((current, maximum)))
    expected_max = 10 + len(descriptors)
    assert {maximum for _, maximum in calls} == {expected_max}
    assert [current for current, _ in calls] == list(range(1, expected_max + 1))


def test_failing_progress_callback_is_ignored(
    build: Callable[..., SystemInformation], caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG, logger="rtdiag.report")
    info = build()

    def explode(current: int, maximum: int) -> None:
        message = f"observer failed at {current}/{maximum}"
        raise RuntimeError(message)

    assert info.run(progress=explode).text == info.run().text
    failures = [r for r in caplog.records if r.getMessage() == "Progress callback failed"]
    assert failures
    assert all(r.levelno == logging.DEBUG for r in failures)


def test_manifest_failure_omits_source_ref(
    build: Callable[..., SystemInformation], caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG, logger="rtdiag.source_refs")
    report = build(manifest_lookup=_broken_lookup).run()
    body = report.section("dependencies")
    assert body is not None
    assert body.body.count("source ref = ") == 1
    assert "source ref = v0.5\n" in body.body
    debug = [r for r in caplog.records if r.name == "rtdiag.source_refs"]
    assert len(debug) == 2
    assert all(r.levelno == logging.DEBUG for r in debug)


def test_section_subset(build: Callable[..., SystemInformation]) -> None:
    calls: list[tuple[int, int]] = []
    report = build(section_order=("miscellany", "banner")).run(
        progress=lambda current, maximum: calls.append((current, maximum))
    )
    assert report.text == (
        "\n-- Additional miscellany --\n"
        "C compiler = (null)\n"
        "pip installer = /site/pip/__init__.py\n"
        "Demo 2.1.0\n"
    )
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_unknown_section(build: Callable[..., SystemInformation]) -> None:
    with pytest.raises(ValueError, match="Unknown report sections: footer"):
        build(section_order=("banner", "footer"))


def test_missing_collaborator(demo_apps: StaticAppRegistry, demo_process: StaticProcess) -> None:
    with pytest.raises(RegistryUnavailableError) as excinfo:
        SystemInformation(
            StaticDependencySource([]),
            None,  # type: ignore[arg-type]
            demo_apps,
            demo_process,
        )
    assert excinfo.value.code is ErrorCode.REGISTRY_UNAVAILABLE
    assert excinfo.value.context == {"collaborator": "plugins"}


def test_json_payload(build: Callable[..., SystemInformation]) -> None:
    payload = build().run().to_dict()
    assert [s["heading"] for s in payload["sections"]] == list(DEFAULT_SECTION_ORDER)
    assert payload["warnings"] == ["Version clash for org.demo:core: 2.0 shadows 1.0"]


def test_library_block_omits_absent_fields(
    build: Callable[..., SystemInformation], make_descriptor: Factory
) -> None:
    block = build().library_block(
        make_descriptor(
            "web",
            None,
            project_url="https://demo.org",
            inception_year="2009",
            organization_name="Demo",
            organization_url="https://demo.org/org",
            scm_connection="scm:git:https://demo.org/web.git",
        )
    )
    assert block == (
        "\n-- Library: org.demo:web --\n"
        "groupId = org.demo\n"
        "artifactId = web\n"
        "project URL = https://demo.org\n"
        "inception year = 2009\n"
        "organization name = Demo\n"
        "organization URL = https://demo.org/org\n"
        "scm = scm:git:https://demo.org/web.git\n"
    )


def test_run_binds_correlation_id(
    build: Callable[..., SystemInformation], caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger="rtdiag.report")
    build().run()
    records = [r for r in caplog.records if r.name == "rtdiag.report"]
    assert [r.status for r in records] == ["started", "success"]
    assert records[0].correlation_id == records[1].correlation_id
    assert records[1].clash_count == 1
