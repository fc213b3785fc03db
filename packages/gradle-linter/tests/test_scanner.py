import pytest
from gradle_linter.engine import MAX_FINDINGS_PER_RULE, ProjectScanner
from gradle_linter.errors import InvalidProjectError
from gradle_linter.models import Severity
from gradle_linter.registry import RuleRegistry


def make_project(root, files):
    for rel_path, text in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(text, bytes):
            path.write_bytes(text)
        else:
            path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture(scope="module")
def registry():
    return RuleRegistry()


def scanner_for(registry, *rule_ids, **kwargs):
    rules = [registry.get(r) for r in rule_ids] if rule_ids else None
    return ProjectScanner(registry, rules=rules, **kwargs)


def test_legacy_compile_configuration(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "build.gradle": "plugins {\n    id 'java'\n}\n\n"
            "dependencies {\n    compile 'org.example:lib:1.0'\n}\n",
        },
    )
    report = scanner_for(registry, "DEPRECATED_CONFIGURATIONS").scan(tmp_path)

    assert len(report.findings) == 1
    finding = report.findings[0]
    assert finding.rule_id == "DEPRECATED_CONFIGURATIONS"
    assert finding.severity == Severity.CRITICAL
    assert finding.matched_text == "compile"
    assert finding.suggested_fix == "implementation 'org.example:lib:1.0'"
    assert finding.line_number == 6
    assert finding.auto_fixable is True
    assert "'compile'" in finding.explanation


def test_line_numbers(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "build.gradle": "apply plugin: 'java'\n\n"
            "task hello << {\n    println 'Hello'\n}\n"
            "\n\n\ndef f = jar.getArchivePath()\n",
        },
    )
    report = ProjectScanner(registry).scan(tmp_path)
    lines = {f.rule_id: f.line_number for f in report.findings}

    assert lines["TASK_LEFTSHIFT"] == 3
    assert lines["DEPRECATED_METHODS"] == 9


def test_line_numbers_with_crlf(tmp_path, registry):
    make_project(tmp_path, {"build.gradle": b"repositories {}\r\n\r\ncompile 'a:b:1'\r\n"})
    report = scanner_for(registry, "DEPRECATED_CONFIGURATIONS").scan(tmp_path)
    assert [f.line_number for f in report.findings] == [3]


def test_module_attribution(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "settings.gradle": "include 'moduleA', 'moduleB'\n",
            "build.gradle": "dependencies {\n    compile 'root:dep:1'\n}\n",
            "moduleA/build.gradle": "dependencies {\n    compile 'a:dep:1'\n}\n",
            "moduleB/gradle/deps.gradle": "dependencies {\n    compile 'b:dep:1'\n}\n",
        },
    )
    report = scanner_for(registry, "DEPRECATED_CONFIGURATIONS").scan(tmp_path)
    modules = {f.file_path.relative_to(tmp_path).as_posix(): f.affected_modules for f in report.findings}

    assert report.multi_module is True
    assert report.modules == ["moduleA", "moduleB"]
    assert modules["build.gradle"] == {"root"}
    assert modules["moduleA/build.gradle"] == {"moduleA"}
    assert modules["moduleB/gradle/deps.gradle"] == {"moduleB"}


def test_single_module_project_metadata(tmp_path, registry):
    make_project(tmp_path, {"build.gradle": "apply plugin: 'java'\n"})
    report = ProjectScanner(registry).scan(tmp_path)

    assert report.project_name == tmp_path.name
    assert report.project_path == tmp_path
    assert report.multi_module is False
    assert report.modules == []
    assert report.gradle_version == "unknown"
    assert report.findings == []


def test_wrapper_version_detected_and_flagged(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "build.gradle": "apply plugin: 'java'\n",
            "gradle/wrapper/gradle-wrapper.properties": "distributionBase=GRADLE_USER_HOME\n"
            "distributionUrl=https\\://services.gradle.org/distributions/gradle-7.6.1-bin.zip\n",
        },
    )
    report = ProjectScanner(registry).scan(tmp_path)

    assert report.gradle_version == "7.6.1"
    wrapper = [f for f in report.findings if f.rule_id == "GRADLE_VERSION"]
    assert len(wrapper) == 1
    assert wrapper[0].line_number == 2
    assert wrapper[0].suggested_fix.endswith("gradle-9.0.0-bin.zip")


def test_excluded_and_unrelated_files_are_not_scanned(tmp_path, registry):
    legacy = "dependencies {\n    compile 'x:y:1'\n}\n"
    make_project(
        tmp_path,
        {
            "build.gradle": "apply plugin: 'java'\n",
            "build/generated.gradle": legacy,
            "app/build/tmp/other.gradle": legacy,
            ".gradle/8.5/init.gradle": legacy,
            "notes.txt": legacy,
            "app/build.gradle.kts": legacy,
        },
    )
    report = scanner_for(registry, "DEPRECATED_CONFIGURATIONS").scan(tmp_path)

    scanned = {f.file_path.relative_to(tmp_path).as_posix() for f in report.findings}
    assert scanned == {"app/build.gradle.kts"}


def test_extra_exclude_dirs(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "build.gradle": "apply plugin: 'java'\n",
            "vendor/lib.gradle": "compile 'x:y:1'\n",
        },
    )
    scanner = scanner_for(registry, "DEPRECATED_CONFIGURATIONS", exclude_dirs={"build", ".gradle", "vendor"})
    assert scanner.scan(tmp_path).findings == []


def test_not_a_gradle_project(tmp_path, registry):
    (tmp_path / "README.md").write_text("hello")
    with pytest.raises(InvalidProjectError):
        ProjectScanner(registry).scan(tmp_path)


def test_findings_capped_per_rule_per_file(tmp_path, registry):
    make_project(tmp_path, {"build.gradle": "compile 'a:b:1'\n" * 150})
    report = scanner_for(registry, "DEPRECATED_CONFIGURATIONS").scan(tmp_path)
    assert len(report.findings) == MAX_FINDINGS_PER_RULE


def test_unreadable_file_is_skipped(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "build.gradle": "compile 'a:b:1'\n",
            "broken/build.gradle": b"\xff\xfe compile 'a:b:1'\n",
        },
    )
    report = scanner_for(registry, "DEPRECATED_CONFIGURATIONS").scan(tmp_path)

    assert report.skipped_files == [tmp_path / "broken" / "build.gradle"]
    assert [f.file_path for f in report.findings] == [tmp_path / "build.gradle"]


def test_overlapping_rules_both_report(tmp_path, registry):
    make_project(tmp_path, {"build.gradle": "dependencies {\n    compile ('a:b:1')\n}\n"})
    report = ProjectScanner(registry).scan(tmp_path)

    on_line_2 = {f.rule_id for f in report.findings if f.line_number == 2}
    # Order between the two findings is unspecified
    assert on_line_2 == {"DEPRECATED_CONFIGURATIONS", "DEPRECATED_DEPENDENCY_CONFIG"}


def test_findings_copy_rule_metadata(tmp_path, registry):
    make_project(tmp_path, {"build.gradle": "ext['a'] = 1\next['b'] = 2\n"})
    report = scanner_for(registry, "DYNAMIC_PROPERTIES").scan(tmp_path)
    rule = registry.get("DYNAMIC_PROPERTIES")

    assert len(report.findings) == 2
    assert len({f.id for f in report.findings}) == 2
    for finding in report.findings:
        assert finding.title == rule.title
        assert finding.description == rule.description
        assert finding.severity == rule.severity
        assert finding.auto_fixable is False


def test_report_counts_follow_findings(tmp_path, registry):
    make_project(
        tmp_path,
        {
            "build.gradle": "compile 'a:b:1'\next['x'] = 1\ndef f = jar.getArchivePath()\n",
        },
    )
    report = ProjectScanner(registry).scan(tmp_path)

    assert report.total_findings == 3
    assert report.critical_findings == 1
    assert report.auto_fixable_findings == 2

    critical = [f.id for f in report.findings if f.severity == Severity.CRITICAL]
    assert report.remove_findings(critical) == 1
    assert report.total_findings == 2
    assert report.critical_findings == 0
    assert report.auto_fixable_findings == 1


def test_parallel_scan_is_deterministic(tmp_path, registry):
    files = {"settings.gradle": "include 'm0', 'm1', 'm2', 'm3', 'm4'\n"}
    for i in range(5):
        files[f"m{i}/build.gradle"] = (
            "dependencies {\n    compile 'a:b:1'\n    testCompile('c:d:2')\n}\n"
            "def f = jar.getArchivePath()\n"
        )
    make_project(tmp_path, files)

    def signature(report):
        return [(f.file_path, f.line_number, f.rule_id) for f in report.findings]

    sequential = ProjectScanner(registry).scan(tmp_path)
    parallel = ProjectScanner(registry, workers=4).scan(tmp_path)

    assert signature(parallel) == signature(sequential)
    paths = [f.file_path for f in sequential.findings]
    assert paths == sorted(paths)
