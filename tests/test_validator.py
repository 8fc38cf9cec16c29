"""Tests for the aggregated pre-deployment validator."""
import pytest

from kanto.core.validator import ALL_CHECKS, PROFILE_CHECKS, Validator
from kanto.models.report import Severity

from tests.conftest import FakeDocker, lugia_profile, write_profile


def _which_all(binary):
    return f"/usr/bin/{binary}"


@pytest.fixture
def make_validator(store):
    def _make(config, docker=None, which=_which_all):
        return Validator(config, docker=docker or FakeDocker(), store=store, which=which)
    return _make


class TestValidator:
    """Validator runs every check and aggregates failures."""

    def test_clean_project_passes(self, project, make_validator, encrypted_secrets):
        encrypted_secrets()

        report = make_validator(project).validate('lugia')

        assert report.ok
        assert list(report.checks) == list(ALL_CHECKS)
        assert set(report.checks.values()) == {"passed"}

    def test_three_defects_reported_in_one_run(self, project, make_validator, tmp_path):
        """Missing stack, bad domain, and missing ciphertext all surface together."""
        data = lugia_profile(tmp_path / "volumes")
        data['server']['domain'] = 'bad_domain'
        data['stacks']['enabled'].append('99-missing')
        write_profile(project, 'lugia', data)

        report = make_validator(project).validate('lugia')

        assert not report.ok
        messages = report.messages(Severity.ERROR)
        assert "Invalid domain format: bad_domain" in messages
        assert "Stack directory not found: 99-missing" in messages
        assert any("No encrypted secrets found" in m for m in messages)
        assert report.checks['domains'] == "failed"
        assert report.checks['stacks'] == "failed"
        assert report.checks['secrets'] == "failed"

    def test_missing_fields_and_bad_domain_reported_together(self, project, make_validator, tmp_path):
        data = lugia_profile(tmp_path / "volumes")
        del data['server']['type']
        del data['environment']['TZ']
        data['server']['domain'] = '-nope-'
        write_profile(project, 'lugia', data)

        report = make_validator(project).validate('lugia', checks=PROFILE_CHECKS)

        assert report.messages(Severity.ERROR) == [
            "Missing field: server.type",
            "Missing field: environment.TZ",
            "Invalid domain format: -nope-",
        ]

    def test_missing_dependencies(self, project, make_validator, encrypted_secrets):
        encrypted_secrets()

        def which(binary):
            return None if binary.startswith("age") else f"/usr/bin/{binary}"

        report = make_validator(project, which=which).validate('lugia')

        assert report.checks['dependencies'] == "failed"
        missing = [i for i in report.errors if i.check == 'dependencies']
        assert [i.message for i in missing] == [
            "Missing dependency: age",
            "Missing dependency: age-keygen",
        ]
        assert "apt install age" in missing[0].remediation

    def test_docker_daemon_down(self, project, make_validator, encrypted_secrets):
        encrypted_secrets()

        report = make_validator(project, docker=FakeDocker(daemon_up=False)).validate('lugia')

        assert report.checks['docker'] == "failed"
        assert "Docker daemon is not running" in report.messages()

    def test_undecryptable_secrets(self, project, make_validator, store):
        encrypted = store.encrypted_path('lugia')
        encrypted.parent.mkdir(parents=True, exist_ok=True)
        encrypted.write_text("garbage")

        report = make_validator(project).validate('lugia')

        assert report.checks['secrets'] == "failed"
        assert any("Cannot decrypt" in m for m in report.messages(Severity.ERROR))

    def test_missing_profile_skips_dependent_checks(self, config, make_validator):
        report = make_validator(config).validate('ghost')

        assert report.checks['yaml'] == "failed"
        for check in ('structure', 'stacks', 'domains', 'volumes'):
            assert report.checks[check] == "skipped"

    def test_invalid_yaml_does_not_crash_summary(self, config, make_validator):
        write_profile(config, 'lugia', "- just\n- a list\n")

        report = make_validator(config).validate('lugia', checks=PROFILE_CHECKS)

        assert not report.ok
        assert report.summary == {}

    def test_profile_checks_subset(self, project, make_validator):
        docker = FakeDocker()
        report = make_validator(project, docker=docker).validate('lugia', checks=PROFILE_CHECKS)

        assert list(report.checks) == list(PROFILE_CHECKS)
        assert docker.calls == []

    def test_summary(self, project, make_validator):
        report = make_validator(project).validate('lugia', checks=PROFILE_CHECKS)

        assert report.summary['server'] == "lugia (homelab)"
        assert report.summary['domain'] == "example.com"
        assert report.summary['enabled_stacks'] == ['00-bifrost', '05-fortress']
        assert report.summary['external_services'] == [
            'grafana-lugia.example.com',
            'portainer-lugia.example.com',
        ]

    def test_validation_never_writes(self, project, make_validator, encrypted_secrets):
        encrypted_secrets()
        before = sorted(p for p in project.project_dir.rglob('*'))

        make_validator(project).validate('lugia')

        assert sorted(p for p in project.project_dir.rglob('*')) == before
