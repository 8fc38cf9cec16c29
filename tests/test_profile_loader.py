"""Tests for server profile loading."""
import pytest

from kanto.config.loader import ProfileLoader
from kanto.core.errors import MalformedInputError, MissingArtifactError
from kanto.models.profile import ServerProfile

from tests.conftest import lugia_profile, write_profile


class TestProfileLoader:
    """Test loading configs/servers/<server>.yml."""

    def test_load_valid_profile(self, project):
        """Valid profile becomes a typed ServerProfile."""
        profile = ProfileLoader(project).load('lugia')

        assert isinstance(profile, ServerProfile)
        assert profile.name == 'lugia'
        assert profile.domain == 'example.com'
        assert profile.server.internal_domain == 'lugia.local'
        assert profile.tunnel_name == 'lugia-tunnel'
        assert profile.enabled_stacks == ['00-bifrost', '05-fortress']
        assert profile.environment['PUID'] == '1000'
        assert profile.puid == 1000

    def test_network_names(self, project):
        profile = ProfileLoader(project).load('lugia')
        assert profile.network_names == ('lugia-network', 'lugia-proxy')

    def test_available_servers(self, project, tmp_path):
        write_profile(project, 'zapdos', lugia_profile(tmp_path))
        assert ProfileLoader(project).available_servers() == ['lugia', 'zapdos']

    def test_missing_profile(self, project):
        """Missing profile names the path and lists available servers."""
        with pytest.raises(MissingArtifactError) as exc_info:
            ProfileLoader(project).load('mewtwo')

        assert "mewtwo.yml" in exc_info.value.message
        assert "lugia" in exc_info.value.remediation

    def test_invalid_yaml(self, config):
        write_profile(config, 'broken', "server: [unclosed\n")

        with pytest.raises(MalformedInputError) as exc_info:
            ProfileLoader(config).load('broken')

        assert "Invalid YAML syntax" in exc_info.value.message

    def test_empty_profile(self, config):
        write_profile(config, 'empty', "")

        with pytest.raises(MalformedInputError):
            ProfileLoader(config).load('empty')

    def test_structure_errors_reported_together(self, config, tmp_path):
        data = lugia_profile(tmp_path)
        del data['cloudflare']
        del data['server']['domain']
        write_profile(config, 'lugia', data)

        with pytest.raises(MalformedInputError) as exc_info:
            ProfileLoader(config).load('lugia')

        assert "Missing section: cloudflare" in exc_info.value.issues
        assert "Missing field: server.domain" in exc_info.value.issues
        assert exc_info.value.remediation == "kanto validate lugia"


class TestServerProfile:
    """Test profile model helpers."""

    def test_with_domain_returns_copy(self, project):
        profile = ProfileLoader(project).load('lugia')
        overridden = profile.with_domain('other.org')

        assert overridden.domain == 'other.org'
        assert profile.domain == 'example.com'

    def test_with_domain_none_is_noop(self, project):
        profile = ProfileLoader(project).load('lugia')
        assert profile.with_domain(None) is profile

    def test_external_service_urls(self, project):
        profile = ProfileLoader(project).load('lugia')
        assert profile.external_service_urls() == [
            'grafana-lugia.example.com',
            'portainer-lugia.example.com',
        ]

    def test_boolean_environment_values(self, tmp_path):
        data = lugia_profile(tmp_path)
        data['environment']['ENABLE_TLS'] = True
        profile = ServerProfile.from_dict(data)

        assert profile.environment['ENABLE_TLS'] == 'true'

    def test_media_base_is_optional(self, tmp_path):
        data = lugia_profile(tmp_path)
        profile = ServerProfile.from_dict(data)
        assert profile.volumes.media_base is None
        assert len(profile.volumes.directories()) == 3

        data['volumes']['media_base'] = str(tmp_path / 'media')
        profile = ServerProfile.from_dict(data)
        assert profile.volumes.directories()[-1] == str(tmp_path / 'media')
