import pytest

from realm_operator.keycloak.settings import KeycloakServersConfig, KeycloakSettings


def test_from_yaml_resolves_env(tmp_path, monkeypatch):
    monkeypatch.setenv("KC_PASSWORD", "hunter2")
    monkeypatch.delenv("KC_SECRET", raising=False)
    path = tmp_path / "keycloaks.yaml"
    path.write_text(
        """
keycloaks:
  - name: default
    base_url: http://keycloak:8080/
    admin_user: admin
    admin_password: ${KC_PASSWORD}
  - name: staging
    base_url: https://kc.staging
    admin_client_id: realm-operator
    admin_client_secret: ${KC_SECRET:-fallback}
"""
    )

    config = KeycloakServersConfig.from_yaml(path)

    servers = {s.name: s for s in config.keycloaks}
    default = servers["default"]
    assert default.admin_password == "hunter2"
    assert default.token_url == "http://keycloak:8080/realms/master/protocol/openid-connect/token"
    assert default.admin_url == "http://keycloak:8080/admin/realms"
    assert default.has_admin_credentials
    assert not default.has_client_credentials

    staging = servers["staging"]
    assert staging.admin_client_secret == "fallback"
    assert staging.has_client_credentials
    assert set(servers) == {"default", "staging"}


def test_missing_file_means_no_servers(tmp_path):
    config = KeycloakServersConfig.from_yaml(tmp_path / "nope.yaml")

    assert config.keycloaks == []


def test_empty_file_means_no_servers(tmp_path):
    path = tmp_path / "keycloaks.yaml"
    path.write_text("")

    assert KeycloakServersConfig.from_yaml(path).keycloaks == []


def test_non_mapping_is_rejected(tmp_path):
    path = tmp_path / "keycloaks.yaml"
    path.write_text("- name: default\n")

    with pytest.raises(ValueError, match="YAML mapping"):
        KeycloakServersConfig.from_yaml(path)


def test_duplicate_names_are_rejected():
    with pytest.raises(ValueError, match="Duplicate Keycloak name"):
        KeycloakServersConfig(
            keycloaks=[KeycloakSettings(name="a"), KeycloakSettings(name="a")]
        )
