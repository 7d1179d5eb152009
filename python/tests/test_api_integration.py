"""Integration tests for the depot API client."""

import pytest
import requests
from unittest.mock import Mock, patch

from crossdep.api_client import DepotClient
from crossdep.config import Settings
from crossdep.exceptions import NotFound, ProviderUnavailable
from crossdep.models import ProjectVersion


def _response(status_code=200, payload=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


class TestDepotClientIntegration:
    """Integration tests for DepotClient against a mocked session."""

    @patch('crossdep.ssl_config.requests.Session')
    def test_dependencies_url_and_parsing(self, mock_session_class):
        mock_session = Mock()
        mock_session.headers = {}
        mock_session.get.return_value = _response(payload=[
            {"groupId": "com.acme", "artifactId": "util", "versionId": "2.0"},
            {"groupId": "com.acme", "artifactId": "base", "versionId": "1.0"},
        ])
        mock_session_class.return_value = mock_session

        client = DepotClient(Settings(depot_url="https://depot.example.com/depot/"))
        result = client.get_dependencies(ProjectVersion.parse("com.acme:core:1.0"), transitive=True)

        mock_session.get.assert_called_once()
        url = mock_session.get.call_args[0][0]
        kwargs = mock_session.get.call_args[1]
        assert url == "https://depot.example.com/depot/api/projects/com.acme/core/versions/1.0/projectDependencies"
        assert kwargs["params"] == {"transitive": "true"}
        assert kwargs["timeout"] == 30
        assert result == {ProjectVersion.parse("com.acme:util:2.0"), ProjectVersion.parse("com.acme:base:1.0")}

    @patch('crossdep.ssl_config.requests.Session')
    def test_session_headers(self, mock_session_class):
        mock_session = Mock()
        mock_session.headers = {}
        mock_session_class.return_value = mock_session

        DepotClient(Settings(user_agent="crossdep/test"))

        assert mock_session.headers["Accept"] == "application/json"
        assert mock_session.headers["User-Agent"] == "crossdep/test"
        assert mock_session.mount.call_count == 2

    def test_entities(self):
        session = Mock()
        session.get.return_value = _response(payload=[
            {"path": "core::Core", "classifierPath": "meta::pure::metamodel::type::Class", "content": {"a": 1}},
        ])
        client = DepotClient(Settings(depot_url="http://depot"), session=session)

        entities = client.get_entities(ProjectVersion.parse("com.acme:core:1.0"))

        assert session.get.call_args[0][0] == "http://depot/api/projects/com.acme/core/versions/1.0"
        assert [e.path for e in entities] == ["core::Core"]
        assert entities[0].content == {"a": 1}

    def test_coordinates_are_url_encoded(self):
        session = Mock()
        session.get.return_value = _response(payload=[])
        client = DepotClient(Settings(depot_url="http://depot"), session=session)

        client.get_entities(ProjectVersion.parse("com.acme:my artifact:1.0/rc"))

        url = session.get.call_args[0][0]
        assert "my%20artifact" in url
        assert "1.0%2Frc" in url

    def test_404_is_not_found(self):
        session = Mock()
        session.get.return_value = _response(status_code=404)
        client = DepotClient(session=session)
        version = ProjectVersion.parse("com.acme:core:9.9")

        with pytest.raises(NotFound) as excinfo:
            client.get_dependencies(version)
        assert excinfo.value.coordinate == version

    def test_server_error_is_unavailable(self):
        session = Mock()
        session.get.return_value = _response(status_code=503)
        client = DepotClient(Settings(depot_url="http://depot"), session=session)

        with pytest.raises(ProviderUnavailable) as excinfo:
            client.get_entities(ProjectVersion.parse("com.acme:core:1.0"))
        assert "HTTP 503" in str(excinfo.value)
        assert excinfo.value.server_url == "http://depot"

    def test_transport_error_is_unavailable(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("refused")
        client = DepotClient(session=session)

        with pytest.raises(ProviderUnavailable) as excinfo:
            client.get_dependencies(ProjectVersion.parse("com.acme:core:1.0"))
        assert isinstance(excinfo.value.__cause__, requests.ConnectionError)

    def test_invalid_json_is_unavailable(self):
        session = Mock()
        session.get.return_value = _response(json_error=ValueError("Expecting value"))
        client = DepotClient(session=session)

        with pytest.raises(ProviderUnavailable):
            client.get_dependencies(ProjectVersion.parse("com.acme:core:1.0"))

    def test_malformed_dependency_entry_is_unavailable(self):
        session = Mock()
        session.get.return_value = _response(payload=[{"groupId": "com.acme", "versionId": "1"}])
        client = DepotClient(session=session)

        with pytest.raises(ProviderUnavailable):
            client.get_dependencies(ProjectVersion.parse("com.acme:core:1.0"))

    def test_context_manager_closes_session(self):
        session = Mock()
        with DepotClient(session=session):
            pass
        session.close.assert_called_once()
