"""
Tests for docs_client module
"""
import pytest
import requests
import requests_mock

import docs_client as dc


class TestHelperFunctions:
    """Tests for helper functions"""

    @pytest.mark.unit
    def test_resolve_relative_location(self):
        """Test relative feed locations join onto the root"""
        assert dc.resolve_url("https://docs.example.com/", "agents/") == "https://docs.example.com/agents/"

    @pytest.mark.unit
    def test_resolve_root_without_trailing_slash(self):
        """Test a root missing its trailing slash still acts as a directory"""
        assert dc.resolve_url("https://docs.example.com/adk", "tools/") == "https://docs.example.com/adk/tools/"

    @pytest.mark.unit
    def test_resolve_absolute_passthrough(self):
        """Test absolute URLs are returned unchanged"""
        url = "https://github.com/google/adk-python"
        assert dc.resolve_url("https://docs.example.com/", url) == url

    @pytest.mark.unit
    def test_resolve_fragment(self):
        """Test anchors are kept"""
        result = dc.resolve_url("https://docs.example.com/", "agents/#models")
        assert result == "https://docs.example.com/agents/#models"


class TestFetchRaw:
    """Tests for fetch_raw"""

    @pytest.mark.client
    def test_fetch_raw_success(self):
        """Test the decoded body is returned"""
        with requests_mock.Mocker() as m:
            m.get("https://docs.example.com/agents/", text="<html>ok</html>")

            assert dc.fetch_raw("https://docs.example.com/agents/") == "<html>ok</html>"
            assert m.last_request.headers["User-Agent"] == dc.USER_AGENT

    @pytest.mark.client
    def test_fetch_raw_http_error(self):
        """Test non-2xx responses raise DocsFetchError with the status"""
        with requests_mock.Mocker() as m:
            m.get("https://docs.example.com/missing/", status_code=404, text="Not Found")

            with pytest.raises(dc.DocsFetchError) as exc_info:
                dc.fetch_raw("https://docs.example.com/missing/")

            assert exc_info.value.status_code == 404
            assert "404" in str(exc_info.value)

    @pytest.mark.client
    def test_fetch_raw_transport_error(self):
        """Test connection problems are wrapped too"""
        with requests_mock.Mocker() as m:
            m.get("https://docs.example.com/slow/", exc=requests.exceptions.ConnectTimeout)

            with pytest.raises(dc.DocsFetchError) as exc_info:
                dc.fetch_raw("https://docs.example.com/slow/")

            assert exc_info.value.status_code is None
            assert isinstance(exc_info.value, RuntimeError)


class TestFetchSearchIndex:
    """Tests for fetch_search_index"""

    @pytest.mark.client
    def test_fetch_search_index(self, sample_feed):
        """Test the feed JSON is returned as-is"""
        url = "https://docs.example.com/search/search_index.json"
        with requests_mock.Mocker() as m:
            m.get(url, json=sample_feed)

            assert dc.fetch_search_index(url) == sample_feed

    @pytest.mark.client
    def test_default_url(self):
        """Test the configured feed URL is used by default"""
        with requests_mock.Mocker() as m:
            m.get(dc.SEARCH_INDEX_URL, json={"docs": []})

            assert dc.fetch_search_index() == {"docs": []}

    @pytest.mark.client
    def test_invalid_json(self):
        """Test a non-JSON feed raises DocsFetchError"""
        url = "https://docs.example.com/search/search_index.json"
        with requests_mock.Mocker() as m:
            m.get(url, text="<html>not json</html>")

            with pytest.raises(dc.DocsFetchError):
                dc.fetch_search_index(url)

    @pytest.mark.client
    def test_non_object_json(self):
        """Test a JSON list is rejected"""
        url = "https://docs.example.com/search/search_index.json"
        with requests_mock.Mocker() as m:
            m.get(url, json=[1, 2, 3])

            with pytest.raises(dc.DocsFetchError):
                dc.fetch_search_index(url)


class TestTitleOverrides:
    """Tests for ADK_DOCS_TITLE_OVERRIDES parsing"""

    @pytest.mark.unit
    def test_default_overrides(self, monkeypatch):
        """Test the shipped table is used when unset"""
        monkeypatch.delenv("ADK_DOCS_TITLE_OVERRIDES", raising=False)
        assert dc._load_title_overrides() == dc.DEFAULT_TITLE_OVERRIDES

    @pytest.mark.unit
    def test_env_overrides(self, monkeypatch):
        """Test a JSON object replaces the defaults"""
        monkeypatch.setenv("ADK_DOCS_TITLE_OVERRIDES", '{"Old Page": "new/page/"}')
        assert dc._load_title_overrides() == {"Old Page": "new/page/"}

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["{not json", '["a", "b"]'])
    def test_invalid_overrides(self, monkeypatch, raw):
        """Test malformed configuration fails loudly"""
        monkeypatch.setenv("ADK_DOCS_TITLE_OVERRIDES", raw)
        with pytest.raises(RuntimeError):
            dc._load_title_overrides()
