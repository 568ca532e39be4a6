import httpx
import pytest
from fastapi.testclient import TestClient

from code_finder import main
from code_finder.config import Settings
from code_finder.datasources.github_adapter import GitHubAdapter
from code_finder.errors import UpstreamAuthError, UpstreamRateLimited
from code_finder.main import app, get_pipeline
from code_finder.services.pipeline import SearchPipeline

from conftest import FakeGitHub, make_hit, make_metadata

SNIPPET = "def quicksort(items):\n    return items\n"


@pytest.fixture
def client_for():
    def make(provider, settings=None):
        settings = settings or Settings(GITHUB_TOKEN="test-token", FETCH_CONCURRENCY=1)
        app.dependency_overrides[get_pipeline] = lambda: SearchPipeline(provider, provider, provider, settings)
        return TestClient(app, raise_server_exceptions=False)

    yield make
    app.dependency_overrides.clear()


def sample_github():
    repos = ["octo/small", "octo/big", "octo/mid"]
    stars = {"octo/small": 5, "octo/big": 5000, "octo/mid": 200}
    return FakeGitHub(
        hits=[make_hit(repo, "src/qs.py") for repo in repos],
        metadata={repo: make_metadata(stars=stars[repo]) for repo in repos},
        contents={(repo, "src/qs.py", "main"): SNIPPET for repo in repos},
    )


def test_health():
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_search_returns_ranked_results(client_for):
    fake = sample_github()
    resp = client_for(fake).post("/search", json={"query": "quicksort", "language": "python", "min_stars": 10})

    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [r["repo_name"] for r in results] == ["octo/big", "octo/mid"]
    assert set(results[0]) == {
        "repo_name",
        "repo_url",
        "file_path",
        "file_url",
        "code_snippet",
        "stars",
        "last_updated",
        "language",
        "match_score",
    }
    assert results[0]["language"] == "python"
    assert results[0]["match_score"] >= results[1]["match_score"]
    assert fake.search_calls[0]["query"] == "quicksort language:python"


def test_search_respects_max_results(client_for):
    resp = client_for(sample_github()).post("/search", json={"query": "quicksort", "max_results": 1})
    assert resp.status_code == 200
    assert len(resp.json()["results"]) == 1


def test_search_with_no_hits_is_not_an_error(client_for):
    resp = client_for(FakeGitHub(hits=[])).post("/search", json={"query": "nothing matches this"})
    assert resp.status_code == 200
    assert resp.json() == {"results": []}


def test_missing_query_is_rejected(client_for):
    resp = client_for(FakeGitHub()).post("/search", json={"language": "python"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Query parameter is required"}


@pytest.mark.parametrize("payload", [{"query": ""}, {"query": "   "}, {"query": 42}])
def test_blank_query_is_rejected(client_for, payload):
    resp = client_for(FakeGitHub()).post("/search", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Query parameter is required"


@pytest.mark.parametrize("content", ["{not json", "", '["query"]'])
def test_malformed_body_is_rejected(client_for, content):
    resp = client_for(FakeGitHub()).post(
        "/search", content=content, headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_non_numeric_options_use_defaults(client_for):
    fake = FakeGitHub()
    resp = client_for(fake).post(
        "/search", json={"query": "quicksort", "max_results": "lots", "min_stars": None, "context_lines": "x"}
    )
    assert resp.status_code == 200
    assert fake.search_calls[0]["per_page"] == 20


def test_missing_token_is_401(client_for):
    def handler(request):
        raise AssertionError("no request should be sent without a token")

    github = GitHubAdapter(Settings(GITHUB_TOKEN=None), transport=httpx.MockTransport(handler))
    resp = client_for(github).post("/search", json={"query": "quicksort"})

    assert resp.status_code == 401
    assert resp.json()["error"] == "GitHub token not configured"


def test_upstream_auth_error_is_401(client_for):
    resp = client_for(FakeGitHub(search_error=UpstreamAuthError(details="Bad credentials"))).post(
        "/search", json={"query": "quicksort"}
    )
    assert resp.status_code == 401
    assert resp.json() == {"error": "GitHub API authentication failed", "details": "Bad credentials"}


def test_rate_limit_is_429(client_for):
    resp = client_for(FakeGitHub(search_error=UpstreamRateLimited())).post("/search", json={"query": "quicksort"})
    assert resp.status_code == 429
    assert "try again later" in resp.json()["error"]


def test_unexpected_error_is_500(client_for, monkeypatch):
    monkeypatch.setattr(main, "settings", Settings(ENVIRONMENT="development"))
    resp = client_for(FakeGitHub(search_error=KeyError("items"))).post("/search", json={"query": "quicksort"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Internal Server Error"
    assert "KeyError" in resp.json()["details"]


def test_unexpected_error_hides_details_in_production(client_for, monkeypatch):
    monkeypatch.setattr(main, "settings", Settings(ENVIRONMENT="production"))
    resp = client_for(FakeGitHub(search_error=KeyError("items"))).post("/search", json={"query": "quicksort"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}


def test_export_returns_text_report(client_for):
    client = client_for(sample_github())
    results = client.post("/search", json={"query": "quicksort", "min_stars": 100}).json()["results"]

    resp = client.post("/export", json={"results": results})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert 'filename="github-code-search-results.txt"' in resp.headers["content-disposition"]
    assert resp.text.startswith("GitHub Code Search Results\n")
    assert "[Repository: octo/big] (5000⭐)" in resp.text
    assert "Result #2" in resp.text


def test_export_requires_results(client_for):
    client = client_for(FakeGitHub())
    resp = client.post("/export", json={"results": []})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No results to export"}

    resp = client.post("/export", json={"results": [{"repo_name": "octo/x"}]})
    assert resp.status_code == 400
