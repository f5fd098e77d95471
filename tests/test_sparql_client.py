from __future__ import annotations

import requests
from rdflib import Graph, Literal, URIRef

from portal_web.sparql.client import configure_session, execute_sparql, query_graph
from portal_web.sparql.queries import string_literal, string_values

PAYLOAD = {
    "head": {"vars": ["profileId", "studyId"]},
    "results": {
        "bindings": [
            {
                "profileId": {"type": "literal", "value": "P1"},
                "studyId": {"type": "literal", "value": "study1"},
            }
        ]
    },
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


class FakeSession:
    def __init__(self, post=None, get=None):
        self._post = post
        self._get = get
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append("POST")
        if isinstance(self._post, Exception):
            raise self._post
        return self._post

    def get(self, url, **kwargs):
        self.calls.append("GET")
        if isinstance(self._get, Exception):
            raise self._get
        return self._get


def test_post_results_are_parsed():
    session = FakeSession(post=FakeResponse(payload=PAYLOAD))
    result = execute_sparql("http://portal.test/sparql", "SELECT * {}", session=session)
    assert result.status == "ok"
    assert result.variables == ["profileId", "studyId"]
    assert result.rows == [{"profileId": "P1", "studyId": "study1"}]
    assert result.row_count == 1
    assert session.calls == ["POST"]


def test_failed_post_falls_back_to_get():
    session = FakeSession(
        post=requests.ConnectionError("refused"),
        get=FakeResponse(payload=PAYLOAD),
    )
    result = execute_sparql("http://portal.test/sparql", "SELECT * {}", session=session)
    assert result.status == "ok"
    assert session.calls == ["POST", "GET"]


def test_http_errors_are_reported_on_the_result():
    session = FakeSession(
        post=FakeResponse(status_code=500, text="boom"),
        get=FakeResponse(status_code=503, text="unavailable"),
    )
    result = execute_sparql("http://portal.test/sparql", "SELECT * {}", session=session)
    assert result.status == "error"
    assert result.error.startswith("HTTP 503")
    assert result.rows == []


def test_non_json_response():
    session = FakeSession(get=FakeResponse(payload=None))
    result = execute_sparql(
        "http://portal.test/sparql", "SELECT * {}", method_preference="GET", session=session
    )
    assert result.status == "error"
    assert session.calls == ["GET"]


def test_query_graph_skips_unbound_values():
    graph = Graph()
    subject = URIRef("https://w3id.org/portal-data/profile/P1")
    graph.add((subject, URIRef("https://w3id.org/portal-data/profileId"), Literal("P1")))
    result = query_graph(
        graph,
        "SELECT ?id ?missing WHERE { ?s <https://w3id.org/portal-data/profileId> ?id "
        "OPTIONAL { ?s <https://w3id.org/portal-data/nothing> ?missing } }",
    )
    assert result.status == "ok"
    assert result.rows == [{"id": "P1"}]


def test_query_graph_reports_syntax_errors():
    result = query_graph(Graph(), "SELECT WHERE {", label="local")
    assert result.status == "error"
    assert result.endpoint_url == "local"


def test_session_mounts_retrying_adapters():
    session = configure_session(retries=2)
    adapter = session.get_adapter("https://portal.test/sparql")
    assert adapter.max_retries.total == 2


def test_literals_are_escaped():
    assert string_literal('say "hi"\n') == '"say \\"hi\\"\\n"'
    assert string_values(["a", "b"]) == '"a" "b"'
