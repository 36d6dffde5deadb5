"""Test aggregation of per-file CFGs into the repository security flow."""

import json

import pytest

from casesmith.analysis.cfg import SimpleCfg
from casesmith.analysis.extractor import extract_cfgs_from_code
from casesmith.analysis.security_flow import (
    SecEdge,
    SecIndex,
    SecurityFlow,
    derive_edge_kind,
    is_sensitive,
    to_security_flow,
)
from casesmith.analysis.tags import USER_ENTRY_LABEL, EdgeKind


def _cfg(*labels: str) -> SimpleCfg:
    """Linear CFG Entry -> labels... -> Exit."""
    nodes = ["Entry", "Exit", *labels]
    indices = [0, *range(2, len(nodes)), 1]
    edges = list(zip(indices, indices[1:]))
    return SimpleCfg(nodes=nodes, edges=edges)


class TestDeriveEdgeKind:
    """Test re-derivation of edge kinds from endpoint labels."""

    @pytest.mark.parametrize(
        "src, dst, expected",
        [
            ("Entry", "NET: fetch(u)", EdgeKind.NET),
            ("NET: fetch(u)", "Exit", EdgeKind.NET),
            ("DB: repo.find()", "NET: fetch(u)", EdgeKind.NET),
            ("DB: repo.find()", "Exit", EdgeKind.DB),
            ("Entry", USER_ENTRY_LABEL, EdgeKind.AUTH),
            ("AUTH: jwt.sign(p)", "Exit", EdgeKind.AUTH),
            ("CRYPTO: bcrypt.hash(p)", "Exit", EdgeKind.CRYPTO),
            ("If: if (x) {", "SECRET: process.env", EdgeKind.SECRET),
            ("Entry", "LOG: console.log(i)", EdgeKind.LOG),
            ("Loop: for (;;) {", "Loop: for (;;) {", EdgeKind.LOOP),
            ("Loop: while (x) {", "Exit", EdgeKind.LOOP),
            ("If: if (x) {", "Return: return x;", EdgeKind.RETURN),
            ("Entry", "If: if (x) {", EdgeKind.BRANCH),
            ("Entry", "Exit", EdgeKind.OTHER),
        ],
    )
    def test_kinds(self, src, dst, expected):
        assert derive_edge_kind(src, dst) is expected

    def test_tag_prefix_beats_structure(self):
        assert derive_edge_kind("Loop: for (;;) {", "NET: fetch(u)") is EdgeKind.NET


class TestSensitivity:
    """Test the PII / secret heuristic."""

    def test_password_is_sensitive(self):
        assert is_sensitive("CRYPTO: bcrypt.hash(dto.password)", "Exit")

    def test_case_insensitive(self):
        assert is_sensitive("Entry", "SECRET: process.env.API_TOKEN")
        assert is_sensitive("Entry", "DB: users.findBySSN(x)")

    def test_plain_labels(self):
        assert not is_sensitive("Entry", "Return: return x;")


class TestToSecurityFlow:
    """Test the repository-level aggregation."""

    def test_empty_input(self):
        flow = to_security_flow({})
        assert flow.index == SecIndex()
        assert flow.edges == []
        assert flow.to_dict() == {
            "index": {"functions": 0, "edges": 0, "boundary_crossings": 0, "pii_edges": 0},
            "edges": [],
        }

    def test_counts_functions_without_edges(self):
        flow = to_security_flow({"a.ts": {"f": SimpleCfg(), "g": SimpleCfg()}, "b.ts": {}})
        assert flow.index.functions == 2
        assert flow.index.edges == 0

    def test_boundary_crossings_and_pii(self):
        all_cfgs = {"a.ts": {"send": _cfg("NET: fetch(user.password)")}}
        flow = to_security_flow(all_cfgs)
        assert flow.index.edges == 2
        assert flow.index.boundary_crossings == 2
        assert flow.index.pii_edges == 2
        assert all(edge.kind is EdgeKind.NET for edge in flow.edges)

    def test_password_does_not_imply_boundary_crossing(self):
        flow = to_security_flow({"a.ts": {"hash": _cfg("CRYPTO: bcrypt.hash(password)")}})
        assert flow.index.pii_edges == 2
        assert flow.index.boundary_crossings == 0

    def test_identical_signatures_collapse_across_files(self):
        cfg = _cfg("LOG: console.log(x)")
        flow = to_security_flow({"a.ts": {"handler": cfg}, "b.ts": {"handler": cfg}})
        assert flow.index.functions == 2
        assert flow.index.edges == 2

    def test_same_labels_in_different_functions_are_kept(self):
        cfg = _cfg("LOG: console.log(x)")
        flow = to_security_flow({"a.ts": {"one": cfg, "two": cfg}})
        assert flow.index.edges == 4
        assert {edge.func for edge in flow.edges} == {"one", "two"}

    def test_order_independent(self):
        first = {
            "src/a.ts": {"a": _cfg("NET: fetch(u)", "DB: repo.save(u)")},
            "src/b.ts": {"b": _cfg("SECRET: process.env.TOKEN")},
        }
        second = dict(reversed(list(first.items())))
        assert to_security_flow(first).to_dict() == to_security_flow(second).to_dict()

    def test_env_secret_handlers_in_two_files(self):
        first = extract_cfgs_from_code(
            "export function handler() {\n  const key = process.env.SECRET;\n  return key;\n}\n"
        )
        second = extract_cfgs_from_code(
            "export function handler() {\n  return fetch(process.env.SECRET_URL);\n}\n"
        )
        flow = to_security_flow({"a/handler.ts": first, "b/handler.ts": second})
        assert flow.index.functions == 2
        assert flow.index.pii_edges >= 2
        assert flow.index.boundary_crossings >= 1
        secret_edges = [e for e in flow.edges if e.kind is EdgeKind.SECRET]
        assert secret_edges
        assert all(e.sensitive for e in secret_edges)


class TestSerialization:
    """Test the JSON and index text shapes."""

    def test_edge_to_dict(self):
        edge = SecEdge("f", "Entry", "NET: fetch(u)", EdgeKind.NET, False)
        assert edge.to_dict() == {
            "func": "f",
            "src": "Entry",
            "dst": "NET: fetch(u)",
            "kind": "net",
            "sensitive": False,
        }

    def test_flow_is_json_serializable(self):
        flow = to_security_flow({"a.ts": {"f": _cfg("AUTH: jwt.verify(t)")}})
        payload = json.loads(json.dumps(flow.to_dict()))
        assert payload["index"]["edges"] == 2
        assert payload["edges"][0]["kind"] == "auth"

    def test_index_text(self):
        flow = SecurityFlow(index=SecIndex(functions=3, edges=7, boundary_crossings=1, pii_edges=2))
        assert flow.to_index_text() == (
            "functions: 3\nedges: 7\nboundary_crossings: 1\npii_edges: 2"
        )
