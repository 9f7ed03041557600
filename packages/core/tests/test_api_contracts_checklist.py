"""Tests for the api-contracts checklist."""

from reviewkit_core.models import Severity

OPENAPI = """openapi: 3.0.0
info:
  title: Users
  version: 1.0.0
paths:
  /users:
    get:
      responses:
        "200":
          description: ok
components:
  schemas:
    User:
      properties:
        id:
          type: string
"""

OPENAPI_PATH = "api/openapi.yaml"


def _findings(result, rule_id):
    return [f for f in result.findings if f.rule_id == rule_id]


class TestOpenAPI:
    def _removed_email(self, make_diff, bump=False):
        removed = ["        email:", "          type: string"]
        added = []
        if bump:
            removed.insert(0, "  version: 1.0.0")
            added.append("  version: 2.0.0")
        return make_diff(OPENAPI_PATH, added=added, removed=removed, start=17)

    def test_removed_field_is_breaking(self, run_checklist, make_diff):
        result = run_checklist("api-contracts", files={OPENAPI_PATH: OPENAPI}, diffs=[self._removed_email(make_diff)])
        [finding] = _findings(result, "API-001")
        assert finding.severity == Severity.HIGH
        assert finding.evidence == "email:"
        assert _findings(result, "API-009")

    def test_strict_compatibility_escalates(self, run_checklist, make_diff):
        result = run_checklist(
            "api-contracts",
            files={OPENAPI_PATH: OPENAPI},
            diffs=[self._removed_email(make_diff)],
            context="strict backward compatibility",
        )
        assert _findings(result, "API-001")[0].severity == Severity.BLOCKER
        assert _findings(result, "API-009")[0].severity == Severity.BLOCKER

    def test_version_bump_clears_aggregate(self, run_checklist, make_diff, ids):
        diff = self._removed_email(make_diff, bump=True)
        result = run_checklist("api-contracts", files={OPENAPI_PATH: OPENAPI}, diffs=[diff])
        assert "API-001" in ids(result)
        assert "API-009" not in ids(result)

    def test_moved_field_is_not_removed(self, run_checklist, make_diff, ids):
        diff = make_diff(OPENAPI_PATH, added=["        email:"], removed=["        email:"], start=17)
        assert ids(run_checklist("api-contracts", files={OPENAPI_PATH: OPENAPI}, diffs=[diff])) == []

    def test_removed_endpoint(self, run_checklist, make_diff, ids):
        diff = make_diff(OPENAPI_PATH, removed=["  /users/{id}:", "    delete:"], start=11)
        assert "API-002" in ids(run_checklist("api-contracts", files={OPENAPI_PATH: OPENAPI}, diffs=[diff]))


class TestProtobuf:
    PATH = "proto/user.proto"

    def test_number_reuse_is_blocker(self, run_checklist, make_diff):
        diff = make_diff(self.PATH, added=["  string phone = 2;"], removed=["  string email = 2;"], start=4)
        [finding] = _findings(run_checklist("api-contracts", diffs=[diff]), "API-004")
        assert finding.severity == Severity.BLOCKER
        assert "was: email = 2" in finding.evidence

    def test_removed_field_must_be_reserved(self, run_checklist, make_diff, ids):
        removed_only = make_diff(self.PATH, removed=["  string email = 2;"], start=4)
        assert "API-005" in ids(run_checklist("api-contracts", diffs=[removed_only]))

        reserved = make_diff(self.PATH, added=["  reserved 2;"], removed=["  string email = 2;"], start=4)
        assert "API-005" not in ids(run_checklist("api-contracts", diffs=[reserved]))


class TestGraphQL:
    PATH = "schema/user.graphql"

    def test_removed_field(self, run_checklist, make_diff, ids):
        diff = make_diff(self.PATH, removed=["  email: String"], start=3)
        assert "API-006" in ids(run_checklist("api-contracts", diffs=[diff]))

    def test_nullable_to_non_null(self, run_checklist, make_diff, ids):
        diff = make_diff(self.PATH, added=["  name: String!"], removed=["  name: String"], start=3)
        result = ids(run_checklist("api-contracts", diffs=[diff]))
        assert "API-007" in result
        assert "API-006" not in result


class TestRoutes:
    PATH = "app/routes.py"
    CONTENT = '@app.get("/health")\ndef health():\n    return "ok"\n'

    def test_removed_route(self, run_checklist, make_diff):
        diff = make_diff(self.PATH, removed=['@app.get("/users")', "def users():", "    return []"], start=4)
        result = run_checklist("api-contracts", files={self.PATH: self.CONTENT}, diffs=[diff])
        [finding] = _findings(result, "API-003")
        assert finding.evidence == '@app.get("/users")'

    def test_unversioned_route_only_under_url_versioning(self, run_checklist, ids):
        files = {self.PATH: self.CONTENT}
        assert "API-008" not in ids(run_checklist("api-contracts", files=files))
        assert "API-008" in ids(run_checklist("api-contracts", files=files, context="URL versioning"))

        versioned = {self.PATH: '@app.get("/v1/health")\ndef health():\n    return "ok"\n'}
        assert "API-008" not in ids(run_checklist("api-contracts", files=versioned, context="URL versioning"))
