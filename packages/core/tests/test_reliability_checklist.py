"""Tests for the reliability checklist."""

from reviewkit_core.models import Confidence, Severity

CLIENT = """import requests


def fetch(url):
    try:
        return requests.get(url)
    except:
        pass
"""


def _findings(result, rule_id):
    return [f for f in result.findings if f.rule_id == rule_id]


class TestErrorHandling:
    def test_flags_missing_timeout_bare_and_swallowed_except(self, run_checklist, ids):
        result = run_checklist("reliability", files={"app/client.py": CLIENT})
        assert set(ids(result)) == {"RLB-001", "RLB-002", "RLB-003"}
        assert _findings(result, "RLB-001")[0].location.line == 6
        assert _findings(result, "RLB-002")[0].location.line == 7

    def test_timeout_keyword_satisfies_http_rule(self, run_checklist, ids):
        code = "import requests\n\nresp = requests.get(url, timeout=5)\n"
        assert ids(run_checklist("reliability", files={"app/client.py": code})) == []

    def test_empty_js_catch(self, run_checklist, ids):
        code = "try {\n  run();\n} catch (e) {}\n"
        assert ids(run_checklist("reliability", files={"web/job.js": code})) == ["RLB-004"]

    def test_test_files_are_out_of_scope(self, run_checklist, ids):
        assert ids(run_checklist("reliability", files={"tests/test_client.py": CLIENT})) == []


class TestSecurityAndConfig:
    CODE = "import requests\n\nresp = requests.get('https://api', timeout=5, verify=False)\n"

    def test_tls_verification_disabled(self, run_checklist):
        [finding] = _findings(run_checklist("reliability", files={"app/api.py": self.CODE}), "RLB-006")
        assert finding.severity == Severity.HIGH

    def test_strict_slo_escalates_tls_to_blocker(self, run_checklist):
        result = run_checklist("reliability", files={"app/api.py": self.CODE}, context="99.95% availability")
        assert _findings(result, "RLB-006")[0].severity == Severity.BLOCKER

    def test_localhost_and_print(self, run_checklist, ids):
        code = "BASE = 'http://localhost:8080/api'\nprint(BASE)\n"
        assert ids(run_checklist("reliability", files={"app/settings.py": code})) == ["RLB-007", "RLB-008"]

    def test_subprocess_without_timeout(self, run_checklist, ids):
        code = "import subprocess\n\nsubprocess.run(['make'], check=True)\n"
        assert ids(run_checklist("reliability", files={"tools/build.py": code})) == ["RLB-005"]


class TestRetries:
    def test_retry_loop_without_backoff(self, run_checklist):
        code = (
            "def call():\n"
            "    for attempt in range(3):\n"
            "        try:\n"
            "            return do()\n"
            "        except ValueError:\n"
            "            log(attempt)\n"
        )
        [finding] = _findings(run_checklist("reliability", files={"app/retry.py": code}), "RLB-009")
        assert finding.location.line == 2
        assert finding.confidence == Confidence.LOW

    def test_sleep_counts_as_backoff(self, run_checklist, ids):
        code = (
            "def call():\n"
            "    for attempt in range(3):\n"
            "        try:\n"
            "            return do()\n"
            "        except ValueError:\n"
            "            time.sleep(2 ** attempt)\n"
        )
        assert "RLB-009" not in ids(run_checklist("reliability", files={"app/retry.py": code}))
