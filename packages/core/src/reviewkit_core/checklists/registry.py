from __future__ import annotations

from reviewkit_core.checklists import api_contracts, frontend_performance, migrations, release, reliability, testing
from reviewkit_core.checklists.base import Checklist
from reviewkit_core.errors import UnknownDomain

CHECKLISTS: dict[str, Checklist] = {
    module.CHECKLIST.domain: module.CHECKLIST
    for module in (api_contracts, frontend_performance, migrations, release, reliability, testing)
}

DOMAINS = tuple(sorted(CHECKLISTS))


def get_checklist(domain: str) -> Checklist:
    try:
        return CHECKLISTS[domain]
    except KeyError:
        raise UnknownDomain(f"Unknown review domain '{domain}'. Available: {', '.join(DOMAINS)}") from None
