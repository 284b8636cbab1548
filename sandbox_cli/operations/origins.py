"""Origin hostname detection in PAPI rule trees."""

from typing import Any, Dict, Iterable, List, Optional


def _populate_origins(papi_node: Optional[Dict[str, Any]], origins: List[str]) -> None:
    if papi_node is None:
        return
    for behavior in papi_node.get("behaviors") or []:
        if behavior.get("name") == "origin":
            hostname = (behavior.get("options") or {}).get("hostname")
            if hostname:
                origins.append(hostname)

    for child in papi_node.get("children") or []:
        _populate_origins(child, origins)


def get_origins_for_papi_rules(papi_rules: Optional[Dict[str, Any]]) -> List[str]:
    """Collect origin hostnames of one rule tree, depth first, duplicates kept."""
    origins: List[str] = []
    _populate_origins(papi_rules, origins)
    return origins


def get_origin_list_for_rules(rule_trees: Iterable[Optional[Dict[str, Any]]]) -> List[str]:
    """Origins across several rule trees, deduplicated in first-seen order."""
    result = dict.fromkeys(
        origin
        for rules in rule_trees
        for origin in get_origins_for_papi_rules(rules)
    )
    return list(result)
