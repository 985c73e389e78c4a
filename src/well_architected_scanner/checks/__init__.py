"""
Built-in check catalog, one module per pillar
"""

from typing import Any, Dict, List, Optional

from ..core.query import QueryClient
from ..core.registry import CheckRegistry


def extract_tags(tags_list: Optional[List[Dict[str, Any]]]) -> Dict[str, str]:
    """Extract tags from AWS Config tag format"""
    tags = {}
    for tag in tags_list or []:
        key = tag.get('key', tag.get('Key', ''))
        tags[key] = tag.get('value', tag.get('Value', ''))
    return tags


def resource_label(row: Dict[str, Any]) -> str:
    resource_id = row.get('resourceId', 'unknown')
    name = row.get('resourceName')
    if name and name != resource_id:
        return f"{resource_id} ({name})"
    return resource_id


def load_default_checks(registry: CheckRegistry, query: QueryClient) -> CheckRegistry:
    """Register every built-in check, bound to ``query``"""
    from . import cost, operations, performance, reliability, security

    for module in (reliability, security, cost, performance, operations):
        for check_class in module.CHECKS:
            registry.register(check_class(query).definition())
    return registry
