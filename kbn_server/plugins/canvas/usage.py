"""Canvas usage collector."""

from typing import Any, Optional

from kbn_server.plugins.canvas.constants import CANVAS_TYPE
from kbn_server.plugins.usage import UsageCollector
from kbn_server.saved_objects.client import SavedObjectsClient

PAGE_SIZE = 1000


def _summary(counts: list[int]) -> dict[str, float]:
    if not counts:
        return {"avg": 0, "min": 0, "max": 0}
    return {
        "avg": sum(counts) / len(counts),
        "min": min(counts),
        "max": max(counts),
    }


def _expression_functions(expression: str) -> list[str]:
    """Top level function names of a pipe-separated expression."""
    names = []
    for segment in expression.split("|"):
        tokens = segment.strip().split()
        if tokens:
            names.append(tokens[0])
    return names


def summarize_workpads(workpads: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Aggregate page, element and function counts across workpads."""
    if not workpads:
        return None

    pages_per_workpad = []
    elements_per_page = []
    functions_per_element = []
    functions_in_use: set[str] = set()

    for workpad in workpads:
        pages = workpad.get("pages") or []
        pages_per_workpad.append(len(pages))
        for page in pages:
            elements = page.get("elements") or []
            elements_per_page.append(len(elements))
            for element in elements:
                names = _expression_functions(element.get("expression") or "")
                functions_per_element.append(len(names))
                functions_in_use.update(names)

    return {
        "workpads": {"total": len(workpads)},
        "pages": {"total": sum(pages_per_workpad), "per_workpad": _summary(pages_per_workpad)},
        "elements": {"total": sum(elements_per_page), "per_page": _summary(elements_per_page)},
        "functions": {
            "total": sum(functions_per_element),
            "in_use": sorted(functions_in_use),
            "per_element": _summary(functions_per_element),
        },
    }


async def fetch_canvas_usage(client: SavedObjectsClient) -> Optional[dict[str, Any]]:
    if not await client.count(CANVAS_TYPE):
        return None

    workpads = []
    page = 1
    while True:
        result = await client.find(type=[CANVAS_TYPE], page=page, per_page=PAGE_SIZE)
        workpads.extend(o["attributes"] for o in result["saved_objects"])
        if page * PAGE_SIZE >= result["total"]:
            break
        page += 1
    return summarize_workpads(workpads)


canvas_usage_collector = UsageCollector(type="canvas", fetch=fetch_canvas_usage)
