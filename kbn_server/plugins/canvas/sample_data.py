"""Canvas workpads shipped with the sample datasets."""

import copy
from typing import Any

from kbn_server.plugins.canvas.constants import CANVAS_TYPE
from kbn_server.plugins.sample_data import SampleDataRegistry

CREATED = "2018-10-01T00:00:00.000Z"


def _workpad(id: str, name: str, title: str, expression: str) -> dict[str, Any]:
    return {
        "id": id,
        "type": CANVAS_TYPE,
        "attributes": {
            "name": name,
            "id": id,
            "width": 1280,
            "height": 720,
            "page": 0,
            "pages": [
                {
                    "id": f"page-{id}",
                    "style": {"background": "#fff"},
                    "elements": [
                        {
                            "id": f"element-{id}-title",
                            "position": {"left": 20, "top": 20, "width": 600, "height": 60, "angle": 0},
                            "expression": f'filters | markdown "## {title}" | render',
                        },
                        {
                            "id": f"element-{id}-table",
                            "position": {"left": 20, "top": 100, "width": 1240, "height": 580, "angle": 0},
                            "expression": expression,
                        },
                    ],
                }
            ],
            "colors": ["#37988d", "#c19628", "#b83c6f", "#3f9939", "#1785b0"],
            "css": "",
            "@timestamp": CREATED,
            "@created": CREATED,
        },
    }


SAMPLE_WORKPADS = {
    "ecommerce": [
        _workpad(
            "workpad-e08b9bdb-ec14-4339-94c4-063bddfd610e",
            "[eCommerce] Revenue Tracking",
            "Revenue",
            "filters | demodata | table | render",
        ),
    ],
    "flights": [
        _workpad(
            "workpad-a474e74b-aedc-47c3-894a-db77e62c41e0",
            "[Flights] Overview",
            "Flight delays",
            "filters | demodata | pointseries x=\"time\" y=\"cost\" | plot | render",
        ),
    ],
    "logs": [
        _workpad(
            "workpad-5563cc40-5760-4afe-bf33-9da72fac53b7",
            "[Logs] Web Traffic",
            "Web traffic",
            "filters | demodata | table | render",
        ),
    ],
}


def load_sample_data(sample_data: SampleDataRegistry) -> None:
    """Add the Canvas workpads to the matching sample datasets."""
    for dataset_id, workpads in SAMPLE_WORKPADS.items():
        sample_data.add_saved_objects(dataset_id, copy.deepcopy(workpads))
