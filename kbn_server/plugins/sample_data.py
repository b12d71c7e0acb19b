"""Sample datasets installable through the API."""

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from kbn_server.core.errors import NotFoundError
from kbn_server.saved_objects.client import SavedObjectsClient

logger = structlog.get_logger(__name__)

INSTALLED = "installed"
NOT_INSTALLED = "not_installed"


@dataclass
class SampleDataset:
    """A named bundle of saved objects."""

    id: str
    name: str
    description: str = ""
    saved_objects: list[dict[str, Any]] = field(default_factory=list)


class SampleDataRegistry:
    """Registered sample datasets, keyed by id."""

    def __init__(self):
        self._datasets: dict[str, SampleDataset] = {}

    def register(self, dataset: SampleDataset) -> None:
        if dataset.id in self._datasets:
            raise ValueError(f"Sample dataset '{dataset.id}' is already registered")
        self._datasets[dataset.id] = dataset

    def add_saved_objects(self, dataset_id: str, saved_objects: list[dict[str, Any]]) -> None:
        """Append saved objects to an existing dataset."""
        self.get(dataset_id).saved_objects.extend(saved_objects)

    def get(self, dataset_id: str) -> SampleDataset:
        dataset = self._datasets.get(dataset_id)
        if dataset is None:
            raise NotFoundError(f"Sample dataset [{dataset_id}] not found")
        return dataset

    def datasets(self) -> list[SampleDataset]:
        return list(self._datasets.values())

    async def status(self, dataset_id: str, client: SavedObjectsClient) -> str:
        """``installed`` when every saved object of the dataset exists."""
        dataset = self.get(dataset_id)
        if not dataset.saved_objects:
            return NOT_INSTALLED

        found = await client.bulk_get(
            [{"type": o["type"], "id": o["id"]} for o in dataset.saved_objects]
        )
        if any("error" in o for o in found["saved_objects"]):
            return NOT_INSTALLED
        return INSTALLED

    async def install(self, dataset_id: str, client: SavedObjectsClient) -> dict[str, Any]:
        """Write the dataset's saved objects, replacing existing copies."""
        dataset = self.get(dataset_id)
        result = await client.bulk_create(dataset.saved_objects, overwrite=True)
        errors = [o for o in result["saved_objects"] if "error" in o]
        logger.info(
            "Sample dataset installed",
            dataset=dataset_id,
            saved_objects=len(dataset.saved_objects),
            errors=len(errors),
        )
        return {"savedObjectsInstalled": len(dataset.saved_objects) - len(errors), "errors": errors}

    async def uninstall(self, dataset_id: str, client: SavedObjectsClient) -> None:
        """Delete the dataset's saved objects; already missing ones are skipped."""
        dataset = self.get(dataset_id)
        for obj in dataset.saved_objects:
            try:
                await client.delete(obj["type"], obj["id"])
            except NotFoundError:
                logger.debug("Sample object already removed", type=obj["type"], id=obj["id"])
        logger.info("Sample dataset uninstalled", dataset=dataset_id)


DEFAULT_DATASETS = (
    SampleDataset(
        id="flights",
        name="Sample flight data",
        description="Sample data, visualizations, and dashboards for monitoring flight routes.",
    ),
    SampleDataset(
        id="logs",
        name="Sample web logs",
        description="Sample data, visualizations, and dashboards for monitoring web logs.",
    ),
    SampleDataset(
        id="ecommerce",
        name="Sample eCommerce orders",
        description="Sample data, visualizations, and dashboards for tracking eCommerce orders.",
    ),
)


def default_sample_data_registry(datasets: Optional[tuple[SampleDataset, ...]] = None) -> SampleDataRegistry:
    registry = SampleDataRegistry()
    for dataset in datasets or DEFAULT_DATASETS:
        registry.register(
            SampleDataset(
                id=dataset.id,
                name=dataset.name,
                description=dataset.description,
                saved_objects=list(dataset.saved_objects),
            )
        )
    return registry
