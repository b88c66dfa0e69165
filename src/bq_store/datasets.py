"""Dataset provisioning and listing."""

from __future__ import annotations

import logging

from google.api_core.exceptions import Conflict, GoogleAPIError
from google.cloud import bigquery

from bq_store.errors import RemoteError
from bq_store.models import DatasetInfo, DatasetRef

logger = logging.getLogger(__name__)


def create_dataset(client: bigquery.Client, project_id: str, name: str) -> DatasetRef:
    """Create dataset *name* under *project_id* unless it already exists.

    No lookup is made first: the insert is always issued, and a ``409
    Conflict`` answer counts as success.

    Args:
        client: Authenticated BigQuery client.
        project_id: GCP project ID.
        name: BigQuery dataset ID.

    Returns:
        Reference to the dataset.

    Raises:
        RemoteError: If the insert fails for any reason other than the
            dataset already existing.
    """
    ref = DatasetRef(project_id=project_id, dataset_id=name)
    dataset = bigquery.Dataset(bigquery.DatasetReference(project_id, name))
    try:
        client.create_dataset(dataset)
        logger.info("Created dataset %s", ref.path)
    except Conflict:
        logger.debug("Dataset %s already exists", ref.path)
    except GoogleAPIError as exc:
        raise RemoteError.from_api_error("create_dataset", exc) from exc
    return ref


def list_datasets(client: bigquery.Client, project_id: str) -> list[DatasetInfo]:
    """List all datasets in a project.

    Args:
        client: Authenticated BigQuery client.
        project_id: GCP project ID.

    Returns:
        List of ``DatasetInfo`` for each dataset.

    Raises:
        RemoteError: If the listing fails.
    """
    try:
        datasets = [
            DatasetInfo(
                dataset_id=item.dataset_id,
                friendly_name=item.friendly_name or "",
            )
            for item in client.list_datasets(project=project_id)
        ]
    except GoogleAPIError as exc:
        raise RemoteError.from_api_error("list_datasets", exc) from exc

    logger.info("Retrieved %d datasets from project '%s'", len(datasets), project_id)
    for info in datasets:
        logger.info("%s %s", info.dataset_id, info.friendly_name)
    return datasets
