"""Load the queue registry."""

from pathlib import Path

import yaml
from pydantic import TypeAdapter, ValidationError

from testops.results_collector.models.queue import WorkQueue

_QUEUE_LIST = TypeAdapter(list[WorkQueue])


def load_queues(queues_file: Path) -> list[WorkQueue]:
    """Load configured queues from a JSON or YAML file.

    Args:
        queues_file: Path to a list of ``{name, standardName, storeStatusFile}``

    Returns:
        Configured queues, in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not parseable or doesn't match the schema

    """
    if not queues_file.exists():
        raise FileNotFoundError(f"Queue registry not found: {queues_file}")

    try:
        with queues_file.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid queue registry {queues_file}: {e}") from e

    if data is None:
        raise ValueError(f"Empty queue registry: {queues_file}")

    try:
        queues = _QUEUE_LIST.validate_python(data)
    except ValidationError as e:
        raise ValueError(f"Invalid queue registry schema in {queues_file}: {e}") from e

    names = [queue.name for queue in queues]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Duplicate queue names in {queues_file}: {duplicates}")

    return queues
