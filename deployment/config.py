import os
from pathlib import Path
from typing import Mapping, NamedTuple, Optional

from deployment.artifacts import ArtifactStore
from deployment.constants import (
    BUILD_DIR,
    DEFAULT_CONFIRMATION_TIMEOUT,
    NETWORKS_FILEPATH,
    PARAMS_FILEPATH,
)
from deployment.networks import NetworkRegistry
from deployment.pipeline import DeploymentPipeline


class DeploymentConfig(NamedTuple):
    """Everything a deployment run reads, loaded once at process start."""

    networks: NetworkRegistry
    pipeline: DeploymentPipeline
    artifacts: ArtifactStore
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT

    @classmethod
    def load(
        cls,
        networks_filepath: Path = NETWORKS_FILEPATH,
        params_filepath: Path = PARAMS_FILEPATH,
        build_dir: Path = BUILD_DIR,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "DeploymentConfig":
        environ = os.environ if environ is None else environ
        return cls(
            networks=NetworkRegistry.from_yaml(networks_filepath, environ=environ),
            pipeline=DeploymentPipeline.from_yaml(params_filepath),
            artifacts=ArtifactStore(build_dir),
            timeout=timeout,
        )
