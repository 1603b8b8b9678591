"""
Services Layer - index build orchestration.
"""

from csindex.services.build_models import BuildMode, BuildRequest, BuildResult, RunState
from csindex.services.container import ServicesContainer, create_services
from csindex.services.index_builder import IndexBuildService

__all__ = [
    "IndexBuildService",
    "BuildMode",
    "BuildRequest",
    "BuildResult",
    "RunState",
    "ServicesContainer",
    "create_services",
]
