"""Build pipeline: source scanning, staleness, parallel compile and link."""

from .build_profiles import BuildProfile
from .orchestrator import BuildArtifact, BuildPipeline

__all__ = ["BuildArtifact", "BuildPipeline", "BuildProfile"]
