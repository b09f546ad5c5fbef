from .config import ConfigError, PipelineConfig
from .dsl import sh, stage, pipeline
from .identity import (
    MalformedJobName,
    NodeLabels,
    OsFamily,
    parse_job_name,
    resolve_job_type,
    resolve_node_label,
    resolve_project_name,
    resolve_toolchain_url,
    should_run_silently,
)
from .model import Stage, Step
from .runner import load_workflow, run_pipeline

__all__ = [
    "ConfigError", "PipelineConfig",
    "sh", "stage", "pipeline",
    "MalformedJobName", "NodeLabels", "OsFamily", "parse_job_name",
    "resolve_job_type", "resolve_node_label", "resolve_project_name",
    "resolve_toolchain_url", "should_run_silently",
    "Stage", "Step", "load_workflow", "run_pipeline",
]
