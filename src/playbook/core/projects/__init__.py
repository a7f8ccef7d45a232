"""Project name inference for chat log uploads."""

from playbook.core.projects.inference import (
    COMMON_CONTAINERS,
    UNKNOWN_PROJECT,
    CodebaseContainerRule,
    HomeDirectoryRule,
    KnownProjectRule,
    LastSegmentRule,
    OutsideHomeRule,
    PathContext,
    ProjectNameInferrer,
    ProjectNameRule,
    RootRule,
    common_directory,
    default_rules,
    extract_path,
)

__all__ = [
    "COMMON_CONTAINERS",
    "UNKNOWN_PROJECT",
    "CodebaseContainerRule",
    "HomeDirectoryRule",
    "KnownProjectRule",
    "LastSegmentRule",
    "OutsideHomeRule",
    "PathContext",
    "ProjectNameInferrer",
    "ProjectNameRule",
    "RootRule",
    "common_directory",
    "default_rules",
    "extract_path",
]
