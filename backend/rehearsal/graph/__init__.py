"""Workflow graphs."""
from .workflow import create_evaluation_workflow

__all__ = ["create_evaluation_workflow"]
