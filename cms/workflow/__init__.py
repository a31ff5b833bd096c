from cms.workflow.states import NoDraft, Draft, Published, EntryState
from cms.workflow.engine import WorkflowEngine, PublishOutcome
from cms.workflow.reconcile import (
    ReconciliationScan, ReconciliationReport, EntryCondition, Finding,
)

__all__ = [
    "NoDraft", "Draft", "Published", "EntryState",
    "WorkflowEngine", "PublishOutcome",
    "ReconciliationScan", "ReconciliationReport", "EntryCondition", "Finding",
]
