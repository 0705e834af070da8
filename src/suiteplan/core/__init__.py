"""Core models and helpers exposed at the package level."""
from .capabilities import CapabilityRegistry, capability_registry
from .errors import ConfigurationError, InvocationError, PlanConstructionError, SuiteFailure, SuiteplanError
from .executor import Executor, ExecutorState, execute
from .models import (
    CAPABILITIES_VAR,
    OrchestrationResult,
    OutcomeKind,
    RequiredVar,
    RunOutcome,
    RunPlan,
    RunSpec,
)
from .scope import ConfigScope, EnvironmentProvider, MappingEnvironment, ProcessEnvironment, enter_scope

__all__ = [
    "CAPABILITIES_VAR",
    "CapabilityRegistry",
    "ConfigScope",
    "ConfigurationError",
    "EnvironmentProvider",
    "Executor",
    "ExecutorState",
    "InvocationError",
    "MappingEnvironment",
    "OrchestrationResult",
    "OutcomeKind",
    "PlanConstructionError",
    "ProcessEnvironment",
    "RequiredVar",
    "RunOutcome",
    "RunPlan",
    "RunSpec",
    "SuiteFailure",
    "SuiteplanError",
    "capability_registry",
    "enter_scope",
    "execute",
]
