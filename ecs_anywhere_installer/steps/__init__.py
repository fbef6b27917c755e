from .step_10_container_runtime import ContainerRuntimeStep
from .step_20_tooling_module import ToolingModuleStep
from .step_30_management_agent import ManagementAgentStep
from .step_40_exec_dependencies import ExecDependenciesStep
from .step_50_fleet_agent import FleetAgentStep

__all__ = [
    "ContainerRuntimeStep",
    "ToolingModuleStep",
    "ManagementAgentStep",
    "ExecDependenciesStep",
    "FleetAgentStep",
]
