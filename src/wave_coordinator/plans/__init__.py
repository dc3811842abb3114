"""Plans module - Deployment plan models and loading."""

from .loader import PlanLoadError, load_plan
from .models import DeploymentPlan, WaveDefinition, WorkerDefinition

__all__ = [
	"DeploymentPlan",
	"WaveDefinition",
	"WorkerDefinition",
	"PlanLoadError",
	"load_plan",
]
