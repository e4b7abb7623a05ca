from robustcp._version import __version__
from robustcp.robust_model import RobustModel
from robustcp.deterministic_model import DeterministicModel
from robustcp.variable import DecisionVariable
from robustcp.uncertain_parameter import UncertainParameter
from robustcp.expressions import MixedExpression, UncertainExpression
from robustcp.constraints import UncertainConstraint, UncertainSetConstraint
from robustcp.scenario import Scenario
from robustcp.sparse import SparseAccumulator
from robustcp.registry import ConstraintRegistry
from robustcp.orchestrator import ResolutionOrchestrator, ResolutionSettings, SolveResult
from robustcp.uncertainty_sets.uncertainty_set import ALL_PHASES, Phase, UncertaintySet
from robustcp.uncertainty_sets.cutting_plane import CuttingPlaneSet
from robustcp.uncertainty_sets.basic import BasicUncertaintySet
from robustcp.uncertainty_sets.budget import BudgetUncertaintySet
from robustcp.settings import ITERATION_LIMIT
