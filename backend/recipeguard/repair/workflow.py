"""Repair workflow — LangGraph state machine mixing programmatic and model fixes.

Flow:
    programmatic_fix
        ├── deterministic fixes applied → revalidate
        └── nothing deterministic       → model_fix
    revalidate
        ├── clean            → END
        ├── budget left      → model_fix
        └── budget exhausted → give_up → END
    model_fix
        ├── new artifact                  → revalidate
        └── call failed, budget left      → model_fix
        └── call failed, budget exhausted → give_up → END

The loop is strictly sequential; every model attempt builds on the latest artifact.
"""

from enum import Enum
from typing import Optional, Sequence, TypedDict

import structlog
from langgraph.graph import END, StateGraph
from pydantic import BaseModel, ConfigDict

from recipeguard.config import get_settings
from recipeguard.errors import ExecutionError
from recipeguard.models import Artifact, UserConstraints, Violation
from recipeguard.repair.classifier import split_violations
from recipeguard.repair.fixes import ProgrammaticFixer
from recipeguard.repair.generator import RecipeGenerator
from recipeguard.validators.engine import ValidationOrchestrator

logger = structlog.get_logger()


class RepairStatus(str, Enum):
    CLEAN = "clean"
    FIXED_PROGRAMMATICALLY = "fixed_programmatically"
    FIXED_BY_MODEL = "fixed_by_model"
    GAVE_UP = "gave_up"


class RepairOutcome(BaseModel):
    """Final artifact of a repair run plus what it took to get there."""

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    violations: tuple[Violation, ...] = ()
    status: RepairStatus
    model_iterations: int = 0
    programmatic_fixes_applied: int = 0

    @property
    def converged(self) -> bool:
        return self.status is not RepairStatus.GAVE_UP


class RepairState(TypedDict):
    """State passed between repair graph nodes."""

    # ── Input ──
    constraints: UserConstraints
    user_message: str

    # ── Working artifact ──
    artifact: Artifact
    violations: list[Violation]

    # ── Control Flow ──
    model_iterations: int
    max_iterations: int
    programmatic_fixes: int
    last_call_failed: bool
    status: Optional[RepairStatus]


class RepairEngine:
    """Drives an artifact to compliance within a bounded number of model calls."""

    def __init__(
        self,
        orchestrator: ValidationOrchestrator,
        generator: RecipeGenerator,
        fixer: Optional[ProgrammaticFixer] = None,
        max_iterations: Optional[int] = None,
    ):
        self.orchestrator = orchestrator
        self.generator = generator
        self.fixer = fixer or ProgrammaticFixer()
        self.max_iterations = get_settings().MAX_REPAIR_ITERATIONS if max_iterations is None else max_iterations
        self._graph = self.build_graph().compile()

    def build_graph(self) -> StateGraph:
        workflow = StateGraph(RepairState)

        workflow.add_node("programmatic_fix", self._programmatic_fix_node)
        workflow.add_node("revalidate", self._revalidate_node)
        workflow.add_node("model_fix", self._model_fix_node)
        workflow.add_node("give_up", self._give_up_node)

        workflow.set_entry_point("programmatic_fix")
        workflow.add_conditional_edges(
            "programmatic_fix",
            self._route_after_programmatic_fix,
            {"done": END, "revalidate": "revalidate", "model_fix": "model_fix", "give_up": "give_up"},
        )
        workflow.add_conditional_edges(
            "revalidate",
            self._route_after_revalidate,
            {"done": END, "model_fix": "model_fix", "give_up": "give_up"},
        )
        workflow.add_conditional_edges(
            "model_fix",
            self._route_after_model_fix,
            {"revalidate": "revalidate", "model_fix": "model_fix", "give_up": "give_up"},
        )
        workflow.add_edge("give_up", END)
        return workflow

    async def repair(
        self,
        artifact: Artifact,
        constraints: UserConstraints,
        user_message: str = "",
        violations: Optional[Sequence[Violation]] = None,
    ) -> RepairOutcome:
        """Repair the artifact and return the best available result.

        Args:
            artifact: Artifact to repair
            constraints: User constraints to validate against
            user_message: The user turn that produced the artifact
            violations: Violations already found; validated here when omitted

        Returns:
            RepairOutcome; never raises on non-compliance
        """
        if violations is None:
            violations = (await self.orchestrator.validate_all(artifact, constraints)).violations
        violations = list(violations)

        if not violations:
            return RepairOutcome(artifact=artifact, status=RepairStatus.CLEAN)

        logger.info(
            "repair_started",
            violations=len(violations),
            kinds=sorted({v.kind.value for v in violations}),
            max_iterations=self.max_iterations,
        )

        state = RepairState(
            constraints=constraints,
            user_message=user_message,
            artifact=artifact,
            violations=violations,
            model_iterations=0,
            max_iterations=self.max_iterations,
            programmatic_fixes=0,
            last_call_failed=False,
            status=None,
        )
        # programmatic_fix + revalidate + (model_fix + revalidate) per iteration + give_up
        final_state = await self._graph.ainvoke(
            state, config={"recursion_limit": 2 * self.max_iterations + 5}
        )

        return RepairOutcome(
            artifact=final_state["artifact"],
            violations=tuple(final_state["violations"]),
            status=final_state["status"] or RepairStatus.GAVE_UP,
            model_iterations=final_state["model_iterations"],
            programmatic_fixes_applied=final_state["programmatic_fixes"],
        )

    # ── Nodes ──

    async def _programmatic_fix_node(self, state: RepairState) -> dict:
        deterministic, _ = split_violations(state["violations"])
        if not deterministic:
            return {"programmatic_fixes": 0}

        artifact, fixes = self.fixer.apply(state["artifact"], deterministic, state["constraints"])
        return {"artifact": artifact, "programmatic_fixes": fixes}

    async def _revalidate_node(self, state: RepairState) -> dict:
        result = await self.orchestrator.validate_all(state["artifact"], state["constraints"])
        update: dict = {"violations": list(result.violations), "last_call_failed": False}
        if result.valid:
            status = RepairStatus.FIXED_BY_MODEL if state["model_iterations"] else RepairStatus.FIXED_PROGRAMMATICALLY
            update["status"] = status
            logger.info(
                "repair_converged",
                status=status.value,
                model_iterations=state["model_iterations"],
                programmatic_fixes=state["programmatic_fixes"],
            )
        return update

    async def _model_fix_node(self, state: RepairState) -> dict:
        iteration = state["model_iterations"] + 1
        logger.info(
            "model_fix_iteration",
            iteration=iteration,
            max_iterations=state["max_iterations"],
            violations=[f"{v.kind.value}: {v.message}" for v in state["violations"]],
        )
        try:
            artifact = await self.generator.regenerate(
                state["artifact"], state["violations"], state["user_message"]
            )
        except ExecutionError as e:
            logger.error("model_fix_failed", iteration=iteration, error=str(e))
            return {"model_iterations": iteration, "last_call_failed": True}
        return {"artifact": artifact, "model_iterations": iteration, "last_call_failed": False}

    async def _give_up_node(self, state: RepairState) -> dict:
        logger.warning(
            "repair_budget_exhausted",
            model_iterations=state["model_iterations"],
            remaining_violations=len(state["violations"]),
            kinds=sorted({v.kind.value for v in state["violations"]}),
        )
        return {"status": RepairStatus.GAVE_UP}

    # ── Routing ──

    def _route_after_programmatic_fix(self, state: RepairState) -> str:
        if not state["violations"]:
            return "done"
        deterministic, _ = split_violations(state["violations"])
        if deterministic:
            return "revalidate"
        return "model_fix" if state["max_iterations"] > 0 else "give_up"

    @staticmethod
    def _route_after_revalidate(state: RepairState) -> str:
        if not state["violations"]:
            return "done"
        if state["model_iterations"] >= state["max_iterations"]:
            return "give_up"
        return "model_fix"

    @staticmethod
    def _route_after_model_fix(state: RepairState) -> str:
        if not state["last_call_failed"]:
            return "revalidate"
        if state["model_iterations"] >= state["max_iterations"]:
            return "give_up"
        return "model_fix"
