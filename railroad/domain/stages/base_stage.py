from abc import ABC, abstractmethod
from typing import Dict, Any, List

from railroad.domain.models.context import Context


class ProcessingStage(ABC):
    """Base class for the stages ("cars") of the context pipeline.

    A stage takes a context and returns a superset of it. Anticipated
    collaborator failures are handled inside ``run``; anything that escapes
    is treated by the executor as a failure of the whole stage.
    """

    name: str = "stage"

    @abstractmethod
    async def run(self, context: Context) -> Context:
        """Return ``context`` enriched with this stage's section"""
        pass

    def complete(self, context: Context, **sections: Any) -> Context:
        """Attach sections and report this stage in the operations log"""
        logs: Dict[str, List[str]] = sections.pop("logs", {})
        if sections:
            context = context.evolve(**sections)
        return context.with_operation(self.name, **logs)
