from typing import List, Sequence


class RailroadError(Exception):
    """Base class for errors raised by the context pipeline"""


class ClassificationError(RailroadError):
    """The primary intent classifier could not produce an analysis"""


class ContextRegressionError(RailroadError):
    """A stage returned a context that drops or rewrites earlier contributions"""

    def __init__(self, stage: str, problems: List[str]):
        self.stage = stage
        self.problems = problems
        super().__init__(f"Stage '{stage}' regressed the context: {'; '.join(problems)}")


class UnknownVariantError(RailroadError, ValueError):
    """Requested pipeline variant is not registered"""

    def __init__(self, variant: str, known: Sequence[str]):
        self.variant = variant
        self.known = list(known)
        super().__init__(f"Unknown pipeline variant '{variant}'. Valid variants: {', '.join(self.known)}")


class ConfigurationKeyError(RailroadError, KeyError):
    """Configuration key is not present in the backing store"""

    def __str__(self) -> str:
        return f"Configuration key '{self.args[0]}' not found"
