"""Exception types raised inside the pipeline."""


class PipelineError(Exception):
    pass


class PersistenceError(PipelineError):
    """A store operation failed. `entity` names what was being written."""

    def __init__(self, entity: str, message: str):
        super().__init__(f"{entity}: {message}")
        self.entity = entity


class IntegrityError(PipelineError):
    """A value outside one of the closed status sets."""
    pass
