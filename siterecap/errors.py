"""Exception types raised by the report pipeline."""


class SiteRecapError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(SiteRecapError):
    """Missing or invalid settings."""


class PipelineInputError(SiteRecapError):
    """Caller supplied input the pipeline cannot work with."""


class NoPhotosError(PipelineInputError):
    """No photos were supplied for the project-day."""

    def __init__(self, project_id: str = "", date: str = ""):
        self.project_id = project_id
        self.date = date
        super().__init__(f"No photos found for project {project_id or '?'} on {date or '?'}")


class UnreadablePhotosError(PipelineInputError):
    """None of the supplied photos could be resolved to image bytes."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"None of the {count} photos could be read")


class ModelResponseError(SiteRecapError):
    """Model output could not be parsed into the expected shape."""
