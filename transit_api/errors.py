"""Exceptions raised by the feed transformation pipeline."""


class PipelineError(ValueError):
    """Base class for errors that abort a pipeline run."""


class FeedError(PipelineError):
    """A feed table, column, agency or timezone could not be used."""


class RouteBuildError(PipelineError):
    """A route's details could not be assembled."""

    def __init__(self, route_id: str, message: str) -> None:
        super().__init__(f"Route {route_id}: {message}")
        self.route_id = route_id
