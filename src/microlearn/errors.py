"""Exceptions raised by the learning engine."""


class MicrolearnError(Exception):
    """Base class for engine errors."""


class NotFoundError(MicrolearnError, LookupError):
    """A learner, card or topic id is not in the store."""

    kind = "record"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"{self.kind} not found: {record_id}")


class LearnerNotFoundError(NotFoundError):
    kind = "learner"


class CardNotFoundError(NotFoundError):
    kind = "card"


class TopicNotFoundError(NotFoundError):
    kind = "topic"
