from http import HTTPStatus


class ApplicationError(Exception):
    """
    The base exception class for application errors.

    :ivar message: The descriptive message associated with the error.
    """

    template = "{message}"
    """Message template"""
    message: str
    """Rendered message template"""
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR.value
    """Status code associated to the error, reported back in the admission response"""

    def __init__(self, **kwargs):
        self.message = self.template.format(**kwargs)
        if "status_code" in kwargs:
            self.status_code = kwargs["status_code"]
        super().__init__(self, self.message)

    def __str__(self) -> str:
        return f"{self.message} ({self.__class__.__name__} {self.status_code})"


class MalformedPodError(ApplicationError):
    """
    The admission request object could not be decoded into a Pod.

    :ivar reason: What went wrong while decoding.
    """

    template = "Unable to decode Pod from admission request: {reason}"
    status_code = HTTPStatus.BAD_REQUEST.value


class PodSerializationError(ApplicationError):
    """
    The mutated Pod could not be serialized into a patch.

    :ivar reason: What went wrong while serializing.
    """

    template = "Unable to serialize mutated Pod: {reason}"


class VolumeNotFoundError(ApplicationError):
    """
    No container of the Pod mounts the requested volume.

    :ivar volume: The volume name.
    """

    template = "Volume was not found, volume: {volume}"
    status_code = HTTPStatus.NOT_FOUND.value


class InvalidAnnotationError(ApplicationError):
    """
    An entry of the tailing sidecar annotation could not be parsed.

    :ivar entry: The offending entry.
    :ivar reason: Why it was rejected.
    """

    template = "Invalid annotation entry '{entry}': {reason}"
    status_code = HTTPStatus.BAD_REQUEST.value
