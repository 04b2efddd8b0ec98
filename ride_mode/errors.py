"""
Mode change error taxonomy. Each error maps to one machine-parseable response body.
"""


class ModeChangeError(Exception):
    """Base class: carries the HTTP-equivalent status and the response body."""

    status_code = 400
    error = "Bad Request"

    def to_body(self) -> dict:
        return {"error": self.error, "message": str(self)}


class MissingFieldsError(ModeChangeError):
    """Required fields are absent or null."""

    error = "Validation Error"

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(f"missing required fields: {self.fields!r}")

    def to_body(self) -> dict:
        body = super().to_body()
        body["missingFields"] = self.fields
        return body


class MalformedDocumentError(ModeChangeError):
    """Document is not valid JSON, or a present field has the wrong shape."""


class InvalidEnumValueError(ModeChangeError):
    """A ride mode field holds a value outside the known ordering."""

    # current_mode keeps its own error label so callers can tell the two apart
    _ERROR_LABELS = {"current_mode": "Invalid Field"}

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        self.error = self._ERROR_LABELS.get(field, "Validation Error")
        super().__init__(f"Invalid {field}: `{value}`")

    def to_body(self) -> dict:
        body = super().to_body()
        body["invalidFields"] = [self.field]
        return body


class UpstreamUnavailableError(ModeChangeError):
    """The state store or the publish channel could not serve the request."""

    status_code = 503
    error = "Upstream Unavailable"

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(message)

    def to_body(self) -> dict:
        body = super().to_body()
        body["source"] = self.source
        return body
