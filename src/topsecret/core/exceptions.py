"""
Exceptions for TopSecret
This is placed such that there is a general error catcher
"""


class TopSecretError(Exception):
    # general container for errors
    pass


class PreconditionError(TopSecretError):
    # raised when a key-dependent operation runs before a key is set
    pass


class ValidationError(TopSecretError, ValueError):
    # raised when a caller-supplied key or password is malformed
    pass


class DecryptionError(TopSecretError):
    # raised on malformed envelopes, wrong keys or invalid padding / tags
    pass


class SerializationError(TopSecretError):
    # raised when a value cannot be encoded as JSON
    pass


class ParseError(TopSecretError, ValueError):
    # raised when decrypted bytes are not valid UTF-8 JSON
    pass


class FileOperationError(TopSecretError):
    """Raised when a file adapter fails; the lower-layer error is the __cause__."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
