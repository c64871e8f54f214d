class CardReaderError(RuntimeError):
    """Base class for errors reported by the card reader control surface."""
    code = "CARD_READER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotInitializedError(CardReaderError):
    """Raised when a control operation is invoked before initialize()."""
    code = "NOT_INITIALIZED"


class InitializationError(CardReaderError):
    """Raised when the HID transport could not be prepared."""
    code = "INITIALIZATION_FAILED"


class InvalidArgumentsError(CardReaderError):
    """Raised when connectToDevice receives malformed arguments."""
    code = "INVALID_ARGUMENTS"


class DeviceNotFoundError(CardReaderError):
    """Raised when no enumerated reader matches the requested device id."""
    code = "DEVICE_NOT_FOUND"

    def __init__(self, message: str, device_id: str):
        super().__init__(message)
        self.device_id = device_id


class DeviceOpenError(CardReaderError):
    """Raised when a matched reader could not be opened."""
    code = "OPEN_FAILED"

    def __init__(self, message: str, device_id: str, device_path: str):
        super().__init__(message)
        self.device_id = device_id
        self.device_path = device_path
