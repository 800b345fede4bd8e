"""Exceptions raised by the CANopen stack."""


class CanopenError(Exception):
    """Base class of all stack errors."""

    default_message = "canopen error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class IllegalArgumentError(CanopenError):
    default_message = "error in function arguments"


class OutOfMemoryError(CanopenError):
    default_message = "memory allocation failed"


class CanopenTimeoutError(CanopenError):
    default_message = "function timeout"


class IllegalBaudrateError(CanopenError):
    default_message = "illegal baudrate passed to function"


class RxOverflowError(CanopenError):
    default_message = "previous message was not processed yet"


class RxPdoOverflowError(CanopenError):
    default_message = "previous PDO was not processed yet"


class RxMsgLengthError(CanopenError):
    default_message = "wrong receive message length"


class RxPdoLengthError(CanopenError):
    default_message = "wrong receive PDO length"


class TxOverflowError(CanopenError):
    default_message = "previous message is still waiting, buffer full"


class TxPdoWindowError(CanopenError):
    default_message = "synchronous TPDO is outside window"


class TxUnconfiguredError(CanopenError):
    default_message = "transmit buffer was not configured properly"


class OdParametersError(CanopenError):
    default_message = "error in Object Dictionary parameters"


class DataCorruptError(CanopenError):
    default_message = "stored data are corrupt"


class CrcError(CanopenError):
    default_message = "crc does not match"


class TxBusyError(CanopenError):
    default_message = "sending rejected because driver is busy. Try again"


class WrongNmtStateError(CanopenError):
    default_message = "command can't be processed in the current state"


class SyscallError(CanopenError):
    default_message = "syscall failed"


class InvalidStateError(CanopenError):
    default_message = "driver not ready"


class NodeIdUnconfiguredLssError(CanopenError):
    default_message = (
        "node-id is in LSS unconfigured state. "
        "If objects are handled properly, this may not be an error"
    )