from sqlalchemy.exc import InterfaceError, OperationalError

# Connection loss, pool timeout and driver I/O failures. Callers may retry these.
STORE_UNAVAILABLE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    TimeoutError,
    OSError,
)
