# cash_register/services/exceptions.py


class RegisterError(Exception):
    """Base cash register exception"""


class RegisterAlreadyOpenError(RegisterError):
    pass


class RegisterAlreadyClosedError(RegisterError):
    pass


class RegisterPermissionError(RegisterError):
    pass
